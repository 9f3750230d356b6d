"""
Computer opponent for the memory card game.

The controller only knows what a human sitting at the table could know: the
symbols of cards it has seen flipped, and which cards have left the board.

When it is the AI player's turn:
1. Uncover a known pair if there is one.
2. Otherwise flip a card that was never uncovered.
3. For the second card, flip the partner of the first card if it is known,
   otherwise a random card that was already seen, otherwise a random unseen one.
"""
import logging
import random
from typing import Dict, Iterable, List, Optional

from errors import NoMovesAvailable
from events import CardFlipped, CardHidden, CardRemoved, EventBus

logger = logging.getLogger(__name__)


class AiPlayerController:
    """
    Card memory and decision policy of a computer player.

    memory maps every position still on the board to the symbol seen there,
    or None when the card has never been uncovered. Removed cards are deleted
    from memory.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random
        self.memory: Dict[int, Optional[str]] = {}
        self.active_reveals: List[int] = []

    def start_game(self, positions: Iterable[int]) -> None:
        """Forget everything and track the given board positions as unknown."""
        self.memory = {position: None for position in positions}
        self.active_reveals = []

    def attach(self, events: EventBus) -> None:
        """Observe the board through its events."""
        events.subscribe(CardFlipped, self.on_card_flipped)
        events.subscribe(CardHidden, self.on_card_hidden)
        events.subscribe(CardRemoved, self.on_card_removed)

    def on_card_flipped(self, event: CardFlipped) -> None:
        if event.position not in self.memory:
            return
        self.memory[event.position] = event.symbol
        if event.position not in self.active_reveals:
            self.active_reveals.append(event.position)

    def on_card_hidden(self, event: CardHidden) -> None:
        if event.position in self.active_reveals:
            self.active_reveals.remove(event.position)

    def on_card_removed(self, event: CardRemoved) -> None:
        self.memory.pop(event.position, None)
        if event.position in self.active_reveals:
            self.active_reveals.remove(event.position)

    def continue_turn(self) -> bool:
        """True while the current move still needs another card."""
        return len(self.active_reveals) < 2

    def choose_card(self) -> int:
        """
        Pick the position to flip next.

        Returns:
            Board position of the chosen card

        Raises:
            NoMovesAvailable: If no card is left to choose
        """
        available = sorted(position for position in self.memory if position not in self.active_reveals)
        if not available:
            raise NoMovesAvailable("No card left to flip")

        known = [position for position in available if self.memory[position] is not None]
        unknown = [position for position in available if self.memory[position] is None]

        if len(self.active_reveals) == 1:
            symbol = self.memory.get(self.active_reveals[0])
            for position in known:
                if self.memory[position] == symbol:
                    logger.debug("AI completes known pair %s at %d", symbol, position)
                    return position
            if known:
                return self.rng.choice(known)
            return self.rng.choice(unknown)

        pair = self._find_known_pair(known)
        if pair is not None:
            logger.debug("AI uncovers known pair at %s", pair)
            return pair[0]
        if unknown:
            return self.rng.choice(unknown)
        return self.rng.choice(known)

    def _find_known_pair(self, known):
        for i, first in enumerate(known):
            for second in known[i + 1:]:
                if self.memory[first] == self.memory[second]:
                    return first, second
        return None
