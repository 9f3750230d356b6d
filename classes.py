import logging
import random
from enum import Enum
from functools import partial
from typing import List, Optional, Sequence, Tuple

from errors import ConfigurationError, StateError
from events import (
    BoardCleared,
    BoardReady,
    CardFlipped,
    CardHidden,
    CardMatched,
    CardRemoved,
    DealCompleted,
    DealStarted,
    EventBus,
    MoveResolved,
)
from scheduler import Scheduler

logger = logging.getLogger(__name__)

# Names of the symbols shown on the card fronts. Smaller games always use a
# prefix of this list.
SYMBOLS = [
    'heart', 'star', 'bomb', 'cloud', 'face-smile', 'car', 'ghost', 'camera',
    'fire', 'gear', 'lemon', 'droplet', 'flask', 'palette', 'bug', 'shirt',
    'cross', 'hammer', 'rocket', 'square', 'fish', 'mug-hot', 'sun', 'music',
    'leaf', 'moon', 'train', 'ship', 'lightbulb', 'tooth', 'spider', 'skull',
    'shoe-prints', 'sailboat', 'poop',
]

DEFAULT_RESOLVE_DELAY = 1.0


class CardState(Enum):
    FACE_DOWN = "face down"
    FACE_UP = "face up"
    MATCHED = "matched"


class BoardState(Enum):
    NEW = "new"
    DEALING = "dealing"
    READY = "ready"
    SELECTING = "selecting"
    RESOLVING = "resolving"
    CLEARED = "cleared"


class Card:
    """
    A class representing a memory card.
    The symbol never changes, the position is assigned when the card is dealt.
    """

    def __init__(self, symbol, position=None):
        """
        Initialize a new card.

        Args:
            symbol: The symbol shown when the card is face up
            position: Row-major index on the board, None until dealt
        """
        self._symbol = symbol
        self.position = position
        self.state = CardState.FACE_DOWN

    @property
    def symbol(self):
        return self._symbol

    @property
    def is_face_up(self):
        return self.state is CardState.FACE_UP

    @property
    def is_matched(self):
        return self.state is CardState.MATCHED

    def __str__(self):
        """Return a string representation of the card."""
        return f"Card({self.symbol}, {self.state.value})"

    def __repr__(self):
        """Return a detailed string representation of the card."""
        return f"Card(symbol={self.symbol!r}, position={self.position}, state={self.state.name})"


class Deck:
    """Builds shuffled decks of paired cards."""

    @staticmethod
    def build(pair_count: int, palette: Sequence[str] = SYMBOLS,
              rng: Optional[random.Random] = None) -> List[Card]:
        """
        Build a shuffled deck.

        Takes the first pair_count symbols of the palette, so smaller decks
        always use the same symbols.

        Args:
            pair_count: Number of pairs in the deck
            palette: Ordered symbols to pick from
            rng: Random generator, the module level one if omitted

        Returns:
            List of 2 * pair_count cards in random order

        Raises:
            ConfigurationError: If pair_count is not positive or larger than the palette
        """
        if pair_count <= 0:
            raise ConfigurationError(f"Number of pairs must be positive, got {pair_count}")
        if pair_count > len(palette):
            raise ConfigurationError(
                f"Not enough symbols. Need {pair_count} symbols, palette has {len(palette)}."
            )

        rng = rng or random
        remaining = list(palette[:pair_count]) * 2
        shuffled = []

        # Draw a random remaining card and swap-remove it
        while remaining:
            index = rng.randrange(len(remaining))
            remaining[index], remaining[-1] = remaining[-1], remaining[index]
            shuffled.append(remaining.pop())

        return [Card(symbol) for symbol in shuffled]


class Board:
    """
    The game board: owns the cards and the two-card selection.

    Flipping a second card arms a resolution timer. When it fires the two
    cards are compared and either removed (match) or turned face down again.
    """

    def __init__(self, cards: List[Card], columns: int, rows: int,
                 events: Optional[EventBus] = None,
                 scheduler: Optional[Scheduler] = None,
                 resolve_delay: float = DEFAULT_RESOLVE_DELAY):
        """
        Initialize a new game board.

        Args:
            cards: Cards in dealing order (see Deck.build)
            columns: Number of columns in the grid
            rows: Number of rows in the grid
            events: Bus the board emits its events on
            scheduler: Scheduler used for the resolution delay and dealing
            resolve_delay: Seconds both selected cards stay visible
        """
        self.columns = columns
        self.rows = rows
        self.events = events or EventBus()
        self.scheduler = scheduler or Scheduler()
        self.resolve_delay = resolve_delay
        self.state = BoardState.NEW

        self._cards = list(cards)
        self._selection: List[int] = []
        self._resolve_timer = None
        self._deals_outstanding = 0
        self._matched = 0

    @property
    def cards(self) -> Tuple[Card, ...]:
        return tuple(self._cards)

    @property
    def selection(self) -> Tuple[int, ...]:
        """Positions of the face-up cards waiting for resolution."""
        return tuple(self._selection)

    @property
    def accepts_flips(self) -> bool:
        return self.state in (BoardState.READY, BoardState.SELECTING) and len(self._selection) < 2

    @property
    def remaining(self) -> int:
        """Number of cards not matched yet."""
        return len(self._cards) - self._matched

    def is_cleared(self) -> bool:
        return self.state is BoardState.CLEARED

    def get_card(self, position) -> Optional[Card]:
        """Get the card at a row-major position, None if there is none."""
        if isinstance(position, int) and 0 <= position < len(self._cards):
            return self._cards[position]
        return None

    def get_card_at(self, row, col) -> Optional[Card]:
        """Get the card at a grid cell, None if the cell is outside the grid."""
        if 0 <= row < self.rows and 0 <= col < self.columns:
            return self.get_card(row * self.columns + col)
        return None

    def deal(self, stagger: float = 0.0) -> None:
        """
        Place the cards on the grid.

        Every card gets its row-major position and a DealStarted event. With a
        stagger each card arrives stagger seconds after the previous one; the
        board only becomes ready once every card has arrived.

        Args:
            stagger: Seconds between two cards arriving

        Raises:
            StateError: If the cards were already dealt
            ConfigurationError: If the grid does not hold exactly the cards
        """
        if self.state is not BoardState.NEW:
            raise StateError("Cards have already been dealt")
        if self.columns <= 0 or self.rows <= 0:
            raise ConfigurationError(f"Invalid grid {self.columns}x{self.rows}")
        if self.columns * self.rows != len(self._cards):
            raise ConfigurationError(
                f"A {self.columns}x{self.rows} grid cannot hold {len(self._cards)} cards"
            )

        self.state = BoardState.DEALING
        self._deals_outstanding = len(self._cards)
        logger.debug("Dealing %d cards on a %dx%d grid", len(self._cards), self.columns, self.rows)

        for index, card in enumerate(self._cards):
            card.position = index
            self.events.emit(DealStarted(position=index, stagger_index=index))
            if stagger > 0:
                self.scheduler.call_later(index * stagger, partial(self._complete_deal, index))
            else:
                self._complete_deal(index)

    def _complete_deal(self, position):
        self.events.emit(DealCompleted(position=position))
        self._deals_outstanding -= 1
        if self._deals_outstanding == 0:
            self.state = BoardState.READY
            logger.debug("Board ready")
            self.events.emit(BoardReady())

    def flip(self, position) -> bool:
        """
        Flip a face-down card face up.

        Invalid flips (wrong state, already selected, matched, unknown
        position, third card) are ignored.

        Args:
            position: Row-major position of the card

        Returns:
            True if the card was flipped, False otherwise

        Raises:
            StateError: If the cards have not been dealt yet
        """
        if self.state is BoardState.NEW:
            raise StateError("Cannot flip a card before the cards are dealt")
        if not self.accepts_flips:
            return False

        card = self.get_card(position)
        if card is None or card.state is not CardState.FACE_DOWN or position in self._selection:
            return False

        card.state = CardState.FACE_UP
        self._selection.append(position)

        if len(self._selection) == 2:
            self.state = BoardState.RESOLVING
            self._resolve_timer = self.scheduler.call_later(self.resolve_delay, self._resolve)
        else:
            self.state = BoardState.SELECTING

        logger.debug("Flipped %s", card)
        self.events.emit(CardFlipped(position=position, symbol=card.symbol))
        return True

    def _resolve(self):
        self._resolve_timer = None
        positions = tuple(self._selection)
        first, second = (self._cards[position] for position in positions)
        self._selection = []

        if first.symbol == second.symbol:
            first.state = second.state = CardState.MATCHED
            self._matched += 2
            cleared = self._matched == len(self._cards)
            self.state = BoardState.CLEARED if cleared else BoardState.READY
            logger.debug("Match %s at %s", first.symbol, positions)

            self.events.emit(CardMatched(positions=positions, symbol=first.symbol))
            for position in positions:
                self.events.emit(CardRemoved(position=position))
            self.events.emit(MoveResolved(success=True))
            if cleared:
                logger.debug("Board cleared")
                self.events.emit(BoardCleared())
        else:
            first.state = second.state = CardState.FACE_DOWN
            self.state = BoardState.READY
            logger.debug("No match at %s", positions)

            for position in positions:
                self.events.emit(CardHidden(position=position))
            self.events.emit(MoveResolved(success=False))

    def get_board_state(self):
        """
        Get the current state of the board as a 2D array.

        Returns:
            Rows of cells: the symbol for face-up cards, "?" for face-down
            cards and "M" for matched ones
        """
        board_state = []
        for row in range(self.rows):
            row_state = []
            for col in range(self.columns):
                card = self.get_card_at(row, col)
                if card is None:
                    row_state.append(" ")
                elif card.is_matched:
                    row_state.append("M")
                elif card.is_face_up:
                    row_state.append(str(card.symbol))
                else:
                    row_state.append("?")
            board_state.append(row_state)
        return board_state

    def __str__(self) -> str:
        """Return a string representation of the board."""
        return "\n".join(" ".join(row) for row in self.get_board_state())


class Player:
    """
    A player in the memory card game.
    Tracks player information and score.
    """

    def __init__(self, name="Player", is_human=True):
        """
        Initialize a new player.

        Args:
            name: The player's name
            is_human: False for computer controlled players
        """
        self.name = name
        self.is_human = is_human
        self.score = 0
        self.moves = 0

    def add_score(self, score=1):
        """Add matched pairs to the player's score."""
        self.score += score
        return self.score

    def add_moves(self, moves=1):
        """Increment the player's move counter."""
        self.moves += moves

    @property
    def errors(self):
        """Moves that did not find a pair."""
        return max(0, self.moves - self.score)

    def reset(self):
        """Reset the player's stats for a new game."""
        self.score = 0
        self.moves = 0

    def __str__(self):
        """Return a string representation of the player."""
        kind = "" if self.is_human else " (AI)"
        return f"{self.name}{kind}: Score={self.score}, Moves={self.moves}"

    def __repr__(self):
        return f"Player(name={self.name!r}, is_human={self.is_human}, score={self.score}, moves={self.moves})"
