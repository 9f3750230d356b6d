import logging
import time
from typing import Callable, List, Optional

from classes import Board, Player
from errors import ConfigurationError, NoMovesAvailable
from events import (
    BoardCleared,
    BoardReady,
    CardMatched,
    EventBus,
    GameFinished,
    MoveResolved,
    TurnChanged,
)

logger = logging.getLogger(__name__)


class TurnController:
    """
    Keeps track of whose turn it is and of every player's score and moves.

    A player who finds a pair keeps the turn, a failed move passes it to the
    next player. Computer players are played through the AI controller, which
    flips cards on the board exactly like a click would.
    """

    def __init__(self, players: List[Player], board: Board, events: EventBus,
                 ai=None, clock: Optional[Callable[[], float]] = None, ai_delay: float = 0.0):
        """
        Args:
            players: Players in turn order
            board: The board the game is played on
            events: Bus the board emits on
            ai: AiPlayerController used for players that are not human
            clock: Time source for the play time (defaults to time.monotonic)
            ai_delay: Seconds between two AI flips, 0 to flip immediately
        """
        if not players:
            raise ConfigurationError("A game needs at least one player")
        if ai is None and not all(player.is_human for player in players):
            raise ConfigurationError("Computer players need an AI controller")

        self.players = list(players)
        self.board = board
        self.events = events
        self.ai = ai
        self.clock = clock or time.monotonic
        self.ai_delay = ai_delay
        self.current_player_index = 0
        self.start_time = None
        self.end_time = None
        self.finished = False
        self._ai_timer = None

        events.subscribe(BoardReady, self.on_board_ready)
        events.subscribe(CardMatched, self.on_card_matched)
        events.subscribe(MoveResolved, self.on_move_resolved)
        events.subscribe(BoardCleared, self.on_board_cleared)

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def elapsed(self) -> float:
        """Play time in seconds, frozen once the board is cleared."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else self.clock()
        return end - self.start_time

    def winner(self) -> Player:
        """The first player with the highest score."""
        winning_player = self.players[0]
        for player in self.players[1:]:
            if player.score > winning_player.score:
                winning_player = player
        return winning_player

    def on_board_ready(self, event):
        self.start_time = self.clock()
        self.events.emit(TurnChanged(self.current_player_index, self.current_player))
        self.play_ai_turn()

    def on_card_matched(self, event):
        self.current_player.add_score(1)

    def on_move_resolved(self, event):
        self.current_player.add_moves(1)

        if not event.success:
            self.current_player_index = (self.current_player_index + 1) % len(self.players)
            logger.debug("Turn passes to %s", self.current_player.name)
            self.events.emit(TurnChanged(self.current_player_index, self.current_player))

        self.play_ai_turn()

    def on_board_cleared(self, event):
        if self.finished:
            return
        self.finished = True
        self.end_time = self.clock()

        winner = self.winner()
        logger.info("Game finished, %s wins with %d pairs in %.1f seconds",
                    winner.name, winner.score, self.elapsed)
        self.events.emit(GameFinished(winner=winner, elapsed=self.elapsed, players=tuple(self.players)))

    def play_ai_turn(self):
        """Let a computer player flip cards until its move is complete."""
        if self.finished or self.current_player.is_human or self._ai_timer is not None:
            return

        if self.ai_delay > 0:
            self._ai_timer = self.board.scheduler.call_later(self.ai_delay, self._delayed_ai_flip)
            return

        while self._ai_can_flip():
            if not self._ai_flip():
                return

    def _ai_can_flip(self):
        return (not self.finished
                and not self.current_player.is_human
                and self.board.accepts_flips
                and self.ai.continue_turn())

    def _ai_flip(self):
        try:
            position = self.ai.choose_card()
        except NoMovesAvailable as e:
            logger.error("AI turn aborted: %s", e)
            return False

        if not self.board.flip(position):
            logger.error("AI chose position %s which cannot be flipped", position)
            return False
        logger.debug("%s flipped %d", self.current_player.name, position)
        return True

    def _delayed_ai_flip(self):
        self._ai_timer = None
        if self._ai_can_flip() and self._ai_flip() and self._ai_can_flip():
            self.play_ai_turn()
