import logging
import random
from typing import Optional, Sequence

from ai_player import AiPlayerController
from classes import DEFAULT_RESOLVE_DELAY, SYMBOLS, Board, Deck, Player
from errors import ConfigurationError, StateError
from events import EventBus, GameFinished
from highscores import HighscoreStore
from scheduler import Scheduler
from shared.models import GameConfig, GameResult, HighscoreEntry
from turns import TurnController

logger = logging.getLogger(__name__)


class MemoryGame:
    """
    Main game class that orchestrates the memory card game.

    A MemoryGame outlives single games: start_game() throws away the previous
    board, players and AI memory and deals a new board. Presentation code
    subscribes once to self.events and receives the events of every game.
    """

    def __init__(self, highscores: Optional[HighscoreStore] = None,
                 scheduler: Optional[Scheduler] = None,
                 rng: Optional[random.Random] = None,
                 palette: Sequence[str] = SYMBOLS,
                 resolve_delay: float = DEFAULT_RESOLVE_DELAY,
                 deal_stagger: float = 0.0,
                 ai_delay: float = 0.0):
        """
        Initialize a new memory card game.

        Args:
            highscores: Highscore table results are entered into
            scheduler: Scheduler for all timers, polled by update()
            rng: Random generator for shuffling and AI guesses
            palette: Symbols for the card fronts
            resolve_delay: Seconds two selected cards stay visible
            deal_stagger: Seconds between two dealt cards, 0 deals instantly
            ai_delay: Seconds between two AI flips, 0 flips instantly
        """
        self.highscores = highscores if highscores is not None else HighscoreStore()
        self.scheduler = scheduler or Scheduler()
        self.rng = rng or random.Random()
        self.palette = list(palette)
        self.resolve_delay = resolve_delay
        self.deal_stagger = deal_stagger
        self.ai_delay = ai_delay
        self.events = EventBus()

        self.config: Optional[GameConfig] = None
        self.board: Optional[Board] = None
        self.turns: Optional[TurnController] = None
        self.ai: Optional[AiPlayerController] = None
        self.result: Optional[GameResult] = None

    def start_game(self, config: GameConfig) -> Board:
        """
        Start a new game, replacing any game in progress.

        Args:
            config: Grid size, number of pairs and players

        Returns:
            The new board

        Raises:
            ConfigurationError: If the config cannot be played
        """
        if not config.players:
            raise ConfigurationError("A game needs at least one player")

        cards = Deck.build(config.pair_count, self.palette, self.rng)
        if config.columns <= 0 or config.rows <= 0 or config.columns * config.rows != len(cards):
            raise ConfigurationError(
                f"A {config.columns}x{config.rows} grid cannot hold {config.pair_count} pairs"
            )
        self.highscores.set_max_entries(config.max_highscore_entries)

        # Timers of the previous game must not touch the new one
        self.scheduler.cancel_all()

        game_events = EventBus()
        players = [Player(player.name, player.is_human) for player in config.players]
        board = Board(cards, config.columns, config.rows, events=game_events,
                      scheduler=self.scheduler, resolve_delay=self.resolve_delay)

        ai = AiPlayerController(self.rng)
        ai.start_game(range(len(cards)))
        ai.attach(game_events)

        turns = TurnController(players, board, game_events, ai=ai,
                               clock=self.scheduler.now, ai_delay=self.ai_delay)
        game_events.subscribe(GameFinished, self._on_game_finished)
        game_events.relay(self.events)

        self.config = config
        self.board = board
        self.ai = ai
        self.turns = turns
        self.result = None

        logger.info("Game started: %dx%d grid, %d pairs, players: %s",
                    config.columns, config.rows, config.pair_count,
                    ", ".join(str(player) for player in players))
        board.deal(self.deal_stagger)
        return board

    def flip(self, position) -> bool:
        """
        Flip a card for the human player whose turn it is.

        Clicks during a computer player's turn or after the game ended are
        ignored.

        Returns:
            True if the card was flipped
        """
        if self.board is None:
            raise StateError("No game has been started")
        if self.turns.finished or not self.turns.current_player.is_human:
            return False
        return self.board.flip(position)

    def update(self) -> int:
        """
        Update game state - should be called regularly in a game loop.

        Returns:
            Number of timers that fired
        """
        return self.scheduler.update()

    def submit_highscore(self, name: Optional[str] = None) -> Optional[int]:
        """
        Enter the winner of the finished game into the highscore table.

        Args:
            name: Name for the table, the winner's name if omitted

        Returns:
            Zero-based rank, None if the score did not make the table

        Raises:
            StateError: If no game has finished or it was already recorded
        """
        if self.result is None:
            raise StateError("No finished game to record")
        if self.result.highscore_recorded:
            raise StateError("The result of this game was already recorded")

        name = (name or "").strip() or self.result.winner_name
        rank = self.highscores.insert(HighscoreEntry(name=name, score=self.result.score))
        self.result.highscore_recorded = True
        return rank

    def _on_game_finished(self, event):
        self.result = GameResult.create_from_game_end(event.winner, event.elapsed, event.players)

    @property
    def players(self):
        return self.turns.players if self.turns else []

    @property
    def current_player(self) -> Optional[Player]:
        return self.turns.current_player if self.turns else None

    @property
    def elapsed(self) -> float:
        return self.turns.elapsed if self.turns else 0.0

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    def __str__(self):
        """Return a string representation of the game state."""
        if self.board is None:
            return "No game started"
        status = "Finished" if self.is_finished else "Active"
        players = "\n".join(str(player) for player in self.players)
        return f"Game Status: {status}\n{players}\n{self.board}"
