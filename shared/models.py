"""
Shared data models for the game engine, the persistence layer and the GUI.
This ensures consistency in data structures across components.
"""
from dataclasses import dataclass, field
from typing import List

from errors import ConfigurationError

# Grid layouts (landscape) and number of pairs per difficulty
DIFFICULTIES = {
    'easy': {'columns': 6, 'rows': 5, 'pairs': 15},
    'medium': {'columns': 8, 'rows': 5, 'pairs': 20},
    'hard': {'columns': 10, 'rows': 5, 'pairs': 25},
    'extra-hard': {'columns': 10, 'rows': 7, 'pairs': 35},
}

DEFAULT_MAX_HIGHSCORE_ENTRIES = 10


@dataclass
class PlayerConfig:
    """A player taking part in a game."""
    name: str
    is_human: bool = True

    @classmethod
    def from_dict(cls, data):
        """Create a PlayerConfig object from a dictionary."""
        return cls(
            name=str(data.get('name', 'Player')),
            is_human=bool(data.get('is_human', True))
        )

    def to_dict(self):
        """Convert the PlayerConfig object to a dictionary."""
        return {'name': self.name, 'is_human': self.is_human}


@dataclass
class GameConfig:
    """Everything needed to start a game session."""
    columns: int
    rows: int
    pair_count: int
    players: List[PlayerConfig] = field(default_factory=lambda: [PlayerConfig('Player 1')])
    max_highscore_entries: int = DEFAULT_MAX_HIGHSCORE_ENTRIES

    @classmethod
    def for_difficulty(cls, difficulty, players=None, portrait=False,
                       max_highscore_entries=DEFAULT_MAX_HIGHSCORE_ENTRIES):
        """
        Create a config from one of the difficulty presets.

        Args:
            difficulty: Key of DIFFICULTIES
            players: List of PlayerConfig, one human player if omitted
            portrait: Swap columns and rows for portrait screens
            max_highscore_entries: Size of the highscore table

        Raises:
            ConfigurationError: If the difficulty is unknown
        """
        if difficulty not in DIFFICULTIES:
            raise ConfigurationError(f"Unknown difficulty: {difficulty}")

        preset = DIFFICULTIES[difficulty]
        columns, rows = preset['columns'], preset['rows']
        if portrait:
            columns, rows = rows, columns

        return cls(
            columns=columns,
            rows=rows,
            pair_count=preset['pairs'],
            players=list(players) if players else [PlayerConfig('Player 1')],
            max_highscore_entries=max_highscore_entries
        )

    @classmethod
    def from_dict(cls, data):
        """Create a GameConfig object from a dictionary."""
        return cls(
            columns=int(data.get('columns', 0)),
            rows=int(data.get('rows', 0)),
            pair_count=int(data.get('pair_count', 0)),
            players=[PlayerConfig.from_dict(player) for player in data.get('players', [])],
            max_highscore_entries=int(data.get('max_highscore_entries', DEFAULT_MAX_HIGHSCORE_ENTRIES))
        )

    def to_dict(self):
        """Convert the GameConfig object to a dictionary."""
        return {
            'columns': self.columns,
            'rows': self.rows,
            'pair_count': self.pair_count,
            'players': [player.to_dict() for player in self.players],
            'max_highscore_entries': self.max_highscore_entries
        }


@dataclass(frozen=True)
class HighscoreEntry:
    """A single line of the highscore table."""
    name: str
    score: int

    @classmethod
    def from_dict(cls, data):
        """Create a HighscoreEntry object from a dictionary."""
        return cls(name=str(data['name']), score=int(data['score']))

    def to_dict(self):
        """Convert the HighscoreEntry object to a dictionary."""
        return {'name': self.name, 'score': self.score}


@dataclass
class GameResult:
    """Outcome of a finished game."""
    winner_name: str
    score: int
    moves: int
    duration_seconds: float
    player_count: int = 1
    highscore_recorded: bool = False

    @classmethod
    def create_from_game_end(cls, winner, elapsed, players):
        """Create a GameResult object from the players of a finished game."""
        return cls(
            winner_name=winner.name,
            score=winner.score,
            moves=winner.moves,
            duration_seconds=elapsed,
            player_count=len(players)
        )

    def to_dict(self):
        """Convert the GameResult object to a dictionary."""
        return {
            'winner_name': self.winner_name,
            'score': self.score,
            'moves': self.moves,
            'duration_seconds': self.duration_seconds,
            'player_count': self.player_count,
            'highscore_recorded': self.highscore_recorded
        }
