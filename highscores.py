"""
Ranked table of the best results.

The table keeps the highest scores, best first. Equal scores keep the order in
which they were added, so the earlier result stays ahead.
"""
import json
import logging
from typing import List, Optional, Tuple

from errors import ConfigurationError
from shared.models import DEFAULT_MAX_HIGHSCORE_ENTRIES, HighscoreEntry

logger = logging.getLogger(__name__)

HIGHSCORES_KEY = 'memory-game__highscores'


class HighscoreStore:
    """
    Keeps the best max_entries results and persists them after every change.

    Args:
        storage: Object with get(key, default) and set(key, value), usually a
                 GameDatabase. Without storage the table only lives in memory.
        max_entries: Maximum number of entries kept
        key: Storage key of the serialized table
    """

    def __init__(self, storage=None, max_entries=DEFAULT_MAX_HIGHSCORE_ENTRIES, key=HIGHSCORES_KEY):
        if max_entries < 1:
            raise ConfigurationError(f"A highscore table needs at least one entry, got {max_entries}")
        self.storage = storage
        self.max_entries = max_entries
        self.key = key
        self._entries: List[HighscoreEntry] = []

        self.restore_scores()

    def insert(self, entry: HighscoreEntry) -> Optional[int]:
        """
        Add a result to the table.

        Args:
            entry: The result to add

        Returns:
            Zero-based rank of the new entry, None if it did not make the table
        """
        self._entries.append(entry)
        # sorted() is stable, also with reverse=True
        ranked = sorted(self._entries, key=lambda e: e.score, reverse=True)
        self._entries = ranked[:self.max_entries]

        self.store_scores()

        for rank, kept in enumerate(self._entries):
            if kept is entry:
                logger.info("Highscore %s (%d) ranked %d", entry.name, entry.score, rank + 1)
                return rank
        return None

    def set_max_entries(self, max_entries: int) -> None:
        """Change the table size, dropping entries that no longer fit."""
        if max_entries < 1:
            raise ConfigurationError(f"A highscore table needs at least one entry, got {max_entries}")
        if max_entries == self.max_entries:
            return
        self.max_entries = max_entries
        if len(self._entries) > max_entries:
            self._entries = self._entries[:max_entries]
            self.store_scores()

    def add(self, name: str, score: int) -> Optional[int]:
        return self.insert(HighscoreEntry(name=name, score=score))

    def qualifies(self, score: int) -> bool:
        """Check whether a score would enter the table."""
        if len(self._entries) < self.max_entries:
            return True
        # ties rank behind existing entries
        return score > self._entries[-1].score

    def get_high_scores(self, limit: Optional[int] = None) -> Tuple[HighscoreEntry, ...]:
        """
        Get the ranked table.

        Args:
            limit: Maximum number of entries to return

        Returns:
            Entries, best first
        """
        entries = self._entries if limit is None else self._entries[:limit]
        return tuple(entries)

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))

    def restore_scores(self) -> None:
        """Load the table from storage. Unreadable data leaves the table empty."""
        self._entries = []
        if self.storage is None:
            return

        raw = self.storage.get(self.key, '[]')
        try:
            data = json.loads(raw or '[]')
            entries = [HighscoreEntry.from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError) as e:
            logger.error("Ignoring unreadable highscores under %s: %s", self.key, e)
            return

        self._entries = sorted(entries, key=lambda e: e.score, reverse=True)[:self.max_entries]

    def store_scores(self) -> None:
        if self.storage is None:
            return
        self.storage.set(self.key, json.dumps([entry.to_dict() for entry in self._entries]))

    def __str__(self):
        """Return a string representation of the high scores."""
        if not self._entries:
            return "No high scores yet!"

        result = ["===== HIGH SCORES ====="]
        for i, entry in enumerate(self._entries):
            result.append(f"{i + 1}. {entry.name}: {entry.score}")
        return "\n".join(result)
