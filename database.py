import logging
import os
import sqlite3
from typing import Optional

logger = logging.getLogger(__name__)


class GameDatabase:
    """
    Class to handle SQLite storage for the Memory Card game.

    Values are stored as text under a string key, one record per key.
    """

    def __init__(self, db_file="memory_game.db"):
        """
        Initialize the database connection.

        Args:
            db_file: Path to the SQLite database file, ":memory:" for a
                     throwaway database
        """
        self.db_file = db_file
        self.conn = None
        self.cursor = None
        self.initialize_db()

    def initialize_db(self) -> None:
        """Create the database and tables if they don't exist."""
        try:
            # Create database directory if it doesn't exist
            db_dir = os.path.dirname(self.db_file)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)

            # Connect to database (creates it if it doesn't exist)
            self.conn = sqlite3.connect(self.db_file)
            self.cursor = self.conn.cursor()

            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            ''')

            self.conn.commit()
            logger.info("Database %s initialized", self.db_file)
        except sqlite3.Error as e:
            logger.error("Database initialization error: %s", e)
            self.conn = None
            self.cursor = None

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            self.cursor = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key
            default: Returned when the key is missing or the read fails

        Returns:
            The stored text or default
        """
        try:
            if not self.conn:
                self.initialize_db()

            self.cursor.execute('SELECT value FROM storage WHERE key = ?', (key,))
            row = self.cursor.fetchone()
            return row[0] if row else default
        except (sqlite3.Error, AttributeError) as e:
            logger.error("Error reading %s: %s", key, e)
            return default

    def set(self, key: str, value: str) -> bool:
        """
        Store a value under a key, replacing any previous value.

        Returns:
            True if the value was written
        """
        try:
            if not self.conn:
                self.initialize_db()

            self.cursor.execute('''
                INSERT INTO storage (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
            ''', (key, value))

            self.conn.commit()
            return True
        except (sqlite3.Error, AttributeError) as e:
            logger.error("Error writing %s: %s", key, e)
            return False

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if a record was deleted."""
        try:
            if not self.conn:
                self.initialize_db()

            self.cursor.execute('DELETE FROM storage WHERE key = ?', (key,))
            self.conn.commit()
            return self.cursor.rowcount > 0
        except (sqlite3.Error, AttributeError) as e:
            logger.error("Error deleting %s: %s", key, e)
            return False
