"""
Settings management for the memory card game.
"""
import json
import logging
import os

from errors import ConfigurationError
from shared.models import DEFAULT_MAX_HIGHSCORE_ENTRIES, DIFFICULTIES, GameConfig

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"

DEFAULT_SETTINGS = {
    "db_file": "memory_game.db",
    "resolve_delay": 1.0,   # seconds both selected cards stay visible
    "deal_stagger": 0.2,    # seconds between two dealt cards
    "ai_delay": 0.6,        # seconds between two AI flips
    "max_highscore_entries": DEFAULT_MAX_HIGHSCORE_ENTRIES,
    "difficulty": "easy",
}


def load_settings(path=SETTINGS_FILE):
    """
    Load settings from a JSON file, merged over the defaults.

    A missing or unreadable file yields the defaults.
    """
    settings = dict(DEFAULT_SETTINGS)
    if os.path.exists(path):
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s, using defaults: %s", path, e)
            return settings
        if isinstance(data, dict):
            settings.update(data)
        else:
            logger.warning("Ignoring %s, expected a JSON object", path)
    return settings


def save_settings(settings, path=SETTINGS_FILE):
    """Save settings to a JSON file."""
    with open(path, 'w') as f:
        json.dump(settings, f, indent=2)


def validate_settings(settings):
    """
    Check the values the engine relies on.

    Raises:
        ConfigurationError: If a value is out of range
    """
    for key in ("resolve_delay", "deal_stagger", "ai_delay"):
        value = settings.get(key)
        if not isinstance(value, (int, float)) or value < 0:
            raise ConfigurationError(f"{key} must be a non-negative number, got {value!r}")

    max_entries = settings.get("max_highscore_entries")
    if not isinstance(max_entries, int) or max_entries < 1:
        raise ConfigurationError(f"max_highscore_entries must be a positive integer, got {max_entries!r}")

    if settings.get("difficulty") not in DIFFICULTIES:
        raise ConfigurationError(f"Unknown difficulty: {settings.get('difficulty')!r}")

    return settings


def format_time(seconds):
    """Format a duration in seconds as mm:ss, dropping fractions of a second."""
    seconds = int(seconds)
    minutes = seconds // 60
    return f"{minutes:02d}:{seconds % 60:02d}"


def game_config(settings, players=None, difficulty=None, portrait=False):
    """
    Build the config for a new game from the settings.

    Args:
        settings: Validated settings
        players: List of PlayerConfig, one human player if omitted
        difficulty: Preset to play, the configured difficulty if omitted
        portrait: Swap columns and rows for portrait screens
    """
    return GameConfig.for_difficulty(
        difficulty or settings["difficulty"], players, portrait=portrait,
        max_highscore_entries=settings["max_highscore_entries"]
    )
