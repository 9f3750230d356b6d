"""
Exceptions raised by the memory card game engine.
"""


class MemoryGameError(Exception):
    """Base class for all memory game errors."""


class ConfigurationError(MemoryGameError, ValueError):
    """Raised when a game cannot be set up with the given parameters."""


class StateError(MemoryGameError, RuntimeError):
    """Raised when an operation is invoked before its precondition holds."""


class NoMovesAvailable(MemoryGameError):
    """Raised when the AI player has no card left to choose."""
