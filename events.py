"""
Events emitted by the game engine and the bus that delivers them.

Presentation code (rendering, sound, animations) subscribes to these events
instead of being called directly by the engine.
"""
import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealStarted:
    position: int
    stagger_index: int


@dataclass(frozen=True)
class DealCompleted:
    position: int


@dataclass(frozen=True)
class BoardReady:
    """All cards have been dealt and the board accepts flips."""


@dataclass(frozen=True)
class CardFlipped:
    position: int
    symbol: str


@dataclass(frozen=True)
class CardHidden:
    """A card was turned face down again after a failed move."""
    position: int


@dataclass(frozen=True)
class CardMatched:
    """Emitted once for every matched pair."""
    positions: Tuple[int, int]
    symbol: str


@dataclass(frozen=True)
class CardRemoved:
    position: int


@dataclass(frozen=True)
class MoveResolved:
    success: bool


@dataclass(frozen=True)
class BoardCleared:
    pass


@dataclass(frozen=True)
class TurnChanged:
    player_index: int
    player: Any


@dataclass(frozen=True)
class GameFinished:
    winner: Any
    elapsed: float
    players: Tuple[Any, ...]


Handler = Callable[[Any], None]


class EventBus:
    """
    Synchronous publish/subscribe dispatcher.

    Handlers are called in subscription order. A handler may emit further
    events; local handlers receive those immediately (depth first). Relayed
    buses receive every event in emission order, once the outermost emit
    has finished its local handlers.
    """

    def __init__(self):
        self._handlers: Dict[Type, List[Handler]] = defaultdict(list)
        self._relays: List["EventBus"] = []
        self._outbox: Deque[Any] = deque()
        self._dispatching = False

    def subscribe(self, event_type: Type, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for an event type.

        Args:
            event_type: The event class to listen for
            handler: Callable receiving the event instance

        Returns:
            A function that removes the subscription again
        """
        self._handlers[event_type].append(handler)

        def unsubscribe():
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def emit(self, event) -> None:
        """Deliver an event to every handler registered for its type."""
        handlers = list(self._handlers.get(type(event), ()))
        logger.debug("emit %s to %d handler(s)", event, len(handlers))
        if self._relays:
            self._outbox.append(event)

        if self._dispatching:
            for handler in handlers:
                handler(event)
            return

        self._dispatching = True
        try:
            for handler in handlers:
                handler(event)
            while self._outbox:
                queued = self._outbox.popleft()
                for bus in list(self._relays):
                    bus.emit(queued)
        finally:
            self._dispatching = False
            self._outbox.clear()

    def relay(self, bus: "EventBus") -> None:
        """Forward every event emitted here to another bus, in emission order."""
        self._relays.append(bus)

    def clear(self, event_type: Optional[Type] = None) -> None:
        """Remove all handlers and relays, or only the handlers of one event type."""
        if event_type is None:
            self._handlers.clear()
            self._relays.clear()
        else:
            self._handlers.pop(event_type, None)
