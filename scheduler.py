"""
Polled timer scheduler for the game loop.

Nothing here uses threads. The game loop calls update() every frame and every
callback whose due time has passed is run in due order.
"""
import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback. Can be cancelled until it has fired."""

    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        """Prevent the callback from running."""
        self.cancelled = True

    @property
    def pending(self):
        return not (self.cancelled or self.fired)

    def __repr__(self):
        return f"TimerHandle(due={self.due:.3f}, pending={self.pending})"


class Scheduler:
    """
    Run callbacks after a delay, driven by an external clock.

    Args:
        clock: Callable returning the current time in seconds
               (defaults to time.monotonic)
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or time.monotonic
        self._queue: List = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self.clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """
        Schedule a callback.

        Args:
            delay: Seconds from now, negative values are treated as zero
            callback: Function called without arguments

        Returns:
            Handle that can be used to cancel the callback
        """
        handle = TimerHandle(self.now() + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def update(self) -> int:
        """
        Run every callback that is due.

        Returns:
            Number of callbacks that were run
        """
        now = self.now()
        ran = 0
        while self._queue and self._queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            handle.fired = True
            handle.callback()
            ran += 1
        return ran

    def cancel_all(self) -> None:
        """Drop every pending callback."""
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for _, _, handle in self._queue if handle.pending)
