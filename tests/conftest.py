import random

import pytest

from classes import Board, Card
from events import EventBus
from scheduler import Scheduler


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class EventRecorder:
    """Collects every event emitted on a bus."""

    def __init__(self, bus, *event_types):
        self.events = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_board(events, scheduler):
    """Build a board from a fixed layout of symbols, row-major."""

    def _make_board(symbols, columns, rows, resolve_delay=1.0):
        cards = [Card(symbol) for symbol in symbols]
        return Board(cards, columns, rows, events=events, scheduler=scheduler, resolve_delay=resolve_delay)

    return _make_board


def resolve(clock, scheduler, seconds=1.0):
    """Let the resolution timer fire."""
    clock.advance(seconds)
    return scheduler.update()
