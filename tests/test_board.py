import pytest

from classes import BoardState, CardState
from conftest import EventRecorder, resolve
from errors import ConfigurationError, StateError
from events import (
    BoardCleared,
    BoardReady,
    CardFlipped,
    CardHidden,
    CardMatched,
    CardRemoved,
    DealCompleted,
    DealStarted,
    MoveResolved,
)

ALL_EVENTS = (DealStarted, DealCompleted, BoardReady, CardFlipped, CardHidden,
              CardMatched, CardRemoved, MoveResolved, BoardCleared)


@pytest.fixture
def board(make_board):
    # A B
    # A B
    board = make_board(['A', 'B', 'A', 'B'], columns=2, rows=2)
    board.deal()
    return board


@pytest.fixture
def recorder(events):
    return EventRecorder(events, *ALL_EVENTS)


def test_deal_assigns_row_major_positions(make_board, recorder):
    board = make_board(['A', 'B', 'A', 'B'], columns=2, rows=2)
    board.deal()

    assert [card.position for card in board.cards] == [0, 1, 2, 3]
    assert board.get_card_at(1, 0).position == 2
    assert board.state is BoardState.READY
    assert len(recorder.of_type(DealStarted)) == 4
    assert len(recorder.of_type(DealCompleted)) == 4
    assert recorder.of_type(BoardReady) == [BoardReady()]


def test_deal_rejects_wrong_grid(make_board):
    board = make_board(['A', 'B', 'A', 'B'], columns=3, rows=2)
    with pytest.raises(ConfigurationError):
        board.deal()


def test_deal_twice(board):
    with pytest.raises(StateError):
        board.deal()


def test_flip_before_deal(make_board):
    board = make_board(['A', 'A'], columns=2, rows=1)
    with pytest.raises(StateError):
        board.flip(0)


def test_staggered_deal_waits_for_every_card(make_board, clock, scheduler, recorder):
    board = make_board(['A', 'B', 'A', 'B'], columns=2, rows=2)
    board.deal(stagger=0.2)

    assert board.state is BoardState.DEALING
    assert [e.stagger_index for e in recorder.of_type(DealStarted)] == [0, 1, 2, 3]
    assert board.flip(0) is False

    scheduler.update()
    clock.advance(0.45)
    scheduler.update()
    assert len(recorder.of_type(DealCompleted)) == 3
    assert board.state is BoardState.DEALING
    assert recorder.of_type(BoardReady) == []

    clock.advance(0.2)
    scheduler.update()
    assert board.state is BoardState.READY
    assert len(recorder.of_type(BoardReady)) == 1
    assert board.flip(0) is True


def test_no_match_turns_cards_back(board, clock, scheduler, recorder):
    assert board.flip(0) is True
    assert board.flip(1) is True
    assert board.state is BoardState.RESOLVING
    assert board.selection == (0, 1)

    resolve(clock, scheduler)

    assert board.get_card(0).state is CardState.FACE_DOWN
    assert board.get_card(1).state is CardState.FACE_DOWN
    assert board.selection == ()
    assert board.state is BoardState.READY
    assert recorder.of_type(MoveResolved) == [MoveResolved(success=False)]
    assert [e.position for e in recorder.of_type(CardHidden)] == [0, 1]


def test_match_removes_cards(board, clock, scheduler, recorder):
    board.flip(0)
    board.flip(2)
    resolve(clock, scheduler)

    assert board.get_card(0).is_matched
    assert board.get_card(2).is_matched
    assert board.remaining == 2
    assert recorder.of_type(CardMatched) == [CardMatched(positions=(0, 2), symbol='A')]
    assert [e.position for e in recorder.of_type(CardRemoved)] == [0, 2]
    assert recorder.of_type(MoveResolved) == [MoveResolved(success=True)]
    assert recorder.of_type(BoardCleared) == []


def test_matched_cards_cannot_be_flipped(board, clock, scheduler):
    board.flip(0)
    board.flip(2)
    resolve(clock, scheduler)

    assert board.flip(0) is False
    assert board.selection == ()


def test_same_card_twice_is_ignored(board):
    assert board.flip(0) is True
    assert board.flip(0) is False
    assert board.selection == (0,)
    assert board.state is BoardState.SELECTING


def test_third_flip_is_ignored(board, clock, scheduler):
    board.flip(0)
    board.flip(1)
    assert board.flip(2) is False
    assert board.selection == (0, 1)
    assert board.get_card(2).state is CardState.FACE_DOWN
    assert scheduler.pending == 1


def test_unknown_positions_are_ignored(board):
    assert board.flip(-1) is False
    assert board.flip(4) is False
    assert board.flip(None) is False


def test_resolution_waits_for_delay(board, clock, scheduler, recorder):
    board.flip(0)
    board.flip(1)

    clock.advance(0.5)
    scheduler.update()
    assert recorder.of_type(MoveResolved) == []

    clock.advance(0.5)
    scheduler.update()
    assert len(recorder.of_type(MoveResolved)) == 1

    clock.advance(5)
    scheduler.update()
    assert len(recorder.of_type(MoveResolved)) == 1


def test_board_cleared_fires_once(board, clock, scheduler, recorder):
    board.flip(0)
    board.flip(2)
    resolve(clock, scheduler)
    board.flip(1)
    board.flip(3)
    resolve(clock, scheduler)

    assert all(card.is_matched for card in board.cards)
    assert board.is_cleared()
    assert recorder.of_type(BoardCleared) == [BoardCleared()]

    assert board.flip(0) is False
    resolve(clock, scheduler)
    assert len(recorder.of_type(BoardCleared)) == 1
    # the clearing move is resolved before the board reports cleared
    assert isinstance(recorder.events[-2], MoveResolved)


def test_flip_event_carries_symbol(board, recorder):
    board.flip(3)
    assert recorder.of_type(CardFlipped) == [CardFlipped(position=3, symbol='B')]


def test_listeners_see_final_state(board, events, clock, scheduler):
    states = []
    events.subscribe(MoveResolved, lambda e: states.append((board.state, board.selection)))
    board.flip(0)
    board.flip(1)
    resolve(clock, scheduler)
    assert states == [(BoardState.READY, ())]


def test_board_state_grid(board, clock, scheduler):
    board.flip(0)
    board.flip(2)
    resolve(clock, scheduler)
    board.flip(1)
    assert board.get_board_state() == [["M", "B"], ["M", "?"]]
    assert str(board) == "M B\nM ?"
