import random

import pytest

from classes import BoardState
from conftest import EventRecorder, resolve
from errors import ConfigurationError, StateError
from events import BoardCleared, BoardReady, CardFlipped, CardHidden, GameFinished, MoveResolved, TurnChanged
from game import MemoryGame
from highscores import HighscoreStore
from shared.models import GameConfig, PlayerConfig


@pytest.fixture
def memory_game(scheduler):
    return MemoryGame(
        highscores=HighscoreStore(max_entries=3),
        scheduler=scheduler,
        rng=random.Random(99),
        palette=['A', 'B', 'C', 'D'],
    )


def config(pairs=2, columns=2, rows=2, players=None):
    return GameConfig(columns=columns, rows=rows, pair_count=pairs,
                      players=players or [PlayerConfig("Alice")], max_highscore_entries=3)


def positions_by_symbol(board):
    layout = {}
    for card in board.cards:
        layout.setdefault(card.symbol, []).append(card.position)
    return layout


def clear_board(memory_game, clock, scheduler):
    for first, second in positions_by_symbol(memory_game.board).values():
        assert memory_game.flip(first)
        assert memory_game.flip(second)
        resolve(clock, scheduler)


def test_flip_before_start(memory_game):
    with pytest.raises(StateError):
        memory_game.flip(0)


def test_invalid_configs(memory_game):
    with pytest.raises(ConfigurationError):
        memory_game.start_game(config(pairs=5, columns=5, rows=2))
    with pytest.raises(ConfigurationError):
        memory_game.start_game(config(pairs=2, columns=3, rows=2))
    with pytest.raises(ConfigurationError):
        memory_game.start_game(GameConfig(columns=2, rows=2, pair_count=2, players=[]))
    assert memory_game.board is None


def test_invalid_config_keeps_running_game(memory_game, scheduler):
    first = memory_game.start_game(config())
    memory_game.flip(0)

    with pytest.raises(ConfigurationError):
        memory_game.start_game(config(columns=-2, rows=-2))

    assert memory_game.board is first
    assert first.state is BoardState.SELECTING
    assert memory_game.flip(1) is True
    assert scheduler.pending == 1



def test_single_player_game(memory_game, clock, scheduler):
    recorder = EventRecorder(memory_game.events, BoardCleared, GameFinished)
    board = memory_game.start_game(config())
    assert board.state is BoardState.READY

    clock.advance(5)
    clear_board(memory_game, clock, scheduler)

    assert memory_game.is_finished
    assert len(recorder.of_type(BoardCleared)) == 1
    result = memory_game.result
    assert result.winner_name == "Alice"
    assert result.score == 2
    assert result.moves == 2
    assert result.duration_seconds == pytest.approx(7.0)
    assert memory_game.flip(0) is False


def test_submit_highscore(memory_game, clock, scheduler):
    memory_game.start_game(config())
    with pytest.raises(StateError):
        memory_game.submit_highscore()

    clear_board(memory_game, clock, scheduler)
    assert memory_game.submit_highscore("  ") == 0
    assert [(e.name, e.score) for e in memory_game.highscores.get_high_scores()] == [("Alice", 2)]

    with pytest.raises(StateError):
        memory_game.submit_highscore("Again")


def test_submit_highscore_with_other_name(memory_game, clock, scheduler):
    memory_game.start_game(config())
    clear_board(memory_game, clock, scheduler)
    memory_game.submit_highscore("Champion")
    assert memory_game.highscores.get_high_scores()[0].name == "Champion"


def test_clicks_during_computer_turn_are_ignored(memory_game, clock, scheduler):
    players = [PlayerConfig("Alice"), PlayerConfig("Computer 2", is_human=False)]
    memory_game.start_game(config(pairs=4, columns=4, rows=2, players=players))
    board = memory_game.board
    layout = positions_by_symbol(board)

    # Alice misses on purpose
    a, b = layout['A'][0], layout['B'][0]
    memory_game.flip(a)
    memory_game.flip(b)
    resolve(clock, scheduler)

    assert not memory_game.current_player.is_human
    assert len(board.selection) == 2
    hidden = next(card.position for card in board.cards
                  if card.position not in board.selection and not card.is_matched)
    assert memory_game.flip(hidden) is False


def test_human_against_computer_to_the_end(memory_game, clock, scheduler):
    players = [PlayerConfig("Alice"), PlayerConfig("Computer 2", is_human=False)]
    memory_game.start_game(config(pairs=4, columns=4, rows=2, players=players))
    board = memory_game.board
    rng = random.Random(5)

    for _ in range(200):
        if memory_game.is_finished:
            break
        if memory_game.current_player.is_human and board.accepts_flips:
            choices = [card.position for card in board.cards
                       if not card.is_matched and card.position not in board.selection]
            memory_game.flip(rng.choice(choices))
            continue
        resolve(clock, scheduler)

    assert memory_game.is_finished
    assert sum(player.score for player in memory_game.players) == 4
    assert all(card.is_matched for card in board.cards)


def test_computer_only_game_finishes(scheduler, clock):
    memory_game = MemoryGame(scheduler=scheduler, rng=random.Random(1))
    players = [PlayerConfig("Computer 1", is_human=False), PlayerConfig("Computer 2", is_human=False)]
    memory_game.start_game(GameConfig.for_difficulty("easy", players))

    for _ in range(500):
        if memory_game.is_finished:
            break
        resolve(clock, scheduler)

    assert memory_game.is_finished
    assert sum(player.score for player in memory_game.players) == 15
    winner = memory_game.result
    assert winner.score == max(player.score for player in memory_game.players)


def test_ai_only_goes_for_pairs_it_has_seen(scheduler, clock):
    memory_game = MemoryGame(scheduler=scheduler, rng=random.Random(8), palette=list("ABCDEFGH"))
    seen = set()
    move = []
    checked = []

    def partner(position):
        symbol = memory_game.board.get_card(position).symbol
        return next(card.position for card in memory_game.board.cards
                    if card.symbol == symbol and card.position != position)

    def on_flip(event):
        if not move and event.position in seen:
            # a seen card is only opened first when its partner is known too
            assert partner(event.position) in seen
            checked.append(event)
        elif move and partner(move[0]) in seen:
            assert event.position == partner(move[0])
            checked.append(event)
        move.append(event.position)
        seen.add(event.position)

    memory_game.events.subscribe(CardFlipped, on_flip)
    memory_game.events.subscribe(MoveResolved, lambda event: move.clear())

    memory_game.start_game(config(pairs=8, columns=4, rows=4,
                                  players=[PlayerConfig("Computer 1", is_human=False)]))
    for _ in range(200):
        if memory_game.is_finished:
            break
        resolve(clock, scheduler)

    assert memory_game.is_finished
    assert checked


def test_new_game_replaces_old_one(memory_game, clock, scheduler):
    first = memory_game.start_game(config())
    layout = positions_by_symbol(first)
    memory_game.flip(layout['A'][0])
    memory_game.flip(layout['A'][1])

    second = memory_game.start_game(config())
    resolve(clock, scheduler)

    assert second is not first
    assert memory_game.players[0].score == 0
    assert all(not card.is_matched for card in second.cards)
    assert scheduler.pending == 0


def test_staggered_start(scheduler, clock):
    memory_game = MemoryGame(scheduler=scheduler, rng=random.Random(2), palette=['A', 'B'], deal_stagger=0.1)
    board = memory_game.start_game(config())
    assert board.state is BoardState.DEALING
    assert memory_game.flip(0) is False

    clock.advance(0.5)
    scheduler.update()
    assert board.state is BoardState.READY
    assert memory_game.flip(0) is True


def test_session_events_arrive_in_causal_order(memory_game, clock, scheduler):
    recorder = EventRecorder(memory_game.events, BoardReady, TurnChanged, CardFlipped, CardHidden, MoveResolved)
    players = [PlayerConfig("Alice"), PlayerConfig("Computer 2", is_human=False)]
    memory_game.start_game(config(pairs=4, columns=4, rows=2, players=players))
    layout = positions_by_symbol(memory_game.board)

    memory_game.flip(layout['A'][0])
    memory_game.flip(layout['B'][0])
    resolve(clock, scheduler)

    assert [type(event).__name__ for event in recorder.events] == [
        'BoardReady', 'TurnChanged',
        'CardFlipped', 'CardFlipped', 'CardHidden', 'CardHidden', 'MoveResolved',
        'TurnChanged', 'CardFlipped', 'CardFlipped',
    ]
    assert recorder.events[7].player.name == "Computer 2"


def test_game_finished_follows_board_cleared(memory_game, clock, scheduler):
    order = []
    memory_game.events.subscribe(BoardCleared, lambda event: order.append("cleared"))
    memory_game.events.subscribe(GameFinished, lambda event: order.append(memory_game.result.winner_name))
    memory_game.start_game(config())

    clear_board(memory_game, clock, scheduler)

    assert order == ["cleared", "Alice"]
