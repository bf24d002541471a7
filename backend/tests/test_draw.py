import pytest

from conftest import StubRandom, picks
from partytasks.services.game.catalog import (
    MISS_A_TURN,
    REGULAR_BONUS_TASKS,
    REMOVE_CLOTHING,
    SWAP_TASK,
    ULTIMATE_TASK,
    Task,
)
from partytasks.services.game.draw import TaskDrawEngine
from partytasks.services.game.errors import InvalidPayload, NotYourTurn
from partytasks.services.game.state import GameSession, Player, PlayerBonus
from partytasks.services.game.turns import TurnScheduler


def _engine(rng, *ids):
    session = GameSession(
        players=[Player(id=i, name=i.upper()) for i in ids],
        player_tasks={i: [] for i in ids},
        player_bonuses={i: PlayerBonus() for i in ids},
    )
    return TaskDrawEngine(session, TurnScheduler(session), rng), session


def test_plain_draw_scores_and_passes_turn():
    engine, session = _engine(StubRandom([0.5], pick=picks('ASK A QUESTION')), 'a', 'b')
    outcome = engine.draw('a')
    assert outcome.task.points == 1
    assert session.find('a').score == 1
    assert session.current_player_id == 'b'
    assert outcome.next_player_id == 'b'


def test_draw_out_of_turn_is_rejected():
    engine, session = _engine(StubRandom(), 'a', 'b')
    with pytest.raises(NotYourTurn):
        engine.draw('b')
    with pytest.raises(NotYourTurn):
        engine.draw('ghost')
    assert session.current_player_id == 'a'


def test_ultimate_fires_after_three_rares_regardless_of_roll():
    engine, session = _engine(StubRandom([0.0]), 'a')
    session.player_bonuses['a'].rare_count = 3
    outcome = engine.draw('a')
    assert outcome.task == ULTIMATE_TASK
    assert outcome.ultimate is True
    assert session.player_bonuses['a'].rare_count == 0
    assert session.find('a').score == ULTIMATE_TASK.points


def test_three_rare_draws_escalate_to_ultimate():
    engine, session = _engine(StubRandom([0.01, 0.01, 0.01, 0.5], pick=picks('DRINK')), 'a')
    counts = [engine.draw('a').rare_count for _ in range(3)]
    assert counts == [1, 2, 3]
    fourth = engine.draw('a')
    assert fourth.task.is_ultimate
    assert session.player_bonuses['a'].rare_count == 0
    assert session.find('a').score == 3 * 3 + 10


def test_roll_between_thresholds_draws_regular_bonus():
    engine, session = _engine(StubRandom([0.05]), 'a', 'b')
    outcome = engine.draw('a')
    assert outcome.task in REGULAR_BONUS_TASKS
    assert not outcome.task.is_rare and not outcome.task.is_special
    assert session.player_bonuses['a'].rare_count == 0


def test_miss_a_turn_skips_the_drawer_next_round():
    engine, session = _engine(StubRandom([0.5], pick=picks(MISS_A_TURN)), 'a', 'b')
    outcome = engine.draw('a')
    assert outcome.skip_set
    assert session.find('a').score == -1
    assert session.current_player_id == 'b'
    engine.rng = StubRandom([0.5], pick=picks('NOTHING'))
    engine.draw('b')
    # a's turn is skipped once
    assert session.current_player_id == 'b'
    assert session.skip_next_turn is False
    engine.draw('b')
    assert session.current_player_id == 'a'


def test_webcam_task_marks_active_webcam():
    engine, session = _engine(StubRandom([0.5], pick=picks(REMOVE_CLOTHING)), 'a', 'b')
    outcome = engine.draw('a')
    assert outcome.webcam
    assert session.active_webcam == 'a'
    assert session.find('a').score == 3


def test_custom_tasks_from_any_player_are_in_the_pool():
    engine, session = _engine(StubRandom([0.5], pick=picks('SING A SONG')), 'a', 'b')
    session.player_tasks['b'].append(Task('SING A SONG', '/images/default.jpg', 'CUSTOM', 4))
    outcome = engine.draw('a')
    assert outcome.task.text == 'SING A SONG'
    assert session.find('a').score == 4


def test_special_task_holds_the_turn_until_swap_completes():
    engine, session = _engine(StubRandom([0.5], pick=picks(SWAP_TASK.text)), 'a', 'b', 'c')
    session.player_tasks['c'].append(SWAP_TASK)
    session.find('a').score = 1
    session.find('c').score = 7
    outcome = engine.draw('a')
    assert outcome.special
    assert session.pending_swap == 'a'
    assert session.current_player_id == 'a'
    assert session.find('a').score == 1

    with pytest.raises(InvalidPayload):
        engine.complete_swap('a', 'a')
    result = engine.complete_swap('a', 'c')
    assert result.target.id == 'c'
    assert session.find('a').score == 7
    assert session.find('c').score == 1
    assert session.pending_swap is None
    assert session.current_player_id == 'b'
    with pytest.raises(NotYourTurn):
        engine.complete_swap('b', 'a')


def test_special_task_alone_resolves_immediately():
    engine, session = _engine(StubRandom([0.5], pick=picks(SWAP_TASK.text)), 'a')
    session.player_tasks['a'].append(SWAP_TASK)
    outcome = engine.draw('a')
    assert not outcome.special
    assert session.pending_swap is None
    assert session.find('a').score == 0
