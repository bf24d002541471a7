import pytest

from partytasks.services.game.catalog import Task
from partytasks.services.game.errors import InvalidName, RosterFull
from partytasks.services.game.roster import Roster
from partytasks.services.game.sessions import SessionRegistry
from partytasks.services.game.state import GameSession
from partytasks.services.game.turns import TurnScheduler


def _roster(max_players=8):
    session = GameSession.fresh(now=0.0)
    registry = SessionRegistry()
    return Roster(session, registry, TurnScheduler(session), max_players), session, registry


def test_join_adds_player_with_empty_state():
    roster, session, registry = _roster()
    player, token = roster.join('sid-a', 'Alice', now=10.0)
    assert player.score == 0
    assert player.joined_at == 10.0 and player.last_seen == 10.0
    assert session.player_tasks['sid-a'] == []
    assert session.player_bonuses['sid-a'].rare_count == 0
    assert registry.verify('sid-a', token)


def test_join_beyond_max_is_rejected_without_mutation():
    roster, session, registry = _roster(max_players=2)
    roster.join('a', 'Alice')
    roster.join('b', 'Bob')
    before = session.to_dict()
    with pytest.raises(RosterFull):
        roster.join('c', 'Cara')
    assert session.to_dict() == before
    assert 'c' not in registry
    assert len(roster) == 2


def test_rejoin_renames_without_duplicating():
    roster, session, registry = _roster()
    _, old_token = roster.join('a', 'Alice', now=1.0)
    session.players[0].score = 5
    player, new_token = roster.join('a', 'Alicia', now=2.0)
    assert len(session.players) == 1
    assert player.name == 'Alicia'
    assert player.score == 5
    assert player.last_seen == 2.0
    assert not registry.verify('a', old_token)
    assert registry.verify('a', new_token)


def test_rejoin_is_rejected_when_roster_is_full():
    roster, session, registry = _roster(max_players=1)
    _, token = roster.join('a', 'Alice', now=1.0)
    with pytest.raises(RosterFull):
        roster.join('a', 'Alicia', now=2.0)
    assert session.players[0].name == 'Alice'
    assert registry.verify('a', token)


@pytest.mark.parametrize('raw', ['', '   ', '<b></b>', None, 42])
def test_join_rejects_names_empty_after_sanitizing(raw):
    roster, session, _ = _roster()
    with pytest.raises(InvalidName):
        roster.join('a', raw)
    assert session.players == []


def test_join_strips_markup_and_truncates_name():
    roster, _, _ = _roster()
    player, _ = roster.join('a', '  <b>Alice</b>  ')
    assert player.name == 'Alice'
    player, _ = roster.join('b', 'x' * 30)
    assert player.name == 'x' * 20


def test_touch_updates_last_seen_and_ignores_unknown():
    roster, session, _ = _roster()
    roster.join('a', 'Alice', now=1.0)
    roster.touch('a', now=5.0)
    roster.touch('ghost', now=5.0)
    assert session.find('a').last_seen == 5.0


def test_remove_cascades_tasks_bonus_and_token():
    roster, session, registry = _roster()
    _, token = roster.join('a', 'Alice')
    roster.join('b', 'Bob')
    session.player_tasks['a'].append(Task('SING', '/x.jpg', 'CUSTOM', 1))
    session.active_webcam = 'a'
    session.skip_next_turn, session.player_to_skip = True, 'a'
    removed = roster.remove('a')
    assert removed.name == 'Alice'
    assert 'a' not in session.player_tasks
    assert 'a' not in session.player_bonuses
    assert session.find('a') is None
    assert not registry.verify('a', token)
    assert session.active_webcam is None
    assert session.skip_next_turn is False and session.player_to_skip is None
    assert roster.remove('a') is None


def test_remove_clamps_pointer_to_last_player():
    roster, session, _ = _roster()
    for pid in ('a', 'b', 'c'):
        roster.join(pid, pid.upper())
    session.current_player_index = 2
    roster.remove('c')
    assert session.current_player_index == 1
    roster.remove('a')
    roster.remove('b')
    assert session.current_player_index == 0
    assert session.current_player is None


def test_kick_removal_wraps_pointer_to_first_player():
    roster, session, _ = _roster()
    for pid in ('a', 'b', 'c'):
        roster.join(pid, pid.upper())
    session.current_player_index = 2
    roster.remove('c', kicked=True)
    assert session.current_player_index == 0


def test_registry_issue_overwrites_and_verify_never_raises():
    registry = SessionRegistry()
    first = registry.issue_token('a')
    second = registry.issue_token('a')
    assert first != second
    assert first.startswith('a-')
    assert not registry.verify('a', first)
    assert registry.verify('a', second)
    assert not registry.verify('nobody', second)
    assert not registry.verify('a', None)
    assert not registry.verify('a', 123)
    assert not registry.verify('a', 'tökén')
    assert not registry.verify('a', '\ud800')
    assert not registry.verify('nobody', 'ü')
    registry.revoke('a')
    registry.revoke('a')
    assert not registry.verify('a', second)
