"""GameManager: the one owner of the shared GameSession.

Every inbound action runs as a single critical section: authorize,
mutate, persist, notify. Components (roster, turns, draw engine,
presence) hold a reference to the current session and are rebuilt when
the session is replaced by a reset.

The broadcaster is the transport and must provide:
    broadcast_to_all(event, *args)
    send_to_one(sid, event, *args)
    broadcast_except(sid, event, *args)
"""
import functools
import logging
import random
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set

from .admin import AdminControl
from .catalog import Task
from .draw import DrawOutcome, TaskDrawEngine
from .errors import InvalidPayload, SessionError
from .presence import PresenceMonitor
from .roster import Roster
from .sessions import SessionRegistry
from .state import GameSession, Player
from .text import clean_text
from .turns import TurnScheduler

logger = logging.getLogger(__name__)

CHAT_MAX = 200
SYSTEM = 'System'


def _atomic(fn):
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return fn(self, *args, **kwargs)
    return wrapper


class GameManager:
    def __init__(self, broadcaster, persistence=None, scheduler=None, rng: random.Random = None,
                 max_players: int = 8, admin_secret: str = '', game_timeout: float = 3600,
                 disconnect_timeout: float = 30, alarm_delay: float = 120,
                 clock: Callable[[], float] = time.time):
        self.broadcaster = broadcaster
        self.persistence = persistence
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.max_players = max_players
        self.game_timeout = game_timeout
        self.disconnect_timeout = disconnect_timeout
        self.alarm_delay = alarm_delay
        self.clock = clock
        self.registry = SessionRegistry()
        self.admin = AdminControl(admin_secret, self)
        self.connected: Set[str] = set()
        self._lock = threading.RLock()
        self._bind(GameSession.fresh(self.clock()))

    def _bind(self, session: GameSession) -> None:
        self.session = session
        self.turns = TurnScheduler(session)
        self.roster = Roster(session, self.registry, self.turns, self.max_players)
        self.engine = TaskDrawEngine(session, self.turns, self.rng)
        self.presence = PresenceMonitor(self.roster, self.disconnect_timeout)

    # ---- lifecycle ----

    @_atomic
    def restore(self) -> bool:
        """Load the persisted snapshot, if any. Called once at startup."""
        loaded = self.persistence.load() if self.persistence else None
        if loaded is None:
            self._bind(GameSession.fresh(self.clock()))
            return False
        if not loaded.game_start_time:
            loaded.game_start_time = self.clock()
        self._bind(loaded)
        return True

    def start_background_jobs(self, presence_interval: float, autosave_interval: float,
                              reset_check_interval: float) -> None:
        if self.scheduler is None:
            return
        self.scheduler.every(presence_interval, self.sweep_presence, name='presence')
        self.scheduler.every(autosave_interval, self.autosave, name='autosave')
        self.scheduler.every(reset_check_interval, self.check_auto_reset, name='auto_reset')

    # ---- helpers ----

    def _save(self) -> None:
        if self.persistence is not None:
            self.persistence.save(self.session)

    def _system_message(self, message: str) -> None:
        self.broadcaster.broadcast_to_all('receive_message', self._chat_payload(SYSTEM, message))

    @staticmethod
    def _chat_payload(author: str, message: str) -> Dict[str, Any]:
        return {
            'player': author,
            'message': message,
            'timestamp': datetime.now().strftime('%H:%M:%S'),
        }

    def _broadcast_roster(self) -> None:
        self.broadcaster.broadcast_to_all('update_players', self.session.roster_payload())

    def _require_session(self, sid: str, token) -> None:
        if not self.registry.verify(sid, token):
            raise SessionError()

    def is_live(self, sid: str) -> bool:
        return sid in self.connected

    @_atomic
    def state_payload(self) -> Dict[str, Any]:
        s = self.session
        payload = s.roster_payload()
        payload.update({
            'skip_next_turn': s.skip_next_turn,
            'player_to_skip': s.player_to_skip,
            'active_webcam': s.active_webcam,
            'pending_swap': s.pending_swap,
            'game_start_time': s.game_start_time,
            'custom_task_count': len(s.all_custom_tasks()),
            'max_players': self.max_players,
        })
        return payload

    # ---- connection lifecycle ----

    @_atomic
    def connect(self, sid: str) -> None:
        self.connected.add(sid)
        logger.info(f"[connect] sid={sid} live={len(self.connected)}")

    @_atomic
    def disconnect(self, sid: str) -> None:
        self.connected.discard(sid)
        s = self.session
        player = s.find(sid)
        if player is None:
            return
        player.last_seen = self.clock()
        if s.active_webcam == sid:
            s.active_webcam = None
            self.broadcaster.broadcast_to_all('hide_webcam')
        self.broadcaster.broadcast_to_all('player_disconnected', {'player_id': sid})
        self._system_message(f"{player.name} has disconnected.")
        if s.current_player_id == sid:
            self.turns.advance()
            self._broadcast_roster()
        self._save()
        logger.info(f"[disconnect] player={sid} name={player.name}")

    # ---- player actions ----

    @_atomic
    def join(self, sid: str, raw_name) -> Player:
        player, token = self.roster.join(sid, raw_name, now=self.clock())
        self.broadcaster.send_to_one(sid, 'session_token', {'token': token})
        self._broadcast_roster()
        self.broadcaster.send_to_one(sid, 'player_list', {'player_ids': [p.id for p in self.session.players]})
        self._system_message(f"{player.name} has joined the game!")
        self._save()
        return player

    @_atomic
    def heartbeat(self, sid: str) -> None:
        self.roster.touch(sid, now=self.clock())

    @_atomic
    def draw_task(self, sid: str, token) -> Optional[DrawOutcome]:
        self._require_session(sid, token)
        s = self.session
        if s.pending_swap is not None and s.pending_swap == sid and s.current_player_id == sid:
            # The turn is still waiting on the swap choice
            self._prompt_swap(sid)
            return None
        outcome = self.engine.draw(sid)
        player, task = outcome.player, outcome.task

        if outcome.ultimate:
            self.broadcaster.broadcast_to_all('play_ultimate_sound')
        if outcome.rare_count is not None:
            self.broadcaster.broadcast_to_all('update_bonus_count', {'player_id': sid, 'rare_count': outcome.rare_count})
            if not outcome.ultimate:
                self.broadcaster.broadcast_to_all('play_rare_sound')
        if outcome.skip_set:
            self.broadcaster.broadcast_to_all('show_skip_message', {'player_name': player.name})
        if outcome.webcam:
            self.broadcaster.send_to_one(sid, 'show_webcam', {'player_name': player.name, 'is_self': True, 'task': task.text})
            self.broadcaster.broadcast_except(sid, 'show_webcam', {'player_name': player.name, 'is_self': False, 'task': task.text})

        if outcome.special:
            self._prompt_swap(sid)
            self._save()
            return outcome

        self._announce_task(player, task)
        self._broadcast_roster()
        self._save()
        return outcome

    def _announce_task(self, player: Player, task: Task) -> None:
        self.broadcaster.broadcast_to_all('display_task', task.to_dict())
        entry = task.history_entry()
        entry['player'] = player.name
        self.broadcaster.broadcast_to_all('add_to_history', entry)

    def _prompt_swap(self, sid: str) -> None:
        others = [p.to_dict() for p in self.engine.swap_candidates(sid)]
        self.broadcaster.send_to_one(sid, 'select_player_for_swap', {'players': others})

    @_atomic
    def swap_scores(self, sid: str, token, target_id) -> None:
        self._require_session(sid, token)
        outcome = self.engine.complete_swap(sid, target_id)
        self._announce_task(outcome.player, outcome.task)
        self._system_message(f"{outcome.player.name} swapped scores with {outcome.target.name}!")
        self._broadcast_roster()
        self._save()

    @_atomic
    def create_custom_task(self, sid: str, token, data) -> Task:
        self._require_session(sid, token)
        player = self.session.find(sid)
        if player is None:
            raise SessionError()
        task = Task.from_custom(data)
        self.session.player_tasks.setdefault(sid, []).append(task)
        logger.info(f"[custom-task] player={sid} text={task.text!r} points={task.points}")
        self._system_message(f"{player.name} added a custom task!")
        self._save()
        return task

    def start_timer(self, sid: str, token) -> None:
        with self._lock:
            self._require_session(sid, token)
        self.broadcaster.broadcast_to_all('timer_started', {'duration_sec': self.alarm_delay})
        if self.scheduler is not None:
            self.scheduler.call_later(self.alarm_delay, self._sound_alarm)

    def _sound_alarm(self) -> None:
        self.broadcaster.broadcast_to_all('play_alarm_sound')

    @_atomic
    def send_message(self, sid: str, token, data) -> None:
        self._require_session(sid, token)
        if not isinstance(data, dict):
            raise InvalidPayload('Message must be an object')
        player = self.session.find(sid)
        if player is None:
            return
        message = clean_text(data.get('message'), CHAT_MAX)
        if message:
            self.broadcaster.broadcast_to_all('receive_message', self._chat_payload(player.name, message))

    # ---- webcam ----

    def _webcam_status(self, active: bool, name: str, sid: str) -> None:
        self.broadcaster.broadcast_to_all('webcam_status_update', {
            'active': active,
            'player_name': name,
            'player_id': sid,
        })

    @_atomic
    def webcam_started(self, sid: str, token) -> None:
        self._require_session(sid, token)
        player = self.session.find(sid)
        if player is None:
            return
        self.session.active_webcam = sid
        self._webcam_status(True, player.name, sid)
        self._system_message(f"{player.name} started their camera for the webcam task")

    @_atomic
    def webcam_stopped(self, sid: str, token) -> None:
        self._require_session(sid, token)
        player = self.session.find(sid)
        if player is None or self.session.active_webcam != sid:
            return
        self.session.active_webcam = None
        self._webcam_status(False, player.name, sid)
        self._system_message(f"{player.name} stopped their camera")

    @_atomic
    def webcam_closed(self, sid: str, token) -> None:
        self._require_session(sid, token)
        if self.session.active_webcam != sid:
            return
        player = self.session.find(sid)
        self.session.active_webcam = None
        self._webcam_status(False, player.name if player else 'Unknown', sid)
        self.broadcaster.broadcast_to_all('hide_webcam')

    # ---- admin ----

    @_atomic
    def admin_command(self, sid: str, secret, command, *args) -> str:
        message = self.admin.run(secret, command, *args, origin=sid)
        self.broadcaster.send_to_one(sid, 'admin_success', {'message': message})
        return message

    @_atomic
    def reset(self) -> None:
        self.registry.clear()
        self._bind(GameSession.fresh(self.clock()))
        self._save()
        self.broadcaster.broadcast_to_all('game_reset')
        logger.info("[reset] game has been reset")

    @_atomic
    def kick(self, player_id: str) -> Optional[Player]:
        player = self.session.find(player_id)
        if player is None:
            return None
        self.broadcaster.send_to_one(player_id, 'kicked', {'message': 'You have been removed from the game.'})
        self.roster.remove(player_id, kicked=True)
        self._broadcast_roster()
        self._system_message(f"{player.name} has been kicked from the game.")
        self._save()
        logger.info(f"[kick] player={player_id} name={player.name}")
        return player

    @_atomic
    def add_points(self, player_id: str, amount: int) -> Optional[Player]:
        player = self.session.find(player_id)
        if player is None:
            return None
        player.score += amount
        self._broadcast_roster()
        self._save()
        return player

    # ---- periodic jobs ----

    @_atomic
    def sweep_presence(self, now: float = None) -> list:
        now = self.clock() if now is None else now
        evicted = self.presence.sweep(now, self.is_live)
        for player in evicted:
            self._system_message(f"{player.name} has been removed due to inactivity.")
        self._save()
        self._broadcast_roster()
        return evicted

    @_atomic
    def autosave(self) -> None:
        self._save()

    @_atomic
    def check_auto_reset(self, now: float = None) -> bool:
        now = self.clock() if now is None else now
        if now - self.session.game_start_time > self.game_timeout:
            logger.info(f"[reset] session older than {self.game_timeout}s")
            self.reset()
            return True
        return False
