import logging
import time
from typing import Optional, Tuple

from .errors import InvalidName, RosterFull
from .sessions import SessionRegistry
from .state import GameSession, Player, PlayerBonus
from .text import clean_text
from .turns import TurnScheduler

logger = logging.getLogger(__name__)

NAME_MAX = 20


class Roster:
    """Join, liveness and removal for the players of one session."""

    def __init__(self, session: GameSession, registry: SessionRegistry, turns: TurnScheduler, max_players: int = 8):
        self.session = session
        self.registry = registry
        self.turns = turns
        self.max_players = max_players

    def __len__(self) -> int:
        return len(self.session.players)

    def find(self, player_id: str) -> Optional[Player]:
        return self.session.find(player_id)

    def join(self, player_id: str, raw_name, now: float = None) -> Tuple[Player, str]:
        """Add or rename a player and issue a fresh session token.

        The size check comes first and applies to everyone. A connection
        already in the roster is treated as a rejoin: its name and liveness
        are refreshed and it keeps its score and turn slot.
        """
        now = time.time() if now is None else now
        if len(self.session.players) >= self.max_players:
            raise RosterFull()
        name = clean_text(raw_name, NAME_MAX)
        if not name:
            raise InvalidName()

        player = self.session.find(player_id)
        if player is not None:
            player.name = name
            player.last_seen = now
            logger.info(f"[rejoin] player={player_id} name={name}")
        else:
            player = Player(id=player_id, name=name, score=0, joined_at=now, last_seen=now)
            self.session.players.append(player)
            self.session.player_tasks[player_id] = []
            self.session.player_bonuses[player_id] = PlayerBonus()
            logger.info(f"[join] player={player_id} name={name} size={len(self.session.players)}")
        token = self.registry.issue_token(player_id)
        return player, token

    def touch(self, player_id: str, now: float = None) -> None:
        player = self.session.find(player_id)
        if player is not None:
            player.last_seen = time.time() if now is None else now

    def remove(self, player_id: str, kicked: bool = False) -> Optional[Player]:
        """Drop a player and everything keyed by its id, then clamp the turn."""
        s = self.session
        idx = s.index_of(player_id)
        if idx < 0:
            return None
        player = s.players.pop(idx)
        s.player_tasks.pop(player_id, None)
        s.player_bonuses.pop(player_id, None)
        self.registry.revoke(player_id)
        if s.active_webcam == player_id:
            s.active_webcam = None
        if s.player_to_skip == player_id:
            s.skip_next_turn = False
            s.player_to_skip = None
        if s.pending_swap == player_id:
            s.pending_swap = None
        if kicked:
            self.turns.clamp_after_kick()
        else:
            self.turns.clamp_after_removal()
        return player
