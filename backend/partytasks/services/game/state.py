"""The GameSession aggregate and its snapshot codec."""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .catalog import Task


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    joined_at: float = 0.0
    last_seen: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'joined_at': self.joined_at,
            'last_seen': self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            score=int(data.get('score', 0)),
            joined_at=float(data.get('joined_at', 0.0)),
            last_seen=float(data.get('last_seen', 0.0)),
        )


@dataclass
class PlayerBonus:
    rare_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {'rare_count': self.rare_count}


@dataclass
class GameSession:
    players: List[Player] = field(default_factory=list)
    player_tasks: Dict[str, List[Task]] = field(default_factory=dict)
    player_bonuses: Dict[str, PlayerBonus] = field(default_factory=dict)
    current_player_index: int = 0
    skip_next_turn: bool = False
    player_to_skip: Optional[str] = None
    game_start_time: float = 0.0
    active_webcam: Optional[str] = None
    # Holder of an undecided score swap; the turn waits on them
    pending_swap: Optional[str] = None

    @classmethod
    def fresh(cls, now: float = None) -> 'GameSession':
        return cls(game_start_time=time.time() if now is None else now)

    def find(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def index_of(self, player_id: str) -> int:
        for idx, p in enumerate(self.players):
            if p.id == player_id:
                return idx
        return -1

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def current_player_id(self) -> Optional[str]:
        player = self.current_player
        return player.id if player else None

    def all_custom_tasks(self) -> List[Task]:
        tasks: List[Task] = []
        for authored in self.player_tasks.values():
            tasks.extend(authored)
        return tasks

    def roster_payload(self) -> Dict[str, Any]:
        return {
            'players': [p.to_dict() for p in self.players],
            'current_player_id': self.current_player_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'players': [p.to_dict() for p in self.players],
            'player_tasks': {pid: [t.to_dict() for t in tasks] for pid, tasks in self.player_tasks.items()},
            'player_bonuses': {pid: b.to_dict() for pid, b in self.player_bonuses.items()},
            'current_player_index': self.current_player_index,
            'skip_next_turn': self.skip_next_turn,
            'player_to_skip': self.player_to_skip,
            'game_start_time': self.game_start_time,
            'active_webcam': self.active_webcam,
            'pending_swap': self.pending_swap,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameSession':
        """Rebuild a session from a snapshot document.

        Raises KeyError, TypeError, ValueError or AttributeError when the
        document does not have the expected shape. Missing optional keys
        take fresh defaults.
        """
        if not isinstance(data, dict):
            raise TypeError(f"snapshot must be an object, got {type(data).__name__}")
        players = [Player.from_dict(p) for p in data.get('players') or []]
        player_tasks = {
            str(pid): [Task.from_dict(t) for t in tasks]
            for pid, tasks in (data.get('player_tasks') or {}).items()
        }
        player_bonuses = {
            str(pid): PlayerBonus(rare_count=max(0, int(b.get('rare_count', 0))))
            for pid, b in (data.get('player_bonuses') or {}).items()
        }
        index = int(data.get('current_player_index') or 0)
        if not 0 <= index < len(players):
            index = 0
        return cls(
            players=players,
            player_tasks=player_tasks,
            player_bonuses=player_bonuses,
            current_player_index=index,
            skip_next_turn=bool(data.get('skip_next_turn', False)),
            player_to_skip=data.get('player_to_skip'),
            game_start_time=float(data.get('game_start_time') or time.time()),
            active_webcam=data.get('active_webcam'),
            pending_swap=data.get('pending_swap'),
        )
