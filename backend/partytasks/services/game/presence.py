import logging
from typing import Callable, List

from .roster import Roster
from .state import Player

logger = logging.getLogger(__name__)


class PresenceMonitor:
    """Evicts players that have been gone for longer than the grace period.

    A player is kept while it has a live connection, or while its last
    heartbeat is more recent than `timeout` seconds.
    """

    def __init__(self, roster: Roster, timeout: float = 30):
        self.roster = roster
        self.timeout = timeout

    def stale_players(self, now: float, is_live: Callable[[str], bool]) -> List[Player]:
        return [
            p for p in self.roster.session.players
            if not is_live(p.id) and now - p.last_seen >= self.timeout
        ]

    def sweep(self, now: float, is_live: Callable[[str], bool]) -> List[Player]:
        evicted = []
        for player in self.stale_players(now, is_live):
            if self.roster.remove(player.id) is not None:
                evicted.append(player)
                logger.info(f"[evict] player={player.id} name={player.name} idle={now - player.last_seen:.0f}s")
        return evicted
