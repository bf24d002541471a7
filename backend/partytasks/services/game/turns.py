import logging
from typing import Optional

from .state import GameSession

logger = logging.getLogger(__name__)


class TurnScheduler:
    """Owns the turn pointer and the one-shot "miss a turn" flag.

    Turn order is join order. The pointer is only moved by advance();
    roster removals just clamp it back into range.
    """

    def __init__(self, session: GameSession):
        self.session = session

    def advance(self) -> Optional[str]:
        """Move to the next player, honouring a pending skip once.

        Returns the id of the new current player, or None when the roster
        is empty.
        """
        s = self.session
        s.pending_swap = None
        size = len(s.players)
        if size == 0:
            s.current_player_index = 0
            return None
        s.current_player_index = (s.current_player_index + 1) % size
        if s.skip_next_turn and s.players[s.current_player_index].id == s.player_to_skip:
            logger.info(f"[turn-skip] player={s.player_to_skip}")
            s.current_player_index = (s.current_player_index + 1) % size
            s.skip_next_turn = False
            s.player_to_skip = None
        return s.current_player_id

    def set_skip(self, player_id: str) -> None:
        self.session.skip_next_turn = True
        self.session.player_to_skip = player_id

    def clamp_after_removal(self) -> None:
        s = self.session
        if s.current_player_index >= len(s.players):
            s.current_player_index = max(0, len(s.players) - 1)

    def clamp_after_kick(self) -> None:
        # Kick wraps to the first player rather than the last one
        s = self.session
        if s.current_player_index >= len(s.players):
            s.current_player_index = 0
