"""Password-gated admin commands.

Commands arrive as a name plus loose positional arguments. They are
parsed into typed commands here, so nothing downstream sees raw client
values.
"""
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Sequence, Union

from .errors import AdminAuthError, AdminError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetCommand:
    pass


@dataclass(frozen=True)
class KickCommand:
    player_id: str


@dataclass(frozen=True)
class AddPointsCommand:
    player_id: str
    amount: int


AdminCommand = Union[ResetCommand, KickCommand, AddPointsCommand]


def parse_points(value: Any) -> int:
    if isinstance(value, bool):
        raise AdminError('Invalid points value')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise AdminError('Invalid points value')


class AdminControl:
    def __init__(self, secret: str, game):
        self._secret = secret or ''
        self.game = game

    def authorize(self, supplied, origin: str = None) -> None:
        if not isinstance(supplied, str) or not hmac.compare_digest(supplied.encode(), self._secret.encode()):
            logger.warning(f"[admin] rejected bad admin secret from sid={origin}")
            raise AdminAuthError()

    def parse(self, command, args: Sequence[Any]) -> AdminCommand:
        if command == 'reset':
            return ResetCommand()
        if command == 'kick':
            if not args or not isinstance(args[0], str):
                raise AdminError('kick needs a player id')
            return KickCommand(player_id=args[0])
        if command == 'addPoints':
            if len(args) < 2 or not isinstance(args[0], str):
                raise AdminError('addPoints needs a player id and an amount')
            return AddPointsCommand(player_id=args[0], amount=parse_points(args[1]))
        raise AdminError('Unknown command')

    def run(self, supplied_secret, command, *args, origin: str = None) -> str:
        """Authorize, parse and execute a command.

        Returns the success message for the issuer; failures raise
        AdminError.
        """
        self.authorize(supplied_secret, origin)
        cmd = self.parse(command, args)
        logger.info(f"[admin] sid={origin} command={cmd}")
        if isinstance(cmd, ResetCommand):
            self.game.reset()
            return 'Game reset'
        if isinstance(cmd, KickCommand):
            player = self.game.kick(cmd.player_id)
            if player is None:
                raise AdminError('Player not found')
            return f"Kicked {player.name}"
        player = self.game.add_points(cmd.player_id, cmd.amount)
        if player is None:
            raise AdminError('Player not found')
        return f"Added {cmd.amount} points to {player.name}"
