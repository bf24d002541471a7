"""Errors raised by game operations.

Each error knows the event it is reported as, so the socket layer can
answer the originating connection without a lookup table.
"""


class GameError(Exception):
    event = 'error'
    default_message = 'Request failed'

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_payload(self) -> dict:
        return {'message': self.message}


class RosterFull(GameError):
    event = 'game_full'
    default_message = 'The game is full'


class InvalidName(GameError):
    event = 'invalid_name'
    default_message = 'Please choose a valid name'


class SessionError(GameError):
    event = 'session_error'
    default_message = 'Invalid session, please rejoin'


class NotYourTurn(GameError):
    event = 'not_your_turn'
    default_message = 'It is not your turn'


class InvalidPayload(GameError):
    event = 'invalid_payload'
    default_message = 'Malformed request'


class AdminError(GameError):
    event = 'admin_error'
    default_message = 'Unknown command'


class AdminAuthError(AdminError):
    default_message = 'Invalid admin password'
