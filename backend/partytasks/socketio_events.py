from flask import current_app, request
from flask_socketio import emit

from partytasks.services.game.errors import GameError

NAMESPACE = '/'


class SocketIOBroadcaster:
    """Fan-out used by the game manager, backed by Flask-SocketIO.

    Safe to call from handlers and from background tasks alike, since it
    never relies on the request context.
    """

    def __init__(self, sio, namespace: str = NAMESPACE):
        self.sio = sio
        self.namespace = namespace

    def broadcast_to_all(self, event: str, *args) -> None:
        self.sio.emit(event, *args, namespace=self.namespace)

    def send_to_one(self, sid: str, event: str, *args) -> None:
        self.sio.emit(event, *args, to=sid, namespace=self.namespace)

    def broadcast_except(self, sid: str, event: str, *args) -> None:
        self.sio.emit(event, *args, namespace=self.namespace, skip_sid=sid)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _game():
    return current_app.extensions['game_manager']


def _dispatch(action, *args) -> None:
    """Run a manager action for the calling connection.

    Game errors are answered to the caller only; nothing is broadcast.
    """
    try:
        action(_get_sid(), *args)
    except GameError as exc:
        current_app.logger.info(f"[rejected] sid={_get_sid()} event={exc.event} reason={exc.message}")
        emit(exc.event, exc.to_payload())


def handle_connect(auth=None):
    _game().connect(_get_sid())


def handle_disconnect(reason=None):
    _game().disconnect(_get_sid())


def handle_join_game(name=None):
    _dispatch(_game().join, name)


def handle_heartbeat(*_):
    _game().heartbeat(_get_sid())


def handle_draw_task(token=None):
    _dispatch(_game().draw_task, token)


def handle_swap_scores(token=None, target_id=None):
    _dispatch(_game().swap_scores, token, target_id)


def handle_new_task(token=None, data=None):
    _dispatch(_game().create_custom_task, token, data)


def handle_start_timer(token=None):
    _dispatch(_game().start_timer, token)


def handle_send_message(token=None, data=None):
    _dispatch(_game().send_message, token, data)


def handle_webcam_started(token=None):
    _dispatch(_game().webcam_started, token)


def handle_webcam_stopped(token=None):
    _dispatch(_game().webcam_stopped, token)


def handle_webcam_closed(token=None):
    _dispatch(_game().webcam_closed, token)


def handle_admin_command(secret=None, command=None, *args):
    _dispatch(_game().admin_command, secret, command, *args)


def register_socketio_handlers(sio, namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on the given namespace."""
    sio.on_event('connect', handle_connect, namespace=namespace)
    sio.on_event('disconnect', handle_disconnect, namespace=namespace)
    sio.on_event('join_game', handle_join_game, namespace=namespace)
    sio.on_event('heartbeat', handle_heartbeat, namespace=namespace)
    sio.on_event('draw_task', handle_draw_task, namespace=namespace)
    sio.on_event('swap_scores', handle_swap_scores, namespace=namespace)
    sio.on_event('new_task', handle_new_task, namespace=namespace)
    sio.on_event('start_timer', handle_start_timer, namespace=namespace)
    sio.on_event('send_message', handle_send_message, namespace=namespace)
    sio.on_event('webcam_started', handle_webcam_started, namespace=namespace)
    sio.on_event('webcam_stopped', handle_webcam_stopped, namespace=namespace)
    sio.on_event('webcam_closed', handle_webcam_closed, namespace=namespace)
    sio.on_event('admin_command', handle_admin_command, namespace=namespace)
