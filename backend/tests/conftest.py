import os
import sys
import pytest

# Ensure the backend root (containing the `partytasks` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from partytasks import create_app, db, socketio
from partytasks.services.game.manager import GameManager


ADMIN_SECRET = 'test-admin'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ADMIN_PWD = ADMIN_SECRET
    MAX_PLAYERS = 8
    ALARM_DELAY_SEC = 0
    CORS_ORIGINS = '*'


class RecordingBroadcaster:
    """Stands in for the Socket.IO transport and records every emit."""

    def __init__(self):
        self.events = []

    def broadcast_to_all(self, event, *args):
        self.events.append(('all', None, event, args))

    def send_to_one(self, sid, event, *args):
        self.events.append(('one', sid, event, args))

    def broadcast_except(self, sid, event, *args):
        self.events.append(('except', sid, event, args))

    def names(self):
        return [e[2] for e in self.events]

    def find(self, event):
        return [e for e in self.events if e[2] == event]

    def clear(self):
        self.events.clear()


class StubRandom:
    """Scripted random source.

    random() hands out the scripted rolls in order and then repeats the
    last one; choice() returns the first item matching `pick` (or the
    first item when no predicate is given).
    """

    def __init__(self, rolls=(0.5,), pick=None):
        self.rolls = list(rolls)
        self.pick = pick

    def random(self):
        if len(self.rolls) > 1:
            return self.rolls.pop(0)
        return self.rolls[0]

    def choice(self, seq):
        if self.pick is None:
            return seq[0]
        for item in seq:
            if self.pick(item):
                return item
        raise AssertionError('no task in the pool matches the stub predicate')


def picks(text):
    return lambda task: task.text == text


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def make_game(broadcaster):
    def _make(**kwargs):
        kwargs.setdefault('admin_secret', ADMIN_SECRET)
        kwargs.setdefault('rng', StubRandom())
        kwargs.setdefault('clock', lambda: 1000.0)
        return GameManager(broadcaster, **kwargs)
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import partytasks.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()
