import os
import sys
import pytest

# Ensure the backend root (containing the `tictactoe` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from tictactoe import create_app, db, socketio, lobby


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    LEADERBOARD_REFRESH_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import tictactoe.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def game_lobby(flask_app):
    return lobby


@pytest.fixture()
def make_sio_client(flask_app):
    """Factory for Socket.IO test clients on /ws; all are disconnected on teardown."""
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        created.append(test_client)
        test_client.get_received('/ws')
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()


def events_named(received, name):
    return [pkt['args'][0] if pkt.get('args') else None for pkt in received if pkt['name'] == name]


def register_user(client, username, password='password'):
    return client.post('/register', json={'username': username, 'password': password})
