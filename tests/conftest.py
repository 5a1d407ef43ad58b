import os
import sys
import pytest

# Ensure the project root (containing the `scoreboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from scoreboard import create_app, close_app, db, socketio
from scoreboard.services.scores import MemoryScoreStore, ScoreLedger, LeaderboardView


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCORE_STORE = 'sql'
    LEADERBOARD_DEFAULT_SIZE = 3
    LEADERBOARD_MAX_SIZE = 100
    SCORE_CAS_MAX_RETRIES = 16
    MAX_SCORE_PER_SUBMISSION = None
    CORS_ORIGINS = ['http://localhost:5173']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scoreboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    close_app(application)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def memory_store():
    store = MemoryScoreStore()
    store.open()
    yield store
    store.close()


@pytest.fixture()
def ledger(memory_store):
    return ScoreLedger(memory_store)


@pytest.fixture()
def leaderboard(memory_store):
    return LeaderboardView(memory_store, default_size=3, max_size=100)
