import os
import sys
import pytest

# Ensure the backend root (containing the `gamelobby` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gamelobby import create_app, db, socketio, get_engine


def make_test_config(db_path, **overrides):
    class TestConfig:
        TESTING = True
        SECRET_KEY = 'test-secret'
        JWT_SECRET = 'test-jwt-secret'
        TOKEN_TTL_SEC = 3600
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{db_path}'
        SQLALCHEMY_TRACK_MODIFICATIONS = False
        SESSION_DURATION_SEC = 20
        SESSION_COOLDOWN_SEC = 10
        SESSION_AUTOSTART = True
        WIN_CREDIT_ATTEMPTS = 3
        LEADERBOARD_SIZE = 10

    for key, value in overrides.items():
        setattr(TestConfig, key, value)
    return TestConfig


@pytest.fixture()
def app_factory(tmp_path):
    """Build apps with config overrides; engines are stopped and tables dropped afterwards."""
    built = []

    def _make(**overrides):
        application = create_app(make_test_config(tmp_path / f'test{len(built)}.db', **overrides))
        with application.app_context():
            # Ensure models are imported so tables are created
            import gamelobby.models  # noqa: F401
            db.create_all()
        built.append(application)
        return application

    yield _make
    for application in built:
        get_engine(application).stop()
        with application.app_context():
            db.session.remove()
            db.drop_all()


@pytest.fixture()
def flask_app(app_factory):
    # Each request and each reward callback gets its own app context (and
    # database session), as it does when served
    return app_factory()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def engine(flask_app):
    return get_engine(flask_app)


@pytest.fixture()
def register(client):
    """Register a user and return Authorization headers for it."""
    def _register(username):
        res = client.post('/register', json={'username': username})
        assert res.status_code == 200, res.get_json()
        return {'Authorization': f"Bearer {res.get_json()['token']}"}
    return _register


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
