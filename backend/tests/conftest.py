import os
import random
import sys

import pytest

# Ensure the backend root (containing the `skiblo` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from skiblo.game import service
from skiblo.game.engine import GameEngine
from skiblo.game.models import RoomSettings
from skiblo.game.scheduler import ManualTickScheduler
from skiblo.server import create_app


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    CORS_ORIGINS = '*'
    TRUST_PROXY_HEADERS = False
    SOCKETIO_ASYNC_MODE = 'threading'
    LOG_LEVEL = 'DEBUG'
    WORD_CHOICES_COUNT = 3
    TICK_SCHEDULER = 'manual'


@pytest.fixture(autouse=True)
def _clean_sessions():
    service.clear_sessions()
    yield
    service.clear_sessions()


@pytest.fixture()
def scheduler():
    return ManualTickScheduler()


@pytest.fixture()
def engine(scheduler):
    return GameEngine(
        room_code='TEST01',
        settings=RoomSettings(time_per_round=60, rounds=2, word_count=3, hint_reveal_time=30),
        scheduler=scheduler,
        rng=random.Random(1234),
        words=('Fiets', 'Kaas', 'Molen'),
        choose_duration=15,
        reveal_duration=5,
        min_players=2,
    )


@pytest.fixture()
def lobby(engine):
    """Engine in LOBBY with host A and players B and C."""
    a = engine.submit_join('A', '🐱', mode='create')
    b = engine.submit_join('B', '🐶', mode='join')
    c = engine.submit_join('C', '🦊', mode='join')
    return engine, a, b, c


@pytest.fixture()
def app_and_socketio():
    return create_app(TestConfig)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app, socketio):
    clients = []

    def _make():
        c = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(c)
        return c

    yield _make
    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
