# tests/conftest.py
import eventlet
eventlet.monkey_patch()

import pytest

from config import TestingConfig
from cpustream import create_app
from cpustream.broadcasts.sessions import session_manager


class EmitRecorder:
    """Stands in for the socket emit and remembers every delivery."""

    def __init__(self):
        self.calls = []

    def __call__(self, event, data, sid):
        self.calls.append((event, data, sid))

    def payloads_for(self, sid):
        return [data for _, data, target in self.calls if target == sid]


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    session_manager.stop_all()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def recorder():
    return EmitRecorder()
