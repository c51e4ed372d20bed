import random

import pytest

from minefield.messaging.router import MessageRouter
from minefield.server.app import create_app
from minefield.server.settings import MinefieldServerSettings
from minefield.session.manager import SessionManager
from minefield.tests.mocks import MockConnection


@pytest.fixture
def session_manager():
    return SessionManager(rng=random.Random(42))


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings():
    return MinefieldServerSettings(idle_ttl_seconds=0)


@pytest.fixture
def app(server_settings, session_manager, message_router):
    return create_app(
        settings=server_settings,
        session_manager=session_manager,
        message_router=message_router,
    )
