import random

import pytest

from minefield.logic.settings import GameSettings
from minefield.session.manager import SessionManager
from minefield.tests.helpers.builders import make_profile
from minefield.tests.mocks import MockConnection


@pytest.fixture
def manager():
    return SessionManager(max_games=3, rng=random.Random(5))


@pytest.fixture
async def lobby(manager):
    """A two-player lobby: host Alice and guest Bob, with their outboxes cleared."""
    host = MockConnection("conn-host")
    guest = MockConnection("conn-guest")
    manager.register_connection(host)
    manager.register_connection(guest)

    await manager.create_game(host, GameSettings(), make_profile("Alice", "red"))
    code = host.sent_messages[0]["code"]
    await manager.join_game(guest, code, make_profile("Bob", "blue"))

    host.clear()
    guest.clear()
    return manager, code, host, guest


@pytest.fixture
async def playing(lobby):
    manager, code, host, guest = lobby
    await manager.start_game(host)
    host.clear()
    guest.clear()
    return manager, code, host, guest
