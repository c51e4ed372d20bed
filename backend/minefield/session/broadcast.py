"""Best-effort fan-out of one message to a group of connections."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from minefield.session.models import ConnectedPlayer


async def broadcast_to_players(
    players: Iterable[ConnectedPlayer],
    message: dict[str, Any],
    exclude_connection_id: str | None = None,
) -> None:
    """Send a message to every player, skipping one if excluded.

    A closed or failing connection is skipped silently; it never fails the
    command that produced the message. The caller passes a snapshot so a
    concurrent leave cannot mutate the collection while sends are awaited.
    """
    for player in players:
        if player.connection_id != exclude_connection_id:
            with contextlib.suppress(RuntimeError, OSError):
                await player.connection.send_message(message)
