from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from minefield.messaging.protocol import ConnectionProtocol


@dataclass
class ConnectedPlayer:
    """A live connection and the room it is bound to, if any.

    Lifecycle:
    - Registered on connect with no player id and no game code
    - On create/join: player_id (server-assigned) and game_code are set
    - On leave, disconnect or idle eviction: both are cleared
    - On unregister: removed from the connection table entirely
    """

    connection: ConnectionProtocol
    player_id: str | None = None
    game_code: str | None = None

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id

    @property
    def is_bound(self) -> bool:
        return self.game_code is not None

    def bind(self, player_id: str, game_code: str) -> None:
        self.player_id = player_id
        self.game_code = game_code

    def unbind(self) -> None:
        self.player_id = None
        self.game_code = None
