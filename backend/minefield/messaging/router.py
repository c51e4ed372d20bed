from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, assert_never

from pydantic import ValidationError

from minefield.logic.exceptions import (
    AlreadyInGameError,
    ColorTakenError,
    GameNotFoundError,
    GameRuleError,
    InvalidPhaseError,
    NotEnoughPlayersError,
    NotHostError,
    NotInGameError,
    OutOfBoundsError,
    RoomFullError,
    ServerFullError,
)
from minefield.messaging.types import (
    CreateMessage,
    CursorMessage,
    EmoteMessage,
    ErrorCode,
    ErrorMessage,
    FlagMessage,
    JoinMessage,
    RestartMessage,
    RevealMessage,
    StartMessage,
    ToLobbyMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from minefield.messaging.protocol import ConnectionProtocol
    from minefield.messaging.types import ClientMessage
    from minefield.session.manager import SessionManager

logger = logging.getLogger(__name__)


_RULE_ERROR_CODES: dict[type[GameRuleError], ErrorCode] = {
    GameNotFoundError: ErrorCode.GAME_NOT_FOUND,
    RoomFullError: ErrorCode.ROOM_FULL,
    ColorTakenError: ErrorCode.COLOR_TAKEN,
    NotEnoughPlayersError: ErrorCode.NOT_ENOUGH_PLAYERS,
    InvalidPhaseError: ErrorCode.INVALID_PHASE,
    NotHostError: ErrorCode.NOT_HOST,
    OutOfBoundsError: ErrorCode.OUT_OF_BOUNDS,
    NotInGameError: ErrorCode.NOT_IN_GAME,
    AlreadyInGameError: ErrorCode.ALREADY_IN_GAME,
    ServerFullError: ErrorCode.SERVER_FULL,
}


def error_code_for(error: GameRuleError) -> ErrorCode:
    for error_type in type(error).__mro__:
        code = _RULE_ERROR_CODES.get(error_type)
        if code is not None:
            return code
    return ErrorCode.RULE_VIOLATION


class MessageRouter:
    """
    Routes decoded client frames to session manager commands.

    This class contains pure business logic and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self._send_error(connection, ErrorCode.INVALID_MESSAGE, "Invalid message")
            return

        try:
            await self._dispatch(connection, message)
        except GameRuleError as e:
            logger.info("%s rejected for %s: %s", message.type, connection.connection_id, e)
            await self._send_error(connection, error_code_for(e), str(e))
        except Exception:
            logger.exception("unexpected error handling %s for %s", message.type, connection.connection_id)
            await self._send_error(connection, ErrorCode.SERVER_ERROR, "Server error")

    async def _dispatch(self, connection: ConnectionProtocol, message: ClientMessage) -> None:
        manager = self._session_manager
        match message:
            case CreateMessage(settings=settings, player=profile):
                await manager.create_game(connection, settings, profile)
            case JoinMessage(code=code, player=profile):
                await manager.join_game(connection, code, profile)
            case StartMessage():
                await manager.start_game(connection)
            case RevealMessage(x=x, y=y):
                await manager.reveal(connection, x, y)
            case FlagMessage(x=x, y=y):
                await manager.toggle_flag(connection, x, y)
            case CursorMessage(x=x, y=y):
                await manager.move_cursor(connection, x, y)
            case RestartMessage():
                await manager.restart_game(connection)
            case ToLobbyMessage():
                await manager.return_to_lobby(connection)
            case EmoteMessage(value=value):
                await manager.send_emote(connection, value)
            case _:
                assert_never(message)

    @staticmethod
    async def _send_error(connection: ConnectionProtocol, code: ErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).to_wire())

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.leave_game(connection)
        self._session_manager.unregister_connection(connection)
