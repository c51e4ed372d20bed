from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter, field_validator

from minefield.logic.game import GameView  # noqa: TC001
from minefield.logic.settings import GameSettings  # noqa: TC001
from minefield.logic.types import CamelModel, CellView, PlayerInfo, PlayerProfile, RevealedCell  # noqa: TC001

_COORD_FIELD = Field(strict=True)


class ClientMessageType(StrEnum):
    CREATE = "create"
    JOIN = "join"
    START = "start"
    REVEAL = "reveal"
    FLAG = "flag"
    CURSOR = "cursor"
    RESTART = "restart"
    TO_LOBBY = "toLobby"
    EMOTE = "emote"


class ServerMessageType(StrEnum):
    CREATED = "created"
    JOINED = "joined"
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"
    HOST_CHANGED = "hostChanged"
    GAME_STARTED = "gameStarted"
    REVEALED = "revealed"
    FLAGGED = "flagged"
    CURSOR = "cursor"
    GAME_OVER = "gameOver"
    TO_LOBBY = "toLobby"
    EMOTE = "emote"
    ERROR = "error"


class ErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    RATE_LIMITED = "rate_limited"
    GAME_NOT_FOUND = "game_not_found"
    ROOM_FULL = "room_full"
    COLOR_TAKEN = "color_taken"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    INVALID_PHASE = "invalid_phase"
    NOT_HOST = "not_host"
    OUT_OF_BOUNDS = "out_of_bounds"
    NOT_IN_GAME = "not_in_game"
    ALREADY_IN_GAME = "already_in_game"
    SERVER_FULL = "server_full"
    RULE_VIOLATION = "rule_violation"
    SERVER_ERROR = "server_error"


# --- Client -> server ---


class CreateMessage(CamelModel):
    type: Literal[ClientMessageType.CREATE] = ClientMessageType.CREATE
    settings: GameSettings
    player: PlayerProfile


class JoinMessage(CamelModel):
    type: Literal[ClientMessageType.JOIN] = ClientMessageType.JOIN
    code: str = Field(min_length=1, max_length=16)
    player: PlayerProfile

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class StartMessage(CamelModel):
    type: Literal[ClientMessageType.START] = ClientMessageType.START


class RevealMessage(CamelModel):
    type: Literal[ClientMessageType.REVEAL] = ClientMessageType.REVEAL
    x: int = _COORD_FIELD
    y: int = _COORD_FIELD


class FlagMessage(CamelModel):
    type: Literal[ClientMessageType.FLAG] = ClientMessageType.FLAG
    x: int = _COORD_FIELD
    y: int = _COORD_FIELD


class CursorMessage(CamelModel):
    type: Literal[ClientMessageType.CURSOR] = ClientMessageType.CURSOR
    x: int = _COORD_FIELD
    y: int = _COORD_FIELD


class RestartMessage(CamelModel):
    type: Literal[ClientMessageType.RESTART] = ClientMessageType.RESTART


class ToLobbyMessage(CamelModel):
    type: Literal[ClientMessageType.TO_LOBBY] = ClientMessageType.TO_LOBBY


class EmoteMessage(CamelModel):
    type: Literal[ClientMessageType.EMOTE] = ClientMessageType.EMOTE
    value: str = Field(min_length=1, max_length=32)


ClientMessage = (
    CreateMessage
    | JoinMessage
    | StartMessage
    | RevealMessage
    | FlagMessage
    | CursorMessage
    | RestartMessage
    | ToLobbyMessage
    | EmoteMessage
)

_client_message_adapter = TypeAdapter(Annotated[ClientMessage, Field(discriminator="type")])


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw decoded frame into one of the closed set of command models."""
    return _client_message_adapter.validate_python(data)


# --- Server -> client ---


class ServerMessage(CamelModel):
    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CreatedMessage(ServerMessage):
    type: Literal[ServerMessageType.CREATED] = ServerMessageType.CREATED
    code: str
    player_id: str
    game: GameView


class JoinedMessage(ServerMessage):
    type: Literal[ServerMessageType.JOINED] = ServerMessageType.JOINED
    player_id: str
    game: GameView


class PlayerJoinedMessage(ServerMessage):
    type: Literal[ServerMessageType.PLAYER_JOINED] = ServerMessageType.PLAYER_JOINED
    player: PlayerInfo


class PlayerLeftMessage(ServerMessage):
    type: Literal[ServerMessageType.PLAYER_LEFT] = ServerMessageType.PLAYER_LEFT
    player_id: str


class HostChangedMessage(ServerMessage):
    type: Literal[ServerMessageType.HOST_CHANGED] = ServerMessageType.HOST_CHANGED
    new_host_id: str


class GameStartedMessage(ServerMessage):
    type: Literal[ServerMessageType.GAME_STARTED] = ServerMessageType.GAME_STARTED
    game: GameView


class RevealedMessage(ServerMessage):
    type: Literal[ServerMessageType.REVEALED] = ServerMessageType.REVEALED
    cells: list[RevealedCell]
    by: str


class FlaggedMessage(ServerMessage):
    type: Literal[ServerMessageType.FLAGGED] = ServerMessageType.FLAGGED
    x: int
    y: int
    flagged: bool
    by: str
    flags_remaining: int


class CursorMovedMessage(ServerMessage):
    type: Literal[ServerMessageType.CURSOR] = ServerMessageType.CURSOR
    player_id: str
    x: int
    y: int


class GameOverMessage(ServerMessage):
    type: Literal[ServerMessageType.GAME_OVER] = ServerMessageType.GAME_OVER
    won: bool
    board: list[list[CellView]] | None
    triggered_by: str | None = None


class ReturnedToLobbyMessage(ServerMessage):
    type: Literal[ServerMessageType.TO_LOBBY] = ServerMessageType.TO_LOBBY
    game: GameView


class EmoteBroadcastMessage(ServerMessage):
    type: Literal[ServerMessageType.EMOTE] = ServerMessageType.EMOTE
    player_id: str
    value: str


class ErrorMessage(ServerMessage):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: ErrorCode
    message: str
