from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, field_validator, model_serializer
from pydantic.alias_generators import to_camel

from minefield.logic.enums import CellState

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

MINE = "mine"

CellValue = int | Literal["mine"]


class CamelModel(BaseModel):
    """Base for models that cross the wire: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerProfile(CamelModel):
    """Cosmetic identity a client picks for itself before creating or joining a room."""

    name: str = Field(min_length=1, max_length=32)
    avatar: str = Field(default="", max_length=200)
    color: str = Field(min_length=1, max_length=32)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in v):
            raise ValueError("name must not contain control characters")
        return v


class PlayerInfo(PlayerProfile):
    """A room member: the chosen profile plus the server-assigned id."""

    id: str


class RevealedCell(CamelModel):
    """One newly disclosed cell in a reveal delta."""

    x: int
    y: int
    value: CellValue


class CellView(CamelModel):
    """Masked projection of one cell. Unrevealed mines are never represented."""

    state: CellState
    value: CellValue | None = None
    revealed_by: str | None = None

    @model_serializer(mode="wrap")
    def _drop_empty(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {k: v for k, v in handler(self).items() if v is not None}
