"""Per-room board settings, as requested by the room creator."""

from typing import Self

from pydantic import ConfigDict, Field, model_validator

from minefield.logic.types import CamelModel

MIN_PLAYERS_TO_START = 2

# Upper bounds keep a single room's board and broadcast payloads small.
MAX_BOARD_SIDE = 100
MAX_PLAYERS_PER_ROOM = 8


class GameSettings(CamelModel):
    """
    Board dimensions, mine count and roster capacity for one room.

    Serialized as {width, height, mines, maxPlayers} on the wire.
    """

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=9, gt=0, le=MAX_BOARD_SIDE, strict=True)
    height: int = Field(default=9, gt=0, le=MAX_BOARD_SIDE, strict=True)
    mines: int = Field(default=10, gt=0, strict=True)
    max_players: int = Field(default=4, ge=MIN_PLAYERS_TO_START, le=MAX_PLAYERS_PER_ROOM, strict=True)

    @model_validator(mode="after")
    def _validate_mine_count(self) -> Self:
        if self.mines >= self.cell_count:
            raise ValueError(f"mines must be fewer than {self.cell_count} for a {self.width}x{self.height} board")
        return self

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    @property
    def safe_cell_count(self) -> int:
        return self.cell_count - self.mines
