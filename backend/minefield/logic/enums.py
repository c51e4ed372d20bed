from enum import StrEnum


class GamePhase(StrEnum):
    LOBBY = "lobby"
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"

    @property
    def is_finished(self) -> bool:
        return self in (GamePhase.WON, GamePhase.LOST)


class CellState(StrEnum):
    """What a client is allowed to know about a cell."""

    HIDDEN = "hidden"
    FLAGGED = "flagged"
    REVEALED = "revealed"
