"""Typed domain exceptions for rule violations.

Every violation a client can trigger is a GameRuleError subclass, so the
session layer can catch one base class and report the message back to the
originating connection without touching the room or the connection.
"""


class GameRuleError(Exception):
    """Base exception for rule violations reported to the requesting client."""


class RoomFullError(GameRuleError):
    """The room's roster already holds max_players players."""


class ColorTakenError(GameRuleError):
    """Another player in the room already uses the requested color."""


class NotEnoughPlayersError(GameRuleError):
    """Starting a game requires at least two players."""


class InvalidPhaseError(GameRuleError):
    """The action is not allowed in the room's current phase."""


class NotHostError(GameRuleError):
    """A host-only action was requested by another player."""


class OutOfBoundsError(GameRuleError):
    """Coordinates fall outside the board."""

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y
        super().__init__("Invalid coordinates")


class GameNotFoundError(GameRuleError):
    """No live room exists for the given code."""


class NotInGameError(GameRuleError):
    """The connection has not created or joined a room yet."""


class AlreadyInGameError(GameRuleError):
    """The connection is already bound to a room."""


class ServerFullError(GameRuleError):
    """The server already hosts its maximum number of rooms."""
