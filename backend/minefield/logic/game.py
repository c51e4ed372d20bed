"""Per-room game state machine: roster, board, reveal/flag bookkeeping and phase.

Phases move lobby -> playing -> won | lost within a round. Only host-triggered
restart (won/lost -> playing) and return to lobby rewind them; host checks are
the session layer's job.

Every method here is synchronous, so each mutation completes within a single
event-loop turn.
"""

import random
import time
from dataclasses import dataclass, field

from minefield.logic.board import Board, Coord, generate_board, reveal_cells
from minefield.logic.enums import CellState, GamePhase
from minefield.logic.exceptions import (
    ColorTakenError,
    InvalidPhaseError,
    NotEnoughPlayersError,
    OutOfBoundsError,
    RoomFullError,
)
from minefield.logic.settings import MIN_PLAYERS_TO_START, GameSettings
from minefield.logic.types import CamelModel, CellView, PlayerInfo, RevealedCell


class GameView(CamelModel):
    """Externally-safe snapshot of a whole room, sent on create/join/start/restart/lobby."""

    code: str
    settings: GameSettings
    players: list[PlayerInfo]
    host_id: str | None
    state: GamePhase
    board: list[list[CellView]] | None
    flags_remaining: int
    elapsed_time: int


@dataclass
class RevealOutcome:
    cells: list[RevealedCell] = field(default_factory=list)
    game_over: bool = False
    won: bool = False
    triggered_by: str | None = None


class MinefieldGame:
    def __init__(
        self,
        code: str,
        settings: GameSettings,
        host: PlayerInfo,
        rng: random.Random | None = None,
    ) -> None:
        self.code = code
        self.settings = settings
        self.players: list[PlayerInfo] = [host]
        self.host_id: str | None = host.id
        self.phase = GamePhase.LOBBY
        self.board: Board | None = None
        self.revealed: set[Coord] = set()
        self.flagged: set[Coord] = set()
        self.start_time: float | None = None
        self.end_time: float | None = None
        self.last_activity = time.monotonic()
        self._rng = rng

    # --- Roster ---

    def get_player(self, player_id: str) -> PlayerInfo | None:
        return next((p for p in self.players if p.id == player_id), None)

    def is_host(self, player_id: str) -> bool:
        return self.host_id == player_id

    @property
    def is_empty(self) -> bool:
        return not self.players

    def add_player(self, player: PlayerInfo) -> None:
        """Add a player, or refresh the entry of a player already in the roster."""
        existing = self.get_player(player.id)
        if existing is None and len(self.players) >= self.settings.max_players:
            raise RoomFullError("Game is full")
        if any(p.color == player.color and p.id != player.id for p in self.players):
            raise ColorTakenError("Color already taken")

        if existing is None:
            self.players.append(player)
        else:
            self.players[self.players.index(existing)] = player
        if self.host_id is None:
            self.host_id = player.id
        self.touch()

    def remove_player(self, player_id: str) -> bool:
        """Remove a player, handing host to the next in line. Return True if the room is now empty."""
        self.players = [p for p in self.players if p.id != player_id]
        if self.host_id == player_id:
            self.host_id = self.players[0].id if self.players else None
        self.touch()
        return self.is_empty

    # --- Phase transitions ---

    def start_game(self) -> None:
        if self.phase != GamePhase.LOBBY:
            raise InvalidPhaseError("Game already started")
        if len(self.players) < MIN_PLAYERS_TO_START:
            raise NotEnoughPlayersError(f"Need at least {MIN_PLAYERS_TO_START} players to start")
        self.phase = GamePhase.PLAYING
        self.start_time = time.monotonic()
        self.end_time = None
        self.touch()

    def reset(self) -> None:
        """Clear the board for a new round with the same roster and host."""
        self._clear_board()
        self.phase = GamePhase.PLAYING
        self.start_time = time.monotonic()
        self.touch()

    def restart(self) -> None:
        if not self.phase.is_finished:
            raise InvalidPhaseError("Game is still in progress")
        self.reset()

    def return_to_lobby(self) -> None:
        self._clear_board()
        self.phase = GamePhase.LOBBY
        self.start_time = None
        self.touch()

    def _clear_board(self) -> None:
        self.board = None
        self.revealed.clear()
        self.flagged.clear()
        self.end_time = None

    def _finish(self, phase: GamePhase) -> None:
        self.phase = phase
        self.end_time = time.monotonic()

    # --- Board actions ---

    def _check_playable(self, x: int, y: int) -> None:
        if self.phase != GamePhase.PLAYING:
            raise InvalidPhaseError("Game is not in progress")
        if not (0 <= x < self.settings.width and 0 <= y < self.settings.height):
            raise OutOfBoundsError(x, y)

    def reveal(self, x: int, y: int, player_id: str) -> RevealOutcome:
        self._check_playable(x, y)
        if (x, y) in self.revealed or (x, y) in self.flagged:
            return RevealOutcome()

        if self.board is None:
            self.board = generate_board(
                self.settings.width,
                self.settings.height,
                self.settings.mines,
                x,
                y,
                rng=self._rng,
            )
        self.touch()

        result = reveal_cells(self.board, x, y, self.revealed, self.flagged)
        if result.hit_mine:
            self._finish(GamePhase.LOST)
            return RevealOutcome(cells=result.cells, game_over=True, won=False, triggered_by=player_id)

        for delta in result.cells:
            self.revealed.add((delta.x, delta.y))
            self.board.cell(delta.x, delta.y).revealed_by = player_id

        if len(self.revealed) == self.settings.safe_cell_count:
            self._finish(GamePhase.WON)
            return RevealOutcome(cells=result.cells, game_over=True, won=True)
        return RevealOutcome(cells=result.cells)

    def toggle_flag(self, x: int, y: int) -> bool | None:
        """Flip the flag on a hidden cell. Return the new flag state, or None if the cell is revealed."""
        self._check_playable(x, y)
        if (x, y) in self.revealed:
            return None
        self.touch()
        if (x, y) in self.flagged:
            self.flagged.discard((x, y))
            return False
        self.flagged.add((x, y))
        return True

    # --- Projections ---

    @property
    def flags_remaining(self) -> int:
        return self.settings.mines - len(self.flagged)

    @property
    def elapsed_seconds(self) -> int:
        if self.start_time is None:
            return 0
        end = self.end_time if self.end_time is not None else time.monotonic()
        return int(end - self.start_time)

    def masked_board(self) -> list[list[CellView]] | None:
        """Project the board for clients: hidden, flagged, or revealed with value and revealer."""
        if self.board is None:
            return None
        rows: list[list[CellView]] = []
        for y in range(self.settings.height):
            row: list[CellView] = []
            for x in range(self.settings.width):
                if (x, y) in self.revealed:
                    row.append(
                        CellView(
                            state=CellState.REVEALED,
                            value=self.board.value_at(x, y),
                            revealed_by=self.board.cell(x, y).revealed_by,
                        ),
                    )
                elif (x, y) in self.flagged:
                    row.append(CellView(state=CellState.FLAGGED))
                else:
                    row.append(CellView(state=CellState.HIDDEN))
            rows.append(row)
        return rows

    def to_view(self) -> GameView:
        return GameView(
            code=self.code,
            settings=self.settings,
            players=list(self.players),
            host_id=self.host_id,
            state=self.phase,
            board=self.masked_board(),
            flags_remaining=self.flags_remaining,
            elapsed_time=self.elapsed_seconds,
        )

    def touch(self) -> None:
        self.last_activity = time.monotonic()
