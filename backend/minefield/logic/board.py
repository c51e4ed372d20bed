"""
Board generation and flood-fill reveal.

Pure functions over a fixed-size grid with no I/O and no shared state.
Cells live in a row-major flat list addressed by ``y * width + x``.
"""

import random
from collections import deque
from collections.abc import Iterator, Set
from dataclasses import dataclass, field

from minefield.logic.types import MINE, CellValue, RevealedCell

_NEIGHBOR_OFFSETS = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0))

_system_random = random.SystemRandom()

Coord = tuple[int, int]


@dataclass
class Cell:
    is_mine: bool = False
    adjacent: int = 0
    revealed_by: str | None = None


@dataclass
class Board:
    width: int
    height: int
    cells: list[Cell] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [Cell() for _ in range(self.width * self.height)]

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> Cell:
        return self.cells[y * self.width + x]

    def neighbors(self, x: int, y: int) -> Iterator[Coord]:
        """Yield the in-grid coordinates of the up-to-8 cells around (x, y)."""
        for dx, dy in _NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.contains(nx, ny):
                yield nx, ny

    def mine_positions(self) -> list[Coord]:
        """Return every mine coordinate in row-major order."""
        return [(i % self.width, i // self.width) for i, c in enumerate(self.cells) if c.is_mine]

    def value_at(self, x: int, y: int) -> CellValue:
        cell = self.cell(x, y)
        return MINE if cell.is_mine else cell.adjacent


@dataclass(frozen=True)
class RevealResult:
    cells: list[RevealedCell]
    hit_mine: bool = False


def generate_board(
    width: int,
    height: int,
    mines: int,
    safe_x: int,
    safe_y: int,
    rng: random.Random | None = None,
) -> Board:
    """
    Place mines uniformly at random around a guaranteed-safe first click.

    Mines never land on (safe_x, safe_y) or its neighbors. When the board is
    too crowded to keep the whole 3x3 neighborhood clear, only the clicked
    cell itself is kept clear. The caller guarantees mines < width * height.
    """
    rng = rng or _system_random
    board = Board(width, height)

    forbidden = {(safe_x, safe_y), *board.neighbors(safe_x, safe_y)}
    if mines > width * height - len(forbidden):
        forbidden = {(safe_x, safe_y)}

    placed = 0
    while placed < mines:
        x = rng.randrange(width)
        y = rng.randrange(height)
        cell = board.cell(x, y)
        if (x, y) in forbidden or cell.is_mine:
            continue
        cell.is_mine = True
        placed += 1

    for y in range(height):
        for x in range(width):
            cell = board.cell(x, y)
            if not cell.is_mine:
                cell.adjacent = sum(1 for nx, ny in board.neighbors(x, y) if board.cell(nx, ny).is_mine)

    return board


def reveal_cells(board: Board, x: int, y: int, revealed: Set[Coord], flagged: Set[Coord]) -> RevealResult:
    """
    Compute the cells disclosed by probing (x, y).

    A mine discloses every mine on the board. Otherwise a breadth-first
    worklist expands through zero-adjacency cells, emitting each newly
    revealed cell exactly once and never entering revealed or flagged cells.
    The board and the passed-in sets are not modified.
    """
    if board.cell(x, y).is_mine:
        return RevealResult(
            cells=[RevealedCell(x=mx, y=my, value=MINE) for mx, my in board.mine_positions()],
            hit_mine=True,
        )

    cells: list[RevealedCell] = []
    visited = {(x, y)}
    queue: deque[Coord] = deque([(x, y)])
    while queue:
        cx, cy = queue.popleft()
        if (cx, cy) in revealed:
            continue
        adjacent = board.cell(cx, cy).adjacent
        cells.append(RevealedCell(x=cx, y=cy, value=adjacent))
        if adjacent:
            continue
        for neighbor in board.neighbors(cx, cy):
            if neighbor in visited or neighbor in revealed or neighbor in flagged:
                continue
            visited.add(neighbor)
            queue.append(neighbor)

    return RevealResult(cells=cells)
