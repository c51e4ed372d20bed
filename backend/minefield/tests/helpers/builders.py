"""Builders for game objects used across minefield tests."""

import random

from minefield.logic.board import Board, Cell
from minefield.logic.game import MinefieldGame
from minefield.logic.settings import GameSettings
from minefield.logic.types import PlayerInfo, PlayerProfile


def make_profile(name: str = "Alice", color: str = "#ff0000", avatar: str = "") -> PlayerProfile:
    return PlayerProfile(name=name, color=color, avatar=avatar)


def make_player(player_id: str = "p1", name: str | None = None, color: str | None = None) -> PlayerInfo:
    """Create a PlayerInfo whose name and color default to values derived from its id."""
    return PlayerInfo(id=player_id, name=name or f"Player {player_id}", color=color or f"color-{player_id}")


def make_game(
    *,
    width: int = 9,
    height: int = 9,
    mines: int = 10,
    max_players: int = 4,
    players: int = 1,
    seed: int = 1234,
) -> MinefieldGame:
    """Create a lobby-phase game with `players` members; p1 is host."""
    settings = GameSettings(width=width, height=height, mines=mines, max_players=max_players)
    game = MinefieldGame("ABCDEF", settings, make_player("p1"), rng=random.Random(seed))
    for i in range(2, players + 1):
        game.add_player(make_player(f"p{i}"))
    return game


def make_started_game(**kwargs) -> MinefieldGame:
    kwargs.setdefault("players", 2)
    game = make_game(**kwargs)
    game.start_game()
    return game


def board_from_rows(rows: list[str]) -> Board:
    """Build a Board from rows of '*' (mine) and '.' (safe), computing adjacency counts."""
    height = len(rows)
    width = len(rows[0])
    board = Board(width, height, [Cell(is_mine=ch == "*") for row in rows for ch in row])
    for y in range(height):
        for x in range(width):
            cell = board.cell(x, y)
            if not cell.is_mine:
                cell.adjacent = sum(1 for nx, ny in board.neighbors(x, y) if board.cell(nx, ny).is_mine)
    return board
