"""Room table: code generation, lookup, and eviction of idle rooms."""

from __future__ import annotations

import asyncio
import contextlib
import secrets
import time
from typing import TYPE_CHECKING, Any

import structlog

from minefield.logic.enums import GamePhase
from minefield.logic.game import MinefieldGame

if TYPE_CHECKING:
    import random
    from collections.abc import Callable, Coroutine

    from minefield.logic.settings import GameSettings
    from minefield.logic.types import PlayerInfo

logger = structlog.get_logger()

# No I, O, 0 or 1: codes are read aloud and typed by hand.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6


class GameRegistry:
    """Own the code -> MinefieldGame table.

    The idle sweeper runs as a background task on the same event loop as
    message handling. Each stale room is handed to the on_evict callback,
    which takes the room lock, re-checks idleness and calls delete_game
    itself. Without a callback the room is dropped directly.
    """

    def __init__(
        self,
        *,
        idle_ttl_seconds: int = 0,
        sweep_interval_seconds: float = 600,
        on_evict: Callable[[MinefieldGame], Coroutine[Any, Any, None]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._games: dict[str, MinefieldGame] = {}
        self._idle_ttl_seconds = idle_ttl_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._on_evict = on_evict
        self._rng = rng
        self._sweeper_task: asyncio.Task[None] | None = None

    def generate_code(self) -> str:
        while True:
            code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
            if code not in self._games:
                return code

    def create_game(self, settings: GameSettings, host: PlayerInfo) -> MinefieldGame:
        code = self.generate_code()
        game = MinefieldGame(code, settings, host, rng=self._rng)
        self._games[code] = game
        logger.info("game created", game_code=code, width=settings.width, height=settings.height)
        return game

    def get_game(self, code: str) -> MinefieldGame | None:
        return self._games.get(code)

    def delete_game(self, code: str) -> None:
        if self._games.pop(code, None) is not None:
            logger.info("game deleted", game_code=code)

    @property
    def game_count(self) -> int:
        return len(self._games)

    def stats(self) -> dict[str, int]:
        phases = [game.phase for game in self._games.values()]
        return {
            "total_games": len(phases),
            "lobby_games": phases.count(GamePhase.LOBBY),
            "active_games": phases.count(GamePhase.PLAYING),
            "finished_games": sum(1 for phase in phases if phase.is_finished),
        }

    # --- Idle sweeper ---

    def start_sweeper(self) -> None:
        """Start the periodic idle sweep. Idempotent; disabled when the TTL is 0."""
        if self._idle_ttl_seconds <= 0:
            return
        if self._sweeper_task is not None and not self._sweeper_task.done():
            return
        self._sweeper_task = asyncio.create_task(self._sweeper_loop())

    async def stop_sweeper(self) -> None:
        if self._sweeper_task is not None:
            self._sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper_task
            self._sweeper_task = None

    async def _sweeper_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval_seconds)
            try:
                await self.sweep_idle_games()
            except Exception:
                logger.exception("idle sweep encountered an error")

    def is_idle(self, game: MinefieldGame) -> bool:
        if self._idle_ttl_seconds <= 0:
            return False
        return time.monotonic() - game.last_activity > self._idle_ttl_seconds

    async def sweep_idle_games(self) -> list[str]:
        """Evict every room idle for longer than the TTL. Return the evicted codes.

        A room touched while on_evict waits for its lock stays in the table
        and is not reported.
        """
        evicted: list[str] = []
        for game in [g for g in self._games.values() if self.is_idle(g)]:
            if self._games.get(game.code) is not game:
                continue
            if self._on_evict is None:
                self._games.pop(game.code, None)
            else:
                await self._on_evict(game)
            if self._games.get(game.code) is not game:
                logger.info("evicted idle game", game_code=game.code)
                evicted.append(game.code)
        return evicted
