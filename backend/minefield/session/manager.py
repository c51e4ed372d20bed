"""Connection table and command handlers for minefield rooms.

Each handler resolves the caller's room, takes that room's lock, applies one
synchronous MinefieldGame operation and fans the resulting events out before
releasing the lock. Clients of one room therefore observe events in the
order the mutations happened, and the idle sweep cannot interleave with a
command.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from minefield.logic.exceptions import (
    AlreadyInGameError,
    GameNotFoundError,
    NotHostError,
    NotInGameError,
    ServerFullError,
)
from minefield.logic.types import PlayerInfo
from minefield.messaging.types import (
    CreatedMessage,
    CursorMovedMessage,
    EmoteBroadcastMessage,
    FlaggedMessage,
    GameOverMessage,
    GameStartedMessage,
    HostChangedMessage,
    JoinedMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
    ReturnedToLobbyMessage,
    RevealedMessage,
)
from minefield.session.broadcast import broadcast_to_players
from minefield.session.models import ConnectedPlayer
from minefield.session.registry import GameRegistry

if TYPE_CHECKING:
    import random
    from collections.abc import AsyncIterator

    from minefield.logic.game import MinefieldGame
    from minefield.logic.settings import GameSettings
    from minefield.logic.types import PlayerProfile
    from minefield.messaging.protocol import ConnectionProtocol
    from minefield.messaging.types import ServerMessage

logger = structlog.get_logger()

_EVICTED_CLOSE_CODE = 1000


class SessionManager:
    def __init__(
        self,
        *,
        max_games: int = 500,
        idle_ttl_seconds: int = 0,
        sweep_interval_seconds: float = 600,
        rng: random.Random | None = None,
    ) -> None:
        self._max_games = max_games
        self._players: dict[str, ConnectedPlayer] = {}  # connection_id -> ConnectedPlayer
        self._game_locks: dict[str, asyncio.Lock] = {}  # game_code -> Lock
        self._registry = GameRegistry(
            idle_ttl_seconds=idle_ttl_seconds,
            sweep_interval_seconds=sweep_interval_seconds,
            on_evict=self._evict_game,
            rng=rng,
        )

    # --- Connections ---

    def register_connection(self, connection: ConnectionProtocol) -> ConnectedPlayer:
        player = ConnectedPlayer(connection=connection)
        self._players[connection.connection_id] = player
        return player

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._players.pop(connection.connection_id, None)

    def get_player(self, connection_id: str) -> ConnectedPlayer | None:
        return self._players.get(connection_id)

    def get_game(self, code: str) -> MinefieldGame | None:
        return self._registry.get_game(code)

    @property
    def game_count(self) -> int:
        return self._registry.game_count

    @property
    def connection_count(self) -> int:
        return len(self._players)

    def stats(self) -> dict[str, int]:
        return {**self._registry.stats(), "connections": self.connection_count}

    def start_idle_sweeper(self) -> None:
        self._registry.start_sweeper()

    async def stop_idle_sweeper(self) -> None:
        await self._registry.stop_sweeper()

    # --- Room membership ---

    async def create_game(
        self,
        connection: ConnectionProtocol,
        settings: GameSettings,
        profile: PlayerProfile,
    ) -> None:
        player = self._require_unbound(connection)
        if self._registry.game_count >= self._max_games:
            raise ServerFullError("Server at capacity")

        info = PlayerInfo(id=str(uuid4()), **profile.model_dump())
        game = self._registry.create_game(settings, info)
        self._game_locks[game.code] = asyncio.Lock()
        player.bind(info.id, game.code)
        logger.info("player created game", game_code=game.code, player_id=info.id, player_name=info.name)

        await connection.send_message(
            CreatedMessage(code=game.code, player_id=info.id, game=game.to_view()).to_wire(),
        )

    async def join_game(self, connection: ConnectionProtocol, code: str, profile: PlayerProfile) -> None:
        player = self._require_unbound(connection)
        lock = self._game_locks.get(code)
        if lock is None:
            raise GameNotFoundError("Game not found")

        async with lock:
            game = self._registry.get_game(code)
            if game is None:
                raise GameNotFoundError("Game not found")

            info = PlayerInfo(id=str(uuid4()), **profile.model_dump())
            game.add_player(info)
            player.bind(info.id, code)
            logger.info("player joined game", game_code=code, player_id=info.id, player_name=info.name)

            await connection.send_message(JoinedMessage(player_id=info.id, game=game.to_view()).to_wire())
            await self._broadcast(
                code,
                PlayerJoinedMessage(player=info),
                exclude_connection_id=connection.connection_id,
            )

    async def leave_game(self, connection: ConnectionProtocol) -> None:
        """Remove the connection's player from its room, on disconnect or explicit leave.

        Deletes the room when its roster empties; otherwise tells the remaining
        players who left and, if the host left, who the new host is.
        """
        player = self._players.get(connection.connection_id)
        if player is None or not player.is_bound:
            return

        code = player.game_code
        player_id = player.player_id
        player.unbind()
        lock = self._game_locks.get(code)
        if lock is None:
            return

        should_cleanup = False
        async with lock:
            game = self._registry.get_game(code)
            if game is None:
                return

            previous_host_id = game.host_id
            should_cleanup = game.remove_player(player_id)
            logger.info("player left game", game_code=code, player_id=player_id)
            if should_cleanup:
                self._registry.delete_game(code)
            else:
                await self._broadcast(code, PlayerLeftMessage(player_id=player_id))
                if game.host_id is not None and game.host_id != previous_host_id:
                    logger.info("host transferred", game_code=code, new_host_id=game.host_id)
                    await self._broadcast(code, HostChangedMessage(new_host_id=game.host_id))

        # Drop the lock outside the async with block to avoid
        # deleting it while still holding it.
        if should_cleanup:
            self._game_locks.pop(code, None)

    # --- Host actions ---

    async def start_game(self, connection: ConnectionProtocol) -> None:
        async with self._game_context(connection) as (player, game):
            self._require_host(game, player, "Only host can start")
            game.start_game()
            logger.info("game started", players=len(game.players))
            await self._broadcast(game.code, GameStartedMessage(game=game.to_view()))

    async def restart_game(self, connection: ConnectionProtocol) -> None:
        async with self._game_context(connection) as (player, game):
            self._require_host(game, player, "Only host can restart")
            game.restart()
            logger.info("game restarted")
            await self._broadcast(game.code, GameStartedMessage(game=game.to_view()))

    async def return_to_lobby(self, connection: ConnectionProtocol) -> None:
        async with self._game_context(connection) as (player, game):
            self._require_host(game, player, "Only host can return to lobby")
            game.return_to_lobby()
            logger.info("game returned to lobby")
            await self._broadcast(game.code, ReturnedToLobbyMessage(game=game.to_view()))

    # --- Board actions ---

    async def reveal(self, connection: ConnectionProtocol, x: int, y: int) -> None:
        async with self._game_context(connection) as (player, game):
            outcome = game.reveal(x, y, player.player_id)
            if not outcome.cells:
                return
            await self._broadcast(game.code, RevealedMessage(cells=outcome.cells, by=player.player_id))
            if outcome.game_over:
                logger.info("game over", won=outcome.won, elapsed_seconds=game.elapsed_seconds)
                await self._broadcast(
                    game.code,
                    GameOverMessage(won=outcome.won, board=game.masked_board(), triggered_by=outcome.triggered_by),
                )

    async def toggle_flag(self, connection: ConnectionProtocol, x: int, y: int) -> None:
        async with self._game_context(connection) as (player, game):
            flagged = game.toggle_flag(x, y)
            if flagged is None:
                return
            await self._broadcast(
                game.code,
                FlaggedMessage(x=x, y=y, flagged=flagged, by=player.player_id, flags_remaining=game.flags_remaining),
            )

    # --- Presence ---

    async def move_cursor(self, connection: ConnectionProtocol, x: int, y: int) -> None:
        async with self._game_context(connection) as (player, game):
            await self._broadcast(
                game.code,
                CursorMovedMessage(player_id=player.player_id, x=x, y=y),
                exclude_connection_id=connection.connection_id,
            )

    async def send_emote(self, connection: ConnectionProtocol, value: str) -> None:
        async with self._game_context(connection) as (player, game):
            game.touch()
            await self._broadcast(game.code, EmoteBroadcastMessage(player_id=player.player_id, value=value))

    # --- Idle eviction ---

    async def _evict_game(self, game: MinefieldGame) -> None:
        """Drop an idle room under its lock, then close every connection that was in it."""
        lock = self._game_locks.get(game.code)
        if lock is None:
            self._registry.delete_game(game.code)
            return

        async with lock:
            # A command may have touched the room while we waited for the lock.
            if self._registry.get_game(game.code) is not game or not self._registry.is_idle(game):
                return
            self._registry.delete_game(game.code)
            members = self._room_members(game.code)
            for member in members:
                member.unbind()

        self._game_locks.pop(game.code, None)
        for member in members:
            with contextlib.suppress(RuntimeError, OSError):
                await member.connection.close(code=_EVICTED_CLOSE_CODE, reason="game_expired")

    # --- Internal helpers ---

    def _require_unbound(self, connection: ConnectionProtocol) -> ConnectedPlayer:
        player = self._players.get(connection.connection_id) or self.register_connection(connection)
        if player.is_bound:
            raise AlreadyInGameError("You must leave your current game first")
        return player

    @staticmethod
    def _require_host(game: MinefieldGame, player: ConnectedPlayer, message: str) -> None:
        if not game.is_host(player.player_id):
            raise NotHostError(message)

    @contextlib.asynccontextmanager
    async def _game_context(
        self,
        connection: ConnectionProtocol,
    ) -> AsyncIterator[tuple[ConnectedPlayer, MinefieldGame]]:
        """Resolve the caller's room and hold its lock for the duration of one command."""
        player = self._players.get(connection.connection_id)
        if player is None or not player.is_bound:
            raise NotInGameError("Not in a game")

        code = player.game_code
        lock = self._game_locks.get(code)
        if lock is None:
            raise GameNotFoundError("Game not found")

        async with lock:
            game = self._registry.get_game(code)
            # The room may have been evicted, or the player removed, while we waited.
            if game is None or player.game_code != code:
                raise GameNotFoundError("Game not found")
            with structlog.contextvars.bound_contextvars(game_code=code, player_id=player.player_id):
                yield player, game

    def _room_members(self, code: str) -> list[ConnectedPlayer]:
        return [p for p in self._players.values() if p.game_code == code]

    async def _broadcast(
        self,
        code: str,
        message: ServerMessage,
        exclude_connection_id: str | None = None,
    ) -> None:
        payload: dict[str, Any] = message.to_wire()
        await broadcast_to_players(self._room_members(code), payload, exclude_connection_id)
