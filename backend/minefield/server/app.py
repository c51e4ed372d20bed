from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from minefield.messaging.router import MessageRouter
from minefield.server.settings import MinefieldServerSettings
from minefield.server.websocket import websocket_endpoint
from minefield.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def stats(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: MinefieldServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            **session_manager.stats(),
            "max_games": settings.max_games,
        },
    )


def create_app(
    settings: MinefieldServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = MinefieldServerSettings()

    if session_manager is None:
        session_manager = SessionManager(
            max_games=settings.max_games,
            idle_ttl_seconds=settings.idle_ttl_seconds,
            sweep_interval_seconds=settings.sweep_interval_seconds,
        )

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        session_manager.start_idle_sweeper()
        try:
            yield
        finally:
            await session_manager.stop_idle_sweeper()

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/stats", stats, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("minefield relay ready", max_games=settings.max_games)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = MinefieldServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
