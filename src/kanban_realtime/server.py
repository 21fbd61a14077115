"""FastAPI application factory for the realtime task board."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse
from loguru import logger

from .api import create_router
from .config import Settings, load_settings
from .context import BoardContext
from .storage.interfaces import TaskStore


def _resolve_static(static_dir: Path, path: str) -> Optional[Path]:
    """Map a request path onto a file under *static_dir*, or None.

    Paths that resolve outside the directory are refused.
    """
    root = static_dir.resolve()
    relative = path.strip("/") or "index.html"
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    if candidate.is_dir():
        candidate = candidate / "index.html"
    return candidate if candidate.is_file() else None


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[TaskStore] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure the board application.

    Args:
        settings: Resolved settings; loaded from the environment when omitted.
        store: Pre-built task store, bypassing backend selection.
        enable_cors: Whether to allow cross-origin requests from any origin.

    Returns:
        Configured FastAPI app with the board context on ``app.state.board``.
    """
    settings = settings or load_settings()
    board = BoardContext.build(settings, store=store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Task board ready (source={}, realtime={})",
                    board.store.source, settings.realtime_enabled)
        try:
            yield
        finally:
            board.close()

    app = FastAPI(
        title="Kanban Realtime",
        description="Task board API with realtime broadcasts",
        version="1.0.0",
        lifespan=lifespan,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.board = board
    app.state.settings = settings
    app.include_router(create_router())

    if settings.realtime_enabled:
        @app.websocket("/ws")
        async def realtime(websocket: WebSocket):
            await board.hub.handle_connection(websocket)

    # Registered last so it never shadows /api or /ws.
    @app.get("/{path:path}", include_in_schema=False)
    async def static_files(path: str):
        target = _resolve_static(settings.static_dir, path)
        if target is None:
            return PlainTextResponse("404 Not Found", status_code=404)
        return FileResponse(target)

    return app
