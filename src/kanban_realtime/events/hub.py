"""WebSocket hub for the realtime task channel.

One connection per client at ``/ws``. Every frame is a JSON object:

    {"event": "<name>", "data": {...}}

Server → client:
    connected          : sent once, carries the session's ``clientId``
    tasks:update       : full task list ``{tasks, timestamp}``
    clawd:task         : assignment notification ``{task, message, timestamp}``
    dev:status         : relayed status signal (+ ``clientId``, ``timestamp``)
    activity:broadcast : relayed activity message (+ ``clientId``, ``timestamp``)
    pong               : reply to ``ping``

Client → server:
    task:add / task:update / task:delete: same payloads as ``POST /api/tasks``
    dev:status / activity:broadcast     : relayed to every session
    ping
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect
from loguru import logger

from ..domain.models import now_ms

RELAY_EVENTS = ("dev:status", "activity:broadcast")


@dataclass
class Session:
    ws: WebSocket
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    connected_at: float = field(default_factory=time.time)


EventHandler = Callable[[Session, dict[str, Any]], Awaitable[None]]
ConnectHook = Callable[[Session], Awaitable[None]]


def _frame(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data if data is not None else {}}, default=str)


class RealtimeHub:
    """Registry of connected sessions plus inbound event dispatch.

    Usage::

        hub = RealtimeHub()
        hub.on("task:add", handler)          # async handler(session, data)

        # In a FastAPI WebSocket endpoint:
        await hub.handle_connection(websocket)

        # From a post-commit hook:
        await hub.emit("tasks:update", {"tasks": [...]})
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._handlers: dict[str, EventHandler] = {}
        self._connect_hooks: list[ConnectHook] = []
        for event in RELAY_EVENTS:
            self._handlers[event] = self._relay_handler(event)

    @property
    def client_count(self) -> int:
        return len(self._sessions)

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def on(self, event: str, handler: EventHandler) -> None:
        """Register the handler for an inbound *event*, replacing any previous one."""
        self._handlers[event] = handler

    def on_connect(self, hook: ConnectHook) -> None:
        self._connect_hooks.append(hook)

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Accept a connection and serve it until the client goes away."""
        await websocket.accept()
        session = Session(ws=websocket)
        self._sessions[session.id] = session
        logger.info("Client connected: {} (total={})", session.id, self.client_count)

        try:
            await self.send_to(session, "connected", {"clientId": session.id})
            for hook in self._connect_hooks:
                await hook(session)
            await self._read_loop(session)
        except WebSocketDisconnect:
            pass
        except Exception as exc:
            logger.warning("Session {} closed after error: {}", session.id, exc)
        finally:
            self._sessions.pop(session.id, None)
            logger.info("Client disconnected: {} after {:.1f}s (total={})",
                        session.id, time.time() - session.connected_at, self.client_count)

    async def emit(self, event: str, data: Any = None) -> int:
        """Push *event* to every connected session; return how many received it.

        A session whose send fails is dropped without affecting the others.
        """
        payload = _frame(event, data)
        delivered = 0
        stale: list[str] = []
        for session in list(self._sessions.values()):
            try:
                await session.ws.send_text(payload)
                delivered += 1
            except Exception as exc:
                logger.debug("Dropping session {} after failed send: {}", session.id, exc)
                stale.append(session.id)
        for sid in stale:
            self._sessions.pop(sid, None)
        return delivered

    async def send_to(self, session: Session, event: str, data: Any = None) -> bool:
        """Send an event to a single session."""
        try:
            await session.ws.send_text(_frame(event, data))
        except Exception as exc:
            logger.debug("Send to session {} failed: {}", session.id, exc)
            return False
        return True

    # -- internals ---------------------------------------------------------

    async def _read_loop(self, session: Session) -> None:
        while True:
            raw = await session.ws.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON frame from {}", session.id)
                continue
            if not isinstance(message, dict):
                continue

            event = message.get("event")
            data = message.get("data")
            if not isinstance(data, dict):
                data = {}

            if event == "ping":
                await self.send_to(session, "pong", {"timestamp": now_ms()})
                continue

            handler = self._handlers.get(str(event))
            if handler is None:
                logger.debug("Ignoring unknown event {!r} from {}", event, session.id)
                continue
            try:
                await handler(session, data)
            except Exception:
                logger.exception("Handler for {} failed (session {})", event, session.id)

    def _relay_handler(self, event: str) -> EventHandler:
        async def relay(session: Session, data: dict[str, Any]) -> None:
            await self.emit(event, {**data, "clientId": session.id, "timestamp": now_ms()})
            if event == "dev:status":
                logger.info("Dev status: {} - {}", data.get("status"), data.get("message"))

        return relay
