"""HTTP endpoints for the task board.

Mounted by ``create_app``; every handler reads the process-wide
``BoardContext`` from ``request.app.state.board``.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from ..context import BoardContext
from ..domain.models import now_ms


class MutationRequest(BaseModel):
    """Body of ``POST /api/tasks``.

    Only the shape is checked here; whether the action is known and the
    required fields are present is decided by the service, which answers
    ``success: false`` rather than an error.
    """

    model_config = ConfigDict(extra="ignore")

    action: Optional[str] = None
    task: Optional[dict[str, Any]] = None
    # Parsed by the service; booleans must never become id 1.
    taskId: Any = None


def _board(request: Request) -> BoardContext:
    return request.app.state.board


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def create_router() -> APIRouter:
    router = APIRouter(prefix="/api", tags=["tasks"])

    @router.get("/tasks")
    async def list_tasks(request: Request) -> dict[str, Any]:
        board = _board(request)
        tasks = await board.service.list_tasks()
        return {
            "tasks": [task.to_dict() for task in tasks],
            "timestamp": now_ms(),
            "source": board.store.source,
        }

    @router.post("/tasks")
    async def mutate_tasks(request: Request):
        raw = await request.body()
        try:
            body = json.loads(raw or b"null")
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _bad_request("Invalid JSON body")
        if not isinstance(body, dict):
            return _bad_request("Request body must be a JSON object")
        try:
            mutation = MutationRequest.model_validate(body)
        except ValidationError as exc:
            return _bad_request(f"Invalid request: {exc.errors()[0].get('msg', 'bad payload')}")

        board = _board(request)
        success = await board.service.mutate(
            mutation.action, {"task": mutation.task, "taskId": mutation.taskId}
        )
        if not success:
            logger.info("POST /api/tasks action={!r} did not apply", mutation.action)
        return {"success": success, "timestamp": now_ms()}

    @router.get("/status")
    async def status(request: Request) -> dict[str, Any]:
        return await _board(request).service.status()

    @router.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        return _board(request).service.health()

    @router.post("/broadcast")
    async def force_broadcast(request: Request) -> dict[str, Any]:
        board = _board(request)
        delivered = await board.broadcaster.force()
        return {
            "triggered": board.store.relational,
            "clients": delivered,
            "timestamp": now_ms(),
        }

    return router
