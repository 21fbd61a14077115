"""Task board operations shared by the HTTP router and the realtime channel."""

from __future__ import annotations

from typing import Any

from loguru import logger
from starlette.concurrency import run_in_threadpool

from .domain.models import COLUMNS, Task, editable_fields, now_ms, parse_task_id
from .events.broadcaster import Broadcaster
from .events.hub import RealtimeHub
from .storage.interfaces import TaskStore

ACTIONS = ("add", "update", "delete")


class TaskBoardService:
    def __init__(
        self,
        store: TaskStore,
        broadcaster: Broadcaster,
        hub: RealtimeHub,
        *,
        realtime_enabled: bool = True,
    ) -> None:
        self.store = store
        self.broadcaster = broadcaster
        self.hub = hub
        self.realtime_enabled = realtime_enabled

    async def list_tasks(self) -> list[Task]:
        return await run_in_threadpool(self.store.list)

    async def mutate(self, action: Any, payload: dict[str, Any]) -> bool:
        """Run one ``add``/``update``/``delete`` action.

        Unknown actions and missing required fields are not errors: they
        return False without touching the store. On success the
        broadcaster's post-commit hook runs before this returns.
        """
        if action == "add":
            task = payload.get("task")
            if not isinstance(task, dict):
                return False
            fields = editable_fields(task)
            if not fields.get("title", "").strip():
                logger.debug("Rejecting add without a title")
                return False
            created = await run_in_threadpool(self.store.create, fields)
            if created is None:
                return False
            await self.broadcaster.after_commit("add", created)
            return True

        if action == "update":
            task = payload.get("task")
            if not isinstance(task, dict) or parse_task_id(task.get("id")) is None:
                return False
            ok = await run_in_threadpool(self.store.upsert, task)
            if ok:
                await self.broadcaster.after_commit("update")
            return ok

        if action == "delete":
            task_id = parse_task_id(payload.get("taskId"))
            if task_id is None:
                return False
            ok = await run_in_threadpool(self.store.delete, task_id)
            if ok:
                await self.broadcaster.after_commit("delete")
            return ok

        logger.debug("Ignoring unknown action {!r}", action)
        return False

    async def status(self) -> dict[str, Any]:
        tasks = await self.list_tasks()
        # Tasks outside the four known columns count towards total only.
        by_column = {column: sum(1 for task in tasks if task.column == column) for column in COLUMNS}
        return {
            "status": "running",
            "timestamp": now_ms(),
            "source": self.store.source,
            "clients": self.hub.client_count,
            "total": len(tasks),
            "byColumn": by_column,
        }

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "postgres": self.store.relational,
            "websocket": self.realtime_enabled,
            "clients": self.hub.client_count,
            "timestamp": now_ms(),
        }
