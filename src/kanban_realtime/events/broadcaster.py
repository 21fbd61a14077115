from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger
from starlette.concurrency import run_in_threadpool

from ..domain.models import Task, now_ms
from ..logging_utils import summarize_tasks
from ..storage.interfaces import TaskStore
from .hub import RealtimeHub, Session


class Broadcaster:
    """Post-commit hook that pushes store changes to realtime sessions.

    Only writes against the relational backend are broadcast; the file
    backend stays silent. Failures are logged and never undo the write.
    """

    def __init__(
        self,
        store: TaskStore,
        hub: RealtimeHub,
        *,
        aliases: Iterable[str] = ("clawd", "jarvis"),
        recipient: str = "Clawd",
    ) -> None:
        self.store = store
        self.hub = hub
        self.aliases = tuple(alias.lower() for alias in aliases if alias)
        self.recipient = recipient

    def is_recipient(self, assignee: Optional[str]) -> bool:
        value = (assignee or "").lower()
        return any(alias in value for alias in self.aliases)

    async def after_commit(self, action: str, created: Optional[Task] = None) -> None:
        if not self.store.relational:
            logger.debug("Skipping broadcast after {}: {} backend", action, self.store.source)
            return
        if action == "add" and created is not None and self.is_recipient(created.assignee):
            await self.notify_assigned(created)
        await self.broadcast_tasks()

    async def broadcast_tasks(self) -> int:
        """Re-read the full task list and send it to every session."""
        try:
            tasks = await run_in_threadpool(self.store.list)
        except Exception as exc:
            logger.error("Error broadcasting tasks: {}", exc)
            return 0
        payload = [task.to_dict() for task in tasks]
        delivered = await self.hub.emit("tasks:update", {"tasks": payload, "timestamp": now_ms()})
        logger.info("Broadcast {} to {} clients", summarize_tasks(payload), delivered)
        return delivered

    async def notify_assigned(self, task: Task) -> int:
        delivered = await self.hub.emit(
            "clawd:task",
            {
                "task": task.to_dict(),
                "message": f"New task for {self.recipient}: {task.title}",
                "timestamp": now_ms(),
            },
        )
        logger.info("Assignment notification for task {} ({!r}) sent to {} clients",
                    task.id, task.title, delivered)
        return delivered

    async def force(self) -> int:
        """Operator-triggered re-broadcast; same backend gate as ``after_commit``."""
        logger.info("Force broadcast triggered")
        if not self.store.relational:
            return 0
        return await self.broadcast_tasks()

    async def send_snapshot(self, session: Session) -> None:
        """Send the current task list to one newly connected session."""
        tasks = await run_in_threadpool(self.store.list)
        await self.hub.send_to(
            session,
            "tasks:update",
            {"tasks": [task.to_dict() for task in tasks], "timestamp": now_ms()},
        )
