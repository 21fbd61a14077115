from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Optional

from loguru import logger

from .config import Settings
from .events.broadcaster import Broadcaster
from .events.hub import RealtimeHub, Session
from .service import ACTIONS, TaskBoardService
from .storage.interfaces import TaskStore
from .storage.selector import select_store


@dataclass
class BoardContext:
    """Process-scoped state: the active store, the realtime hub and the services using them.

    Built once at startup and closed on shutdown.
    """

    settings: Settings
    store: TaskStore
    hub: RealtimeHub
    broadcaster: Broadcaster
    service: TaskBoardService

    @classmethod
    def build(cls, settings: Settings, store: Optional[TaskStore] = None) -> "BoardContext":
        store = store if store is not None else select_store(settings)
        hub = RealtimeHub()
        broadcaster = Broadcaster(
            store,
            hub,
            aliases=settings.notify_aliases,
            recipient=settings.notify_recipient,
        )
        service = TaskBoardService(store, broadcaster, hub, realtime_enabled=settings.realtime_enabled)
        board = cls(settings=settings, store=store, hub=hub, broadcaster=broadcaster, service=service)
        board._wire_realtime()
        return board

    def _wire_realtime(self) -> None:
        self.hub.on_connect(self.broadcaster.send_snapshot)
        for action in ACTIONS:
            self.hub.on(f"task:{action}", partial(self._realtime_mutation, action))

    async def _realtime_mutation(self, action: str, session: Session, data: dict[str, Any]) -> None:
        ok = await self.service.mutate(action, data)
        logger.debug("Realtime task:{} from {} -> success={}", action, session.id, ok)

    def close(self) -> None:
        logger.info("Closing {} store", self.store.source)
        self.store.close()
