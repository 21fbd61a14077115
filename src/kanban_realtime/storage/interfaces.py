from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..domain.models import Task, editable_fields, parse_task_id


class TaskStore(ABC):
    """Durable task persistence: {list, upsert, delete}.

    Implementations never raise across this boundary under degraded
    conditions; failures are logged and surface as ``False``/``[]``/``None``.
    """

    #: Tag reported to clients as ``source``.
    source: str = "unknown"
    #: True for the relational backend; only relational writes are broadcast.
    relational: bool = False

    @abstractmethod
    def list(self) -> list[Task]:
        raise NotImplementedError

    @abstractmethod
    def get(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    @abstractmethod
    def create(self, fields: dict[str, Any]) -> Optional[Task]:
        """Insert a task from client *fields*; return it with its new id."""
        raise NotImplementedError

    @abstractmethod
    def update(self, task_id: int, fields: dict[str, Any]) -> bool:
        """Apply only *fields* to task *task_id*.

        Returns True when the write executed, even if no task matched.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, task_id: int) -> bool:
        """Remove task *task_id*. Returns True when executed, even if nothing matched."""
        raise NotImplementedError

    def upsert(self, partial: dict[str, Any]) -> bool:
        """Update when *partial* carries a positive integer ``id``, insert otherwise."""
        fields = editable_fields(partial)
        task_id = parse_task_id(partial.get("id"))
        if task_id is not None:
            return self.update(task_id, fields)
        return self.create(fields) is not None

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
