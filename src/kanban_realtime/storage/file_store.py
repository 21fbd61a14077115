from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock
from loguru import logger

from ..domain.models import Task, next_updated_at, now_ms
from ..errors import StoreError
from ..io_utils import _atomic_write_json, _load_json
from .interfaces import TaskStore

DOCUMENT_VERSION = 1


class _TaskDocument:
    """The whole task collection as one JSON document on disk.

    Layout: ``{"version": 1, "lastId": n, "tasks": [...]}``. A bare JSON
    array (the layout older deployments wrote) is accepted on read.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.last_id = 0
        self.tasks: list[Task] = []

    def load(self) -> "_TaskDocument":
        raw = _load_json(self.path, [])
        if isinstance(raw, list):
            items, last_id = raw, 0
        elif isinstance(raw, dict):
            items = raw.get("tasks") or []
            last_id = int(raw.get("lastId") or 0)
        else:
            raise StoreError(f"{self.path.name}: expected list or object, got {type(raw).__name__}")
        self.tasks = [Task.from_dict(item) for item in items if isinstance(item, dict)]
        self.last_id = max([last_id] + [task.id for task in self.tasks])
        return self

    def save(self) -> None:
        _atomic_write_json(
            self.path,
            {
                "version": DOCUMENT_VERSION,
                "lastId": self.last_id,
                "tasks": [task.to_dict() for task in self.tasks],
            },
        )

    def allocate_id(self) -> int:
        self.last_id += 1
        return self.last_id


class FileTaskStore(TaskStore):
    """Local-file fallback backend; tasks are kept in insertion order."""

    source = "local"
    relational = False

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(str(self.path.with_suffix(self.path.suffix + ".lock")))
        self._thread_lock = threading.RLock()

    def _document(self) -> _TaskDocument:
        return _TaskDocument(self.path).load()

    def list(self) -> list[Task]:
        try:
            with self._thread_lock, self._lock:
                return self._document().tasks
        except (OSError, ValueError, StoreError) as exc:
            logger.error("Failed to read tasks from {}: {}", self.path, exc)
            return []

    def get(self, task_id: int) -> Optional[Task]:
        for task in self.list():
            if task.id == task_id:
                return task
        return None

    def create(self, fields: dict[str, Any]) -> Optional[Task]:
        try:
            with self._thread_lock, self._lock:
                doc = self._document()
                task = Task.new(fields, task_id=doc.allocate_id(), stamp=now_ms())
                doc.tasks.append(task)
                doc.save()
        except (OSError, ValueError, TypeError, StoreError) as exc:
            logger.error("Failed to insert task into {}: {}", self.path, exc)
            return None
        logger.debug("Inserted task {} into {}", task.id, self.path.name)
        return task

    def update(self, task_id: int, fields: dict[str, Any]) -> bool:
        try:
            with self._thread_lock, self._lock:
                doc = self._document()
                for task in doc.tasks:
                    if task.id == task_id:
                        task.apply(fields)
                        task.updated_at = next_updated_at(task.updated_at)
                        doc.save()
                        return True
        except (OSError, ValueError, TypeError, StoreError) as exc:
            logger.error("Failed to update task {} in {}: {}", task_id, self.path, exc)
            return False
        logger.debug("Update for missing task {} in {} ignored", task_id, self.path.name)
        return True

    def delete(self, task_id: int) -> bool:
        try:
            with self._thread_lock, self._lock:
                doc = self._document()
                keep = [task for task in doc.tasks if task.id != task_id]
                if len(keep) == len(doc.tasks):
                    return True
                doc.tasks = keep
                doc.save()
        except (OSError, ValueError, TypeError, StoreError) as exc:
            logger.error("Failed to delete task {} from {}: {}", task_id, self.path, exc)
            return False
        return True

    def __repr__(self) -> str:
        return f"FileTaskStore({str(self.path)!r})"
