from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Optional

COLUMNS: tuple[str, ...] = ("backlog", "progress", "done", "paused")

DEFAULT_COLUMN = "backlog"
DEFAULT_PRIORITY = "medium"

# Wire name -> dataclass attribute for the fields a client may write.
EDITABLE_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "column": "column",
    "tag": "tag",
    "assignee": "assignee",
    "priority": "priority",
    "emoji": "emoji",
    "dueDate": "due_date",
}


def now_ms() -> int:
    return int(time.time() * 1000)


def next_updated_at(previous: Optional[int]) -> int:
    """Return a fresh ``updatedAt`` that is strictly greater than *previous*."""
    stamp = now_ms()
    if previous is not None and stamp <= previous:
        return previous + 1
    return stamp


def parse_task_id(value: Any) -> Optional[int]:
    """Return *value* as a positive task id, or None.

    Accepts ints and digit strings; rejects booleans, floats with a fraction
    and anything non-positive.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        return None
    return value


def editable_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """Pick the client-writable fields present in *payload* (wire names kept).

    Store-owned fields (``id``, ``createdAt``, ``updatedAt``) are dropped.
    ``None`` values are kept as empty strings so an explicit clear still
    counts as "present".
    """
    out: dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key in payload:
            value = payload[key]
            out[key] = "" if value is None else str(value)
    return out


@dataclass
class Task:
    id: int = 0
    title: str = ""
    description: str = ""
    column: str = DEFAULT_COLUMN
    tag: str = ""
    assignee: str = ""
    priority: str = DEFAULT_PRIORITY
    emoji: str = ""
    due_date: str = ""
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "id": data["id"],
            "title": data["title"],
            "description": data["description"],
            "column": data["column"],
            "tag": data["tag"],
            "assignee": data["assignee"],
            "priority": data["priority"],
            "emoji": data["emoji"],
            "dueDate": data["due_date"],
            "createdAt": data["created_at"],
            "updatedAt": data["updated_at"],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=int(data.get("id") or 0),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            column=str(data.get("column") or DEFAULT_COLUMN),
            tag=str(data.get("tag") or ""),
            assignee=str(data.get("assignee") or ""),
            priority=str(data.get("priority") or DEFAULT_PRIORITY),
            emoji=str(data.get("emoji") or ""),
            due_date=str(data.get("dueDate") or ""),
            created_at=int(data.get("createdAt") or 0),
            updated_at=int(data.get("updatedAt") or 0),
        )

    @classmethod
    def new(cls, fields: dict[str, Any], *, task_id: int, stamp: int) -> "Task":
        """Build a freshly inserted task from client *fields* (wire names)."""
        return cls(
            id=task_id,
            title=fields.get("title") or "",
            description=fields.get("description") or "",
            column=fields.get("column") or DEFAULT_COLUMN,
            tag=fields.get("tag") or "",
            assignee=fields.get("assignee") or "",
            priority=fields.get("priority") or DEFAULT_PRIORITY,
            emoji=fields.get("emoji") or "",
            due_date=fields.get("dueDate") or "",
            created_at=stamp,
            updated_at=stamp,
        )

    def apply(self, fields: dict[str, Any]) -> None:
        """Apply a partial update given in wire names; timestamps untouched."""
        for key, attr in EDITABLE_FIELDS.items():
            if key in fields:
                setattr(self, attr, fields[key])
