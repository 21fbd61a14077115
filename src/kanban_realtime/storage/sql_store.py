from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    case,
    create_engine,
    delete,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import DEFAULT_COLUMN, DEFAULT_PRIORITY, Task, now_ms
from .interfaces import TaskStore

metadata = MetaData()

tasks_table = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(500), nullable=False),
    Column("description", Text),
    Column("column_name", String(50), server_default=DEFAULT_COLUMN),
    Column("tag", String(50)),
    Column("assignee", String(100)),
    Column("priority", String(20)),
    Column("emoji", String(10)),
    Column("due_date", String(20)),
    Column("created_at", BigInteger),
    Column("updated_at", BigInteger),
    # SQLite would otherwise hand a deleted max id to the next insert.
    sqlite_autoincrement=True,
)

# Wire name -> table column.
_COLUMN_MAP: dict[str, str] = {
    "title": "title",
    "description": "description",
    "column": "column_name",
    "tag": "tag",
    "assignee": "assignee",
    "priority": "priority",
    "emoji": "emoji",
    "dueDate": "due_date",
}


def build_engine(url: str, *, ssl: bool = False) -> Engine:
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    elif ssl and url.startswith("postgresql"):
        connect_args["sslmode"] = "require"
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def _row_to_task(row: Any) -> Task:
    data = row._mapping
    return Task(
        id=int(data["id"]),
        title=data["title"] or "",
        description=data["description"] or "",
        column=data["column_name"] or DEFAULT_COLUMN,
        tag=data["tag"] or "",
        assignee=data["assignee"] or "",
        priority=data["priority"] or DEFAULT_PRIORITY,
        emoji=data["emoji"] or "",
        due_date=data["due_date"] or "",
        created_at=int(data["created_at"] or 0),
        updated_at=int(data["updated_at"] or 0),
    )


class SqlTaskStore(TaskStore):
    """Relational backend (PostgreSQL in production) over SQLAlchemy Core."""

    relational = True

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        dialect = engine.dialect.name
        self.source = "postgresql" if dialect == "postgresql" else dialect

    @classmethod
    def from_url(cls, url: str, *, ssl: bool = False) -> "SqlTaskStore":
        return cls(build_engine(url, ssl=ssl))

    def ensure_schema(self) -> None:
        """Check connectivity and create the ``tasks`` table if absent.

        Raises:
            SQLAlchemyError: When the database is unreachable or DDL fails.
        """
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        metadata.create_all(self.engine, checkfirst=True)

    def list(self) -> list[Task]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(tasks_table).order_by(tasks_table.c.id.desc())).fetchall()
        except SQLAlchemyError as exc:
            logger.error("Failed to list tasks: {}", exc)
            return []
        return [_row_to_task(row) for row in rows]

    def get(self, task_id: int) -> Optional[Task]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(tasks_table).where(tasks_table.c.id == task_id)).first()
        except SQLAlchemyError as exc:
            logger.error("Failed to load task {}: {}", task_id, exc)
            return None
        return _row_to_task(row) if row is not None else None

    def create(self, fields: dict[str, Any]) -> Optional[Task]:
        stamp = now_ms()
        values = {
            "title": fields.get("title") or "",
            "description": fields.get("description") or "",
            "column_name": fields.get("column") or DEFAULT_COLUMN,
            "tag": fields.get("tag") or "",
            "assignee": fields.get("assignee") or "",
            "priority": fields.get("priority") or DEFAULT_PRIORITY,
            "emoji": fields.get("emoji") or "",
            "due_date": fields.get("dueDate") or "",
            "created_at": stamp,
            "updated_at": stamp,
        }
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(tasks_table).values(**values))
                task_id = int(result.inserted_primary_key[0])
        except SQLAlchemyError as exc:
            logger.error("Failed to insert task {!r}: {}", values["title"], exc)
            return None
        logger.debug("INSERT task {}", task_id)
        return Task(
            id=task_id,
            title=values["title"],
            description=values["description"],
            column=values["column_name"],
            tag=values["tag"],
            assignee=values["assignee"],
            priority=values["priority"],
            emoji=values["emoji"],
            due_date=values["due_date"],
            created_at=stamp,
            updated_at=stamp,
        )

    def update(self, task_id: int, fields: dict[str, Any]) -> bool:
        stamp = now_ms()
        values: dict[str, Any] = {_COLUMN_MAP[key]: value for key, value in fields.items() if key in _COLUMN_MAP}
        # Strictly increasing even when two writes land in the same millisecond.
        values["updated_at"] = case(
            (tasks_table.c.updated_at >= stamp, tasks_table.c.updated_at + 1),
            else_=stamp,
        )
        stmt = update(tasks_table).where(tasks_table.c.id == task_id).values(**values)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Failed to update task {}: {}", task_id, exc)
            return False
        logger.debug("UPDATE task {}: {} rows affected", task_id, result.rowcount)
        return True

    def delete(self, task_id: int) -> bool:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(tasks_table).where(tasks_table.c.id == task_id))
        except SQLAlchemyError as exc:
            logger.error("Failed to delete task {}: {}", task_id, exc)
            return False
        logger.debug("DELETE task {}: {} rows affected", task_id, result.rowcount)
        return True

    def close(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"SqlTaskStore({self.engine.url.render_as_string(hide_password=True)!r})"
