from .file_store import FileTaskStore
from .interfaces import TaskStore
from .selector import select_store
from .sql_store import SqlTaskStore

__all__ = ["FileTaskStore", "SqlTaskStore", "TaskStore", "select_store"]
