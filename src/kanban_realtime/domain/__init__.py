from .models import COLUMNS, Task, now_ms

__all__ = ["COLUMNS", "Task", "now_ms"]
