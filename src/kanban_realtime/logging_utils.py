"""Configure the loguru sink used by the board server."""

from __future__ import annotations

import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)

_configured_level: str | None = None


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a single stderr sink at *level*.

    Safe to call more than once; the sink is only rebuilt when the level changes.
    """
    global _configured_level
    level = level.upper()
    if _configured_level == level:
        return
    logger.remove()
    logger.add(sys.stderr, level=level, format=_FORMAT, backtrace=False, diagnose=False)
    _configured_level = level


def summarize_tasks(tasks: list[dict]) -> str:
    """Render a one-line count of tasks per column for log messages."""
    counts: dict[str, int] = {}
    for task in tasks:
        column = str(task.get("column") or "?")
        counts[column] = counts.get(column, 0) + 1
    parts = [f"{column}={count}" for column, count in sorted(counts.items())]
    return f"{len(tasks)} tasks" + (f" ({', '.join(parts)})" if parts else "")
