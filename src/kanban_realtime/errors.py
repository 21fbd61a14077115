"""Exception types shared across the board server."""

from __future__ import annotations


class KanbanError(Exception):
    """Base class for board server errors."""


class ConfigError(KanbanError):
    """Raised when settings cannot be resolved; fatal at startup."""


class StoreError(KanbanError):
    """Raised inside a store; always caught and logged at the store boundary."""
