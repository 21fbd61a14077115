"""Realtime kanban task board backend."""

from .config import Settings, load_settings
from .server import create_app

__all__ = ["Settings", "create_app", "load_settings"]

__version__ = "1.0.0"
