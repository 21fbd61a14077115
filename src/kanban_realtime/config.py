"""Resolve server settings from defaults, an optional YAML file and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from .errors import ConfigError
from .io_utils import _load_data_with_error

CONFIG_ENV = "KANBAN_CONFIG"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 3001
    database_url: Optional[str] = None
    database_ssl: bool = False
    data_file: Path = Path("tasks.json")
    static_dir: Path = Path("public")
    realtime_enabled: bool = True
    notify_aliases: tuple[str, ...] = ("clawd", "jarvis")
    notify_recipient: str = "Clawd"
    log_level: str = "INFO"


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {value!r}")


def _as_port(name: str, value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name}: expected an integer port, got {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"{name}: port out of range: {port}")
    return port


def _as_aliases(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = []
    return tuple(item.strip().lower() for item in items if item.strip())


def normalize_database_url(url: Optional[str]) -> Optional[str]:
    """Return a SQLAlchemy-compatible URL, or None for an empty value.

    Hosting providers still hand out ``postgres://`` URLs, which SQLAlchemy
    no longer accepts.
    """
    if not url or not url.strip():
        return None
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def _from_mapping(base: Settings, raw: Mapping[str, Any], origin: str) -> Settings:
    known = {f.name for f in fields(Settings)}
    updates: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown setting {} from {}", key, origin)
            continue
        label = f"{origin}:{key}"
        if key == "port":
            updates[key] = _as_port(label, value)
        elif key in {"database_ssl", "realtime_enabled"}:
            updates[key] = _as_bool(label, value)
        elif key in {"data_file", "static_dir"}:
            updates[key] = Path(str(value)).expanduser()
        elif key == "notify_aliases":
            updates[key] = _as_aliases(value)
        elif key == "database_url":
            updates[key] = normalize_database_url(value)
        elif key == "log_level":
            updates[key] = str(value).upper()
        else:
            updates[key] = str(value)
    return replace(base, **updates)


def _from_environ(base: Settings, environ: Mapping[str, str]) -> Settings:
    raw: dict[str, Any] = {}
    if environ.get("HOST"):
        raw["host"] = environ["HOST"]
    if environ.get("PORT"):
        raw["port"] = environ["PORT"]
    database_url = environ.get("DATABASE_URL") or environ.get("DATABASE_PUBLIC_URL")
    if database_url:
        raw["database_url"] = database_url
    if "DATABASE_SSL" in environ:
        raw["database_ssl"] = environ["DATABASE_SSL"]
    elif environ.get("NODE_ENV", "").lower() == "production":
        raw["database_ssl"] = True
    if environ.get("KANBAN_DATA_FILE"):
        raw["data_file"] = environ["KANBAN_DATA_FILE"]
    if environ.get("KANBAN_STATIC_DIR"):
        raw["static_dir"] = environ["KANBAN_STATIC_DIR"]
    if "KANBAN_REALTIME" in environ:
        raw["realtime_enabled"] = environ["KANBAN_REALTIME"]
    if environ.get("KANBAN_NOTIFY_ALIASES"):
        raw["notify_aliases"] = environ["KANBAN_NOTIFY_ALIASES"]
    if environ.get("KANBAN_NOTIFY_RECIPIENT"):
        raw["notify_recipient"] = environ["KANBAN_NOTIFY_RECIPIENT"]
    if environ.get("LOG_LEVEL"):
        raw["log_level"] = environ["LOG_LEVEL"]
    return _from_mapping(base, raw, "env")


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> Settings:
    """Resolve the settings for one server process.

    Args:
        config_path: Optional YAML/JSON config file. Falls back to the path in
            ``KANBAN_CONFIG``; a missing file is ignored.
        environ: Environment mapping (defaults to ``os.environ``).
        **overrides: Explicit values (e.g. CLI flags); ``None`` values are skipped.

    Returns:
        The resolved, immutable ``Settings``.

    Raises:
        ConfigError: If the config file is unreadable or a value is invalid.
    """
    env = os.environ if environ is None else environ
    settings = Settings()

    path = config_path or (Path(env[CONFIG_ENV]) if env.get(CONFIG_ENV) else None)
    if path is not None:
        data, err = _load_data_with_error(Path(path).expanduser(), {})
        if err:
            raise ConfigError(err)
        settings = _from_mapping(settings, data, Path(path).name)

    settings = _from_environ(settings, env)

    explicit = {key: value for key, value in overrides.items() if value is not None}
    if explicit:
        settings = _from_mapping(settings, explicit, "override")
    return settings
