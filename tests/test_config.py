from __future__ import annotations

from pathlib import Path

import pytest

from kanban_realtime.config import Settings, load_settings, normalize_database_url
from kanban_realtime.errors import ConfigError


def test_defaults_without_environment() -> None:
    settings = load_settings(environ={})
    assert settings == Settings()
    assert settings.port == 3001
    assert settings.database_url is None
    assert settings.realtime_enabled is True
    assert settings.notify_aliases == ("clawd", "jarvis")


def test_environment_values() -> None:
    settings = load_settings(environ={
        "PORT": "8080",
        "HOST": "0.0.0.0",
        "DATABASE_URL": "postgres://u:p@db:5432/board",
        "KANBAN_DATA_FILE": "/tmp/board.json",
        "KANBAN_REALTIME": "off",
        "KANBAN_NOTIFY_ALIASES": "Bot, Helper",
        "LOG_LEVEL": "debug",
    })
    assert settings.port == 8080
    assert settings.host == "0.0.0.0"
    assert settings.database_url == "postgresql://u:p@db:5432/board"
    assert settings.data_file == Path("/tmp/board.json")
    assert settings.realtime_enabled is False
    assert settings.notify_aliases == ("bot", "helper")
    assert settings.log_level == "DEBUG"


def test_public_database_url_is_a_fallback() -> None:
    settings = load_settings(environ={"DATABASE_PUBLIC_URL": "postgresql://public/db"})
    assert settings.database_url == "postgresql://public/db"

    settings = load_settings(environ={
        "DATABASE_URL": "postgresql://private/db",
        "DATABASE_PUBLIC_URL": "postgresql://public/db",
    })
    assert settings.database_url == "postgresql://private/db"


def test_production_enables_ssl_unless_overridden() -> None:
    assert load_settings(environ={"NODE_ENV": "production"}).database_ssl is True
    assert load_settings(environ={"NODE_ENV": "production", "DATABASE_SSL": "false"}).database_ssl is False
    assert load_settings(environ={}).database_ssl is False


def test_yaml_file_then_env_then_overrides(tmp_path: Path) -> None:
    config = tmp_path / "board.yaml"
    config.write_text(
        "port: 4000\n"
        "host: 0.0.0.0\n"
        "notify_recipient: Jarvis\n"
        "unknown_key: ignored\n",
        encoding="utf-8",
    )
    settings = load_settings(config_path=config, environ={"PORT": "5000"}, host="127.0.0.2", port=None)
    assert settings.port == 5000
    assert settings.host == "127.0.0.2"
    assert settings.notify_recipient == "Jarvis"


def test_config_path_from_environment(tmp_path: Path) -> None:
    config = tmp_path / "board.yml"
    config.write_text("static_dir: web\n", encoding="utf-8")
    settings = load_settings(environ={"KANBAN_CONFIG": str(config)})
    assert settings.static_dir == Path("web")


def test_missing_config_file_is_ignored(tmp_path: Path) -> None:
    assert load_settings(config_path=tmp_path / "absent.yaml", environ={}) == Settings()


def test_malformed_config_file_is_fatal(tmp_path: Path) -> None:
    config = tmp_path / "board.yaml"
    config.write_text("port: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(config_path=config, environ={})


@pytest.mark.parametrize("port", ["abc", "0", "70000"])
def test_invalid_port_is_fatal(port: str) -> None:
    with pytest.raises(ConfigError):
        load_settings(environ={"PORT": port})


def test_invalid_boolean_is_fatal() -> None:
    with pytest.raises(ConfigError):
        load_settings(environ={"KANBAN_REALTIME": "maybe"})


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, None),
        ("", None),
        ("   ", None),
        ("postgres://a/b", "postgresql://a/b"),
        ("postgresql://a/b", "postgresql://a/b"),
        ("sqlite:///x.db", "sqlite:///x.db"),
    ],
)
def test_normalize_database_url(raw, expected) -> None:
    assert normalize_database_url(raw) == expected
