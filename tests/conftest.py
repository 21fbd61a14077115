from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from kanban_realtime.config import Settings


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    static_dir = tmp_path / "public"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>Task board</h1>", encoding="utf-8")
    (static_dir / "app.js").write_text("console.log('board');", encoding="utf-8")
    return Settings(data_file=tmp_path / "tasks.json", static_dir=static_dir)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'board.db'}"


@pytest.fixture
def sql_settings(settings: Settings, sqlite_url: str) -> Settings:
    return replace(settings, database_url=sqlite_url)
