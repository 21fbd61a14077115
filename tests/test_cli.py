from __future__ import annotations

from pathlib import Path

import pytest

from kanban_realtime import cli


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATABASE_URL", "DATABASE_PUBLIC_URL", "KANBAN_CONFIG", "PORT", "HOST", "KANBAN_REALTIME"):
        monkeypatch.delenv(name, raising=False)


def test_server_runs_uvicorn_with_resolved_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clean_env: None
) -> None:
    calls: list[dict] = []

    def fake_run(app, **kwargs) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)

    rc = cli.main([
        "server",
        "--port", "4100",
        "--data-file", str(tmp_path / "tasks.json"),
        "--static-dir", str(tmp_path),
        "--no-realtime",
    ])

    assert rc == 0
    assert len(calls) == 1
    call = calls[0]
    assert call["port"] == 4100
    assert call["host"] == "127.0.0.1"
    settings = call["app"].state.settings
    assert settings.realtime_enabled is False
    assert settings.data_file == tmp_path / "tasks.json"
    assert call["app"].state.board.store.relational is False


def test_config_error_exits_nonzero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clean_env: None) -> None:
    config = tmp_path / "board.yaml"
    config.write_text("port: not-a-port\n", encoding="utf-8")
    monkeypatch.setattr(cli.uvicorn, "run", lambda *a, **k: pytest.fail("server should not start"))

    assert cli.main(["server", "--config", str(config)]) == 2


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
