from __future__ import annotations

import json
from pathlib import Path

import pytest

from psbridge.core.global_paths import GlobalPath
from psbridge.util.log import Log, LogFormat, LogLevel


@pytest.fixture(autouse=True)
def _reset_logging():  # type: ignore[no-untyped-def]
    yield
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=False, file=False)


def test_log_writes_console_and_file(monkeypatch, tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=True, file=True, dev=True)

    log = Log.create({"service": "test.log"})
    log.info("hello", {"value": 7})
    Log.close()

    stderr = capsys.readouterr().err
    text = (tmp_path / "dev.log").read_text(encoding="utf-8")

    assert "msg=hello" in stderr
    assert "service=test.log" in stderr
    assert "value=7" in text


def test_log_supports_json_format(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    Log.configure(level=LogLevel.INFO, format=LogFormat.JSON, console=False, file=True, dev=True)

    log = Log.create({"service": "test.json"})
    log.info("hello world", {"modules": ["A", "B"]})
    Log.close()

    payload = json.loads((tmp_path / "dev.log").read_text(encoding="utf-8").strip())

    assert payload["level"] == "info"
    assert payload["msg"] == "hello world"
    assert payload["service"] == "test.json"
    assert payload["modules"] == ["A", "B"]


def test_log_filters_below_level(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.WARN, console=True, file=False)

    log = Log.create({"service": "test.level"})
    log.info("quiet")
    log.warn("loud")

    stderr = capsys.readouterr().err
    assert "quiet" not in stderr
    assert "msg=loud" in stderr


def test_loggers_are_cached_by_service() -> None:
    assert Log.create({"service": "cmdlet"}) is Log.create({"service": "cmdlet"})
    assert Log.create() is not Log.create()


def test_level_and_format_parsing() -> None:
    assert LogLevel.parse("warning") == LogLevel.WARN
    assert LogFormat.parse("Pretty") == LogFormat.PRETTY
    with pytest.raises(ValueError):
        LogLevel.parse("loud")
    with pytest.raises(ValueError):
        LogFormat.parse("xml")


def test_timer_logs_start_and_completion(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, console=True, file=False)
    log = Log.create({"service": "test.timer"})

    with log.time("install", {"module": "Pester"}):
        pass

    lines = capsys.readouterr().err.splitlines()
    assert "status=started" in lines[0]
    assert "status=completed" in lines[1]
    assert "duration=" in lines[1]
    assert "module=Pester" in lines[1]


def test_timer_reports_failure_and_reraises(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, console=True, file=False)
    log = Log.create({"service": "test.timer"})

    with pytest.raises(RuntimeError):
        with log.time("handshake"):
            raise RuntimeError("host exited")

    assert "status=failed" in capsys.readouterr().err


def test_pretty_format_and_error_causes(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, format=LogFormat.PRETTY, console=True, file=False)
    log = Log.create({"service": "test.pretty"})

    try:
        try:
            raise OSError("pipe closed")
        except OSError as e:
            raise RuntimeError("runspace broken") from e
    except RuntimeError as e:
        log.error("invoke failed", {"error": e})

    line = capsys.readouterr().err.strip()
    assert " ERROR invoke failed (" in line
    assert "runspace broken Caused by: pipe closed" in line
