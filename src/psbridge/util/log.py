"""Structured logging with service-tagged loggers and log file rotation.

Loggers are cached per ``service`` tag. Each event is a flat payload
(time, delta since the previous event, level, message, tags) rendered as
key=value pairs, JSON, or a human-readable line, and written to stderr, to
a log file under the platform data directory, or both. Writes are
serialized because runspace pump threads log alongside the caller.
"""

import json
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from ..core.global_paths import GlobalPath

MAX_LOG_FILES = 10
MAX_CAUSE_DEPTH = 10

_RESERVED_KEYS = ("time", "delta_ms", "level", "msg")


class LogLevel(str, Enum):
    """Log severity levels, lowest first."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def priority(self) -> int:
        return _LEVEL_ORDER.index(self)

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        if value is None:
            return cls.INFO
        text = value.strip().upper()
        if text == "WARNING":
            return cls.WARN
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid log level: {value}") from None


_LEVEL_ORDER = list(LogLevel)


class LogFormat(str, Enum):
    """Log output format."""

    KV = "kv"
    JSON = "json"
    PRETTY = "pretty"

    @classmethod
    def parse(cls, value: str | None) -> "LogFormat":
        if value is None:
            return cls.KV
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"invalid log format: {value}") from None


@dataclass
class LogConfig:
    """Process-wide sink settings."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    file: bool = False
    _file_handle: Optional[TextIO] = None


_config = LogConfig()
_last_timestamp = time.time()
_write_lock = threading.Lock()


def _describe_error(error: BaseException) -> str:
    """An exception and its ``raise ... from`` chain on one line."""
    parts = [str(error)]
    cause = error.__cause__
    while cause is not None and len(parts) <= MAX_CAUSE_DEPTH:
        parts.append(str(cause))
        cause = cause.__cause__
    return " Caused by: ".join(parts)


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseException):
        return _describe_error(value)
    if isinstance(value, (dict, list, tuple, int, float, bool)) or value is None:
        return value
    return str(value)


def _kv_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    text = str(value)
    if text == "" or "=" in text or any(ch.isspace() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def _kv_pairs(payload: Dict[str, Any]) -> str:
    return " ".join(f"{k}={_kv_value(v)}" for k, v in payload.items() if k not in _RESERVED_KEYS)


def _render_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def _render_pretty(payload: Dict[str, Any]) -> str:
    pairs = _kv_pairs(payload)
    head = f"{payload['time']} {payload['level'].upper()} {payload.get('msg') or ''}"
    return f"{head}{f' ({pairs})' if pairs else ''} +{payload['delta_ms']}ms"


def _render_kv(payload: Dict[str, Any]) -> str:
    parts = [
        str(payload["time"]),
        f"+{payload['delta_ms']}ms",
        f"level={payload['level']}",
        f"msg={_kv_value(payload.get('msg'))}",
        _kv_pairs(payload),
    ]
    return " ".join(part for part in parts if part)


_RENDERERS: Dict[LogFormat, Callable[[Dict[str, Any]], str]] = {
    LogFormat.KV: _render_kv,
    LogFormat.JSON: _render_json,
    LogFormat.PRETTY: _render_pretty,
}


@dataclass
class LogTimer:
    """Logs the duration of a block when it ends, and whether it failed."""
    logger: 'Logger'
    message: str
    extra: Dict[str, Any]
    start_time: float = field(default_factory=time.monotonic)

    def stop(self, status: str = "completed") -> None:
        duration_ms = int((time.monotonic() - self.start_time) * 1000)
        self.logger.info(self.message, {**self.extra, "status": status, "duration": duration_ms})

    def __enter__(self) -> 'LogTimer':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop("failed" if exc_type is not None else "completed")


class Logger:
    """Structured logger carrying a fixed set of tags."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def _payload(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        global _last_timestamp

        now = time.time()
        delta_ms = int((now - _last_timestamp) * 1000)
        _last_timestamp = now

        tags = {**self.tags, **(extra or {})}
        return {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "delta_ms": delta_ms,
            "level": level.value.lower(),
            "msg": _normalize(message),
            **{k: _normalize(v) for k, v in tags.items() if v is not None},
        }

    def _log(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> None:
        if level.priority < _config.level.priority:
            return
        line = _RENDERERS[_config.format](self._payload(level, message, extra)) + "\n"
        with _write_lock:
            if _config.console:
                sys.stderr.write(line)
                sys.stderr.flush()
            if _config.file and _config._file_handle:
                _config._file_handle.write(line)
                _config._file_handle.flush()

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARN, message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.ERROR, message, extra)

    def time(self, message: str, extra: Optional[Dict[str, Any]] = None) -> LogTimer:
        """Log ``message`` as started and return a timer that logs its end."""
        extra = extra or {}
        self.info(message, {**extra, "status": "started"})
        return LogTimer(logger=self, message=message, extra=extra)


class Log:
    """Global logging interface and factory."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Create or retrieve a cached logger instance.

        If tags contain a 'service' key, the logger is cached by service name.
        """
        tags = tags or {}
        service = tags.get("service")
        if not (service and isinstance(service, str)):
            return Logger(tags=tags)
        return cls._loggers.setdefault(service, Logger(tags=tags))

    @classmethod
    def configure(
        cls,
        *,
        level: LogLevel | None = None,
        format: LogFormat | None = None,
        console: bool | None = None,
        file: bool | None = None,
        dev: bool = False,
    ) -> None:
        """Configure logging sinks and output format.

        File output is on unless ``file`` is False. ``dev`` writes to a fixed
        ``dev.log`` instead of a timestamped file.
        """
        if level is not None:
            _config.level = level
        if format is not None:
            _config.format = format
        if console is not None:
            _config.console = console
        _config.file = True if file is None else file

        cls.close()
        if not _config.file:
            return

        log_dir = Path(GlobalPath.log())
        cls._cleanup_logs(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        name = "dev.log" if dev else datetime.now().strftime("%Y-%m-%dT%H%M%S") + ".log"
        _config._file_handle = (log_dir / name).open("w", encoding="utf-8")

    @classmethod
    def _cleanup_logs(cls, log_dir: Path) -> None:
        """Keep only the newest MAX_LOG_FILES timestamped log files."""
        if not log_dir.exists():
            return

        log_files = sorted(
            log_dir.glob("????-??-??T??????.log"),
            key=lambda p: p.stat().st_mtime,
        )
        for old_file in log_files[:-MAX_LOG_FILES]:
            old_file.unlink(missing_ok=True)

    @classmethod
    def close(cls) -> None:
        """Close the log file handle if open."""
        if _config._file_handle:
            _config._file_handle.close()
            _config._file_handle = None
