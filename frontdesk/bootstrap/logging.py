from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from frontdesk.core.observability import get_correlation_id, get_drain_id
from frontdesk.core.redaction import SecretsRedactionFilter

DEFAULT_LOG_MAX_BYTES = 1_048_576
DEFAULT_LOG_BACKUP_COUNT = 10
MAIN_LOG_NAME = "frontdesk.log"
OPERATIONAL_ERROR_LOG_NAME = "operational_error.log"
CRASH_LOG_NAME = "crash.log"
SYNC_EVENTS_LOG_NAME = "sync_events.log"


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per line; ``drain_id`` ties together the events of one drain."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id(),
        }
        drain_id = _record_drain_id(record)
        if drain_id:
            event["drain_id"] = drain_id
        payload = getattr(record, "extra", None)
        if isinstance(payload, dict) and payload:
            event["extra"] = payload
        if record.exc_info:
            event["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(event, ensure_ascii=False, default=str)


def _record_drain_id(record: logging.LogRecord) -> str | None:
    return getattr(record, "drain_id", None) or get_drain_id()


class LevelOnlyFilter(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno == self._level


class CrashOnlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.CRITICAL


class DrainEventsFilter(logging.Filter):
    """Keeps records emitted while a drain is running: the sync audit trail."""

    def filter(self, record: logging.LogRecord) -> bool:
        return _record_drain_id(record) is not None


@dataclass(frozen=True)
class _LogFile:
    filename: str
    level: int
    filters: tuple[logging.Filter, ...] = ()


def _log_file_table(level: int) -> tuple[_LogFile, ...]:
    return (
        _LogFile(MAIN_LOG_NAME, level),
        _LogFile(OPERATIONAL_ERROR_LOG_NAME, logging.ERROR, (LevelOnlyFilter(logging.ERROR),)),
        _LogFile(CRASH_LOG_NAME, logging.CRITICAL, (CrashOnlyFilter(),)),
        _LogFile(SYNC_EVENTS_LOG_NAME, logging.INFO, (DrainEventsFilter(),)),
    )


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ[name])
    except (KeyError, ValueError):
        return default


def configure_logging(
    log_dir: Path,
    *,
    max_bytes: int | None = None,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
    level: int = logging.INFO,
) -> None:
    """Route the root logger to rotating JSONL files under ``log_dir``.

    Calling it again replaces the previous handlers, so tests and the CLI can
    point logging at a new directory.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    rotate_at = max_bytes or _env_int("FRONTDESK_LOG_MAX_BYTES", DEFAULT_LOG_MAX_BYTES)
    formatter = JsonLinesFormatter()
    redaction = SecretsRedactionFilter()

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    for log_file in _log_file_table(level):
        handler = RotatingFileHandler(
            log_dir / log_file.filename,
            maxBytes=rotate_at,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setLevel(log_file.level)
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
        for log_filter in log_file.filters:
            handler.addFilter(log_filter)
        root_logger.addHandler(handler)


def log_operational_error(
    logger: logging.Logger,
    message: str,
    *,
    exc: BaseException | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """ERROR record for a failure the app contained (lands in operational_error.log)."""
    exc_info: Any = (type(exc), exc, exc.__traceback__) if exc is not None else False
    logger.error(message, exc_info=exc_info, extra={"extra": extra} if extra else None)


def write_crash_log(exc_type: type[BaseException], exc: BaseException, tb: Any, log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.getLogger("frontdesk.crash").critical(
        "Unhandled exception",
        exc_info=(exc_type, exc, tb),
        extra={"extra": {"python": sys.version, "executable": sys.executable, "cwd": str(Path.cwd())}},
    )
    return log_dir / CRASH_LOG_NAME


def install_exception_hook(log_dir: Path) -> None:
    def _handler(exc_type, exc, tb) -> None:
        try:
            write_crash_log(exc_type, exc, tb, log_dir)
        except OSError:
            pass

    sys.excepthook = _handler
