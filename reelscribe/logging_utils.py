"""Console and JSON-file logging with a per-run id carried through async tasks."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from .config import AppConfig

NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai")
NO_RUN = "-"

_run_id: ContextVar[str] = ContextVar("reelscribe_run_id", default=NO_RUN)


@contextmanager
def bind_run_id(run_id: str) -> Iterator[str]:
    """Tag every record logged inside the block (and tasks it spawns) with ``run_id``."""
    token = _run_id.set(run_id)
    try:
        yield run_id
    finally:
        _run_id.reset(token)


def current_run_id() -> str:
    return _run_id.get()


def _event_fields(message: str) -> dict[str, Any] | None:
    if not message.startswith("{"):
        return None
    try:
        data = json.loads(message)
    except ValueError:
        return None
    return data if isinstance(data, dict) and "event" in data else None


class JsonFormatter(logging.Formatter):
    """One JSON object per line. Structured event messages are merged in flat."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None) or record.funcName,
            "environment": getattr(record, "environment", "unknown"),
            "run_id": getattr(record, "run_id", NO_RUN),
        }
        fields = _event_fields(message)
        if fields is None:
            payload["message"] = message
        else:
            payload.update(fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            payload.update(extra_fields)
        return json.dumps(payload, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Stamps the deployment environment and the active run id on each record."""

    def __init__(self, environment: str) -> None:
        super().__init__()
        self._environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.environment = self._environment
        record.run_id = _run_id.get()
        return True


def _console_handler(context_filter: ContextFilter) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | run=%(run_id)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler.addFilter(context_filter)
    return handler


def _file_handler(path: Path, context_filter: ContextFilter) -> logging.Handler:
    handler = TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        backupCount=14,
        utc=True,
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    handler.addFilter(context_filter)
    return handler


def configure_logging(config: AppConfig) -> None:
    """Replace root handlers: text to the console, JSON lines to ``log_path`` when set."""
    root = logging.getLogger()
    development = config.environment == "development"
    root.setLevel(logging.DEBUG if development else logging.INFO)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    context_filter = ContextFilter(config.environment)
    root.addHandler(_console_handler(context_filter))
    if config.log_path is not None:
        root.addHandler(_file_handler(config.log_path, context_filter))

    # httpx logs every request at INFO
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if development else logging.WARNING)
