"""JSON logging for the workroom client core and the reference backend.

Records are emitted one JSON object per line. Room-scoped calls attach
``extra={"context": {...}}`` (or go through :class:`RoomLogAdapter`) so a
single room's history can be filtered out of the shared log.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH

# Chatty transport libraries stay at WARNING unless LOG_LEVEL is DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "websockets", "aiosqlite")


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class RoomLogAdapter(logging.LoggerAdapter):
    """Merges a fixed room/user context into every record."""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        return msg, kwargs


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    console: bool = True,
) -> None:
    """
    Install the JSON handlers on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                   Falls back to LOG_LEVEL, then INFO.
        log_file: Rotating log file. Falls back to LOG_FILE, then 04_logs/app.log.
        console: Also write to stdout.
    """
    level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
    path = Path(log_file or os.getenv("LOG_FILE") or DEFAULT_LOG_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    handlers = {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(path),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        },
    }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }

    quiet_level = "DEBUG" if level == "DEBUG" else "WARNING"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": "workroom.logging_config.JSONFormatter"}},
            "handlers": handlers,
            "loggers": {name: {"level": quiet_level} for name in QUIET_LOGGERS},
            "root": {"level": level, "handlers": list(handlers)},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)


def room_logger(name: str, room_id: str, **context) -> RoomLogAdapter:
    """Logger whose records all carry room_id (and any extra context)."""
    return RoomLogAdapter(logging.getLogger(name), {"room_id": room_id, **context})
