"""Structured logging configuration for the traffic simulator."""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path

INTERACTIONS_LOGGER = "interactions"

# Third-party loggers that would drown the interaction stream at DEBUG
QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per line; interaction records carry their fields and trace id."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        fields = getattr(record, "fields", None)
        if fields is not None:
            log_data["fields"] = fields
        trace_id = getattr(record, "trace_id", None)
        if trace_id:
            log_data["trace_id"] = trace_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Setup structured logging for the simulator.

    Every record goes to stdout and to a rotating file. Summary records of
    the ``interactions`` logger are additionally written to
    ``interactions.log`` next to the main file, one transaction per line.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to logs/app.log.
    """
    from .config import DEFAULT_LOG_PATH

    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_path = Path(log_file or DEFAULT_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    interactions_path = log_path.with_name("interactions.log")

    rotating = {
        "class": "logging.handlers.RotatingFileHandler",
        "maxBytes": 10 * 1024 * 1024,  # 10 MB
        "backupCount": 5,
        "formatter": "json",
        "encoding": "utf-8",
    }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "traffic_core.logging_config.JSONFormatter",
            },
        },
        "handlers": {
            "file": {**rotating, "filename": str(log_path)},
            "interactions_file": {**rotating, "filename": str(interactions_path)},
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            INTERACTIONS_LOGGER: {
                "level": "DEBUG",
                "handlers": ["interactions_file"],
            },
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        },
        "root": {
            "level": log_level,
            "handlers": ["file", "console"],
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
