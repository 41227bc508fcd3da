"""Structured logging for the firehose bridge.

Every record is one JSON line. Session and broker code attach ids
(viewer, routing key, session event) through ``log_context`` so a log
search can follow one viewer or one subscription.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH

# AMQP client libraries log every channel open/close at INFO
BROKER_LOGGERS = ("aio_pika", "aiormq")


def log_context(**fields: Any) -> dict[str, Any]:
    """
    Build the ``extra`` mapping for a structured log call.

    Fields that are None are left out, so a request that did not come
    from a viewer logs no viewer_id.

        logger.info("Stop requested", extra=log_context(viewer_id=viewer_id))
    """
    return {"context": {key: value for key, value in fields.items() if value is not None}}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

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

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        # Trace payload fragments and enum values are not always JSON-native
        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    broker_log_level: str = "WARNING",
) -> None:
    """
    Configure JSON logging to a rotating file and stdout.

    Args:
        log_level: Root level. Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to logs/app.log.
        broker_log_level: Level for the aio-pika/aiormq loggers.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    if log_file is None:
        log_file = str(DEFAULT_LOG_PATH)

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "firehose.logging_config.JSONFormatter",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": log_file,
                "maxBytes": 10 * 1024 * 1024,  # 10 MB
                "backupCount": 5,
                "formatter": "json",
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["file", "console"],
        },
        "loggers": {
            name: {"level": broker_log_level.upper()} for name in BROKER_LOGGERS
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
