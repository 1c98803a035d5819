"""Logging configuration with JSON formatting."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from devmetrics.config import settings

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("botocore", "aiobotocore", "boto3", "urllib3", "httpx")


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each record as one JSON object.

    Fields: timestamp (UTC, from the record), level, logger, message,
    environment, correlation_id when present, the keys of an ``extra``
    ``context`` dict, and the formatted exception when one is attached.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON string representation of the log record
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": settings.environment,
        }

        # Correlation ID only when the caller supplied one
        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id

        # Flatten the extra context into the top-level object
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_data.update(context)

        # Traceback text for errors logged with exc_info
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Source location at DEBUG only
        if record.levelno == logging.DEBUG:
            log_data["location"] = f"{record.pathname}:{record.lineno} {record.funcName}"

        # Decimals from DynamoDB and datetimes fall back to str
        return json.dumps(log_data, default=str)


def configure_logging() -> None:
    """
    Configure application logging with JSON formatter.

    Sets up the root logger to output structured JSON logs to stdout at
    the level named by LOG_LEVEL.
    """
    # Unknown level names fall back to INFO
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # Reconfiguring must not stack handlers
    root_logger.handlers.clear()

    # One JSON line per record on stdout
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    # Keep AWS and HTTP client libraries at WARNING or above
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    root_logger.info(
        "Logging configured",
        extra={"context": {"log_level": settings.log_level}},
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: The name of the logger (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
