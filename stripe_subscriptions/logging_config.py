"""Structured logging configuration for the Stripe subscriptions wrapper."""

import logging
import json
import sys
from datetime import datetime, UTC
from typing import Any, Dict, Optional

from . import config as config_module

# Record attributes copied into JSON output when a call site passes them via extra=
CONTEXT_FIELDS = ("operation", "subscription_id", "customer_id", "user_id")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        return json.dumps(log_data)


class StandardFormatter(logging.Formatter):
    """Standard formatter for human-readable logs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def setup_logging(level: Optional[str] = None, json_logging: Optional[bool] = None) -> logging.Logger:
    """Setup logging configuration.

    Intended for applications and scripts; library code only calls get_logger().
    """
    cfg = config_module.config
    log_level = (level or cfg.LOG_LEVEL).upper()
    if json_logging is None:
        json_logging = cfg.JSON_LOGGING

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level, logging.INFO))
    console_handler.setFormatter(JSONFormatter() if json_logging else StandardFormatter())
    root_logger.addHandler(console_handler)

    # Set levels for noisy libraries
    logging.getLogger("stripe").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
