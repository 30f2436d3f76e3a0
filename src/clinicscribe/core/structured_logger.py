"""
Structured logging utilities for the capture pipeline
"""

import json
import logging
import sys
from datetime import datetime
from typing import Optional

from .config import LoggingSettings

ROOT_LOGGER_NAME = "clinicscribe"


class StructuredLogger:
    """
    Structured logger that outputs JSON payloads for easy parsing and querying
    """

    def __init__(self, name: str, level: Optional[int] = None):
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level)

    def log(self, level: str, message: str, **kwargs):
        """Log with structured data"""
        log_data = {"message": message, **kwargs}
        self.logger.log(logging.getLevelName(level.upper()), json.dumps(log_data, default=str))

    def info(self, message: str, **kwargs):
        """Log info level"""
        self.log("info", message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning level"""
        self.log("warning", message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error level"""
        self.log("error", message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug level"""
        self.log("debug", message, **kwargs)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        if hasattr(record, "extra_data"):
            log_obj.update(record.extra_data)

        return json.dumps(log_obj, default=str)


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Install a stdout handler on the package logger according to settings."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(settings.level)

    for handler in list(logger.handlers):
        if getattr(handler, "_clinicscribe_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if settings.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler._clinicscribe_handler = True
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger"""
    return StructuredLogger(name)
