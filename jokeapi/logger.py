"""Structured logging with JSON file output and coloured console output."""
import json
import logging
import re
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict


# Global run ID for this process
RUN_ID = str(uuid.uuid4())[:8]

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName",
}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "run_id": RUN_ID,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter."""

    COLOURS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record for console."""
        colour = self.COLOURS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        msg = f"{colour}[{timestamp}] {record.levelname:8s}{self.RESET} {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


class SensitiveDataFilter(logging.Filter):
    """Redact values of sensitive keys (auth tokens, secrets) from log messages."""

    SENSITIVE_KEYS = [
        "api_key", "secret", "password", "token", "credential", "authorization",
    ]
    _PATTERN = re.compile(
        r"(?P<key>\b\w*(?:" + "|".join(SENSITIVE_KEYS) + r")\w*)"
        r"(?P<sep>\s*[=:]\s*)"
        r"(?P<value>\"[^\"]*\"|'[^']*'|\S+)",
        re.IGNORECASE,
    )

    def filter(self, record: logging.LogRecord) -> bool:
        """Rewrite the record's message if it exposes a sensitive value."""
        message = record.getMessage()
        redacted = self._PATTERN.sub(r"\g<key>\g<sep>[REDACTED]", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def setup_logger(
    name: str = "jokeapi", log_level: str = "INFO", log_dir: str | Path | None = None
) -> logging.Logger:
    """
    Set up logger with JSON file output and human-readable console output.

    Args:
        name: Logger name
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (default: data/logs/)

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    redactor = SensitiveDataFilter()
    logger.filters.clear()
    logger.addFilter(redactor)

    # Console handler (human-readable)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.addFilter(redactor)
    logger.addHandler(console_handler)

    # File handler (JSON, daily rotation)
    log_dir = Path(log_dir) if log_dir is not None else Path("data") / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = TimedRotatingFileHandler(
        filename=log_dir / f"{name}.log",
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(JSONFormatter())
    file_handler.addFilter(redactor)
    logger.addHandler(file_handler)

    return logger
