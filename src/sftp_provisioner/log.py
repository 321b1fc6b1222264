"""Logging setup: timestamped lines to the console and an append-only file."""

import logging
import sys
from typing import Any, List, MutableMapping

import structlog

from sftp_provisioner.config import LoggingConfig
from sftp_provisioner.exceptions import ConfigurationError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_PREFIX = {"warning": "Warning: ", "error": "Error: ", "critical": "Error: "}


def render_line(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> str:
    """Render ``YYYY-MM-DD HH:MM:SS - message key=value``."""
    timestamp = event_dict.pop("timestamp", "")
    level = event_dict.pop("level", "")
    message = _LEVEL_PREFIX.get(level, "") + str(event_dict.pop("event", ""))
    exc = event_dict.pop("exception", None)
    event_dict.pop("logger", None)

    if event_dict:
        message += " " + " ".join(f"{key}={value}" for key, value in event_dict.items())
    line = f"{timestamp} - {message}"
    if exc:
        line += "\n" + exc
    return line


def configure_logging(config: LoggingConfig) -> None:
    """Set up structured logging for the whole run.

    Args:
        config: Level and optional log file path

    Raises:
        ConfigurationError: If the log file cannot be opened
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        try:
            handlers.append(logging.FileHandler(config.file, mode="a", encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Cannot open log file {config.file}: {e}") from e

    logging.basicConfig(
        format="%(message)s", level=config.level.upper(), handlers=handlers, force=True
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT, utc=False),
            structlog.processors.format_exc_info,
            render_line,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
