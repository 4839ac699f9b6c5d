"""Structured logging configuration.

Every module logs snake_case event names with keyword fields through
structlog, rendered as one JSON object per line.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_configured_level: int | None = None


def configure_logging(level: str = "info") -> None:
    """Install the JSON processor chain with a minimum level.

    Args:
        level: Standard level name such as ``info`` or ``debug``.
    """
    global _configured_level
    level_number = logging.getLevelName(level.upper())
    if not isinstance(level_number, int):
        level_number = logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_number),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    _configured_level = level_number


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if _configured_level is None:
        configure_logging()
    return structlog.get_logger(name)


def _stderr_logger(*_args: Any) -> structlog.PrintLogger:
    """Bind to the current stderr so CLI stdout stays machine-readable."""
    return structlog.PrintLogger(sys.stderr)
