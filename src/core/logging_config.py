"""Structured logging configuration.

This module initializes structlog with a stable structured format.
Every module obtains its logger through get_logger.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL

_CONFIGURED = False


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog rendering and minimum level.

    Args:
        level: Minimum level name, e.g. INFO.
    """
    global _CONFIGURED
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
    _CONFIGURED = True


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not _CONFIGURED:
        configure_logging()
    return structlog.get_logger(name)


def _stderr_logger_factory(*_args: object) -> structlog.PrintLogger:
    """Build a print logger bound to the current stderr stream."""
    return structlog.PrintLogger(sys.stderr)
