"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Log output goes to stderr so command results on stdout stay parseable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog bound logger with structured output.
    """
    _configure_once()
    return structlog.get_logger(name)


def set_log_level(level_name: str) -> None:
    """Change the minimum level of emitted events.

    Args:
        level_name: Standard level name such as ``"INFO"``.
    """
    _configure_once()
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _configure_once() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=_stderr_logger_factory,
    )
    _CONFIGURED = True


def _stderr_logger_factory(*_args: Any) -> structlog.PrintLogger:
    # sys.stderr is looked up per logger so redirected streams are honored.
    return structlog.PrintLogger(file=sys.stderr)
