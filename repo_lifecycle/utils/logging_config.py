"""
Logging configuration using structlog for structured logging.

Log output always goes to stderr so that list-mode JSON written to stdout
stays machine-readable. Verbosity is a numeric counter (``-v`` repeated on
the command line) mapped onto a minimum log level.
"""

import logging
import sys
from typing import Any

import structlog

_VERBOSITY_LEVELS = {
    -1: logging.ERROR,
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # sys.stderr may be swapped at runtime, so look it up per logger.
    return structlog.PrintLogger(sys.stderr)


def level_for_verbosity(verbosity: int) -> int:
    """Map a verbosity counter to a stdlib log level.

    Args:
        verbosity: Number of ``-v`` flags, or -1 for quiet mode

    Returns:
        Integer log level; anything above 2 is clamped to DEBUG
    """
    if verbosity < -1:
        verbosity = -1
    return _VERBOSITY_LEVELS.get(min(verbosity, 2), logging.DEBUG)


def configure_logging(verbosity: int = 0, json_logs: bool = False) -> None:
    """Configure structlog with a console or JSON renderer.

    Args:
        verbosity: Verbosity counter (see level_for_verbosity)
        json_logs: Emit one JSON object per event instead of console lines
    """
    renderer: Any
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_for_verbosity(verbosity)),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
