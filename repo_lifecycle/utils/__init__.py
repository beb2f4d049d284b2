"""Utility modules for subprocess execution and logging."""

from repo_lifecycle.utils.async_subprocess import run_command
from repo_lifecycle.utils.logging_config import configure_logging, level_for_verbosity

__all__ = [
    "run_command",
    "configure_logging",
    "level_for_verbosity",
]
