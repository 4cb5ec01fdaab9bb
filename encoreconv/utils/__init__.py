"""Utility module for encoreconv."""

from encoreconv.utils.logging import get_console, get_logger, setup_logging, setup_task_logging

__all__ = [
    "get_console",
    "get_logger",
    "setup_logging",
    "setup_task_logging",
]
