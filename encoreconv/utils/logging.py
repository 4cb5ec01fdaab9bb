"""Logging configuration using structlog.

Events from encoreconv and the standard library go through the same
structlog processor chain and are rendered by stdlib handlers:

- the console handler writes to stderr. It shows WARNING and above unless
  ``--verbose`` is set, so the progress display stays readable
- a ``convert`` run also writes a task log under ``log_dir``, named
  ``convert_<timestamp>_<task id>.log``. Task logs older than the retention
  period are pruned when the next one is created

Tool stderr is attached to failure events. Values longer than the configured
limit are shortened in the log; the job keeps the full text.
"""

import logging
import sys
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

from encoreconv.config.constants import (
    DEFAULT_LOG_MAX_VALUE_LENGTH,
    DEFAULT_LOG_RETENTION_DAYS,
)

if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

# Keys that are handled specially by ConsoleRenderer (not user context)
_INTERNAL_KEYS = {"event", "level", "timestamp", "_record", "_from_structlog"}

_console: Console | None = None


class SafeStreamHandler(logging.StreamHandler):
    """A StreamHandler that degrades unencodable characters to ``?``.

    go-enc2ly and python-ly diagnostics can contain characters the console
    encoding cannot display (e.g. CP1252 on Windows).
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record) + self.terminator
            try:
                self.stream.write(msg)
            except UnicodeEncodeError:
                encoding = getattr(self.stream, "encoding", None) or "utf-8"
                self.stream.write(msg.encode(encoding, errors="replace").decode(encoding))
            self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


class TruncateLongValues:
    """structlog processor shortening string values longer than ``limit``."""

    def __init__(self, limit: int = DEFAULT_LOG_MAX_VALUE_LENGTH) -> None:
        self.limit = limit

    def __call__(
        self, _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
    ) -> "EventDict":
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > self.limit:
                event_dict[key] = f"{value[: self.limit]}... [{len(value)} chars total]"
        return event_dict


def _add_separator(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Add a visual separator between event message and context variables."""
    has_context = any(k not in _INTERNAL_KEYS for k in event_dict)

    if has_context and "event" in event_dict:
        event_dict["event"] = f"{event_dict['event']} |"

    return event_dict


def get_console() -> Console:
    """Get the shared stderr console used for progress output."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _formatter(
    pre_chain: list[structlog.types.Processor], colors: bool
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(
                colors=colors,
                exception_formatter=structlog.dev.plain_traceback,
                pad_event_to=0,
                pad_level=False,
            ),
        ],
    )


def setup_logging(
    console_level: str = "WARNING",
    log_file: str | Path | None = None,
    file_level: str = "DEBUG",
    max_value_length: int = DEFAULT_LOG_MAX_VALUE_LENGTH,
) -> None:
    """Configure structlog and the root logger.

    Args:
        console_level: Level for the stderr handler
        log_file: Optional task log file; plain text, no colors
        file_level: Level for the task log file
        max_value_length: Longest string value kept intact in an event
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        TruncateLongValues(max_value_length),
        _add_separator,
    ]

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = SafeStreamHandler(sys.stderr)
    console_handler.setLevel(_level(console_level))
    console_handler.setFormatter(_formatter(shared_processors, colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(_level(file_level))
        file_handler.setFormatter(_formatter(shared_processors, colors=False))
        root_logger.addHandler(file_handler)

    root_logger.setLevel(min(h.level for h in root_logger.handlers))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)


def create_task_log_path(log_dir: str | Path, prefix: str = "task") -> tuple[str, Path]:
    """Create a unique task log file path with timestamp and UUID.

    Example:
        >>> task_id, log_path = create_task_log_path(".logs", "convert")
        >>> print(log_path)  # .logs/convert_20260109_143052_a1b2c3d4.log
    """
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    task_id = str(uuid.uuid4())[:8]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir_path / f"{prefix}_{timestamp}_{task_id}.log"

    return task_id, log_file


def prune_task_logs(log_dir: str | Path, prefix: str, retention_days: int) -> list[Path]:
    """Delete ``<prefix>_*.log`` files last modified more than ``retention_days`` ago.

    A retention of 0 or less keeps every log. Files that cannot be removed
    are left in place and tried again on the next run.

    Returns:
        The removed paths
    """
    log_dir_path = Path(log_dir)
    if retention_days <= 0 or not log_dir_path.is_dir():
        return []

    cutoff = time.time() - retention_days * 86400
    removed = []
    for path in sorted(log_dir_path.glob(f"{prefix}_*.log")):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed.append(path)
        except OSError:
            continue
    return removed


def setup_task_logging(
    log_dir: str | Path,
    prefix: str = "task",
    verbose: bool = False,
    file_level: str = "DEBUG",
    max_value_length: int = DEFAULT_LOG_MAX_VALUE_LENGTH,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
) -> tuple[str, Path]:
    """Set up console and task log output for one command run.

    Args:
        log_dir: Directory to store log files
        prefix: Command name, used as the log file prefix
        verbose: Show DEBUG on the console instead of WARNING
        file_level: Level for the task log file
        max_value_length: Longest string value kept intact in an event
        retention_days: Age after which older logs with ``prefix`` are removed

    Returns:
        Tuple of (task_id, log_file_path)
    """
    removed = prune_task_logs(log_dir, prefix, retention_days)
    task_id, log_path = create_task_log_path(log_dir, prefix)

    setup_logging(
        console_level="DEBUG" if verbose else "WARNING",
        log_file=log_path,
        file_level=file_level,
        max_value_length=max_value_length,
    )
    if removed:
        get_logger(__name__).debug("Pruned old task logs", count=len(removed))

    return task_id, log_path
