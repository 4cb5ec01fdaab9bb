"""Interrupt handling that maps Ctrl+C onto cooperative cancellation."""

import signal
import sys
from collections.abc import Callable
from datetime import datetime as dt

from rich.console import Console

from encoreconv.utils.logging import get_logger

log = get_logger(__name__)


class SignalHandler:
    """Context manager for handling interrupt signals during a batch.

    The first signal calls ``on_interrupt`` (the batch stops before its next
    file). A second signal exits immediately with status 130.
    """

    def __init__(
        self,
        console: Console,
        on_interrupt: Callable[[], None],
        context_info: dict | None = None,
    ):
        self.console = console
        self.on_interrupt = on_interrupt
        self.context_info = context_info or {}
        self.interrupted = False
        self._original_sigint = None
        self._original_sigterm = None

    def __enter__(self) -> "SignalHandler":
        """Install signal handlers."""
        self._original_sigint = signal.signal(signal.SIGINT, self._handler)
        if hasattr(signal, "SIGTERM"):
            self._original_sigterm = signal.signal(signal.SIGTERM, self._handler)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Restore original signal handlers."""
        signal.signal(signal.SIGINT, self._original_sigint)
        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)
        return False

    def _handler(self, signum: int, frame) -> None:  # noqa: ARG002
        if self.interrupted:
            sys.exit(130)

        self.interrupted = True
        sig_name = signal.Signals(signum).name

        log.warning(
            "Batch interrupted",
            signal=sig_name,
            interrupted_at=dt.now().isoformat(),
            **self.context_info,
        )

        self.console.print(
            f"\n[yellow]Interrupted by {sig_name}. Stopping after the current file "
            "(press again to exit now)...[/yellow]"
        )
        self.on_interrupt()
