"""Asynchronous external process execution."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import anyio

from encoreconv.exceptions import ToolUnreachableError
from encoreconv.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a finished process."""

    stdout: str
    stderr: str
    exit_code: int
    raw_stdout: bytes | None = None  # Undecoded stdout, when captured from a real process

    @property
    def ok(self) -> bool:
        """Check if the process exited with status 0."""
        return self.exit_code == 0

    @property
    def stdout_bytes(self) -> bytes:
        """Stdout exactly as the process wrote it.

        The decoded ``stdout`` is lossy for non-UTF-8 output and is only
        meant for messages and logs.
        """
        if self.raw_stdout is not None:
            return self.raw_stdout
        return self.stdout.encode("utf-8")


class ProcessRunner:
    """Spawns an executable and awaits its termination.

    Both pipes are drained to completion before the result is returned. A
    nonzero exit code is reported in the result. Only a failure to spawn the
    process at all raises, as ``ToolUnreachableError``.

    Children start in their own session, so a Ctrl+C in the terminal reaches
    only encoreconv and never the tool that is currently running.
    """

    async def run(self, executable: str, arguments: Sequence[str] = ()) -> ProcessResult:
        """Run ``executable`` with ``arguments`` and capture its output.

        Args:
            executable: Path (or name) of the executable
            arguments: Command-line arguments

        Returns:
            ProcessResult with decoded stdout/stderr and the exit code

        Raises:
            ToolUnreachableError: If the process could not be spawned
        """
        cmd = [executable, *arguments]
        log.debug("Running process", command=" ".join(cmd))

        try:
            completed = await anyio.run_process(cmd, check=False, start_new_session=True)
        except OSError as e:
            log.warning("Process could not be spawned", executable=executable, error=str(e))
            raise ToolUnreachableError(executable, e.strerror or str(e)) from e

        result = ProcessResult(
            stdout=_decode(completed.stdout),
            stderr=_decode(completed.stderr),
            exit_code=completed.returncode,
            raw_stdout=completed.stdout or b"",
        )
        log.debug(
            "Process finished",
            executable=executable,
            exit_code=result.exit_code,
            stdout_chars=len(result.stdout),
            stderr_chars=len(result.stderr),
        )
        return result


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
