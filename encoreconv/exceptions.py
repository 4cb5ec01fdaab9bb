"""Custom exceptions for encoreconv."""

from pathlib import Path
from typing import TYPE_CHECKING

from encoreconv.config.constants import CANCELLED_REASON

if TYPE_CHECKING:
    from encoreconv.tools.locator import ToolEnvironment


class EncoreConvError(Exception):
    """Base exception class for encoreconv."""

    pass


class ToolUnreachableError(EncoreConvError):
    """An external executable could not be spawned at all."""

    def __init__(self, executable: str, reason: str) -> None:
        self.executable = executable
        self.reason = reason
        super().__init__(f"Could not run {executable}: {reason}")


class ConversionError(EncoreConvError):
    """Error during conversion of a single file.

    ``message`` is the human-readable reason shown on the job, while
    ``raw_output`` keeps the captured tool output unmodified.
    """

    def __init__(self, file_path: Path, message: str, raw_output: str = "") -> None:
        self.file_path = file_path
        self.message = message
        self.raw_output = raw_output
        super().__init__(f"Conversion failed for {file_path}: {message}")


class Stage1FailedError(ConversionError):
    """The notation extractor exited with a nonzero status."""

    pass


class Stage1EmptyError(ConversionError):
    """The notation extractor exited cleanly but wrote nothing."""

    pass


class Stage2FailedError(ConversionError):
    """The MusicXML exporter exited with a nonzero status."""

    pass


class Stage2NoOutputError(ConversionError):
    """The MusicXML exporter exited cleanly without creating its output file."""

    pass


class ConversionCancelledError(ConversionError):
    """The batch was cancelled while this file was being converted."""

    def __init__(self, file_path: Path, raw_output: str = "") -> None:
        super().__init__(file_path, CANCELLED_REASON, raw_output=raw_output)


class EnvironmentNotReadyError(EncoreConvError):
    """Required external tools are missing."""

    def __init__(self, environment: "ToolEnvironment") -> None:
        self.environment = environment
        missing = "; ".join(environment.missing()) or "unknown"
        super().__init__(f"Tool environment is not ready: {missing}")


class StateError(EncoreConvError):
    """Job list or run state error."""

    pass


class BatchRunningError(StateError):
    """Operation is not allowed while a batch is running."""

    def __init__(self, operation: str = "modify the job list") -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation} while a batch is running")


class ConfigurationError(EncoreConvError):
    """Configuration error."""

    pass
