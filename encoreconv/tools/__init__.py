"""External tool execution and discovery."""

from encoreconv.tools.locator import ToolEnvironment, ToolLocator, is_executable_file
from encoreconv.tools.process import ProcessResult, ProcessRunner

__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "ToolEnvironment",
    "ToolLocator",
    "is_executable_file",
]
