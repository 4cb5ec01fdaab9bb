"""External tool discovery and environment readiness checks.

Discovery checks an ordered list of directories, then one fallback
lookup that asks a login shell (``which``). Well-known directories come first
so that no subprocess is spawned when a tool sits in a standard location.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from encoreconv.config.constants import (
    DEFAULT_ENC2LY_NAME,
    DEFAULT_LIBRARY,
    DEFAULT_PYTHON_NAME,
    DEFAULT_SEARCH_DIRS,
    DEFAULT_SHELL,
    ENC2LY_INSTALL_HINT,
    LIBRARY_INSTALL_HINT,
)
from encoreconv.config.settings import ToolsConfig
from encoreconv.exceptions import ToolUnreachableError
from encoreconv.tools.process import ProcessRunner
from encoreconv.utils.logging import get_logger

log = get_logger(__name__)


def is_executable_file(path: str | Path) -> bool:
    """Check that ``path`` is a regular file the current user may execute."""
    return os.path.isfile(path) and os.access(path, os.X_OK)


@dataclass(frozen=True)
class ToolEnvironment:
    """Snapshot of the resolved external tools.

    Never cached: build a fresh one with ``ToolLocator.check_environment``
    whenever readiness matters.
    """

    enc2ly_path: str | None = None
    python_path: str | None = None
    library_installed: bool = False
    enc2ly_name: str = DEFAULT_ENC2LY_NAME
    python_name: str = DEFAULT_PYTHON_NAME
    library: str = DEFAULT_LIBRARY

    @property
    def enc2ly_available(self) -> bool:
        return self.enc2ly_path is not None

    @property
    def library_available(self) -> bool:
        return self.python_path is not None and self.library_installed

    @property
    def all_ready(self) -> bool:
        """Both tools located and the library importable."""
        return self.enc2ly_available and self.library_available

    def missing(self) -> list[str]:
        """Human-readable descriptions of missing dependencies with install hints."""
        problems = []
        if not self.enc2ly_available:
            problems.append(f"{self.enc2ly_name} not found. Install with: {ENC2LY_INSTALL_HINT}")
        if self.python_path is None:
            problems.append(
                f"{self.python_name} not found. Install Python 3 and make it available on PATH"
            )
        elif not self.library_installed:
            problems.append(f"python-{self.library} not found. Install with: {LIBRARY_INSTALL_HINT}")
        return problems


class ToolLocator:
    """Finds external executables and verifies the exporter library."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        search_dirs: Sequence[str] | None = None,
        shell: str = DEFAULT_SHELL,
        enc2ly_name: str = DEFAULT_ENC2LY_NAME,
        python_name: str = DEFAULT_PYTHON_NAME,
        library: str = DEFAULT_LIBRARY,
        enc2ly_path: str | None = None,
        python_path: str | None = None,
    ) -> None:
        """Initialize the locator.

        Args:
            runner: Process runner used for the shell fallback and library check
            search_dirs: Directories checked in order before the shell fallback
            shell: Shell used for the ``which`` fallback (run as a login shell)
            enc2ly_name: Executable name of the notation extractor
            python_name: Executable name of the interpreter
            library: Python module that provides the MusicXML exporter
            enc2ly_path: Explicit extractor path, preferred when executable
            python_path: Explicit interpreter path, preferred when executable
        """
        self.runner = runner or ProcessRunner()
        self.search_dirs = list(DEFAULT_SEARCH_DIRS if search_dirs is None else search_dirs)
        self.shell = shell
        self.enc2ly_name = enc2ly_name
        self.python_name = python_name
        self.library = library
        self.enc2ly_path = enc2ly_path
        self.python_path = python_path

    @classmethod
    def from_config(cls, config: ToolsConfig, runner: ProcessRunner | None = None) -> ToolLocator:
        """Create a locator from the ``tools`` settings section."""
        return cls(
            runner=runner,
            search_dirs=config.search_order,
            shell=config.shell,
            enc2ly_name=config.enc2ly_name,
            python_name=config.python_name,
            library=config.library,
            enc2ly_path=config.enc2ly_path,
            python_path=config.python_path,
        )

    def candidate_paths(self, name: str) -> list[Path]:
        """Well-known locations for ``name``, in search order."""
        return [Path(os.path.expanduser(d)) / name for d in self.search_dirs]

    async def locate(self, name: str) -> str | None:
        """Find the absolute path of executable ``name``.

        Returns:
            The path, or None if neither the directory search nor the shell
            fallback found it
        """
        for candidate in self.candidate_paths(name):
            if is_executable_file(candidate):
                log.debug("Tool found in well-known location", tool=name, path=str(candidate))
                return str(candidate)

        path = await self._which(name)
        if path:
            log.debug("Tool found via shell lookup", tool=name, path=path)
        else:
            log.info("Tool not found", tool=name)
        return path

    async def _which(self, name: str) -> str | None:
        try:
            result = await self.runner.run(self.shell, ["-l", "-c", f"which {name}"])
        except ToolUnreachableError:
            return None

        if not result.ok:
            return None

        path = result.stdout.strip()
        return path or None

    async def verify_library(self, interpreter: str | None) -> bool:
        """Check that ``interpreter -m <library> --version`` exits with status 0."""
        if interpreter is None:
            return False

        try:
            result = await self.runner.run(interpreter, ["-m", self.library, "--version"])
        except ToolUnreachableError:
            return False

        if not result.ok:
            log.info(
                "Library check failed",
                interpreter=interpreter,
                library=self.library,
                exit_code=result.exit_code,
            )
        return result.ok

    async def _resolve(self, explicit: str | None, name: str) -> str | None:
        if explicit:
            if is_executable_file(explicit):
                return explicit
            log.warning("Configured tool path is not executable", tool=name, path=explicit)
        return await self.locate(name)

    async def check_environment(self) -> ToolEnvironment:
        """Locate both tools, check the library, returning a fresh snapshot."""
        enc2ly = await self._resolve(self.enc2ly_path, self.enc2ly_name)
        python = await self._resolve(self.python_path, self.python_name)
        library_ok = await self.verify_library(python)

        env = ToolEnvironment(
            enc2ly_path=enc2ly,
            python_path=python,
            library_installed=library_ok,
            enc2ly_name=self.enc2ly_name,
            python_name=self.python_name,
            library=self.library,
        )
        log.info(
            "Tool environment checked",
            enc2ly=enc2ly,
            python=python,
            library_installed=library_ok,
            ready=env.all_ready,
        )
        return env
