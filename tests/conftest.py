"""Pytest configuration and fixtures."""

import stat
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from encoreconv.tools.locator import ToolEnvironment
from encoreconv.tools.process import ProcessResult

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class StubProcessRunner:
    """ProcessRunner test double.

    ``handler`` receives ``(executable, arguments)`` and returns a
    ProcessResult (or raises). Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        handler: Callable[[str, list[str]], ProcessResult] | None = None,
    ) -> None:
        self.handler = handler or (lambda exe, args: ProcessResult("", "", 0))
        self.calls: list[tuple[str, list[str]]] = []

    async def run(self, executable: str, arguments: Sequence[str] = ()) -> ProcessResult:
        args = list(arguments)
        self.calls.append((executable, args))
        return self.handler(executable, args)


def make_executable(path: Path, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Write an executable script at ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """Create an output directory."""
    output = temp_dir / "output"
    output.mkdir()
    return output


@pytest.fixture
def enc_files(temp_dir: Path) -> list[Path]:
    """Create three empty Encore files."""
    inputs = temp_dir / "scores"
    inputs.mkdir()
    files = []
    for name in ("first.enc", "second.enc", "third.enc"):
        path = inputs / name
        path.write_bytes(b"SCOW")
        files.append(path)
    return files


@pytest.fixture
def ready_env() -> ToolEnvironment:
    """A tool environment that reports ready."""
    return ToolEnvironment(
        enc2ly_path="/tools/go-enc2ly",
        python_path="/tools/python3",
        library_installed=True,
    )


@pytest.fixture
def working_tools() -> StubProcessRunner:
    """Stub runner where both stages succeed and stage 2 writes its output file."""

    def handler(executable: str, args: list[str]) -> ProcessResult:
        if executable.endswith("go-enc2ly"):
            return ProcessResult(stdout="valid-ly-content", stderr="", exit_code=0)
        if "-o" in args:
            Path(args[args.index("-o") + 1]).write_text("<score-partwise/>", encoding="utf-8")
        return ProcessResult(stdout="", stderr="", exit_code=0)

    return StubProcessRunner(handler)


@pytest.fixture
def stub_runner_factory() -> type[StubProcessRunner]:
    """Return the StubProcessRunner class for building custom stubs."""
    return StubProcessRunner


@pytest.fixture
def script_factory() -> Callable[[Path, str], Path]:
    """Return a helper that writes executable scripts."""
    return make_executable
