"""Tests for tool discovery and environment checks."""

import pytest

from encoreconv.config.settings import ToolsConfig
from encoreconv.exceptions import ToolUnreachableError
from encoreconv.tools.locator import ToolEnvironment, ToolLocator, is_executable_file
from encoreconv.tools.process import ProcessResult


def _shell_lookup(found: dict[str, str]):
    """Handler answering ``which`` lookups from ``found`` and library checks with success."""

    def handler(executable, args):
        if args[:2] == ["-l", "-c"]:
            name = args[2].split()[-1]
            if name in found:
                return ProcessResult(f"{found[name]}\n", "", 0)
            return ProcessResult("", "", 1)
        if args[-1] == "--version":
            return ProcessResult("1.0\n", "", 0)
        return ProcessResult("", "", 1)

    return handler


class TestIsExecutableFile:
    def test_checks(self, temp_dir, script_factory):
        script = script_factory(temp_dir / "tool")
        plain = temp_dir / "plain"
        plain.write_text("x", encoding="utf-8")

        assert is_executable_file(script)
        assert not is_executable_file(plain)
        assert not is_executable_file(temp_dir)
        assert not is_executable_file(temp_dir / "missing")


class TestToolEnvironment:
    """Tests for ToolEnvironment readiness."""

    def test_all_ready(self, ready_env):
        assert ready_env.enc2ly_available
        assert ready_env.library_available
        assert ready_env.all_ready
        assert ready_env.missing() == []

    def test_library_requires_interpreter(self):
        env = ToolEnvironment(enc2ly_path="/x/go-enc2ly", python_path=None, library_installed=True)

        assert env.library_available is False
        assert env.all_ready is False

    def test_missing_hints(self):
        env = ToolEnvironment(python_path="/usr/bin/python3", library_installed=False)

        problems = env.missing()

        assert problems == [
            "go-enc2ly not found. Install with: go install github.com/hanwen/go-enc2ly@latest",
            "python-ly not found. Install with: pip3 install python-ly",
        ]

    def test_missing_interpreter(self):
        env = ToolEnvironment(enc2ly_path="/x/go-enc2ly")

        (problem,) = env.missing()
        assert problem.startswith("python3 not found")

    def test_missing_interpreter_uses_configured_name(self):
        env = ToolEnvironment(enc2ly_path="/x/go-enc2ly", python_name="python3.12")

        (problem,) = env.missing()
        assert problem.startswith("python3.12 not found")


class TestToolLocator:
    """Tests for ToolLocator."""

    @pytest.mark.asyncio
    async def test_search_order(self, temp_dir, script_factory, stub_runner_factory):
        """Test the first matching directory wins and no shell is spawned."""
        first, second = temp_dir / "first", temp_dir / "second"
        script_factory(second / "go-enc2ly")
        script_factory(first / "go-enc2ly")
        runner = stub_runner_factory()
        locator = ToolLocator(runner=runner, search_dirs=[str(first), str(second)])

        path = await locator.locate("go-enc2ly")

        assert path == str(first / "go-enc2ly")
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_skips_non_executable(self, temp_dir, script_factory, stub_runner_factory):
        first, second = temp_dir / "first", temp_dir / "second"
        first.mkdir()
        (first / "go-enc2ly").write_text("not executable", encoding="utf-8")
        script_factory(second / "go-enc2ly")
        locator = ToolLocator(runner=stub_runner_factory(), search_dirs=[str(first), str(second)])

        assert await locator.locate("go-enc2ly") == str(second / "go-enc2ly")

    @pytest.mark.asyncio
    async def test_shell_fallback(self, temp_dir, stub_runner_factory):
        runner = stub_runner_factory(_shell_lookup({"go-enc2ly": "/custom/bin/go-enc2ly"}))
        locator = ToolLocator(runner=runner, search_dirs=[str(temp_dir)], shell="/bin/zsh")

        path = await locator.locate("go-enc2ly")

        assert path == "/custom/bin/go-enc2ly"
        assert runner.calls == [("/bin/zsh", ["-l", "-c", "which go-enc2ly"])]

    @pytest.mark.asyncio
    async def test_shell_fallback_not_found(self, temp_dir, stub_runner_factory):
        locator = ToolLocator(runner=stub_runner_factory(_shell_lookup({})), search_dirs=[str(temp_dir)])

        assert await locator.locate("go-enc2ly") is None

    @pytest.mark.asyncio
    async def test_shell_fallback_empty_output(self, temp_dir, stub_runner_factory):
        runner = stub_runner_factory(lambda exe, args: ProcessResult("  \n", "", 0))
        locator = ToolLocator(runner=runner, search_dirs=[str(temp_dir)])

        assert await locator.locate("go-enc2ly") is None

    @pytest.mark.asyncio
    async def test_shell_unavailable(self, temp_dir, stub_runner_factory):
        def handler(executable, args):
            raise ToolUnreachableError(executable, "No such file or directory")

        locator = ToolLocator(runner=stub_runner_factory(handler), search_dirs=[str(temp_dir)])

        assert await locator.locate("go-enc2ly") is None

    def test_candidate_paths_expand_home(self, monkeypatch, temp_dir):
        monkeypatch.setenv("HOME", str(temp_dir))
        locator = ToolLocator(search_dirs=["~/go/bin", "/usr/bin"])

        assert locator.candidate_paths("go-enc2ly")[0] == temp_dir / "go" / "bin" / "go-enc2ly"
        assert str(locator.candidate_paths("go-enc2ly")[1]) == "/usr/bin/go-enc2ly"

    @pytest.mark.asyncio
    async def test_verify_library(self, stub_runner_factory):
        runner = stub_runner_factory(lambda exe, args: ProcessResult("0.9.9\n", "", 0))
        locator = ToolLocator(runner=runner)

        assert await locator.verify_library("/usr/bin/python3") is True
        assert runner.calls == [("/usr/bin/python3", ["-m", "ly", "--version"])]

    @pytest.mark.asyncio
    async def test_verify_library_missing(self, stub_runner_factory):
        runner = stub_runner_factory(
            lambda exe, args: ProcessResult("", "No module named ly", 1)
        )
        locator = ToolLocator(runner=runner)

        assert await locator.verify_library("/usr/bin/python3") is False
        assert await locator.verify_library(None) is False
        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_verify_library_unreachable(self, stub_runner_factory):
        def handler(executable, args):
            raise ToolUnreachableError(executable, "Permission denied")

        locator = ToolLocator(runner=stub_runner_factory(handler))

        assert await locator.verify_library("/usr/bin/python3") is False

    @pytest.mark.asyncio
    async def test_check_environment_ready(self, temp_dir, script_factory, stub_runner_factory):
        script_factory(temp_dir / "go-enc2ly")
        script_factory(temp_dir / "python3")
        runner = stub_runner_factory(_shell_lookup({}))
        locator = ToolLocator(runner=runner, search_dirs=[str(temp_dir)])

        env = await locator.check_environment()

        assert env.enc2ly_path == str(temp_dir / "go-enc2ly")
        assert env.python_path == str(temp_dir / "python3")
        assert env.library_installed is True
        assert env.all_ready is True

    @pytest.mark.asyncio
    async def test_check_environment_missing_everything(self, temp_dir, stub_runner_factory):
        runner = stub_runner_factory(_shell_lookup({}))
        locator = ToolLocator(runner=runner, search_dirs=[str(temp_dir)])

        env = await locator.check_environment()

        assert env.all_ready is False
        assert env.library_installed is False
        assert len(env.missing()) == 2

    @pytest.mark.asyncio
    async def test_check_environment_reports_configured_names(self, temp_dir, stub_runner_factory):
        locator = ToolLocator(
            runner=stub_runner_factory(_shell_lookup({})),
            search_dirs=[str(temp_dir)],
            enc2ly_name="enc2ly",
            python_name="python3.12",
        )

        env = await locator.check_environment()

        assert env.python_name == "python3.12"
        assert env.missing()[0].startswith("enc2ly not found")
        assert env.missing()[1].startswith("python3.12 not found")

    @pytest.mark.asyncio
    async def test_explicit_path_preferred(self, temp_dir, script_factory, stub_runner_factory):
        explicit = script_factory(temp_dir / "custom" / "enc2ly-dev")
        script_factory(temp_dir / "bin" / "go-enc2ly")
        script_factory(temp_dir / "bin" / "python3")
        locator = ToolLocator(
            runner=stub_runner_factory(_shell_lookup({})),
            search_dirs=[str(temp_dir / "bin")],
            enc2ly_path=str(explicit),
        )

        env = await locator.check_environment()

        assert env.enc2ly_path == str(explicit)

    @pytest.mark.asyncio
    async def test_explicit_path_not_executable_falls_back(
        self, temp_dir, script_factory, stub_runner_factory
    ):
        script_factory(temp_dir / "go-enc2ly")
        locator = ToolLocator(
            runner=stub_runner_factory(_shell_lookup({})),
            search_dirs=[str(temp_dir)],
            enc2ly_path=str(temp_dir / "missing"),
        )

        env = await locator.check_environment()

        assert env.enc2ly_path == str(temp_dir / "go-enc2ly")

    @pytest.mark.asyncio
    async def test_environment_is_not_cached(self, temp_dir, script_factory, stub_runner_factory):
        """Test installing a tool between checks is picked up."""
        runner = stub_runner_factory(_shell_lookup({}))
        locator = ToolLocator(runner=runner, search_dirs=[str(temp_dir)])

        before = await locator.check_environment()
        script_factory(temp_dir / "go-enc2ly")
        after = await locator.check_environment()

        assert before.enc2ly_available is False
        assert after.enc2ly_available is True

    def test_from_config(self, stub_runner_factory):
        config = ToolsConfig(
            enc2ly_name="enc2ly",
            library="lyx",
            search_dirs=["/opt/bin"],
            extra_search_dirs=["/first"],
            shell="/bin/bash",
            python_path="/opt/python3",
        )
        runner = stub_runner_factory()

        locator = ToolLocator.from_config(config, runner=runner)

        assert locator.runner is runner
        assert locator.search_dirs == ["/first", "/opt/bin"]
        assert locator.shell == "/bin/bash"
        assert locator.enc2ly_name == "enc2ly"
        assert locator.library == "lyx"
        assert locator.python_path == "/opt/python3"
