"""Tests for ProcessRunner using real subprocesses."""

import asyncio
import os
import subprocess

import pytest

from encoreconv.exceptions import ToolUnreachableError
from encoreconv.tools.process import ProcessResult, ProcessRunner


class TestProcessResult:
    def test_ok(self):
        assert ProcessResult("", "", 0).ok is True
        assert ProcessResult("", "", 1).ok is False


class TestProcessRunner:
    """Tests for ProcessRunner.run."""

    @pytest.mark.asyncio
    async def test_captures_output_and_exit_code(self):
        runner = ProcessRunner()

        result = await runner.run("/bin/sh", ["-c", "printf out; printf err >&2; exit 3"])

        assert result.stdout == "out"
        assert result.stderr == "err"
        assert result.exit_code == 3
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_successful_process(self):
        result = await ProcessRunner().run("/bin/sh", ["-c", "echo hello"])

        assert result.ok is True
        assert result.stdout == "hello\n"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_interpreted(self, script_factory, temp_dir):
        script = script_factory(temp_dir / "echo-args", '#!/bin/sh\nprintf "%s|" "$@"\n')

        result = await ProcessRunner().run(str(script), ["a b", "$HOME", "*"])

        assert result.stdout == "a b|$HOME|*|"

    @pytest.mark.asyncio
    async def test_large_output_is_drained(self):
        """Test output larger than a pipe buffer does not deadlock."""
        result = await ProcessRunner().run(
            "/bin/sh", ["-c", "i=0; while [ $i -lt 20000 ]; do echo 0123456789; i=$((i+1)); done"]
        )

        assert result.ok is True
        assert len(result.stdout) == 20000 * 11

    @pytest.mark.asyncio
    async def test_non_utf8_stdout_keeps_raw_bytes(self):
        """Test undecodable output is replaced in text but kept intact as bytes."""
        result = await ProcessRunner().run("/bin/sh", ["-c", "printf 'Caf\\351'"])

        assert result.stdout == "Caf�"
        assert result.stdout_bytes == b"Caf\xe9"

    @pytest.mark.asyncio
    async def test_runs_in_new_session(self, monkeypatch):
        """Test tools are spawned outside the terminal's process group."""
        calls = {}

        async def fake_run_process(cmd, **kwargs):
            calls.update(kwargs)
            return subprocess.CompletedProcess(cmd, 0, b"", b"")

        monkeypatch.setattr("encoreconv.tools.process.anyio.run_process", fake_run_process)

        await ProcessRunner().run("/bin/true")

        assert calls["start_new_session"] is True

    @pytest.mark.asyncio
    @pytest.mark.skipif(not hasattr(os, "getpgid"), reason="POSIX process groups only")
    async def test_child_process_group_differs(self, script_factory, temp_dir):
        """Test a terminal interrupt aimed at encoreconv's group misses the tool."""
        script = script_factory(temp_dir / "pgid", "#!/bin/sh\nps -o pgid= -p $$\n")
        result = await ProcessRunner().run(str(script))
        if not result.ok:
            pytest.skip("ps is not available")

        assert int(result.stdout.strip()) != os.getpgrp()

    @pytest.mark.asyncio
    async def test_cancelled_run_kills_tool(self, script_factory, temp_dir):
        """Test a run aborted by the CLI (second Ctrl+C) does not leave the tool behind."""
        pid_file = temp_dir / "pid"
        script = script_factory(
            temp_dir / "stuck", f"#!/bin/sh\necho $$ > {pid_file}\nexec sleep 30\n"
        )

        task = asyncio.create_task(ProcessRunner().run(str(script)))
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.01)
        pid = int(pid_file.read_text())
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    def test_stdout_bytes_default(self):
        assert ProcessResult("abc", "", 0).stdout_bytes == b"abc"
        assert ProcessResult("a�", "", 0, raw_stdout=b"a\xff").stdout_bytes == b"a\xff"

    @pytest.mark.asyncio
    async def test_missing_executable(self, temp_dir):
        missing = str(temp_dir / "does-not-exist")

        with pytest.raises(ToolUnreachableError) as exc_info:
            await ProcessRunner().run(missing)

        assert exc_info.value.executable == missing

    @pytest.mark.asyncio
    async def test_non_executable_file(self, temp_dir):
        path = temp_dir / "plain.txt"
        path.write_text("not a program", encoding="utf-8")

        with pytest.raises(ToolUnreachableError):
            await ProcessRunner().run(str(path))
