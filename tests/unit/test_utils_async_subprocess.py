"""Tests for repo_lifecycle.utils.async_subprocess module."""

import subprocess
from pathlib import Path

import pytest

from repo_lifecycle.utils.async_subprocess import run_command


class TestRunCommandBasic:
    """Test basic functionality of run_command."""

    @pytest.mark.asyncio
    async def test_run_simple_command(self):
        """Test running a simple command that succeeds."""
        stdout, stderr, returncode = await run_command("echo", "hello", "world")

        assert stdout.strip() == "hello world"
        assert stderr == ""
        assert returncode == 0

    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_interpreted(self):
        """Placeholders and globs reach the program verbatim."""
        stdout, _, _ = await run_command("echo", "$HOME", "*")

        assert stdout.strip() == "$HOME *"

    @pytest.mark.asyncio
    async def test_run_command_captures_stderr(self):
        """Test run_command captures stderr output."""
        _, stderr, _ = await run_command("sh", "-c", "echo error >&2")

        assert stderr.strip() == "error"

    @pytest.mark.asyncio
    async def test_run_command_with_cwd(self, tmp_path):
        """Test run_command honours the working directory."""
        stdout, _, _ = await run_command("pwd", cwd=tmp_path)

        assert Path(stdout.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_run_command_with_env(self):
        """Test run_command passes an explicit environment."""
        stdout, _, _ = await run_command("sh", "-c", "echo $LIFECYCLE_VALUE", env={"LIFECYCLE_VALUE": "42"})

        assert stdout.strip() == "42"


class TestRunCommandCheckOption:
    """Test run_command with check option."""

    @pytest.mark.asyncio
    async def test_check_true_raises_on_failure(self):
        """Test run_command raises CalledProcessError when check=True."""
        with pytest.raises(subprocess.CalledProcessError) as exc_info:
            await run_command("sh", "-c", "echo out; echo err >&2; exit 2")

        assert exc_info.value.returncode == 2
        assert exc_info.value.output.strip() == "out"
        assert exc_info.value.stderr.strip() == "err"

    @pytest.mark.asyncio
    async def test_check_false_returns_code(self):
        """Test run_command returns the exit code when check=False."""
        _, _, returncode = await run_command("false", check=False)

        assert returncode != 0


class TestRunCommandFailures:
    """Test timeouts and programs that cannot start."""

    @pytest.mark.asyncio
    async def test_timeout_raises_timeout_error(self):
        """Test run_command raises TimeoutError and kills the process."""
        with pytest.raises(TimeoutError):
            await run_command("sleep", "5", timeout=0.1)

    @pytest.mark.asyncio
    async def test_missing_program(self):
        """Test a missing program surfaces as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await run_command("definitely-not-a-real-program-9f3a")

    @pytest.mark.asyncio
    async def test_capture_output_false(self):
        """Test output is not captured when capture_output=False."""
        stdout, stderr, returncode = await run_command("true", capture_output=False)

        assert (stdout, stderr, returncode) == ("", "", 0)

    @pytest.mark.asyncio
    async def test_binary_output_replacement(self):
        """Test invalid UTF-8 is replaced rather than raising."""
        stdout, _, _ = await run_command("printf", "\\377ok")

        assert stdout.endswith("ok")
        assert "�" in stdout
