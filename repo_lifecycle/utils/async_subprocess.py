"""Async subprocess utilities.

Non-blocking subprocess execution for the task runner and anything else
that needs to spawn programs from inside the event loop. Commands are
always executed without a shell: the first argument is the program and
the rest are passed verbatim.

Example:
    >>> from repo_lifecycle.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("git", "status", cwd="/repo", check=False)
    >>> if code == 0:
    ...     print(stdout)

Thread Safety:
    Safe to call concurrently from multiple async tasks. Each call creates
    an independent subprocess with no shared state.
"""

import asyncio
import subprocess
from collections.abc import Mapping
from pathlib import Path


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    timeout: float | None = None,
    capture_output: bool = True,
) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Args:
        *args: Program followed by its arguments.
        cwd: Working directory for the process. None uses the current
            working directory of the parent process.
        env: Full environment for the child process. None inherits the
            parent environment.
        check: If True, raise CalledProcessError on a non-zero exit code.
        timeout: Maximum seconds to wait. The process is killed and
            TimeoutError is raised when exceeded. None waits indefinitely.
        capture_output: If True, capture stdout and stderr as strings. If
            False, output goes to the parent's streams and the returned
            strings are empty.

    Returns:
        Tuple of (stdout, stderr, return_code). Output is decoded as UTF-8
        with replacement for invalid bytes.

    Raises:
        subprocess.CalledProcessError: If check=True and the command exits
            non-zero.
        TimeoutError: If timeout is exceeded. The process is killed first.
        FileNotFoundError: If the program cannot be found.
        PermissionError: If the program cannot be executed.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=asyncio.subprocess.PIPE if capture_output else None,
        stderr=asyncio.subprocess.PIPE if capture_output else None,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout,
        )
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")

    if check and process.returncode != 0:
        raise subprocess.CalledProcessError(
            process.returncode,
            args,
            stdout,
            stderr,
        )

    return stdout, stderr, process.returncode or 0
