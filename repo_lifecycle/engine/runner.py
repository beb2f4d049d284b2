"""
Subprocess execution of TaskSpecs.

The runner is the only component that spawns processes. ``run`` executes a
single spec; ``batch`` executes a group concurrently, bounded by a
semaphore, and returns once every member has finished. Both return
TaskOutcome values: a non-zero exit, a program that cannot be started, or a
timeout is reported as a failed outcome, never raised.

Per-task timeouts are enforced here, not by the scheduler.
"""

import asyncio
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import structlog

from repo_lifecycle.tasks.models import TaskOutcome, TaskSpec
from repo_lifecycle.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)

OUTPUT_TAIL_CHARS = 4000


def _tail(output: str) -> str:
    return output[-OUTPUT_TAIL_CHARS:]


class TaskRunner(Protocol):
    """Collaborator interface the scheduler executes lanes through."""

    async def run(self, spec: TaskSpec) -> TaskOutcome: ...

    async def batch(self, specs: Sequence[TaskSpec]) -> list[TaskOutcome]: ...


class SubprocessRunner:
    """Run TaskSpecs as child processes of the current interpreter.

    Attributes:
        root: Repository root; each spec's cwd is resolved against it
        max_concurrency: Upper bound of concurrently running batch members
        timeout: Seconds before a process is killed, or None
    """

    def __init__(self, root: Path, max_concurrency: int = 4, timeout: float | None = None) -> None:
        self.root = Path(root)
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrency)

    async def run(self, spec: TaskSpec) -> TaskOutcome:
        """Execute one spec and wait for it to finish.

        Args:
            spec: Task to execute

        Returns:
            TaskOutcome describing the exit status and captured output
        """
        cwd = self.root / spec.cwd
        start_time = time.monotonic()
        log.info("task_started", task=spec.name, cwd=spec.cwd)

        try:
            stdout, stderr, exit_code = await run_command(
                *spec.argv,
                cwd=cwd,
                check=False,
                timeout=self.timeout,
            )
        except TimeoutError:
            outcome = TaskOutcome(
                spec=spec,
                success=False,
                error=f"timed out after {self.timeout}s",
                duration=time.monotonic() - start_time,
            )
            log.error("task_timeout", task=spec.name, timeout=self.timeout)
            return outcome
        except OSError as e:
            outcome = TaskOutcome(
                spec=spec,
                success=False,
                error=f"could not start {spec.cmd}: {e}",
                duration=time.monotonic() - start_time,
            )
            log.error("task_spawn_failed", task=spec.name, cmd=spec.cmd, error=str(e))
            return outcome

        outcome = TaskOutcome(
            spec=spec,
            success=exit_code == 0,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration=time.monotonic() - start_time,
        )

        if outcome.success:
            log.info("task_completed", task=spec.name, duration=round(outcome.duration, 3))
        else:
            log.error(
                "task_failed",
                task=spec.name,
                exit_code=exit_code,
                stdout=_tail(stdout),
                stderr=_tail(stderr),
            )
        return outcome

    async def batch(self, specs: Sequence[TaskSpec]) -> list[TaskOutcome]:
        """Execute specs concurrently and wait for all of them.

        Returns:
            Outcomes in the same order as specs
        """

        async def limited(spec: TaskSpec) -> TaskOutcome:
            async with self.semaphore:
                return await self.run(spec)

        log.debug("batch_started", count=len(specs), max_concurrency=self.max_concurrency)
        return list(await asyncio.gather(*(limited(spec) for spec in specs)))
