"""Tests for repo_lifecycle.engine.runner module.

These tests spawn real (trivial) POSIX processes.
"""

import asyncio
from pathlib import Path

import pytest

from repo_lifecycle.engine.runner import SubprocessRunner
from repo_lifecycle.engine.scheduler import TaskScheduler
from repo_lifecycle.enums import ScheduleStatus
from repo_lifecycle.git.changes import ChangeSet
from repo_lifecycle.tasks.models import RunOptions, TaskSpec


def sh(script: str, cwd: str = ".") -> TaskSpec:
    return TaskSpec(name=f"Run `{script}`", cmd="sh", args=["-c", script], cwd=cwd)


class TestSubprocessRunnerRun:
    """Tests for SubprocessRunner.run."""

    @pytest.mark.asyncio
    async def test_success(self, tmp_path):
        outcome = await SubprocessRunner(tmp_path).run(sh("echo hello"))

        assert outcome.success
        assert outcome.exit_code == 0
        assert outcome.stdout.strip() == "hello"
        assert outcome.error is None
        assert outcome.duration >= 0

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_failed_outcome(self, tmp_path):
        outcome = await SubprocessRunner(tmp_path).run(sh("echo oops >&2; exit 3"))

        assert not outcome.success
        assert outcome.exit_code == 3
        assert outcome.stderr.strip() == "oops"

    @pytest.mark.asyncio
    async def test_runs_in_spec_working_directory(self, tmp_path):
        (tmp_path / "modules" / "core").mkdir(parents=True)

        outcome = await SubprocessRunner(tmp_path).run(sh("pwd", cwd="modules/core"))

        assert Path(outcome.stdout.strip()).resolve() == (tmp_path / "modules" / "core").resolve()

    @pytest.mark.asyncio
    async def test_missing_program(self, tmp_path):
        spec = TaskSpec(name="missing", cmd="definitely-not-a-real-program-9f3a")

        outcome = await SubprocessRunner(tmp_path).run(spec)

        assert not outcome.success
        assert outcome.exit_code is None
        assert "could not start" in outcome.error

    @pytest.mark.asyncio
    async def test_timeout(self, tmp_path):
        outcome = await SubprocessRunner(tmp_path, timeout=0.2).run(sh("exec sleep 5"))

        assert not outcome.success
        assert "timed out" in outcome.error
        assert outcome.duration < 5


class TestSubprocessRunnerBatch:
    """Tests for SubprocessRunner.batch."""

    @pytest.mark.asyncio
    async def test_outcomes_in_input_order(self, tmp_path):
        outcomes = await SubprocessRunner(tmp_path).batch([sh("exit 0"), sh("exit 1"), sh("exit 0")])

        assert [outcome.success for outcome in outcomes] == [True, False, True]

    @pytest.mark.asyncio
    async def test_empty_batch(self, tmp_path):
        assert await SubprocessRunner(tmp_path).batch([]) == []

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, tmp_path):
        runner = SubprocessRunner(tmp_path, max_concurrency=2)
        active = 0
        peak = 0

        async def fake_run(spec):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return None

        runner.run = fake_run
        await runner.batch([sh("true") for _ in range(5)])

        assert peak == 2


class TestSchedulerWithSubprocesses:
    """A parallel failure does not prevent sibling or later tasks."""

    @pytest.mark.asyncio
    async def test_parallel_failure_isolated(self, graph, tasks_writer, repo_root):
        tasks_writer(
            graph.get("@scope/core").location,
            {
                "build": {
                    "parallel": ["touch parallel-ok", "false", "touch parallel-also-ok"],
                    "sequential": ["touch sequential-ok"],
                },
                "post-build": {"sequential": ["touch post-ok"]},
            },
        )
        scheduler = TaskScheduler(
            graph,
            SubprocessRunner(repo_root),
            RunOptions(entry_point=str(repo_root / "one")),
        )

        result = await scheduler.schedule("build", [graph.get("@scope/core")], ChangeSet())

        core = graph.get("@scope/core").location
        assert result.status == ScheduleStatus.COMPLETED
        assert result.exit_code == 1
        assert [outcome.spec.cmd for outcome in result.failures] == ["false"]
        for marker in ("parallel-ok", "parallel-also-ok", "sequential-ok", "post-ok"):
            assert (core / marker).exists()
