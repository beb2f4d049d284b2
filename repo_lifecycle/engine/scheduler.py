"""
Task lifecycle scheduler.

Given a lifecycle key, the scheduler decides which tasks run, in which order
and with what isolation, then executes them through a TaskRunner and
aggregates the outcomes.

Lifecycle Expansion:
    - ``build`` runs three phases: pre (``pre-build``), run (``build``) and
      post (``post-build``)
    - ``pre-build`` runs only the pre phase, with tasks under ``pre-build``
    - ``post-build`` runs only the post phase, with tasks under ``post-build``

Collection:
    For every phase, global task configurations are collected first (always
    forced, never glob matched), then every workspace of the graph in graph
    order. A workspace task is forced when the workspace is affected, or
    when it is a bare string declared on the root. Globbed tasks ignore the
    force flag and run only when a changed file matches.

Execution Order:
    parallel-pre, sequential-pre, parallel-run, sequential-run,
    parallel-post, sequential-post. A parallel lane runs as one concurrent
    batch; a sequential lane runs one task at a time in collection order.
    A failing task never stops other tasks or later lanes. The overall
    result fails if any task failed.

Example:
    >>> scheduler = TaskScheduler(graph, SubprocessRunner(graph.root.location))
    >>> result = await scheduler.schedule("build", requested, changes)
    >>> result.exit_code
    0
"""

import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from repo_lifecycle.config.task_config import Task, TaskConfig, TaskSet
from repo_lifecycle.engine.runner import TaskRunner
from repo_lifecycle.enums import Lane, Phase, ScheduleStatus
from repo_lifecycle.exceptions import TaskExecutionError
from repo_lifecycle.git.changes import ChangeSet
from repo_lifecycle.graph.graph import WorkspaceGraph
from repo_lifecycle.graph.workspace import Workspace
from repo_lifecycle.tasks.matcher import FileChangeMatcher, filter_ignored
from repo_lifecycle.tasks.models import RunOptions, TaskOutcome, TaskSpec
from repo_lifecycle.tasks.resolver import TaskResolver
from repo_lifecycle.tasks.spec_builder import CommandSpecBuilder

log = structlog.get_logger(__name__)

LANE_ORDER: tuple[tuple[Phase, Lane], ...] = (
    (Phase.PRE, Lane.PARALLEL),
    (Phase.PRE, Lane.SEQUENTIAL),
    (Phase.RUN, Lane.PARALLEL),
    (Phase.RUN, Lane.SEQUENTIAL),
    (Phase.POST, Lane.PARALLEL),
    (Phase.POST, Lane.SEQUENTIAL),
)


def expand_lifecycle(lifecycle: str) -> list[tuple[Phase, str]]:
    """Phases to run for a lifecycle and the key each phase resolves.

    Example:
        >>> expand_lifecycle("commit")
        [(Phase.PRE, 'pre-commit'), (Phase.RUN, 'commit'), (Phase.POST, 'post-commit')]
        >>> expand_lifecycle("pre-commit")
        [(Phase.PRE, 'pre-commit')]
    """
    lifecycle = str(lifecycle)
    if lifecycle.startswith("pre-"):
        return [(Phase.PRE, lifecycle)]
    if lifecycle.startswith("post-"):
        return [(Phase.POST, lifecycle)]
    return [
        (Phase.PRE, f"pre-{lifecycle}"),
        (Phase.RUN, lifecycle),
        (Phase.POST, f"post-{lifecycle}"),
    ]


@dataclass
class LaneSet:
    """Collected TaskSpecs per (phase, lane)."""

    lanes: dict[tuple[Phase, Lane], list[TaskSpec]] = field(
        default_factory=lambda: {key: [] for key in LANE_ORDER}
    )

    def add(self, phase: Phase, lane: Lane, spec: TaskSpec) -> None:
        self.lanes[(phase, lane)].append(spec)

    def get(self, phase: Phase, lane: Lane) -> list[TaskSpec]:
        return list(self.lanes[(phase, lane)])

    def ordered(self) -> list[tuple[Phase, Lane, list[TaskSpec]]]:
        """Lanes in execution order, including empty ones."""
        return [(phase, lane, list(self.lanes[(phase, lane)])) for phase, lane in LANE_ORDER]

    def all_specs(self) -> list[TaskSpec]:
        """Concatenation of every lane in execution order."""
        return [spec for _, _, specs in self.ordered() for spec in specs]

    def __len__(self) -> int:
        return sum(len(specs) for specs in self.lanes.values())


@dataclass
class ScheduleResult:
    """Outcome of one scheduler invocation.

    Attributes:
        status: NO_TASKS, LISTED, or COMPLETED
        lifecycle: Lifecycle that was requested
        tasks: Collected specs in execution order
        outcomes: One outcome per executed spec; empty unless COMPLETED
    """

    status: ScheduleStatus
    lifecycle: str
    tasks: list[TaskSpec] = field(default_factory=list)
    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[TaskOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_json(self) -> str:
        """Serialized task list as written by list mode."""
        return json.dumps([spec.to_dict() for spec in self.tasks])

    def raise_for_failures(self) -> None:
        """Raise TaskExecutionError if any task failed."""
        if self.failures:
            raise TaskExecutionError([outcome.spec.name for outcome in self.failures], lifecycle=self.lifecycle)


class TaskScheduler:
    """Collect and execute lifecycle tasks across a workspace graph.

    Attributes:
        graph: Workspace graph; read-only during an invocation
        runner: Collaborator that executes TaskSpecs
        options: CLI name, entry point, dry-run and verbosity
        resolver: Per-workspace task lookup
        matcher: Force/glob decision per task
        builder: TaskSpec construction
    """

    def __init__(
        self,
        graph: WorkspaceGraph,
        runner: TaskRunner,
        options: RunOptions | None = None,
        *,
        resolver: TaskResolver | None = None,
        matcher: FileChangeMatcher | None = None,
        builder: CommandSpecBuilder | None = None,
    ) -> None:
        self.graph = graph
        self.runner = runner
        self.options = options or RunOptions()
        self.resolver = resolver or TaskResolver()
        self.matcher = matcher or FileChangeMatcher()
        self.builder = builder or CommandSpecBuilder(graph, self.options)

    def collect(
        self,
        lifecycle: str,
        affected: Sequence[Workspace],
        files: Sequence[str],
        global_tasks: Sequence[TaskConfig] = (),
    ) -> LaneSet:
        """Resolve, match and build every task for a lifecycle.

        Args:
            lifecycle: Requested lifecycle key
            affected: Affected workspaces
            files: Changed files after ignore filtering
            global_tasks: Root-level task configurations

        Returns:
            LaneSet with specs in collection order per lane
        """
        lanes = LaneSet()
        phases = expand_lifecycle(lifecycle)
        affected_names = [ws.name for ws in affected]
        affected_set = set(affected_names)

        for config in global_tasks:
            for phase, key in phases:
                task_set = self.resolver.get_global_tasks(config, key)
                if task_set is not None:
                    self._add_tasks(lanes, phase, self.graph.root, task_set, lambda task: True, affected_names)

        for workspace in self.graph:
            log.debug("looking_for_tasks", workspace=workspace.name)
            cwd = workspace.relative_location
            is_affected = workspace.name in affected_set

            def should_run(
                task: Task,
                workspace: Workspace = workspace,
                cwd: str = cwd,
                is_affected: bool = is_affected,
            ) -> bool:
                force = (isinstance(task, str) and workspace.is_root) or is_affected
                return self.matcher.should_run(force, task, files, cwd)

            for phase, key in phases:
                task_set = self.resolver.get_tasks(workspace, key)
                self._add_tasks(lanes, phase, workspace, task_set, should_run, affected_names)

        return lanes

    def _add_tasks(
        self,
        lanes: LaneSet,
        phase: Phase,
        workspace: Workspace,
        task_set: TaskSet,
        should_run: Callable[[Task], bool],
        affected_names: Sequence[str],
    ) -> None:
        for lane, tasks in ((Lane.SEQUENTIAL, task_set.sequential), (Lane.PARALLEL, task_set.parallel)):
            for task in tasks:
                if should_run(task):
                    lanes.add(phase, lane, self.builder.build(workspace, task, affected_names))

    async def schedule(
        self,
        lifecycle: str,
        requested: Iterable[Workspace],
        changes: ChangeSet,
        *,
        global_tasks: Sequence[TaskConfig] = (),
        ignore: Sequence[str] = (),
        list_only: bool = False,
    ) -> ScheduleResult:
        """Run (or list) every task selected for a lifecycle.

        Args:
            lifecycle: Requested lifecycle key
            requested: Seed workspaces for the affected set
            changes: Files changed between the compared revisions
            global_tasks: Root-level task configurations, always forced
            ignore: Globs of changed files to disregard
            list_only: Collect without executing

        Returns:
            ScheduleResult. NO_TASKS when nothing changed and nothing is
            affected, or when nothing matched in execution mode.
        """
        lifecycle = str(lifecycle)
        affected = self.graph.affected(requested)
        files = filter_ignored(changes.all_files(), ignore)

        if not files and not affected:
            log.warning("no_tasks_to_run", lifecycle=lifecycle, reason="no changes")
            return ScheduleResult(status=ScheduleStatus.NO_TASKS, lifecycle=lifecycle)

        log.info(
            "collecting_tasks",
            lifecycle=lifecycle,
            affected=[ws.name for ws in affected],
            changed_files=len(files),
        )
        lanes = self.collect(lifecycle, affected, files, global_tasks)

        if list_only:
            return ScheduleResult(status=ScheduleStatus.LISTED, lifecycle=lifecycle, tasks=lanes.all_specs())

        if not lanes:
            log.warning("no_tasks_to_run", lifecycle=lifecycle, reason="no matching tasks")
            return ScheduleResult(status=ScheduleStatus.NO_TASKS, lifecycle=lifecycle)

        outcomes = await self._execute(lanes)
        result = ScheduleResult(
            status=ScheduleStatus.COMPLETED,
            lifecycle=lifecycle,
            tasks=lanes.all_specs(),
            outcomes=outcomes,
        )

        if result.failures:
            log.error(
                "tasks_failed",
                lifecycle=lifecycle,
                failed=[outcome.spec.name for outcome in result.failures],
                total=len(outcomes),
            )
        else:
            log.info("tasks_completed", lifecycle=lifecycle, total=len(outcomes))
        return result

    async def _execute(self, lanes: LaneSet) -> list[TaskOutcome]:
        outcomes: list[TaskOutcome] = []
        for phase, lane, specs in lanes.ordered():
            if not specs:
                continue
            log.info("lane_started", phase=str(phase), lane=str(lane), count=len(specs))
            if lane == Lane.PARALLEL:
                outcomes.extend(await self._run_batch(specs))
            else:
                for spec in specs:
                    outcomes.append(await self._run_one(spec))
        return outcomes

    async def _run_batch(self, specs: list[TaskSpec]) -> list[TaskOutcome]:
        try:
            return await self.runner.batch(specs)
        except Exception as e:
            log.error("batch_failed", count=len(specs), error=str(e), exc_info=True)
            return [TaskOutcome(spec=spec, success=False, error=str(e)) for spec in specs]

    async def _run_one(self, spec: TaskSpec) -> TaskOutcome:
        try:
            return await self.runner.run(spec)
        except Exception as e:
            log.error("task_exception", task=spec.name, error=str(e), exc_info=True)
            return TaskOutcome(spec=spec, success=False, error=str(e))
