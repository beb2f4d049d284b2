"""CLI entry point for repo-lifecycle."""

import asyncio
import json
import sys
from pathlib import Path

import click
import structlog

from repo_lifecycle.config.settings import LifecycleSettings
from repo_lifecycle.engine.runner import SubprocessRunner
from repo_lifecycle.engine.scheduler import ScheduleResult, TaskScheduler
from repo_lifecycle.enums import Lifecycle
from repo_lifecycle.exceptions import ConfigurationError, RepoLifecycleError
from repo_lifecycle.git.changes import GitChangeSetProvider
from repo_lifecycle.graph.manifests import build_graph
from repo_lifecycle.tasks.models import RunOptions
from repo_lifecycle.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Repository root containing the root package manifest",
)
@click.option("--config", "config_path", default=None, help="Path to settings file")
@click.option("-v", "--verbose", "verbosity", count=True, help="Increase log verbosity (repeatable)")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(
    ctx: click.Context,
    root: Path,
    config_path: str | None,
    verbosity: int,
    quiet: bool,
    json_logs: bool,
) -> None:
    """repo-lifecycle: Run lifecycle tasks across monorepo workspaces."""
    configure_logging(-1 if quiet else verbosity, json_logs)

    root = root.resolve()
    try:
        settings = LifecycleSettings.load(root, config_path)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {
        "root": root,
        "settings": settings,
        "verbosity": 0 if quiet else verbosity,
    }


@cli.command()
@click.option(
    "-c",
    "--lifecycle",
    required=True,
    type=click.Choice(Lifecycle.values()),
    help="Lifecycle to run; bare events also run their pre- and post- phases",
)
@click.option("--list", "list_only", is_flag=True, help="Print the tasks as JSON instead of running them")
@click.option("--ignore", multiple=True, help="Glob of changed files to disregard (repeatable)")
@click.option("-w", "--workspaces", multiple=True, help="Workspace to treat as changed (repeatable)")
@click.option("--from-ref", default=None, help="Base revision for change detection")
@click.option("--through-ref", default=None, help="Target revision; defaults to the working tree")
@click.option("--dry-run", is_flag=True, help="Pass --dry-run to every task")
@click.pass_context
def tasks(
    ctx: click.Context,
    lifecycle: str,
    list_only: bool,
    ignore: tuple[str, ...],
    workspaces: tuple[str, ...],
    from_ref: str | None,
    through_ref: str | None,
    dry_run: bool,
) -> None:
    """Run or list the tasks of a lifecycle for affected workspaces."""
    options = RunOptions(
        cli_name=ctx.find_root().info_name or "repo-lifecycle",
        entry_point=sys.argv[0],
        dry_run=dry_run or ctx.obj["settings"].dry_run,
        verbosity=ctx.obj["verbosity"],
    )

    try:
        result = asyncio.run(
            _run_tasks(
                ctx.obj["root"],
                ctx.obj["settings"],
                options,
                lifecycle,
                list_only=list_only,
                ignore=list(ignore),
                workspaces=list(workspaces),
                from_ref=from_ref,
                through_ref=through_ref,
            )
        )
    except RepoLifecycleError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("tasks_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    if list_only:
        click.echo(result.to_json())
        return

    if result.exit_code:
        sys.exit(result.exit_code)


@cli.command()
@click.option("--affected", is_flag=True, help="Print the affected set of the given workspaces")
@click.option("-w", "--workspaces", multiple=True, help="Seed workspace (repeatable)")
@click.pass_context
def graph(ctx: click.Context, affected: bool, workspaces: tuple[str, ...]) -> None:
    """Print workspace names as JSON."""
    settings = ctx.obj["settings"]
    try:
        workspace_graph = build_graph(
            ctx.obj["root"],
            task_config_filename=settings.task_config_filename,
            fail_on_cycles=settings.fail_on_cycles,
        )
        if affected:
            selected = workspace_graph.affected(workspace_graph.get_all(workspaces))
        elif workspaces:
            selected = workspace_graph.get_all(workspaces)
        else:
            selected = workspace_graph.workspaces
    except RepoLifecycleError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("graph_error", exc_info=True)
        sys.exit(1)

    click.echo(json.dumps([ws.name for ws in selected]))


async def _run_tasks(
    root: Path,
    settings: LifecycleSettings,
    options: RunOptions,
    lifecycle: str,
    *,
    list_only: bool,
    ignore: list[str],
    workspaces: list[str],
    from_ref: str | None,
    through_ref: str | None,
) -> ScheduleResult:
    """Build the graph and change set, then hand over to the scheduler."""
    workspace_graph = build_graph(
        root,
        task_config_filename=settings.task_config_filename,
        fail_on_cycles=settings.fail_on_cycles,
    )

    provider = GitChangeSetProvider(root, default_from_ref=settings.default_from_ref)
    changes = provider.get_modified_files(from_ref, through_ref)

    ignore_globs = [*settings.ignore, *ignore]
    if workspaces:
        requested = workspace_graph.get_all(workspaces)
    else:
        requested = workspace_graph.owners_of(changes.without(ignore_globs).all_files())

    runner = SubprocessRunner(root, max_concurrency=settings.max_concurrency, timeout=settings.task_timeout)
    scheduler = TaskScheduler(workspace_graph, runner, options)

    log.info(
        "tasks_requested",
        lifecycle=lifecycle,
        requested=[ws.name for ws in requested],
        list_only=list_only,
    )
    return await scheduler.schedule(
        lifecycle,
        requested,
        changes,
        global_tasks=settings.global_tasks,
        ignore=ignore_globs,
        list_only=list_only,
    )
