"""
Conversion of declarative tasks into executable TaskSpecs.

Command handling, in order:
    1. ``${workspaces}`` is replaced by the space-joined affected workspace
       names.
    2. The result is split on whitespace. There is no shell quoting, so a
       workspace name containing a space ends up as two arguments.
    3. A leading ``$0`` means "invoke this CLI again" and is replaced by the
       path of the running entry point relative to the task's working
       directory. Any other leading token is an external program name.
    4. ``--dry-run`` is appended when dry-run is active, and ``-v`` repeated
       once per verbosity level is appended to self-invocations.
"""

import os
import re
from collections.abc import Sequence

from repo_lifecycle.config.task_config import Task, task_command, task_meta
from repo_lifecycle.exceptions import ConfigurationError
from repo_lifecycle.graph.graph import WorkspaceGraph
from repo_lifecycle.graph.workspace import Workspace
from repo_lifecycle.tasks.models import RunOptions, TaskSpec

WORKSPACES_PLACEHOLDER = "${workspaces}"
SELF_INVOCATION = "$0"

_NON_WORD = re.compile(r"\W+", re.ASCII)


def slugify(value: str) -> str:
    """Replace runs of non-word characters with ``-`` and trim the ends.

    Example:
        >>> slugify("@onerepo/graph")
        'onerepo-graph'
    """
    return _NON_WORD.sub("-", value).strip("-")


class CommandSpecBuilder:
    """Build TaskSpecs for matched tasks.

    Attributes:
        graph: Graph whose root anchors working directories
        options: Invocation-wide CLI name, entry point, dry-run and verbosity
    """

    def __init__(self, graph: WorkspaceGraph, options: RunOptions) -> None:
        self.graph = graph
        self.options = options

    def working_directory(self, workspace: Workspace) -> str:
        """Workspace location relative to the graph root, ``.`` for the root."""
        relative = os.path.relpath(workspace.location, self.graph.root.location)
        return "." if relative == "." else relative.replace(os.sep, "/")

    def build(self, workspace: Workspace, task: Task, affected_names: Sequence[str]) -> TaskSpec:
        """Turn one task into a TaskSpec.

        Args:
            workspace: Owning workspace (the root for global tasks)
            task: Bare command string or structured task
            affected_names: Names substituted for ``${workspaces}``

        Raises:
            ConfigurationError: If the command is empty after substitution
        """
        command = task_command(task)
        tokens = command.replace(WORKSPACES_PLACEHOLDER, " ".join(affected_names)).split()
        if not tokens:
            raise ConfigurationError(f"Task command is empty after substitution: {command!r} in {workspace.name}")

        program, *args = tokens
        is_self = program == SELF_INVOCATION

        if self.options.dry_run:
            args.append("--dry-run")
        if is_self and self.options.verbosity > 0:
            args.append("-" + "v" * self.options.verbosity)

        label = self.options.cli_name + command[len(SELF_INVOCATION) :] if command.startswith(SELF_INVOCATION) else command

        return TaskSpec(
            name=f"Run `{label}` in `{workspace.name}`",
            cmd=workspace.relative(self.options.entry_point) if is_self else program,
            args=args,
            cwd=self.working_directory(workspace),
            meta={
                **task_meta(task),
                "name": workspace.name,
                "slug": slugify(workspace.name),
            },
        )
