"""repo-lifecycle: lifecycle task orchestration for monorepos.

Determines which workspaces are affected by a change, collects the tasks
each workspace registers for a lifecycle (``pre-commit``, ``build``,
``post-deploy``, ...) and runs them in ordered parallel and sequential
lanes.
"""

from repo_lifecycle.engine.runner import SubprocessRunner, TaskRunner
from repo_lifecycle.engine.scheduler import ScheduleResult, TaskScheduler, expand_lifecycle
from repo_lifecycle.enums import Lane, Lifecycle, Phase, ScheduleStatus
from repo_lifecycle.git.changes import ChangeSet, GitChangeSetProvider
from repo_lifecycle.graph.graph import WorkspaceGraph
from repo_lifecycle.graph.manifests import build_graph
from repo_lifecycle.graph.workspace import Workspace
from repo_lifecycle.tasks.models import RunOptions, TaskOutcome, TaskSpec

__version__ = "0.1.0"

__all__ = [
    "ChangeSet",
    "GitChangeSetProvider",
    "Lane",
    "Lifecycle",
    "Phase",
    "RunOptions",
    "ScheduleResult",
    "ScheduleStatus",
    "SubprocessRunner",
    "TaskOutcome",
    "TaskRunner",
    "TaskScheduler",
    "TaskSpec",
    "Workspace",
    "WorkspaceGraph",
    "build_graph",
    "expand_lifecycle",
    "__version__",
]
