"""Task resolution per workspace and lifecycle key."""

import structlog

from repo_lifecycle.config.task_config import TaskConfig, TaskSet
from repo_lifecycle.enums import LoadStatus
from repo_lifecycle.graph.workspace import Workspace

log = structlog.get_logger(__name__)


class TaskResolver:
    """Resolve the parallel and sequential task lists of a lifecycle key.

    Workspace task configurations are read once per workspace and cached on
    the Workspace. A missing file means the workspace declares no tasks; an
    invalid file is reported once and then treated the same way.
    """

    def __init__(self) -> None:
        self._reported: set[str] = set()

    def get_tasks(self, workspace: Workspace, lifecycle: str) -> TaskSet:
        """Tasks declared by a workspace for a lifecycle key.

        Args:
            workspace: Workspace whose configuration is consulted
            lifecycle: Exact key to look up (no pre-/post- expansion)

        Returns:
            TaskSet; both lanes are empty when the key is absent or the
            configuration is missing or invalid

        Raises:
            ConfigurationError: If the configuration exists but cannot be read
        """
        result = workspace.load_tasks()
        if result.status == LoadStatus.INVALID and workspace.name not in self._reported:
            self._reported.add(workspace.name)
            log.warning(
                "workspace_tasks_ignored",
                workspace=workspace.name,
                path=str(result.path),
                reason=result.error,
            )
        return workspace.get_tasks(lifecycle)

    @staticmethod
    def get_global_tasks(config: TaskConfig, lifecycle: str) -> TaskSet | None:
        """Tasks from a root-level configuration not tied to a workspace.

        Returns None when the key is absent so callers can skip it entirely.
        """
        return config.get(lifecycle)
