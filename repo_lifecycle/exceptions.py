"""Custom exception hierarchy for repo-lifecycle.

Exception Hierarchy:
    RepoLifecycleError (base)
    ├── ConfigurationError
    ├── ManifestError
    ├── WorkspaceNotFoundError
    ├── DependencyCycleError
    ├── GitOperationError
    └── TaskExecutionError

Individual task failures are never raised by the scheduler; they are
collected as outcome values. TaskExecutionError only reports the aggregate
after every lane has finished.

Example Usage:
    >>> from repo_lifecycle.exceptions import ConfigurationError
    >>> try:
    ...     settings = LifecycleSettings.from_yaml(path)
    ... except ConfigurationError as e:
    ...     print(e.message)
"""

from collections.abc import Sequence


class RepoLifecycleError(Exception):
    """Base exception for all repo-lifecycle errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(RepoLifecycleError):
    """Configuration-related errors.

    Examples:
        - Settings file not found or not a YAML mapping
        - Invalid settings values
        - Task configuration file exists but cannot be read
    """

    pass


class ManifestError(RepoLifecycleError):
    """Workspace manifest errors.

    Raised when a package manifest is missing, is not valid JSON, lacks a
    name, or when two workspaces claim the same name.

    Attributes:
        path: Manifest path that failed, if known
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        full_message = message if path is None else f"{message} (manifest: {path})"
        super().__init__(full_message)
        self.message = message


class WorkspaceNotFoundError(RepoLifecycleError):
    """A requested workspace name or alias is not part of the graph."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Workspace not found: {name}")


class DependencyCycleError(RepoLifecycleError):
    """Workspace dependencies form one or more cycles.

    Only raised when cycles are configured to be fatal; by default they are
    reported as warnings and traversal still terminates.

    Attributes:
        cycles: Each cycle as an ordered list of workspace names
    """

    def __init__(self, cycles: Sequence[Sequence[str]]) -> None:
        self.cycles = [list(cycle) for cycle in cycles]
        rendered = "; ".join(" -> ".join([*cycle, cycle[0]]) for cycle in self.cycles)
        super().__init__(f"Workspace dependency cycle detected: {rendered}")


class GitOperationError(RepoLifecycleError):
    """Git operation errors.

    Examples:
        - Directory is not a Git repository
        - Revision reference cannot be resolved
        - Diff could not be computed
    """

    pass


class TaskExecutionError(RepoLifecycleError):
    """One or more tasks failed during a scheduler invocation.

    Attributes:
        failed: Names of the task specs that failed
        lifecycle: Lifecycle that was being run
    """

    def __init__(self, failed: Sequence[str], lifecycle: str | None = None) -> None:
        self.failed = list(failed)
        self.lifecycle = lifecycle

        message = f"{len(self.failed)} task(s) failed"
        if lifecycle:
            message = f"{message} (lifecycle: {lifecycle})"
        super().__init__(message)
