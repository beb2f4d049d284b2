"""Enumerations for repo-lifecycle events, phases, and lanes."""

from enum import Enum


class Lifecycle(str, Enum):
    """Standard lifecycle keys a task can be registered under.

    Each of the six standard events (commit, checkout, merge, build, deploy,
    publish) comes in three phases: ``pre-<event>``, ``<event>`` and
    ``post-<event>``. Task configuration files may also declare custom events
    using the same naming convention, but only these eighteen values are
    accepted on the command line.
    """

    PRE_COMMIT = "pre-commit"
    COMMIT = "commit"
    POST_COMMIT = "post-commit"
    PRE_CHECKOUT = "pre-checkout"
    CHECKOUT = "checkout"
    POST_CHECKOUT = "post-checkout"
    PRE_MERGE = "pre-merge"
    MERGE = "merge"
    POST_MERGE = "post-merge"
    PRE_BUILD = "pre-build"
    BUILD = "build"
    POST_BUILD = "post-build"
    PRE_DEPLOY = "pre-deploy"
    DEPLOY = "deploy"
    POST_DEPLOY = "post-deploy"
    PRE_PUBLISH = "pre-publish"
    PUBLISH = "publish"
    POST_PUBLISH = "post-publish"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        """Return every lifecycle key in declaration order."""
        return [member.value for member in cls]


class Phase(str, Enum):
    """Stages a bare lifecycle expands into, in execution order."""

    PRE = "pre"
    RUN = "run"
    POST = "post"

    def __str__(self) -> str:
        return self.value


class Lane(str, Enum):
    """Execution groupings within a phase.

    Parallel lanes run before sequential lanes of the same phase.
    """

    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"

    def __str__(self) -> str:
        return self.value


class ChangeType(str, Enum):
    """Kinds of file changes reported between two revisions."""

    ADDED = "added"
    MODIFIED = "modified"
    MOVED = "moved"
    DELETED = "deleted"


class LoadStatus(str, Enum):
    """Classified outcome of loading a workspace task configuration."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


class ScheduleStatus(str, Enum):
    """Overall outcome of a scheduler invocation."""

    NO_TASKS = "no_tasks"
    LISTED = "listed"
    COMPLETED = "completed"
