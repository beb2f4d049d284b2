"""
File-change matching for tasks.

Pattern-less tasks are graph driven: they run when forced, i.e. when their
workspace is affected (or, for bare strings, when declared on the root).
Tasks with a glob are file driven: they run when at least one changed file
matches the glob joined to the workspace directory, whatever the force flag
says. The two conditions are never combined.

Globs follow minimatch rules via wcmatch: ``*`` stops at ``/``, ``**``
spans any number of directories (including none), ``{a,b}`` braces and
extended globs expand, and dotfiles only match an explicit leading dot.
"""

import posixpath
from collections.abc import Iterable, Sequence

import structlog
from wcmatch import glob as wcglob

from repo_lifecycle.config.task_config import Task, task_glob

log = structlog.get_logger(__name__)

GLOB_FLAGS = wcglob.GLOBSTAR | wcglob.BRACE | wcglob.EXTGLOB


def matches_glob(path: str, pattern: str) -> bool:
    """Check a repository-relative path against a glob."""
    return wcglob.globmatch(path, pattern, flags=GLOB_FLAGS)


def filter_ignored(files: Iterable[str], ignore: Sequence[str]) -> list[str]:
    """Drop files matching any ignore glob, keeping order."""
    if not ignore:
        return list(files)
    kept = [file for file in files if not any(matches_glob(file, pattern) for pattern in ignore)]
    return kept


class FileChangeMatcher:
    """Decide whether an individual task should run."""

    def should_run(self, force: bool, task: Task, changed_files: Sequence[str], workspace_cwd: str) -> bool:
        """Apply the force flag or the task's glob.

        Args:
            force: Graph-driven decision for pattern-less tasks
            task: Bare command string or structured task
            changed_files: Repository-relative paths that changed
            workspace_cwd: Workspace directory relative to the repository
                root, empty for the root itself

        Returns:
            ``force`` when the task has no glob, otherwise whether any
            changed file matches the glob under workspace_cwd
        """
        glob = task_glob(task)
        if glob is None:
            return force

        pattern = posixpath.join(workspace_cwd, glob.lstrip("/")) if workspace_cwd else glob.lstrip("/")
        matched = next((file for file in changed_files if matches_glob(file, pattern)), None)
        log.debug("task_glob_checked", pattern=pattern, matched=matched)
        return matched is not None
