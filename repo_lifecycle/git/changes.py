"""File changes between two revisions.

The ChangeSet is a read-only input to task matching: four lists of
repository-relative paths (added, modified, moved, deleted). It is produced
by a ChangeSetProvider; GitChangeSetProvider computes it with GitPython.

Revision handling:
    - from_ref defaults to the merge base of the configured default ref
      (``origin/main``) and HEAD, falling back to HEAD when that ref does
      not exist (no remote, fresh clone, ...)
    - through_ref=None compares against the working tree, so staged and
      unstaged edits are included and untracked files count as added

Example:
    >>> provider = GitChangeSetProvider("/path/to/repo")
    >>> changes = provider.get_modified_files("main", "HEAD")
    >>> changes.all_files()
    ['modules/graph/src/graph.py', 'README.md']
"""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

try:
    import git
    from git.exc import BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError
except ImportError as e:
    raise ImportError("GitPython is required for change detection. Install it with: pip install gitpython") from e

from repo_lifecycle.enums import ChangeType
from repo_lifecycle.exceptions import GitOperationError
from repo_lifecycle.tasks.matcher import filter_ignored

log = structlog.get_logger(__name__)

_CHANGE_TYPES = {
    "A": ChangeType.ADDED,
    "M": ChangeType.MODIFIED,
    "T": ChangeType.MODIFIED,
    "R": ChangeType.MOVED,
    "C": ChangeType.MOVED,
    "D": ChangeType.DELETED,
}


@dataclass(frozen=True)
class ChangeSet:
    """Repository-relative paths changed between two revisions."""

    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    moved: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()

    def all_files(self) -> list[str]:
        """Every changed path: added, modified, moved, then deleted."""
        return [*self.added, *self.modified, *self.moved, *self.deleted]

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.moved or self.deleted)

    def without(self, ignore: Sequence[str]) -> "ChangeSet":
        """Copy with every path matching an ignore glob removed."""
        return ChangeSet(
            added=tuple(filter_ignored(self.added, ignore)),
            modified=tuple(filter_ignored(self.modified, ignore)),
            moved=tuple(filter_ignored(self.moved, ignore)),
            deleted=tuple(filter_ignored(self.deleted, ignore)),
        )


class ChangeSetProvider(Protocol):
    """Anything that can report file changes between two revisions."""

    def get_modified_files(self, from_ref: str | None = None, through_ref: str | None = None) -> ChangeSet: ...


class GitChangeSetProvider:
    """Compute ChangeSets from a local Git repository.

    The git.Repo object is created lazily on first use and cached.

    Attributes:
        repo_path: Monorepo root, anywhere inside the Git checkout;
            reported paths are relative to it and files outside it are
            left out
        default_from_ref: Ref whose merge base with HEAD is used when no
            from_ref is given
    """

    def __init__(self, repo_path: str | Path = ".", default_from_ref: str = "origin/main") -> None:
        self.repo_path = Path(repo_path).resolve()
        self.default_from_ref = default_from_ref
        self._repo: git.Repo | None = None

    def _get_repo(self) -> git.Repo:
        if self._repo is None:
            try:
                self._repo = git.Repo(self.repo_path, search_parent_directories=True)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise GitOperationError(f"Not a Git repository: {self.repo_path}") from e
        return self._repo

    def _relative(self, path: str | None) -> str | None:
        """Rebase a top-level path onto repo_path, None when it lies outside."""
        if not path:
            return None
        absolute = Path(self._get_repo().working_tree_dir).resolve() / path
        if not absolute.is_relative_to(self.repo_path):
            return None
        return absolute.relative_to(self.repo_path).as_posix()

    def _commit(self, ref: str) -> git.Commit:
        try:
            return self._get_repo().commit(ref)
        except (BadName, ValueError, GitCommandError) as e:
            raise GitOperationError(f"Cannot resolve revision: {ref}") from e

    def _default_base(self) -> git.Commit:
        repo = self._get_repo()
        try:
            bases = repo.merge_base(self.default_from_ref, "HEAD")
        except (BadName, ValueError, GitCommandError):
            bases = []

        if bases:
            return bases[0]

        log.debug("default_base_unavailable", ref=self.default_from_ref, fallback="HEAD")
        return self._commit("HEAD")

    def get_modified_files(self, from_ref: str | None = None, through_ref: str | None = None) -> ChangeSet:
        """Collect added, modified, moved and deleted paths.

        Args:
            from_ref: Base revision; see module docs for the default
            through_ref: Target revision, or None for the working tree

        Returns:
            ChangeSet with paths relative to repo_path

        Raises:
            GitOperationError: If the path is not a repository, a revision
                cannot be resolved, or git fails to produce the diff
        """
        base = self._commit(from_ref) if from_ref else self._default_base()
        target = self._commit(through_ref) if through_ref else None

        try:
            diffs = base.diff(target)
        except GitCommandError as e:
            raise GitOperationError(f"Cannot compute diff from {base.hexsha[:12]}: {e}") from e

        buckets: dict[ChangeType, list[str]] = {change_type: [] for change_type in ChangeType}
        for diff in diffs:
            change_type = _CHANGE_TYPES.get(diff.change_type, ChangeType.MODIFIED)
            path = self._relative(diff.a_path if change_type == ChangeType.DELETED else diff.b_path)
            if path:
                buckets[change_type].append(path)

        if target is None:
            untracked = (self._relative(path) for path in self._get_repo().untracked_files)
            buckets[ChangeType.ADDED].extend(path for path in untracked if path)

        changes = ChangeSet(
            added=tuple(buckets[ChangeType.ADDED]),
            modified=tuple(buckets[ChangeType.MODIFIED]),
            moved=tuple(buckets[ChangeType.MOVED]),
            deleted=tuple(buckets[ChangeType.DELETED]),
        )
        log.info(
            "changes_collected",
            base=base.hexsha[:12],
            target=target.hexsha[:12] if target is not None else "working-tree",
            added=len(changes.added),
            modified=len(changes.modified),
            moved=len(changes.moved),
            deleted=len(changes.deleted),
        )
        return changes
