"""Git change detection.

Example:
    >>> from repo_lifecycle.git import GitChangeSetProvider
    >>> changes = GitChangeSetProvider().get_modified_files("main")
"""

from repo_lifecycle.git.changes import ChangeSet, ChangeSetProvider, GitChangeSetProvider

__all__ = [
    "ChangeSet",
    "ChangeSetProvider",
    "GitChangeSetProvider",
]
