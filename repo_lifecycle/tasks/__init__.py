"""Task resolution, matching, and spec building."""

from repo_lifecycle.tasks.matcher import FileChangeMatcher, filter_ignored, matches_glob
from repo_lifecycle.tasks.models import RunOptions, TaskOutcome, TaskSpec
from repo_lifecycle.tasks.resolver import TaskResolver
from repo_lifecycle.tasks.spec_builder import CommandSpecBuilder, slugify

__all__ = [
    "CommandSpecBuilder",
    "FileChangeMatcher",
    "RunOptions",
    "TaskOutcome",
    "TaskResolver",
    "TaskSpec",
    "filter_ignored",
    "matches_glob",
    "slugify",
]
