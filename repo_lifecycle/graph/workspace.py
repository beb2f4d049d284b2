"""
Workspace model.

A Workspace is a single buildable unit of the monorepo: a directory with its
own package manifest and, optionally, a task configuration file. Workspaces
are immutable once built, except for the task configuration which is read
lazily on first access and cached for the lifetime of the object.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from repo_lifecycle.config.task_config import TaskConfig, TaskConfigLoadResult, TaskSet, load_task_config


class PackageManifest(BaseModel):
    """Fields of a package manifest (``package.json``) used by the graph.

    Unknown manifest fields are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1)
    version: str | None = None
    description: str | None = None
    private: bool = False
    alias: list[str] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(default_factory=dict, alias="peerDependencies")
    workspaces: list[str] = Field(default_factory=list)

    @field_validator("workspaces", mode="before")
    @classmethod
    def accept_packages_object(cls, value: Any) -> Any:
        # Yarn allows {"packages": [...], "nohoist": [...]}
        if isinstance(value, dict):
            return value.get("packages", [])
        return value


class Workspace:
    """A named unit of the monorepo.

    Attributes:
        location: Absolute directory of the workspace
        manifest: Parsed package manifest

    Example:
        >>> ws = Workspace(Path("/repo"), Path("/repo/modules/graph"), manifest)
        >>> ws.relative_location
        'modules/graph'
        >>> ws.get_tasks("build").sequential
        ['make']
    """

    def __init__(
        self,
        root_location: Path,
        location: Path,
        manifest: PackageManifest,
        task_config_filename: str = "tasks.yaml",
    ) -> None:
        self._root_location = Path(root_location).resolve()
        self.location = Path(location).resolve()
        self.manifest = manifest
        self.task_config_filename = task_config_filename
        self._tasks: TaskConfigLoadResult | None = None

    def __repr__(self) -> str:
        return f"Workspace(name={self.name!r}, location={self.relative_location or '.'!r})"

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def description(self) -> str | None:
        return self.manifest.description

    @property
    def version(self) -> str | None:
        return self.manifest.version or None

    @property
    def private(self) -> bool:
        return self.manifest.private

    @property
    def is_root(self) -> bool:
        return self.location == self._root_location

    @property
    def scope(self) -> str:
        """Module scope, eg ``@onerepo`` for ``@onerepo/graph``."""
        return self.name.split("/")[0] if "/" in self.name else ""

    @property
    def aliases(self) -> list[str]:
        """Declared aliases plus the unscoped name of a scoped package."""
        aliases = list(self.manifest.alias)
        if "/" in self.name:
            aliases.append(self.name.split("/", 1)[1])
        return aliases

    @property
    def dependencies(self) -> dict[str, str]:
        return dict(self.manifest.dependencies)

    @property
    def dev_dependencies(self) -> dict[str, str]:
        return dict(self.manifest.dev_dependencies)

    @property
    def peer_dependencies(self) -> dict[str, str]:
        return dict(self.manifest.peer_dependencies)

    def dependency_names(self) -> list[str]:
        """Names from all three dependency kinds, without duplicates."""
        names: dict[str, None] = {}
        for deps in (self.manifest.dependencies, self.manifest.dev_dependencies, self.manifest.peer_dependencies):
            names.update(dict.fromkeys(deps))
        return list(names)

    @property
    def relative_location(self) -> str:
        """Location relative to the repository root in POSIX form; empty for the root."""
        if self.is_root:
            return ""
        return Path(os.path.relpath(self.location, self._root_location)).as_posix()

    def resolve(self, *parts: str) -> Path:
        """Absolute path of parts joined to the workspace location."""
        return self.location.joinpath(*parts)

    def relative(self, to: str | Path) -> str:
        """Path of ``to`` relative to the workspace location."""
        return os.path.relpath(Path(to).resolve(), self.location)

    def load_tasks(self) -> TaskConfigLoadResult:
        """Read the task configuration once and cache the classified result.

        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if self._tasks is None:
            self._tasks = load_task_config(self.resolve(self.task_config_filename))
        return self._tasks

    @property
    def tasks(self) -> TaskConfig:
        """Task configuration; empty when missing or invalid."""
        return self.load_tasks().config

    def get_tasks(self, lifecycle: str) -> TaskSet:
        """Tasks for a lifecycle key, both lanes empty when the key is absent."""
        task_set = self.tasks.get(lifecycle)
        return task_set if task_set is not None else TaskSet()
