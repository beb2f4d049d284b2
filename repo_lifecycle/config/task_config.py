"""
Task configuration schema and loader.

Each workspace may carry a YAML task configuration file mapping lifecycle
keys to ``sequential`` and ``parallel`` task lists::

    pre-commit:
      parallel: ["$0 lint", "$0 tsc"]
    build:
      sequential:
        - match: "**/foo.json"
          cmd: build
          meta: {group: assets}

A task is either a bare command string or a record with an optional glob
(``match``), a command (``cmd``) and optional free-form metadata (``meta``).

Loading never raises for a missing or malformed file: the outcome is an
explicit TaskConfigLoadResult whose status tells the caller which case
applied. Any other I/O failure is a ConfigurationError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError, field_validator, model_validator

from repo_lifecycle.enums import LoadStatus
from repo_lifecycle.exceptions import ConfigurationError

log = structlog.get_logger(__name__)


class TaskEntry(BaseModel):
    """Structured task: a command optionally gated by a file glob."""

    model_config = ConfigDict(extra="forbid")

    match: str | None = Field(default=None, description="Glob relative to the owning workspace")
    cmd: str = Field(..., min_length=1, description="Command line, tokenized on whitespace")
    meta: dict[str, Any] = Field(default_factory=dict, description="Free-form metadata copied to the task spec")


Task = Union[str, TaskEntry]


def task_command(task: Task) -> str:
    """Return the raw command string of a task."""
    return task if isinstance(task, str) else task.cmd


def task_meta(task: Task) -> dict[str, Any]:
    """Return a copy of the declared metadata of a task (empty for bare strings)."""
    return {} if isinstance(task, str) else dict(task.meta)


def task_glob(task: Task) -> str | None:
    """Return the glob of a task, or None for bare strings and pattern-less records."""
    return None if isinstance(task, str) else task.match


class TaskSet(BaseModel):
    """Tasks registered under a single lifecycle key.

    Keys other than the two lanes are dropped with a warning.
    """

    model_config = ConfigDict(extra="ignore")

    sequential: list[Task] = Field(default_factory=list)
    parallel: list[Task] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def warn_unknown_lanes(cls, data: Any) -> Any:
        if isinstance(data, dict):
            unknown = sorted(str(key) for key in data if key not in cls.model_fields)
            if unknown:
                log.warning("unknown_task_lanes_ignored", keys=unknown)
        return data

    @field_validator("sequential", "parallel")
    @classmethod
    def reject_blank_commands(cls, tasks: list[Task]) -> list[Task]:
        for task in tasks:
            if isinstance(task, str) and not task.strip():
                raise ValueError("task command must not be empty")
        return tasks

    @property
    def is_empty(self) -> bool:
        return not self.sequential and not self.parallel


class TaskConfig(RootModel[dict[str, TaskSet]]):
    """Mapping of lifecycle key to TaskSet.

    Keys are usually one of the standard lifecycles but custom events using
    the same ``pre-``/``post-`` convention are accepted.
    """

    root: dict[str, TaskSet] = Field(default_factory=dict)

    def __contains__(self, lifecycle: object) -> bool:
        return lifecycle in self.root

    def get(self, lifecycle: str) -> TaskSet | None:
        return self.root.get(lifecycle)

    def lifecycles(self) -> list[str]:
        return list(self.root)


@dataclass(frozen=True)
class TaskConfigLoadResult:
    """Classified outcome of reading a task configuration file.

    Attributes:
        status: LOADED, NOT_FOUND, or INVALID
        path: File that was read
        config: Parsed configuration; empty unless status is LOADED
        error: Reason the file was rejected when status is INVALID
    """

    status: LoadStatus
    path: Path
    config: TaskConfig = field(default_factory=TaskConfig)
    error: str | None = None

    @property
    def loaded(self) -> bool:
        return self.status == LoadStatus.LOADED


def parse_task_config(data: Any) -> TaskConfig:
    """Validate already-deserialized data against the task config schema.

    An empty document (None) is an empty configuration.

    Raises:
        pydantic.ValidationError: If the data does not match the schema
    """
    if data is None:
        data = {}
    return TaskConfig.model_validate(data)


def load_task_config(path: Path) -> TaskConfigLoadResult:
    """Load and validate a task configuration file.

    Args:
        path: Location of the YAML task configuration

    Returns:
        TaskConfigLoadResult. A missing file yields NOT_FOUND; undecodable
        text, YAML syntax errors and schema violations yield INVALID. Both
        carry an empty configuration.

    Raises:
        ConfigurationError: If the file exists but cannot be read for any
            other reason (permissions, path is a directory, ...)
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.debug("task_config_not_found", path=str(path))
        return TaskConfigLoadResult(status=LoadStatus.NOT_FOUND, path=path)
    except UnicodeDecodeError as e:
        return _invalid(path, f"not valid UTF-8: {e}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read task configuration: {path}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        return _invalid(path, f"invalid YAML: {e}")

    try:
        config = parse_task_config(data)
    except ValidationError as e:
        return _invalid(path, f"schema violation: {e.error_count()} error(s): {e.errors()[0]['msg']}")

    log.debug("task_config_loaded", path=str(path), lifecycles=config.lifecycles())
    return TaskConfigLoadResult(status=LoadStatus.LOADED, path=path, config=config)


def _invalid(path: Path, reason: str) -> TaskConfigLoadResult:
    log.debug("task_config_invalid", path=str(path), reason=reason)
    return TaskConfigLoadResult(status=LoadStatus.INVALID, path=path, error=reason)
