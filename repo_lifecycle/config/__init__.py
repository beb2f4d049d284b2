"""Configuration for repo-lifecycle.

Key Components:
    - LifecycleSettings: Repository-level settings with YAML loading support
    - TaskConfig / TaskSet / TaskEntry: Typed task configuration schema
    - load_task_config: Classified loader for per-workspace task files

Example:
    >>> from repo_lifecycle.config import LifecycleSettings
    >>> settings = LifecycleSettings.load(Path("."))
    >>> settings.task_config_filename
    'tasks.yaml'
"""

from repo_lifecycle.config.settings import DEFAULT_SETTINGS_FILENAME, LifecycleSettings
from repo_lifecycle.config.task_config import (
    Task,
    TaskConfig,
    TaskConfigLoadResult,
    TaskEntry,
    TaskSet,
    load_task_config,
    parse_task_config,
)

__all__ = [
    "DEFAULT_SETTINGS_FILENAME",
    "LifecycleSettings",
    "Task",
    "TaskConfig",
    "TaskConfigLoadResult",
    "TaskEntry",
    "TaskSet",
    "load_task_config",
    "parse_task_config",
]
