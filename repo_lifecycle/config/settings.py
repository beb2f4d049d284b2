"""
Configuration system using Pydantic for type-safe settings management.

Settings are read from an optional YAML file at the repository root
(``.repo-lifecycle.yaml`` by default) and may be overridden by environment
variables prefixed with ``REPO_LIFECYCLE_``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from repo_lifecycle.config.task_config import TaskConfig
from repo_lifecycle.exceptions import ConfigurationError

DEFAULT_SETTINGS_FILENAME = ".repo-lifecycle.yaml"


class LifecycleSettings(BaseSettings):
    """Settings for task discovery, matching, and execution."""

    model_config = SettingsConfigDict(
        env_prefix="REPO_LIFECYCLE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    task_config_filename: str = Field(
        default="tasks.yaml", min_length=1, description="Per-workspace task configuration file"
    )
    global_tasks: list[TaskConfig] = Field(
        default_factory=list, description="Task configurations applied at repository root level"
    )
    ignore: list[str] = Field(default_factory=list, description="Globs removed from the changed-file list")
    max_concurrency: int = Field(default=4, ge=1, le=64, description="Concurrent members of a parallel lane")
    task_timeout: float | None = Field(default=None, gt=0, description="Per-subprocess timeout in seconds")
    fail_on_cycles: bool = Field(default=False, description="Treat workspace dependency cycles as fatal")
    dry_run: bool = Field(default=False, description="Append --dry-run to every task")
    default_from_ref: str = Field(default="origin/main", description="Base revision when --from-ref is omitted")

    @classmethod
    def load(cls, root: Path, config_path: str | Path | None = None) -> LifecycleSettings:
        """Load settings for a repository.

        An explicit config_path must exist. Without one, the default file at
        the repository root is used when present, otherwise defaults apply.

        Raises:
            ConfigurationError: If an explicit file is missing or any file is invalid
        """
        if config_path is not None:
            return cls.from_yaml(str(config_path))

        default_path = root / DEFAULT_SETTINGS_FILENAME
        if default_path.exists():
            return cls.from_yaml(str(default_path))
        return cls()

    @classmethod
    def from_yaml(cls, config_path: str) -> LifecycleSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            LifecycleSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        # Group 1: variable name, group 2: optional default after ":-"
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
