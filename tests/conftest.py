"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml

from repo_lifecycle.graph.graph import WorkspaceGraph
from repo_lifecycle.graph.manifests import build_graph
from repo_lifecycle.graph.workspace import PackageManifest, Workspace


def write_manifest(directory: Path, name: str, **fields: Any) -> Path:
    """Write a package.json into directory, creating it if needed."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps({"name": name, **fields}, indent=2))
    return path


def write_tasks(directory: Path, tasks: dict[str, Any], filename: str = "tasks.yaml") -> Path:
    """Write a YAML task configuration into directory."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(yaml.safe_dump(tasks))
    return path


def make_workspace(root: Path, relative: str, name: str, **fields: Any) -> Workspace:
    """In-memory Workspace; nothing is written to disk."""
    location = root / relative if relative else root
    return Workspace(root, location, PackageManifest.model_validate({"name": name, **fields}))


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """Monorepo on disk with four workspaces.

    Dependency edges:
        @scope/cli -> @scope/core
        docs -> @scope/cli (through the ``cli`` alias)
        tools has no edges
    """
    root = tmp_path / "repo"
    write_manifest(root, "fixture-root", private=True, workspaces=["modules/*"])
    write_manifest(root / "modules" / "core", "@scope/core", version="1.0.0")
    write_manifest(
        root / "modules" / "cli",
        "@scope/cli",
        dependencies={"@scope/core": "workspace:^"},
    )
    write_manifest(root / "modules" / "docs", "docs", devDependencies={"cli": "workspace:^"})
    write_manifest(root / "modules" / "tools", "tools")
    return root.resolve()


@pytest.fixture
def graph(repo_root: Path) -> WorkspaceGraph:
    """Graph built from repo_root."""
    return build_graph(repo_root)


@pytest.fixture
def manifest_writer():
    """The write_manifest helper, for tests that build their own layout."""
    return write_manifest


@pytest.fixture
def tasks_writer():
    """The write_tasks helper."""
    return write_tasks


@pytest.fixture
def workspace_factory():
    """The make_workspace helper."""
    return make_workspace
