"""
Manifest reader.

Discovers workspaces from on-disk package manifests. The repository root
manifest lists workspace directory globs in its ``workspaces`` field; every
matching directory that contains a manifest becomes a Workspace. Globs
prefixed with ``!`` exclude directories matched by earlier globs.
"""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from repo_lifecycle.exceptions import ManifestError
from repo_lifecycle.graph.graph import WorkspaceGraph
from repo_lifecycle.graph.workspace import PackageManifest, Workspace

log = structlog.get_logger(__name__)

MANIFEST_FILENAME = "package.json"
_SKIPPED_DIRECTORIES = {"node_modules", ".git"}


def read_manifest(path: Path) -> PackageManifest:
    """Parse a single package manifest.

    Raises:
        ManifestError: If the file is missing, not JSON, or lacks a name
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ManifestError("Manifest not found", path=str(path)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read manifest: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON: {e.msg} at line {e.lineno}", path=str(path)) from e

    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a JSON object", path=str(path))

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"Invalid manifest: {e.errors()[0]['msg']}", path=str(path)) from e


def _expand_workspace_globs(root: Path, patterns: list[str]) -> list[Path]:
    included: dict[Path, None] = {}
    excluded: set[Path] = set()

    for raw in patterns:
        negate = raw.startswith("!")
        pattern = raw[1:] if negate else raw
        pattern = pattern.strip().rstrip("/")
        if not pattern:
            continue

        for candidate in sorted(root.glob(pattern)):
            if not candidate.is_dir() or _SKIPPED_DIRECTORIES.intersection(candidate.relative_to(root).parts):
                continue
            resolved = candidate.resolve()
            if negate:
                excluded.add(resolved)
            else:
                included[resolved] = None

    return [path for path in included if path not in excluded]


def discover_workspaces(root: Path, task_config_filename: str = "tasks.yaml") -> list[Workspace]:
    """Build Workspace records for the root and every declared workspace.

    The root workspace comes first, followed by the others in sorted glob
    order.

    Raises:
        ManifestError: If the root manifest or any workspace manifest is invalid
    """
    root = root.resolve()
    root_manifest = read_manifest(root / MANIFEST_FILENAME)
    workspaces = [Workspace(root, root, root_manifest, task_config_filename)]

    for directory in _expand_workspace_globs(root, root_manifest.workspaces):
        if directory == root:
            continue
        manifest_path = directory / MANIFEST_FILENAME
        if not manifest_path.is_file():
            log.debug("workspace_without_manifest", directory=str(directory))
            continue
        workspaces.append(Workspace(root, directory, read_manifest(manifest_path), task_config_filename))

    log.debug("workspaces_discovered", root=str(root), count=len(workspaces))
    return workspaces


def build_graph(
    root: Path,
    *,
    task_config_filename: str = "tasks.yaml",
    fail_on_cycles: bool = False,
) -> WorkspaceGraph:
    """Discover workspaces under root and build the dependency graph."""
    return WorkspaceGraph(
        discover_workspaces(root, task_config_filename),
        fail_on_cycles=fail_on_cycles,
    )
