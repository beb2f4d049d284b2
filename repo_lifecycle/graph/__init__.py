"""Workspace discovery and dependency graph.

Example:
    >>> from repo_lifecycle.graph import build_graph
    >>> graph = build_graph(Path("."))
    >>> [ws.name for ws in graph.affected([graph.get("@scope/core")])]
"""

from repo_lifecycle.graph.graph import WorkspaceGraph
from repo_lifecycle.graph.manifests import MANIFEST_FILENAME, build_graph, discover_workspaces, read_manifest
from repo_lifecycle.graph.workspace import PackageManifest, Workspace

__all__ = [
    "MANIFEST_FILENAME",
    "PackageManifest",
    "Workspace",
    "WorkspaceGraph",
    "build_graph",
    "discover_workspaces",
    "read_manifest",
]
