"""
Workspace dependency graph.

Owns every Workspace of the repository, including the root, and answers
reachability questions over dependency edges. An edge A -> B exists when
B's name, or any of B's aliases, is a key in A's dependencies,
devDependencies, or peerDependencies.

The central query is the affected set: the seed workspaces plus every
workspace that depends on one of them, directly or transitively. Traversal
tracks visited nodes, so graphs with cycles still terminate. Cycles are
reported once when the graph is built, as a warning by default or as a
DependencyCycleError when configured to be fatal.

Example:
    >>> graph = WorkspaceGraph(workspaces)
    >>> [ws.name for ws in graph.affected([graph.get("core")])]
    ['core', 'cli', 'docs']
"""

from collections import deque
from collections.abc import Iterable, Iterator
from pathlib import PurePosixPath

import structlog

from repo_lifecycle.exceptions import DependencyCycleError, ManifestError, WorkspaceNotFoundError
from repo_lifecycle.graph.workspace import Workspace

log = structlog.get_logger(__name__)


class WorkspaceGraph:
    """All workspaces of a repository and the dependency edges between them.

    Iteration order is the order workspaces were supplied in, which the
    manifest reader guarantees to be root first, then sorted locations.

    Attributes:
        root: The workspace representing the repository itself
    """

    def __init__(self, workspaces: Iterable[Workspace], *, fail_on_cycles: bool = False) -> None:
        """Build the graph.

        Args:
            workspaces: Every workspace of the repository, root included
            fail_on_cycles: Raise instead of warning when dependencies form a cycle

        Raises:
            ManifestError: If names collide or there is not exactly one root
            DependencyCycleError: If fail_on_cycles is set and a cycle exists
        """
        self._workspaces: dict[str, Workspace] = {}
        for workspace in workspaces:
            if workspace.name in self._workspaces:
                raise ManifestError(f"Duplicate workspace name: {workspace.name}")
            self._workspaces[workspace.name] = workspace

        roots = [ws for ws in self._workspaces.values() if ws.is_root]
        if len(roots) != 1:
            raise ManifestError(f"Expected exactly one root workspace, found {len(roots)}")
        self.root = roots[0]

        # Names win over aliases; the first workspace to claim an alias keeps it
        self._lookup: dict[str, Workspace] = dict(self._workspaces)
        for workspace in self._workspaces.values():
            for alias in workspace.aliases:
                self._lookup.setdefault(alias, workspace)

        self._dependencies: dict[str, set[str]] = {name: set() for name in self._workspaces}
        self._dependents: dict[str, set[str]] = {name: set() for name in self._workspaces}
        for workspace in self._workspaces.values():
            for dep_name in workspace.dependency_names():
                target = self._lookup.get(dep_name)
                if target is None or target is workspace:
                    continue
                self._dependencies[workspace.name].add(target.name)
                self._dependents[target.name].add(workspace.name)

        log.debug(
            "workspace_graph_built",
            workspaces=len(self._workspaces),
            edges=sum(len(deps) for deps in self._dependencies.values()),
        )

        cycles = self.cycles()
        if cycles:
            if fail_on_cycles:
                raise DependencyCycleError(cycles)
            for cycle in cycles:
                log.warning("dependency_cycle_detected", workspaces=cycle)

    def __iter__(self) -> Iterator[Workspace]:
        return iter(self._workspaces.values())

    def __len__(self) -> int:
        return len(self._workspaces)

    def __contains__(self, name: object) -> bool:
        return name in self._lookup

    @property
    def workspaces(self) -> list[Workspace]:
        return list(self._workspaces.values())

    @property
    def names(self) -> list[str]:
        return list(self._workspaces)

    def get(self, name: str) -> Workspace:
        """Look up a workspace by name or alias.

        Raises:
            WorkspaceNotFoundError: If nothing matches
        """
        try:
            return self._lookup[name]
        except KeyError:
            raise WorkspaceNotFoundError(name) from None

    def get_all(self, names: Iterable[str]) -> list[Workspace]:
        """Look up several workspaces, dropping duplicates but keeping order."""
        found: dict[str, Workspace] = {}
        for name in names:
            workspace = self.get(name)
            found.setdefault(workspace.name, workspace)
        return list(found.values())

    def dependencies(self, workspace: Workspace, transitive: bool = False) -> list[Workspace]:
        """Workspaces that ``workspace`` depends on."""
        return self._neighbours(workspace, self._dependencies, transitive)

    def dependents(self, workspace: Workspace, transitive: bool = False) -> list[Workspace]:
        """Workspaces that depend on ``workspace``."""
        return self._neighbours(workspace, self._dependents, transitive)

    def affected(self, seed: Iterable[Workspace]) -> list[Workspace]:
        """Seed workspaces plus all of their direct and transitive consumers.

        Breadth-first traversal over reverse dependency edges with a visited
        guard. The result is returned in graph iteration order.

        Args:
            seed: Workspaces that changed or were requested

        Returns:
            The smallest set containing seed and closed under "Y depends on a
            member", as a list
        """
        visited = self._reachable((ws.name for ws in seed), self._dependents)
        return [ws for name, ws in self._workspaces.items() if name in visited]

    def owners_of(self, files: Iterable[str]) -> list[Workspace]:
        """Workspaces owning the given repository-relative file paths.

        Each file belongs to the workspace with the deepest location that
        contains it; files outside every workspace belong to the root.
        """
        by_depth = sorted(
            (ws for ws in self._workspaces.values() if not ws.is_root),
            key=lambda ws: len(PurePosixPath(ws.relative_location).parts),
            reverse=True,
        )
        owners: set[str] = set()
        for file in files:
            path = PurePosixPath(file)
            owner = next(
                (ws for ws in by_depth if path.is_relative_to(ws.relative_location)),
                self.root,
            )
            owners.add(owner.name)
        return [ws for name, ws in self._workspaces.items() if name in owners]

    def cycles(self) -> list[list[str]]:
        """Dependency cycles, each as an ordered list of workspace names.

        Uses depth-first search with a recursion stack; every back edge found
        yields one cycle. Cycles are rotated to start at their smallest name
        and reported once.
        """
        found: dict[tuple[str, ...], None] = {}
        visited: set[str] = set()

        def visit(name: str, stack: list[str], on_stack: set[str]) -> None:
            visited.add(name)
            stack.append(name)
            on_stack.add(name)

            for dep_name in sorted(self._dependencies[name]):
                if dep_name not in visited:
                    visit(dep_name, stack, on_stack)
                elif dep_name in on_stack:
                    cycle = stack[stack.index(dep_name) :]
                    start = cycle.index(min(cycle))
                    found.setdefault(tuple(cycle[start:] + cycle[:start]), None)

            stack.pop()
            on_stack.discard(name)

        for name in self._workspaces:
            if name not in visited:
                visit(name, [], set())

        return [list(cycle) for cycle in found]

    def _neighbours(self, workspace: Workspace, adjacency: dict[str, set[str]], transitive: bool) -> list[Workspace]:
        if transitive:
            names = self._reachable([workspace.name], adjacency)
            names.discard(workspace.name)
        else:
            names = adjacency[workspace.name]
        return [ws for name, ws in self._workspaces.items() if name in names]

    @staticmethod
    def _reachable(start: Iterable[str], adjacency: dict[str, set[str]]) -> set[str]:
        visited: set[str] = set()
        queue = deque(start)
        while queue:
            name = queue.popleft()
            if name in visited:
                continue
            visited.add(name)
            queue.extend(adjacency.get(name, ()))
        return visited
