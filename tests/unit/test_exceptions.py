"""Tests for repo_lifecycle.exceptions module."""

import pytest

from repo_lifecycle.exceptions import (
    ConfigurationError,
    DependencyCycleError,
    GitOperationError,
    ManifestError,
    RepoLifecycleError,
    TaskExecutionError,
    WorkspaceNotFoundError,
)


class TestRepoLifecycleError:
    """Test base RepoLifecycleError class."""

    def test_init_with_message(self):
        error = RepoLifecycleError("Test error message")

        assert error.message == "Test error message"
        assert str(error) == "Test error message"

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("x"),
            ManifestError("x"),
            WorkspaceNotFoundError("x"),
            DependencyCycleError([["a", "b"]]),
            GitOperationError("x"),
            TaskExecutionError(["x"]),
        ],
    )
    def test_hierarchy(self, error):
        """Every error can be caught through the base class."""
        assert isinstance(error, RepoLifecycleError)


class TestManifestError:
    """Test ManifestError formatting."""

    def test_without_path(self):
        error = ManifestError("Invalid JSON")
        assert str(error) == "Invalid JSON"
        assert error.path is None

    def test_with_path(self):
        error = ManifestError("Invalid JSON", path="modules/a/package.json")

        assert str(error) == "Invalid JSON (manifest: modules/a/package.json)"
        assert error.message == "Invalid JSON"


class TestDomainErrors:
    """Test attributes carried by domain errors."""

    def test_workspace_not_found(self):
        error = WorkspaceNotFoundError("@scope/missing")

        assert error.name == "@scope/missing"
        assert error.message == "Workspace not found: @scope/missing"

    def test_dependency_cycle(self):
        error = DependencyCycleError([("a", "b"), ["c", "d", "e"]])

        assert error.cycles == [["a", "b"], ["c", "d", "e"]]
        assert str(error) == "Workspace dependency cycle detected: a -> b -> a; c -> d -> e -> c"

    def test_task_execution(self):
        error = TaskExecutionError(["Run `x` in `a`", "Run `y` in `b`"], lifecycle="build")

        assert error.failed == ["Run `x` in `a`", "Run `y` in `b`"]
        assert error.lifecycle == "build"
        assert str(error) == "2 task(s) failed (lifecycle: build)"

    def test_task_execution_without_lifecycle(self):
        assert str(TaskExecutionError(["x"])) == "1 task(s) failed"
