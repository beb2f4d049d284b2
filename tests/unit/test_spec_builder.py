"""Tests for repo_lifecycle.tasks.spec_builder module."""

import pytest

from repo_lifecycle.config.task_config import TaskEntry
from repo_lifecycle.exceptions import ConfigurationError
from repo_lifecycle.tasks.models import RunOptions
from repo_lifecycle.tasks.spec_builder import CommandSpecBuilder, slugify


@pytest.fixture
def options(repo_root):
    return RunOptions(cli_name="one", entry_point=str(repo_root / "bin" / "one"))


@pytest.fixture
def builder(graph, options):
    return CommandSpecBuilder(graph, options)


class TestSlugify:
    """Tests for slugify function."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("@scope/core", "scope-core"),
            ("plain", "plain"),
            ("a..b__c", "a-b__c"),
            ("--edge--", "edge"),
        ],
    )
    def test_slugify(self, value, expected):
        assert slugify(value) == expected


class TestCommandSpecBuilder:
    """Tests for CommandSpecBuilder.build."""

    def test_external_program(self, builder, graph):
        spec = builder.build(graph.get("@scope/core"), "make build", [])

        assert spec.name == "Run `make build` in `@scope/core`"
        assert spec.cmd == "make"
        assert spec.args == ["build"]
        assert spec.cwd == "modules/core"
        assert spec.meta == {"name": "@scope/core", "slug": "scope-core"}

    def test_root_working_directory(self, builder, graph):
        spec = builder.build(graph.root, "make", [])

        assert spec.cwd == "."
        assert spec.args == []

    def test_self_invocation_relative_to_workspace(self, builder, graph):
        spec = builder.build(graph.get("@scope/core"), "$0 lint --fix", [])

        assert spec.cmd == "../../bin/one"
        assert spec.args == ["lint", "--fix"]
        assert spec.name == "Run `one lint --fix` in `@scope/core`"

    def test_self_invocation_at_root(self, builder, graph):
        spec = builder.build(graph.root, "$0 tsc", [])

        assert spec.cmd == "bin/one"
        assert spec.name == "Run `one tsc` in `fixture-root`"

    def test_workspaces_placeholder(self, builder, graph):
        spec = builder.build(graph.root, "$0 test -w ${workspaces}", ["@scope/core", "docs"])

        assert spec.args == ["test", "-w", "@scope/core", "docs"]
        assert spec.name == "Run `one test -w ${workspaces}` in `fixture-root`"

    def test_every_placeholder_replaced(self, builder, graph):
        spec = builder.build(graph.root, "echo ${workspaces} then ${workspaces}", ["a"])
        assert spec.args == ["a", "then", "a"]

    def test_empty_placeholder_collapses(self, builder, graph):
        spec = builder.build(graph.root, "echo ${workspaces} end", [])
        assert spec.args == ["end"]

    def test_empty_after_substitution_raises(self, builder, graph):
        with pytest.raises(ConfigurationError, match="empty after substitution"):
            builder.build(graph.root, "${workspaces}", [])

    def test_dry_run_appended(self, graph, repo_root):
        builder = CommandSpecBuilder(graph, RunOptions(entry_point=str(repo_root / "one"), dry_run=True))

        assert builder.build(graph.root, "make build", []).args == ["build", "--dry-run"]

    def test_verbosity_forwarded_to_self_invocation_only(self, graph, repo_root):
        builder = CommandSpecBuilder(
            graph,
            RunOptions(entry_point=str(repo_root / "one"), dry_run=True, verbosity=2),
        )

        assert builder.build(graph.root, "$0 lint", []).args == ["lint", "--dry-run", "-vv"]
        assert builder.build(graph.root, "make", []).args == ["--dry-run"]

    def test_meta_merged_with_workspace_identity(self, builder, graph):
        task = TaskEntry(cmd="make", meta={"group": "assets", "name": "overridden"})

        spec = builder.build(graph.get("docs"), task, [])

        assert spec.meta == {"group": "assets", "name": "docs", "slug": "docs"}
        assert task.meta == {"group": "assets", "name": "overridden"}

    def test_to_dict(self, builder, graph):
        spec = builder.build(graph.get("tools"), "make", [])

        assert spec.to_dict() == {
            "name": "Run `make` in `tools`",
            "cmd": "make",
            "args": [],
            "opts": {"cwd": "modules/tools"},
            "meta": {"name": "tools", "slug": "tools"},
        }
        assert spec.argv == ["make"]
