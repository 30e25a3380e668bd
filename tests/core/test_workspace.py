"""Tests for core/workspace.py - Workspace discovery."""

import pytest

from agonda.core.workspace import (
    discover_workspaces,
    find_unmarked_workspaces,
    find_workspaces_by_workbench,
    parse_marker,
)


@pytest.fixture
def make_workspace(repo):
    def _make(relative, marker="workbench: alpha\ndomain: marketing\ncreated: 2026-05-01\n"):
        path = repo / "workspace" / "active" / relative
        path.mkdir(parents=True)
        if marker is not None:
            (path / ".workbench").write_text(marker)
        return path

    return _make


class TestParseMarker:

    def test_values_are_strings(self, tmp_path):
        marker = tmp_path / ".workbench"
        marker.write_text("workbench: alpha\ncreated: 2026-05-01\n")
        assert parse_marker(marker) == {"workbench": "alpha", "created": "2026-05-01"}

    def test_empty_marker(self, tmp_path):
        marker = tmp_path / ".workbench"
        marker.write_text("")
        assert parse_marker(marker) == {}

    def test_not_a_mapping(self, tmp_path):
        marker = tmp_path / ".workbench"
        marker.write_text("- a\n- b\n")
        assert parse_marker(marker) is None


class TestDiscoverWorkspaces:

    def test_sorted_with_defaults(self, repo, make_workspace):
        make_workspace("research/zeta")
        make_workspace("campaigns/alpha", marker="workbench: beta\n")

        workspaces = discover_workspaces(repo)

        assert [ws["name"] for ws in workspaces] == ["campaigns/alpha", "research/zeta"]
        assert workspaces[0]["path"] == "workspace/active/campaigns/alpha"
        assert workspaces[0]["domain"] == "unknown"
        assert workspaces[0]["created"] == "unknown"
        assert workspaces[1]["created"] == "2026-05-01"

    def test_skips_agent_worktrees(self, repo, make_workspace):
        make_workspace("research/zeta")
        make_workspace("research/zeta/.claude/worktrees/copy")

        assert [ws["name"] for ws in discover_workspaces(repo)] == ["research/zeta"]

    def test_unparseable_marker_is_skipped_with_warning(self, repo, make_workspace):
        make_workspace("research/bad", marker="just a string\n")
        make_workspace("research/good")

        assert [ws["name"] for ws in discover_workspaces(repo)] == ["research/good"]

    def test_no_active_directory(self, repo):
        assert discover_workspaces(repo) == []


class TestFindByWorkbench:

    def test_returns_every_match(self, repo, make_workspace):
        make_workspace("a/one")
        make_workspace("b/two")
        make_workspace("c/three", marker="workbench: other\n")

        matches = find_workspaces_by_workbench("alpha", repo)

        assert [ws["name"] for ws in matches] == ["a/one", "b/two"]


class TestFindUnmarked:

    def test_second_level_directories_without_marker(self, repo, make_workspace):
        make_workspace("research/marked")
        make_workspace("research/unmarked", marker=None)
        make_workspace("research/.hidden", marker=None)

        assert find_unmarked_workspaces(repo) == [
            {"name": "research/unmarked", "path": "workspace/active/research/unmarked"},
        ]
