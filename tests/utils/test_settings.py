"""Tests for utils/settings.py - Claude settings file utilities."""

import json

import pytest

from agonda.errors import ValidationError
from agonda.utils.settings import (
    get_enabled_plugins,
    get_enabled_plugins_with_scope,
    read_settings,
    set_plugin_flags,
    settings_path,
)


class TestSettingsPath:
    """Test cases for scope resolution."""

    def test_project_and_local(self, tmp_path):
        assert settings_path("project", tmp_path) == tmp_path / ".claude" / "settings.json"
        assert settings_path("local", tmp_path) == tmp_path / ".claude" / "settings.local.json"

    def test_user_uses_home(self, tmp_path):
        home = tmp_path / "home"
        assert settings_path("user", tmp_path / "repo", home) == home / ".claude" / "settings.json"

    def test_unknown_scope(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            settings_path("global", tmp_path)
        assert exc_info.value.code == "invalid_scope"


class TestReadSettings:
    """Test cases for reading settings files."""

    def test_missing_file(self, tmp_path):
        assert read_settings(tmp_path / "settings.json") == {}

    def test_malformed_file_reads_empty(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        assert read_settings(path) == {}

    def test_enabled_plugins_only_true_flags(self, tmp_path, write_json):
        path = write_json(tmp_path / "settings.json", {
            "enabledPlugins": {"a@m": True, "b@m": False, "c@m": True},
        })
        assert get_enabled_plugins(path) == {"a@m", "c@m"}

    def test_highest_priority_scope_wins(self, tmp_path, write_json):
        repo, home = tmp_path / "repo", tmp_path / "home"
        write_json(repo / ".claude" / "settings.json", {"enabledPlugins": {"a@m": True}})
        write_json(repo / ".claude" / "settings.local.json", {"enabledPlugins": {"a@m": True, "b@m": True}})
        write_json(home / ".claude" / "settings.json", {"enabledPlugins": {"b@m": True, "c@m": True}})

        assert get_enabled_plugins_with_scope(repo, home) == {
            "a@m": "project",
            "b@m": "local",
            "c@m": "user",
        }


class TestSetPluginFlags:
    """Test cases for rewriting enabledPlugins."""

    def test_creates_missing_file(self, tmp_path):
        path = tmp_path / ".claude" / "settings.json"

        previous = set_plugin_flags(path, {"a@m": True})

        assert previous == {"a@m": False}
        assert json.loads(path.read_text()) == {"enabledPlugins": {"a@m": True}}

    def test_preserves_other_keys(self, tmp_path, write_json):
        path = write_json(tmp_path / "settings.json", {
            "permissions": {"allow": ["Bash"]},
            "enabledPlugins": {"a@m": True, "b@m": True},
        })

        previous = set_plugin_flags(path, {"a@m": False, "c@m": True})

        assert previous == {"a@m": True, "c@m": False}
        data = json.loads(path.read_text())
        assert data["permissions"] == {"allow": ["Bash"]}
        assert data["enabledPlugins"] == {"a@m": False, "b@m": True, "c@m": True}
        assert path.read_text().endswith("}\n")

    def test_malformed_file_is_not_overwritten(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        with pytest.raises(ValidationError):
            set_plugin_flags(path, {"a@m": True})

        assert path.read_text() == "{not json"

    def test_non_object_file_is_rejected(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[]")

        with pytest.raises(ValidationError) as exc_info:
            set_plugin_flags(path, {"a@m": True})

        assert exc_info.value.code == "invalid_settings"
