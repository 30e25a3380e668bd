"""Tests for core/plugins.py - Plugin enablement across settings scopes."""

import json

import pytest

from agonda.core.plugins import list_plugins, set_plugin_state, switch_plugin
from agonda.errors import NotFoundError


@pytest.fixture
def marketplace(make_marketplace):
    return make_marketplace([
        {"name": "alpha", "source": "./workbenches/alpha", "version": "1.0.0", "description": "A"},
        {"name": "beta", "source": "./workbenches/beta"},
        {"name": "gamma", "source": "./workbenches/gamma"},
    ], name="acme")


def _enabled(path):
    return json.loads(path.read_text())["enabledPlugins"]


# ===========================================================================
# list_plugins
# ===========================================================================
class TestListPlugins:

    def test_reports_highest_priority_scope(self, repo, home, marketplace, write_json):
        write_json(home / ".claude" / "settings.json", {"enabledPlugins": {"alpha@acme": True, "beta@acme": True}})
        write_json(repo / ".claude" / "settings.json", {"enabledPlugins": {"alpha@acme": True}})

        plugins = {p["name"]: p for p in list_plugins(repo, home)}

        assert plugins["alpha"]["status"] == "enabled"
        assert plugins["alpha"]["scope"] == "project"
        assert plugins["beta"]["scope"] == "user"
        assert plugins["gamma"]["status"] == "disabled"
        assert plugins["gamma"]["scope"] == "-"
        assert plugins["alpha"]["version"] == "1.0.0"
        assert plugins["beta"]["version"] == "0.0.0"

    def test_false_flag_is_disabled(self, repo, home, marketplace, write_json):
        write_json(repo / ".claude" / "settings.local.json", {"enabledPlugins": {"alpha@acme": False}})
        plugins = {p["name"]: p for p in list_plugins(repo, home)}
        assert plugins["alpha"]["status"] == "disabled"


# ===========================================================================
# set_plugin_state
# ===========================================================================
class TestSetPluginState:

    def test_enable_creates_settings_file(self, repo, home, marketplace):
        result = set_plugin_state("alpha", True, cwd=repo, home=home)

        assert result == {"key": "alpha@acme", "action": "enabled", "scope": "project", "already_in_state": False}
        assert _enabled(repo / ".claude" / "settings.json") == {"alpha@acme": True}

    def test_already_enabled(self, repo, home, marketplace):
        set_plugin_state("alpha", True, cwd=repo, home=home)
        assert set_plugin_state("alpha", True, cwd=repo, home=home)["already_in_state"]

    def test_disable_writes_false_and_keeps_other_keys(self, repo, home, marketplace, write_json):
        path = write_json(repo / ".claude" / "settings.local.json", {
            "permissions": {"allow": ["Bash"]},
            "enabledPlugins": {"alpha@acme": True, "other@elsewhere": True},
        })

        result = set_plugin_state("alpha", False, scope="local", cwd=repo, home=home)

        assert result["action"] == "disabled"
        data = json.loads(path.read_text())
        assert data["permissions"] == {"allow": ["Bash"]}
        assert data["enabledPlugins"] == {"alpha@acme": False, "other@elsewhere": True}

    def test_user_scope_writes_home(self, repo, home, marketplace):
        set_plugin_state("beta", True, scope="user", cwd=repo, home=home)
        assert _enabled(home / ".claude" / "settings.json") == {"beta@acme": True}

    def test_unknown_plugin(self, repo, home, marketplace):
        with pytest.raises(NotFoundError) as exc_info:
            set_plugin_state("nope", True, cwd=repo, home=home)
        assert exc_info.value.code == "plugin_not_found"
        assert not (repo / ".claude" / "settings.json").exists()


# ===========================================================================
# switch_plugin
# ===========================================================================
class TestSwitchPlugin:

    def test_switch_disables_others(self, repo, home, marketplace, write_json):
        write_json(repo / ".claude" / "settings.json", {"enabledPlugins": {"alpha@acme": True}})
        write_json(home / ".claude" / "settings.json", {"enabledPlugins": {"gamma@acme": True}})

        result = switch_plugin("beta", cwd=repo, home=home)

        assert result["enabled"] == ["beta"]
        assert result["disabled"] == ["alpha", "gamma"]
        assert _enabled(repo / ".claude" / "settings.json") == {
            "alpha@acme": False, "beta@acme": True, "gamma@acme": False,
        }
        # The user file is overridden, not edited
        assert _enabled(home / ".claude" / "settings.json") == {"gamma@acme": True}

    def test_keep(self, repo, home, marketplace, write_json):
        write_json(repo / ".claude" / "settings.json", {"enabledPlugins": {"alpha@acme": True, "gamma@acme": True}})

        result = switch_plugin("beta", keep=["gamma"], cwd=repo, home=home)

        assert result["disabled"] == ["alpha"]
        assert result["kept"] == ["gamma"]
        assert _enabled(repo / ".claude" / "settings.json")["gamma@acme"] is True

    def test_dry_run_writes_nothing(self, repo, home, marketplace, write_json):
        path = write_json(repo / ".claude" / "settings.json", {"enabledPlugins": {"alpha@acme": True}})
        before = path.read_text()

        result = switch_plugin("beta", cwd=repo, home=home, dry_run=True)

        assert result["dry_run"]
        assert result["disabled"] == ["alpha"]
        assert path.read_text() == before

    def test_unknown_keep(self, repo, home, marketplace):
        with pytest.raises(NotFoundError):
            switch_plugin("beta", keep=["nope"], cwd=repo, home=home)
