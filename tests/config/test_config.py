"""Tests for config/config.py - Configuration management."""

from unittest.mock import patch

import pytest
import yaml

from agonda.config.config import DEFAULTS, Config, ConfigError
from agonda.errors import ExitCode
from agonda.plugins.registries import GitHubRegistry, GitRegistry, create_registry


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _write_config(config_obj: Config, data) -> None:
    """Write raw YAML data to the config file without validation."""
    config_obj.config_directory.mkdir(parents=True, exist_ok=True)
    with open(config_obj.config_file, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


@pytest.fixture
def config(tmp_path):
    return Config(tmp_path / "agonda")


# ===========================================================================
# ConfigError
# ===========================================================================
class TestConfigError:
    """Test cases for ConfigError exception."""

    def test_single_error_message(self):
        error = ConfigError("Single error")
        assert error.errors == ["Single error"]
        assert str(error) == "Single error"

    def test_multiple_error_messages(self):
        error = ConfigError(["First", "Second"])
        formatted = str(error)
        assert "Configuration has 2 errors" in formatted
        assert "  - First" in formatted
        assert "  - Second" in formatted

    def test_exit_code_and_code(self):
        error = ConfigError("bad")
        assert error.exit_code == ExitCode.GENERAL
        assert error.to_dict() == {"error": "config_error", "message": "bad"}


# ===========================================================================
# Config.__init__ / directories
# ===========================================================================
class TestConfigInit:
    """Test cases for Config initialization."""

    def test_default_directory(self, tmp_path):
        with patch("agonda.config.config.Path.home", return_value=tmp_path):
            config = Config()
        assert config.config_directory == tmp_path / ".agonda"
        assert config.config_file == tmp_path / ".agonda" / "config.yaml"

    def test_custom_directory(self, config, tmp_path):
        assert config.config_file == tmp_path / "agonda" / "config.yaml"
        assert not config.exists()

    def test_ensure_directories(self, config):
        config.ensure_directories()
        assert config.config_directory.is_dir()

    def test_ensure_directories_failure(self, config):
        with patch.object(type(config.config_directory), "mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigError, match="Failed to create config directory"):
                config.ensure_directories()


# ===========================================================================
# Config.validate
# ===========================================================================
class TestConfigValidate:
    """Test cases for structural validation."""

    def test_empty_config_is_valid(self):
        assert Config.validate({}) == []

    def test_defaults_are_valid(self):
        assert Config.validate(DEFAULTS) == []

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            Config.validate(["registry"])

    def test_unknown_key_is_a_warning(self):
        assert Config.validate({"repos": []}) == ["Unknown top-level key 'repos' is ignored"]

    def test_collects_every_error(self):
        with pytest.raises(ConfigError) as exc_info:
            Config.validate({
                "registry": {"type": "svn", "timeout": 0, "page_size": "many"},
                "validate": {"delegate": "yes"},
                "health": "soon",
            })

        errors = exc_info.value.errors
        assert len(errors) == 5
        assert "'registry.type' must be one of github, git, got 'svn'" in errors
        assert "'registry.timeout' must be positive" in errors
        assert "'registry.page_size' must be an integer, got str" in errors
        assert "'validate.delegate' must be true or false" in errors
        assert "'health' must be a dictionary" in errors

    def test_git_registry_requires_url(self):
        with pytest.raises(ConfigError, match="'registry.url' is required"):
            Config.validate({"registry": {"type": "git"}})

    def test_repo_must_be_owner_name(self):
        with pytest.raises(ConfigError, match="owner/name"):
            Config.validate({"registry": {"repo": "skills"}})

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ConfigError, match="must be an integer, got bool"):
            Config.validate({"health": {"freshness_warn_days": True}})

    def test_inverted_thresholds_warn(self):
        warnings = Config.validate({"health": {"freshness_warn_days": 200}})
        assert len(warnings) == 1
        assert "warnings will never be reported" in warnings[0]


# ===========================================================================
# Config.read / write
# ===========================================================================
class TestConfigRead:
    """Test cases for reading the configuration file."""

    def test_missing_file_yields_defaults(self, config):
        assert config.read() == DEFAULTS

    def test_defaults_are_not_shared(self, config):
        data = config.read()
        data["registry"]["repo"] = "mutated/repo"
        assert DEFAULTS["registry"]["repo"] == "alavida-ai/skills"

    def test_empty_file_yields_defaults(self, config):
        config.ensure_directories()
        config.config_file.write_text("")
        assert config.read() == DEFAULTS

    def test_file_is_layered_over_defaults(self, config):
        _write_config(config, {"registry": {"repo": "acme/skills"}, "health": {"freshness_warn_days": 30}})

        data = config.read()

        assert data["registry"]["repo"] == "acme/skills"
        assert data["registry"]["timeout"] == 30
        assert data["health"] == {"freshness_warn_days": 30, "freshness_error_days": 180}
        assert data["validate"] == {"delegate": False}

    def test_invalid_yaml(self, config):
        config.ensure_directories()
        config.config_file.write_text("registry: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            config.read()

    def test_invalid_values(self, config):
        _write_config(config, {"registry": {"type": "ftp"}})
        with pytest.raises(ConfigError):
            config.read()

    def test_write_then_read(self, config):
        config.write({"validate": {"delegate": True}})

        assert config.exists()
        assert config.read()["validate"]["delegate"] is True

    def test_write_validates_first(self, config):
        with pytest.raises(ConfigError):
            config.write({"registry": {"type": "git"}})
        assert not config.exists()


# ===========================================================================
# Template
# ===========================================================================
class TestTemplate:
    """Test cases for the starter template."""

    def test_template_matches_defaults(self):
        data = yaml.safe_load(Config.generate_template())
        assert Config.validate(data) == []
        assert data["registry"]["repo"] == DEFAULTS["registry"]["repo"]
        assert data["health"] == DEFAULTS["health"]
        assert data["validate"] == DEFAULTS["validate"]


# ===========================================================================
# Registry construction
# ===========================================================================
class TestCreateRegistry:
    """Test cases for building a registry from the config section."""

    def test_default_is_github(self):
        registry = create_registry(None)
        assert isinstance(registry, GitHubRegistry)
        assert registry.repo == "alavida-ai/skills"

    def test_github_settings(self):
        registry = create_registry({"type": "github", "repo": "acme/skills", "page_size": 50, "timeout": 5})
        assert registry.repo == "acme/skills"
        assert registry.page_size == 50
        assert registry.timeout == 5

    def test_git_registry(self):
        registry = create_registry({"type": "git", "url": "https://example.com/skills.git"})
        assert isinstance(registry, GitRegistry)
        assert registry.get_display_url() == "https://example.com/skills.git"

    def test_git_without_url(self):
        with pytest.raises(ConfigError):
            create_registry({"type": "git", "url": None})

    def test_unknown_type(self):
        with pytest.raises(ConfigError, match="Unknown registry type 'svn'"):
            create_registry({"type": "svn"})
