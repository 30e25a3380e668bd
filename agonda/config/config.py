"""Configuration management class for agonda.

Schema: registry + validate + health, every key optional.
"""

import copy
from pathlib import Path
from typing import Any, TypedDict

import yaml

from agonda.errors import AgondaError, ExitCode
from agonda.output import MessageType, VerbosityLevel, message

REGISTRY_TYPES = ("github", "git")


class RegistrySettings(TypedDict, total=False):
    """Type definition for the ``registry`` section."""

    type: str
    repo: str
    url: str | None
    page_size: int
    timeout: int
    download_timeout: int


class ValidateSettings(TypedDict, total=False):
    """Type definition for the ``validate`` section."""

    delegate: bool


class HealthSettings(TypedDict, total=False):
    """Type definition for the ``health`` section."""

    freshness_warn_days: int
    freshness_error_days: int


class ConfigData(TypedDict, total=False):
    """Type definition for the configuration structure."""

    registry: RegistrySettings
    validate: ValidateSettings
    health: HealthSettings


DEFAULTS: ConfigData = {
    "registry": {
        "type": "github",
        "repo": "alavida-ai/skills",
        "url": None,
        "page_size": 100,
        "timeout": 30,
        "download_timeout": 60,
    },
    "validate": {
        "delegate": False,
    },
    "health": {
        "freshness_warn_days": 90,
        "freshness_error_days": 180,
    },
}


class ConfigError(AgondaError):
    """Exception raised for configuration validation errors.

    Can contain multiple error messages.
    """

    default_code = "config_error"
    default_exit_code = ExitCode.GENERAL

    def __init__(self, errors: str | list[str], suggestion: str | None = None):
        """Initialize ConfigError.

        Args:
            errors: Single error message or list of error messages
            suggestion: Optional remediation hint
        """
        if isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = errors
        super().__init__(self._format_errors(), suggestion=suggestion)

    def _format_errors(self) -> str:
        """Format errors for display."""
        if len(self.errors) == 1:
            return self.errors[0]
        else:
            error_list = "\n".join(f"  - {err}" for err in self.errors)
            return f"Configuration has {len(self.errors)} errors:\n{error_list}"


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _check_positive_int(errors: list[str], section: str, data: dict[str, Any], key: str) -> None:
    if key not in data:
        return
    value = data[key]
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"'{section}.{key}' must be an integer, got {type(value).__name__}")
    elif value <= 0:
        errors.append(f"'{section}.{key}' must be positive")


class Config:
    """Manages configuration for agonda."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize the Config manager.

        Args:
            config_dir: Optional custom config directory.
                       Defaults to ~/.agonda
        """
        if config_dir is None:
            config_dir = Path.home() / ".agonda"

        self.config_directory = config_dir
        self.config_file = self.config_directory / "config.yaml"

    def ensure_directories(self) -> None:
        """Create the config directory if it doesn't exist.

        Raises:
            ConfigError: If the directory cannot be created
        """
        try:
            self.config_directory.mkdir(parents=True, exist_ok=True)
            message(
                f"Ensured config directory exists: {self.config_directory}",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
        except OSError as e:
            raise ConfigError(f"Failed to create config directory {self.config_directory}: {e}") from e

    @staticmethod
    def validate(config: dict[str, Any]) -> list[str]:
        """Validate the configuration structure.

        Collects all validation errors before raising an exception.

        Args:
            config: The configuration dictionary to validate

        Returns:
            List of warnings (non-fatal issues)

        Raises:
            ConfigError: If the configuration is invalid, with all errors
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(config, dict):
            raise ConfigError("Configuration must be a mapping")

        for key in config:
            if key not in DEFAULTS:
                warnings.append(f"Unknown top-level key '{key}' is ignored")

        # --- registry ---
        registry = config.get("registry")
        if registry is not None:
            if not isinstance(registry, dict):
                errors.append("'registry' must be a dictionary")
            else:
                registry_type = registry.get("type", "github")
                if registry_type not in REGISTRY_TYPES:
                    errors.append(
                        f"'registry.type' must be one of {', '.join(REGISTRY_TYPES)}, got '{registry_type}'"
                    )
                if "repo" in registry:
                    if not isinstance(registry["repo"], str) or "/" not in registry["repo"]:
                        errors.append("'registry.repo' must be a string of the form owner/name")
                if registry.get("url") is not None and not isinstance(registry["url"], str):
                    errors.append("'registry.url' must be a string")
                if registry_type == "git" and not registry.get("url"):
                    errors.append("'registry.url' is required when 'registry.type' is 'git'")
                for key in ("page_size", "timeout", "download_timeout"):
                    _check_positive_int(errors, "registry", registry, key)

        # --- validate ---
        validate = config.get("validate")
        if validate is not None:
            if not isinstance(validate, dict):
                errors.append("'validate' must be a dictionary")
            elif "delegate" in validate and not isinstance(validate["delegate"], bool):
                errors.append("'validate.delegate' must be true or false")

        # --- health ---
        health = config.get("health")
        if health is not None:
            if not isinstance(health, dict):
                errors.append("'health' must be a dictionary")
            else:
                _check_positive_int(errors, "health", health, "freshness_warn_days")
                _check_positive_int(errors, "health", health, "freshness_error_days")
                warn = health.get("freshness_warn_days", DEFAULTS["health"]["freshness_warn_days"])
                error = health.get("freshness_error_days", DEFAULTS["health"]["freshness_error_days"])
                if isinstance(warn, int) and isinstance(error, int) and warn > error:
                    warnings.append(
                        "'health.freshness_warn_days' is greater than "
                        "'health.freshness_error_days'; warnings will never be reported"
                    )

        if errors:
            raise ConfigError(errors)

        return warnings

    def read(self) -> ConfigData:
        """Load the configuration, layered over the defaults.

        A missing or empty file yields the defaults.

        Returns:
            The merged and validated configuration dictionary

        Raises:
            ConfigError: If the file cannot be parsed or is invalid
        """
        if not self.exists():
            message(
                f"No configuration file at {self.config_file}, using defaults",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            return copy.deepcopy(DEFAULTS)

        try:
            with open(self.config_file) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse configuration file {self.config_file}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file {self.config_file}: {e}") from e

        if config is None:
            return copy.deepcopy(DEFAULTS)

        warnings = self.validate(config)
        for warning in warnings:
            message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)

        message(f"Configuration loaded from {self.config_file}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return _merge(DEFAULTS, config)

    def write(self, config: ConfigData) -> None:
        """Write the configuration to the config file with validation.

        Args:
            config: The configuration dictionary to write

        Raises:
            ConfigError: If validation fails or the file cannot be written
        """
        self.validate(config)
        self.ensure_directories()
        try:
            with open(self.config_file, "w") as f:
                yaml.dump(dict(config), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to write configuration file: {e}") from e
        message(f"Configuration saved to {self.config_file}", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    def exists(self) -> bool:
        """Check if the configuration file exists.

        Returns:
            True if config file exists, False otherwise
        """
        return self.config_file.exists()

    @staticmethod
    def generate_template() -> str:
        """Generate a commented YAML template for a new configuration.

        Returns:
            Template string suitable for writing to stdout or a file
        """
        return """# agonda configuration
# Every key is optional; the values below are the defaults.

registry:
  # github: tags on a GitHub repository, read through the gh CLI
  # git: tags on any git remote, read with git itself (set url)
  type: github
  repo: alavida-ai/skills
  # url: git@github.com:alavida-ai/skills.git
  page_size: 100
  timeout: 30
  download_timeout: 60

validate:
  # Also run `claude plugin validate` on each workbench
  delegate: false

health:
  freshness_warn_days: 90
  freshness_error_days: 180
"""
