"""Configuration management for agonda."""

from .config import Config, ConfigData, ConfigError, HealthSettings, RegistrySettings, ValidateSettings

__all__ = ["Config", "ConfigData", "ConfigError", "HealthSettings", "RegistrySettings", "ValidateSettings"]
