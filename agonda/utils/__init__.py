"""Utility functions for agonda."""

from .settings import (
    SCOPES,
    get_enabled_plugins,
    get_enabled_plugins_with_scope,
    read_settings,
    set_plugin_flags,
    settings_path,
)

__all__ = [
    "SCOPES",
    "get_enabled_plugins",
    "get_enabled_plugins_with_scope",
    "read_settings",
    "set_plugin_flags",
    "settings_path",
]
