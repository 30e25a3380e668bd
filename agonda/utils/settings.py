"""Claude settings file utilities.

Plugin enablement lives in ``enabledPlugins`` inside three settings
files, one per scope. Every rewrite is a read-modify-write that keeps
all other keys.
"""

from pathlib import Path
from typing import Any

from agonda.core.manifest import load_json, read_json_safe, write_json
from agonda.errors import ValidationError
from agonda.output import MessageType, VerbosityLevel, message

SCOPE_PROJECT = "project"
SCOPE_LOCAL = "local"
SCOPE_USER = "user"

# Highest priority first
SCOPES = (SCOPE_PROJECT, SCOPE_LOCAL, SCOPE_USER)

ENABLED_KEY = "enabledPlugins"


# =============================================================================
# Scope resolution
# =============================================================================


def settings_path(scope: str, repo_root: Path, home: Path | None = None) -> Path:
    """Return the settings file for *scope*.

    Args:
        scope: One of "project", "local", "user"
        repo_root: Repository root (project and local scopes)
        home: Home directory (user scope). Defaults to the current user's

    Raises:
        ValidationError: If the scope is unknown
    """
    if scope == SCOPE_PROJECT:
        return repo_root / ".claude" / "settings.json"
    if scope == SCOPE_LOCAL:
        return repo_root / ".claude" / "settings.local.json"
    if scope == SCOPE_USER:
        return (home if home is not None else Path.home()) / ".claude" / "settings.json"
    raise ValidationError(
        f"Unknown settings scope '{scope}'",
        code="invalid_scope",
        suggestion=f"Use one of: {', '.join(SCOPES)}",
    )


# =============================================================================
# Read / write
# =============================================================================


def read_settings(path: Path) -> dict[str, Any]:
    """Read a settings file; missing or malformed files read as empty."""
    data = read_json_safe(path)
    return data if isinstance(data, dict) else {}


def get_enabled_plugins(path: Path) -> set[str]:
    """Return the plugin keys switched on in one settings file."""
    enabled = read_settings(path).get(ENABLED_KEY)
    if not isinstance(enabled, dict):
        return set()
    return {key for key, value in enabled.items() if value}


def get_enabled_plugins_with_scope(repo_root: Path, home: Path | None = None) -> dict[str, str]:
    """Map every enabled plugin key to the highest-priority scope enabling it."""
    result: dict[str, str] = {}
    for scope in reversed(SCOPES):
        for key in get_enabled_plugins(settings_path(scope, repo_root, home)):
            result[key] = scope
    return result


def set_plugin_flags(path: Path, flags: dict[str, bool]) -> dict[str, bool]:
    """Set ``enabledPlugins`` entries in one settings file.

    Args:
        path: Settings file to rewrite (created if missing)
        flags: Plugin key to enabled flag

    Returns:
        The previous flag of each key (False when absent)

    Raises:
        ValidationError: If the existing file is not a JSON object
    """
    # A malformed file is reported rather than overwritten
    settings = load_json(path) if path.is_file() else {}
    if not isinstance(settings, dict):
        raise ValidationError(f"{path} must contain a JSON object", code="invalid_settings")

    enabled = settings.get(ENABLED_KEY)
    if not isinstance(enabled, dict):
        enabled = {}

    previous = {key: bool(enabled.get(key, False)) for key in flags}
    enabled.update(flags)
    settings[ENABLED_KEY] = enabled

    write_json(path, settings)
    message(f"Updated {ENABLED_KEY} in {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)
    return previous
