"""Plugin enablement across Claude settings scopes.

A plugin is addressed as ``<plugin>@<marketplace>`` in ``enabledPlugins``.
Only plugins listed in the repository's marketplace can be toggled.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from agonda.core.context import find_repo_root
from agonda.core.marketplace import get_marketplace
from agonda.errors import NotFoundError
from agonda.output import MessageType, VerbosityLevel, message
from agonda.utils.settings import (
    SCOPE_PROJECT,
    get_enabled_plugins_with_scope,
    set_plugin_flags,
    settings_path,
)

ENABLED = "enabled"
DISABLED = "disabled"


def plugin_key(name: str, marketplace_name: str) -> str:
    return f"{name}@{marketplace_name}"


def _marketplace_names(marketplace: dict[str, Any]) -> list[str]:
    plugins = marketplace.get("plugins")
    if not isinstance(plugins, list):
        return []
    return [p["name"] for p in plugins if isinstance(p, dict) and p.get("name")]


def _require_known(names: list[str], known: list[str]) -> None:
    for name in names:
        if name not in known:
            raise NotFoundError(
                f'Plugin "{name}" not found in marketplace.json',
                code="plugin_not_found",
                suggestion='Run "agonda plugin list" to see available plugins',
            )


def list_plugins(cwd: Path | None = None, home: Path | None = None) -> list[dict[str, Any]]:
    """Every marketplace plugin with its effective enabled state.

    The scope reported is the highest-priority scope enabling the plugin
    (project, then local, then user), or ``"-"``.
    """
    repo_root = find_repo_root(cwd)
    marketplace = get_marketplace(cwd)
    marketplace_name = marketplace.get("name") or "unknown"
    enabled = get_enabled_plugins_with_scope(repo_root, home)

    plugins = []
    for entry in marketplace.get("plugins") or []:
        if not isinstance(entry, dict):
            continue
        scope = enabled.get(plugin_key(entry.get("name", ""), marketplace_name))
        plugins.append({
            "name": entry.get("name", ""),
            "status": ENABLED if scope else DISABLED,
            "scope": scope or "-",
            "version": entry.get("version") or "0.0.0",
            "description": entry.get("description") or "",
            "path": entry.get("source") if isinstance(entry.get("source"), str) else "",
            "category": entry.get("category") or "",
            "tags": entry.get("tags") or [],
        })
    return plugins


def set_plugin_state(
    name: str,
    enabled: bool,
    scope: str = SCOPE_PROJECT,
    cwd: Path | None = None,
    home: Path | None = None,
) -> dict[str, Any]:
    """Enable or disable one plugin in one scope.

    Raises:
        NotFoundError: If *name* is not in the marketplace
        ValidationError: If *scope* is unknown or the settings file is malformed
    """
    repo_root = find_repo_root(cwd)
    marketplace = get_marketplace(cwd)
    _require_known([name], _marketplace_names(marketplace))

    key = plugin_key(name, marketplace.get("name") or "unknown")
    path = settings_path(scope, repo_root, home)
    previous = set_plugin_flags(path, {key: enabled})

    return {
        "key": key,
        "action": ENABLED if enabled else DISABLED,
        "scope": scope,
        "already_in_state": previous[key] == enabled,
    }


def switch_plugin(
    name: str,
    keep: list[str] | None = None,
    scope: str = SCOPE_PROJECT,
    cwd: Path | None = None,
    home: Path | None = None,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Enable *name*, disable every other enabled plugin except *keep*.

    Disables are written to *scope*, so a plugin enabled only at user
    scope is overridden there rather than removed from the user file.

    Raises:
        NotFoundError: If *name* or any kept plugin is not in the marketplace
    """
    keep = list(keep or [])
    repo_root = find_repo_root(cwd)
    marketplace = get_marketplace(cwd)
    known = _marketplace_names(marketplace)
    _require_known([name, *keep], known)

    marketplace_name = marketplace.get("name") or "unknown"
    enabled_now = get_enabled_plugins_with_scope(repo_root, home)
    to_disable = [
        other for other in known
        if other != name and other not in keep and plugin_key(other, marketplace_name) in enabled_now
    ]

    if not dry_run:
        flags = {plugin_key(other, marketplace_name): False for other in to_disable}
        flags[plugin_key(name, marketplace_name)] = True
        for kept in keep:
            flags[plugin_key(kept, marketplace_name)] = True
        set_plugin_flags(settings_path(scope, repo_root, home), flags)
        message(f"Switched to {name} in {scope} scope", MessageType.DEBUG, VerbosityLevel.DEBUG)

    return {
        "enabled": [name],
        "disabled": to_disable,
        "kept": keep,
        "scope": scope,
        "dry_run": dry_run,
    }
