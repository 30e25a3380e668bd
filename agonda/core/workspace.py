"""Workspace discovery.

Active workspaces live under ``workspace/active/`` and are identified by
a ``.workbench`` marker file: a small YAML mapping naming the workbench,
the domain and the creation date.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from agonda.core.context import SKIP_DIRS, find_repo_root
from agonda.output import MessageType, VerbosityLevel, message

ACTIVE_DIR = Path("workspace") / "active"
MARKER_FILE = ".workbench"
UNKNOWN = "unknown"


def _rel(base: Path, path: Path) -> str:
    return Path(os.path.relpath(path, base)).as_posix()


def parse_marker(path: Path) -> dict[str, str] | None:
    """Parse a ``.workbench`` marker; ``None`` if it is unreadable or not a mapping.

    Every value is returned as a string (dates as ``YYYY-MM-DD``).
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        message(f"Could not parse {path}: {e}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return {str(k): "" if v is None else str(v) for k, v in data.items()}


def _find_markers(directory: Path) -> list[Path]:
    results: list[Path] = []
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return results
    for entry in entries:
        if entry.name in SKIP_DIRS:
            continue
        # Agent worktrees are temporary copies, not canonical workspaces
        if entry.name == "worktrees" and directory.name == ".claude":
            continue
        if entry.is_dir() and not entry.is_symlink():
            results.extend(_find_markers(entry))
        elif entry.name == MARKER_FILE:
            results.append(entry)
    return results


def discover_workspaces(cwd: Path | None = None) -> list[dict[str, Any]]:
    """All marked workspaces, sorted by name.

    ``name`` is the workspace path relative to ``workspace/active``;
    ``path`` is relative to the repository root.
    """
    repo_root = find_repo_root(cwd)
    active = repo_root / ACTIVE_DIR
    if not active.is_dir():
        return []

    workspaces = []
    for marker in _find_markers(active):
        fields = parse_marker(marker)
        if fields is None:
            message(
                f"Warning: Could not parse {_rel(repo_root, marker)}",
                MessageType.WARNING,
                VerbosityLevel.ALWAYS,
            )
            continue
        workspace_dir = marker.parent
        workspaces.append({
            **fields,
            "name": _rel(active, workspace_dir),
            "path": _rel(repo_root, workspace_dir),
            "workbench": fields.get("workbench") or UNKNOWN,
            "domain": fields.get("domain") or UNKNOWN,
            "created": fields.get("created") or UNKNOWN,
        })

    return sorted(workspaces, key=lambda ws: ws["name"])


def find_workspaces_by_workbench(workbench: str, cwd: Path | None = None) -> list[dict[str, Any]]:
    """Every workspace (not just the first) that belongs to *workbench*."""
    return [ws for ws in discover_workspaces(cwd) if ws["workbench"] == workbench]


def find_unmarked_workspaces(cwd: Path | None = None) -> list[dict[str, str]]:
    """``<category>/<name>`` directories under workspace/active with no marker."""
    repo_root = find_repo_root(cwd)
    active = repo_root / ACTIVE_DIR
    if not active.is_dir():
        return []

    marked = {ws["path"] for ws in discover_workspaces(cwd)}
    unmarked = []
    for category in sorted(active.iterdir()):
        if not category.is_dir() or category.name.startswith("."):
            continue
        for entry in sorted(category.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            path = _rel(repo_root, entry)
            if path not in marked:
                unmarked.append({"name": f"{category.name}/{entry.name}", "path": path})
    return unmarked
