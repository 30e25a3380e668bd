"""Repository and workbench context resolution.

Everything agonda does is relative to a git repository root. Workbenches
are directories holding a ``workbench.json`` manifest somewhere below
that root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agonda.core.manifest import WORKBENCH_MANIFEST, get_pins, read_json_safe, read_workbench_manifest
from agonda.errors import NotFoundError, ValidationError
from agonda.output import MessageType, VerbosityLevel, message

MARKETPLACE_FILE = Path(".claude-plugin") / "marketplace.json"

# Directories never scanned for workbenches
SKIP_DIRS = {".git", "node_modules"}


@dataclass
class Workbench:
    """A workbench discovered on disk."""

    name: str
    path: Path
    relative_path: str
    config: dict[str, Any] = field(default_factory=dict)
    load_error: str | None = None

    @property
    def primitives(self) -> dict[str, str]:
        return get_pins(self.config)


class TargetResolution:
    """Which workbenches an operation should act on, and why."""

    EXPLICIT = "explicit"
    ALL = "all"
    CURRENT = "current"

    def __init__(self, workbenches: list[Workbench], scope: str, fell_back: bool = False):
        self.workbenches = workbenches
        self.scope = scope
        self.fell_back = fell_back

    def __repr__(self) -> str:
        return (
            f"TargetResolution(scope={self.scope!r}, "
            f"workbenches={len(self.workbenches)}, fell_back={self.fell_back})"
        )


# ------------------------------------------------------------------
# Repository root
# ------------------------------------------------------------------
def _walk_up(start: Path, marker: str) -> Path | None:
    directory = start.resolve()
    while True:
        if (directory / marker).exists():
            return directory
        if directory.parent == directory:
            return None
        directory = directory.parent


def find_repo_root(cwd: Path | None = None) -> Path:
    """Find the git repository root by walking up from *cwd*.

    Raises:
        NotFoundError: If *cwd* is not inside a git repository
    """
    start = Path(cwd) if cwd is not None else Path.cwd()
    root = _walk_up(start, ".git")
    if root is None:
        raise NotFoundError(
            "Not inside a git repository. Run from inside an Agonda repo.",
            code="repo_not_found",
            suggestion="cd into your Agonda knowledge base repo",
        )
    return root


def _relative(repo_root: Path, path: Path) -> str:
    return Path(os.path.relpath(path, repo_root)).as_posix()


def _load_workbench(repo_root: Path, directory: Path) -> Workbench:
    relative_path = _relative(repo_root, directory)
    name = directory.name
    try:
        config = read_workbench_manifest(directory)
    except (ValidationError, OSError) as exc:
        message(
            f"Warning: could not read {relative_path}/{WORKBENCH_MANIFEST}: {exc}",
            MessageType.WARNING,
            VerbosityLevel.VERBOSE,
        )
        return Workbench(name, directory, relative_path, {}, str(exc))
    return Workbench(name, directory, relative_path, config)


# ------------------------------------------------------------------
# Workbench lookup
# ------------------------------------------------------------------
def find_workbench_context(cwd: Path | None = None) -> Workbench | None:
    """Return the workbench containing *cwd*, or ``None``.

    Never walks above the repository root.
    """
    start = Path(cwd) if cwd is not None else Path.cwd()
    repo_root = find_repo_root(start)
    directory = start.resolve()

    while True:
        if (directory / WORKBENCH_MANIFEST).is_file():
            return _load_workbench(repo_root, directory)
        if directory == repo_root or directory.parent == directory:
            return None
        directory = directory.parent


def _find_manifest_dirs(directory: Path) -> list[Path]:
    results: list[Path] = []
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return results
    for entry in entries:
        if entry.name in SKIP_DIRS:
            continue
        if entry.is_dir() and not entry.is_symlink():
            results.extend(_find_manifest_dirs(entry))
        elif entry.name == WORKBENCH_MANIFEST:
            results.append(directory)
    return results


def find_all_workbenches(cwd: Path | None = None) -> list[Workbench]:
    """Discover every workbench in the repository, sorted by path."""
    repo_root = find_repo_root(cwd)
    workbenches = [_load_workbench(repo_root, d) for d in _find_manifest_dirs(repo_root)]
    return sorted(workbenches, key=lambda wb: wb.relative_path)


def resolve_workbench_flag(name_or_path: str, cwd: Path | None = None) -> Workbench:
    """Resolve a ``--workbench`` value to a workbench.

    Tries, in order: a marketplace alias, a path relative to *cwd*, and a
    path relative to the repository root.

    Raises:
        NotFoundError: If none of the candidates holds a manifest
    """
    start = Path(cwd) if cwd is not None else Path.cwd()
    repo_root = find_repo_root(start)

    candidates: list[Path] = []
    marketplace = read_json_safe(repo_root / MARKETPLACE_FILE)
    if isinstance(marketplace, dict):
        for plugin in marketplace.get("plugins") or []:
            if (
                isinstance(plugin, dict)
                and plugin.get("name") == name_or_path
                and isinstance(plugin.get("source"), str)
            ):
                candidates.append((repo_root / plugin["source"]).resolve())
                break

    candidates.append((start / name_or_path).resolve())
    candidates.append((repo_root / name_or_path).resolve())

    for candidate in candidates:
        if (candidate / WORKBENCH_MANIFEST).is_file():
            return _load_workbench(repo_root, candidate)

    raise NotFoundError(
        f'Workbench "{name_or_path}" not found. Not a marketplace alias or valid path.',
        code="workbench_not_found",
        suggestion=(
            'Run "agonda plugin list" to see available workbenches, or pass a '
            "path to a directory containing workbench.json"
        ),
    )


def resolve_target_workbenches(
    all_workbenches: bool = False,
    cwd: Path | None = None,
    workbench: str | None = None,
) -> TargetResolution:
    """Decide which workbenches an operation targets.

    - ``workbench`` given: exactly that workbench
    - ``all_workbenches``: every workbench in the repository
    - otherwise the workbench containing *cwd*; if *cwd* is not inside
      one, every workbench, with ``fell_back`` set so callers can say so
    """
    if workbench:
        return TargetResolution(
            [resolve_workbench_flag(workbench, cwd)], TargetResolution.EXPLICIT,
        )

    if all_workbenches:
        return TargetResolution(find_all_workbenches(cwd), TargetResolution.ALL)

    current = find_workbench_context(cwd)
    if current is not None:
        return TargetResolution([current], TargetResolution.CURRENT)

    return TargetResolution(find_all_workbenches(cwd), TargetResolution.ALL, fell_back=True)
