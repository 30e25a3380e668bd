"""Primitive installation.

Each installed primitive lives in ``<workbench>/skills/<name>/`` and
carries a ``.primitive-version`` marker holding the installed semver.
A pin that already matches the marker is skipped, so re-running an
install with unchanged pins never downloads anything.

Downloads land in a fresh temporary directory and are moved into place
only once complete. The temporary directory is removed on every path.
"""

from __future__ import annotations

import dataclasses
import errno
import os
import shutil
import tempfile
from collections.abc import Collection
from pathlib import Path
from typing import Any

from agonda.core.context import Workbench
from agonda.core.manifest import set_pins
from agonda.core.semver import compare_semver, strip_v
from agonda.errors import attempt
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries.abstract_registry import AbstractRegistry

MARKER_FILE = ".primitive-version"
SKILLS_DIR = "skills"


# ------------------------------------------------------------------
# Result types
# ------------------------------------------------------------------
class InstallAction:
    """What happened (or would happen) to one primitive."""

    SKIPPED = "skipped"
    WOULD_INSTALL = "would_install"
    WOULD_UPDATE = "would_update"
    INSTALLED = "installed"
    UPDATED = "updated"
    FAILED = "failed"
    CURRENT = "current"

    # Outcomes after which the pin matches what is on disk
    SETTLED = (SKIPPED, INSTALLED, UPDATED)

    def __init__(
        self,
        name: str,
        action: str,
        version: str,
        from_version: str | None = None,
        reason: str | None = None,
    ):
        self.name = name
        self.action = action
        self.version = version
        self.from_version = from_version
        self.reason = reason

    @property
    def succeeded(self) -> bool:
        return self.action in self.SETTLED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "action": self.action, "version": self.version}
        if self.action not in (self.SKIPPED, self.FAILED):
            data["from"] = self.from_version
        if self.reason:
            data["reason"] = self.reason
        return data

    def __repr__(self) -> str:
        return f"InstallAction({self.name!r}, {self.action!r}, {self.version!r})"


class InstallResult:
    """Install actions for one workbench."""

    def __init__(self, workbench: str, path: str, actions: list[InstallAction] | None = None):
        self.workbench = workbench
        self.path = path
        self.actions = actions if actions is not None else []

    @property
    def failed(self) -> list[InstallAction]:
        return [a for a in self.actions if a.action == InstallAction.FAILED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "workbench": self.workbench,
            "path": self.path,
            "actions": [a.to_dict() for a in self.actions],
        }


class PrimitiveUpdate:
    """Result of moving one workbench's pin for a primitive to latest."""

    def __init__(self, workbench: str, path: str, name: str, action: str, from_version: str, to_version: str):
        self.workbench = workbench
        self.path = path
        self.name = name
        self.action = action
        self.from_version = from_version
        self.to_version = to_version

    def to_dict(self) -> dict[str, Any]:
        return {
            "workbench": self.workbench,
            "path": self.path,
            "action": self.action,
            "name": self.name,
            "from": self.from_version,
            "to": self.to_version,
        }


class UpdateResult:
    """Result of ``update_primitive`` across workbenches."""

    NOT_FOUND = "not_found"

    def __init__(
        self,
        primitive: str,
        latest: str | None,
        results: list[PrimitiveUpdate] | None = None,
        error: str | None = None,
    ):
        self.primitive = primitive
        self.latest = latest
        self.results = results if results is not None else []
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"primitive": self.primitive}
        if self.error:
            data["error"] = self.error
        else:
            data["latest"] = self.latest
        data["results"] = [r.to_dict() for r in self.results]
        return data


# ------------------------------------------------------------------
# Marker file
# ------------------------------------------------------------------
def read_installed_version(skill_dir: Path) -> str | None:
    """Return the version recorded in *skill_dir*, or ``None``."""
    marker = skill_dir / MARKER_FILE
    if not marker.is_file():
        return None
    try:
        return marker.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # An unreadable marker counts as no prior install
        message(f"Ignoring unreadable {marker}: {e}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return None


def write_installed_version(skill_dir: Path, version: str) -> None:
    (skill_dir / MARKER_FILE).write_text(f"{version}\n", encoding="utf-8")


# ------------------------------------------------------------------
# Filesystem
# ------------------------------------------------------------------
def replace_directory(source: Path, target: Path) -> None:
    """Move *source* to *target*, replacing whatever is there.

    Uses a rename when both sides share a filesystem. Across devices the
    move degrades to copy-then-delete, during which *target* is
    incomplete.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        shutil.rmtree(target)
    try:
        os.replace(source, target)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        message(
            f"Warning: {source} and {target} are on different filesystems; "
            "copying instead of renaming (not atomic)",
            MessageType.WARNING,
            VerbosityLevel.ALWAYS,
        )
        shutil.move(str(source), str(target))


def _download_into_place(
    registry: AbstractRegistry,
    name: str,
    version: str,
    skill_dir: Path,
) -> bool:
    """Download *name* at *version* and swap it into *skill_dir*.

    Returns:
        False if the download produced no files, True once installed
    """
    # Staging shares a filesystem with the target for os.replace
    skill_dir.parent.mkdir(parents=True, exist_ok=True)
    tmp_dir = Path(tempfile.mkdtemp(prefix=f".agonda-install-{name}-", dir=skill_dir.parent))
    try:
        downloaded = registry.download(name, version, tmp_dir)
        if not downloaded.is_dir():
            return False
        replace_directory(downloaded, skill_dir)
        write_installed_version(skill_dir, version)
        return True
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)


def _install_one(
    workbench: Workbench,
    registry: AbstractRegistry,
    name: str,
    version: str,
    dry_run: bool,
) -> InstallAction:
    skill_dir = workbench.path / SKILLS_DIR / name
    installed = read_installed_version(skill_dir) if skill_dir.is_dir() else None

    if installed == version:
        return InstallAction(name, InstallAction.SKIPPED, version, installed, "already installed")

    if dry_run:
        action = InstallAction.WOULD_UPDATE if installed else InstallAction.WOULD_INSTALL
        return InstallAction(name, action, version, installed)

    message(f"Installing {name}@{version} into {workbench.relative_path}", MessageType.INFO, VerbosityLevel.VERBOSE)
    outcome = attempt(_download_into_place, registry, name, version, skill_dir)
    if not outcome.ok:
        return InstallAction(name, InstallAction.FAILED, version, installed, str(outcome.error))
    if not outcome.value:
        return InstallAction(name, InstallAction.FAILED, version, installed, "download produced no files")

    action = InstallAction.UPDATED if installed else InstallAction.INSTALLED
    return InstallAction(name, action, version, installed)


# ------------------------------------------------------------------
# Entry points
# ------------------------------------------------------------------
def install_primitives(
    workbench: Workbench,
    registry: AbstractRegistry,
    update: bool = False,
    dry_run: bool = False,
    only: Collection[str] | None = None,
) -> InstallResult:
    """Install the primitives pinned by *workbench*.

    Args:
        workbench: Target workbench
        registry: Registry to resolve and download from
        update: Bump every pin to the registry's latest first
        dry_run: Report what would happen without touching the disk
        only: Restrict to these primitive names

    With ``update`` (and not ``dry_run``) the manifest is rewritten
    afterwards, but only for pins whose install ended settled
    (installed, updated or skipped). A failed bump keeps its old pin.
    """
    result = InstallResult(workbench.name, workbench.relative_path)
    original = workbench.primitives
    pins = {name: str(pin) for name, pin in original.items() if only is None or name in only}
    if not pins:
        return result

    if update:
        for name in pins:
            outcome = attempt(registry.latest_version, name)
            if outcome.ok and outcome.value:
                pins[name] = f"v{outcome.value}"
            elif not outcome.ok:
                message(
                    f"Could not resolve latest version of {name}, keeping {pins[name]}: {outcome.error}",
                    MessageType.WARNING,
                    VerbosityLevel.VERBOSE,
                )

    for name, pin in pins.items():
        result.actions.append(_install_one(workbench, registry, name, strip_v(pin), dry_run))

    if update and not dry_run:
        settled = {a.name for a in result.actions if a.succeeded}
        changed = {
            name: pin for name, pin in pins.items()
            if name in settled and pin != str(original.get(name))
        }
        if changed:
            workbench.config = set_pins(workbench.path, changed)
            message(
                f"Updated pins in {workbench.relative_path}/workbench.json: {', '.join(sorted(changed))}",
                MessageType.INFO,
                VerbosityLevel.VERBOSE,
            )

    return result


def update_primitive(
    name: str,
    workbenches: list[Workbench],
    registry: AbstractRegistry,
    dry_run: bool = False,
) -> UpdateResult:
    """Move *name* to its latest version in every workbench that pins it.

    Workbenches that do not pin *name* are skipped silently. The pin is
    rewritten only after the new version is installed.

    Raises:
        NetworkError: If the registry cannot be queried
    """
    latest = registry.latest_version(name)
    if latest is None:
        return UpdateResult(name, None, error=UpdateResult.NOT_FOUND)

    result = UpdateResult(name, latest)
    for workbench in workbenches:
        pins = workbench.primitives
        if name not in pins:
            continue

        current = strip_v(str(pins[name]))
        if compare_semver(current, latest) >= 0:
            action = InstallAction.CURRENT
        elif dry_run:
            action = InstallAction.WOULD_UPDATE
        else:
            action = _apply_update(workbench, registry, name, latest)

        result.results.append(
            PrimitiveUpdate(workbench.name, workbench.relative_path, name, action, current, latest)
        )

    return result


def _apply_update(workbench: Workbench, registry: AbstractRegistry, name: str, latest: str) -> str:
    bumped = dict(workbench.config)
    bumped["primitives"] = {**workbench.primitives, name: f"v{latest}"}
    staged = dataclasses.replace(workbench, config=bumped)

    install = install_primitives(staged, registry, only=[name])
    action = install.actions[0]
    if action.succeeded:
        outcome = attempt(set_pins, workbench.path, {name: f"v{latest}"})
        if not outcome.ok:
            return InstallAction.FAILED
        workbench.config = outcome.value
    return action.action
