"""Workbench manifest access.

Each workbench directory carries a ``workbench.json`` file whose
``primitives`` mapping pins primitive names to ``v<semver>`` strings.
Only install-with-update and update operations rewrite it; validation
and plain installs never do.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agonda.errors import ValidationError
from agonda.output import MessageType, VerbosityLevel, message

WORKBENCH_MANIFEST = "workbench.json"


# ------------------------------------------------------------------
# Generic JSON helpers
# ------------------------------------------------------------------
def load_json(path: Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file is not valid JSON
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError(
            f"{path.name} is not valid JSON: {exc}",
            code="invalid_json",
        ) from exc


def read_json_safe(path: Path) -> Any:
    """Read a JSON file, returning ``None`` if it is missing or malformed."""
    if not path.is_file():
        return None
    try:
        return load_json(path)
    except (ValidationError, OSError) as exc:
        message(
            f"Could not read {path}: {exc}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return None


def write_json(path: Path, data: Any) -> None:
    """Write *data* pretty-printed with a trailing newline."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(json.dumps(data, indent=2) + "\n")


# ------------------------------------------------------------------
# Workbench manifest
# ------------------------------------------------------------------
def manifest_path(workbench_dir: Path) -> Path:
    """Return the full path to the manifest file for a workbench."""
    return workbench_dir / WORKBENCH_MANIFEST


def read_workbench_manifest(workbench_dir: Path) -> dict[str, Any]:
    """Read ``workbench.json`` for *workbench_dir*.

    Raises:
        FileNotFoundError: If the manifest does not exist
        ValidationError: If the manifest is malformed or not an object
    """
    data = load_json(manifest_path(workbench_dir))
    if not isinstance(data, dict):
        raise ValidationError(
            f"{WORKBENCH_MANIFEST} must contain a JSON object",
            code="invalid_manifest",
        )
    return data


def write_workbench_manifest(workbench_dir: Path, manifest: dict[str, Any]) -> None:
    """Write *manifest* back to ``workbench.json`` (indent 2, trailing newline)."""
    path = manifest_path(workbench_dir)
    write_json(path, manifest)
    message(f"Manifest written to {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)


def get_pins(manifest: dict[str, Any]) -> dict[str, str]:
    """Return the ``primitives`` mapping, or an empty dict."""
    pins = manifest.get("primitives")
    if not isinstance(pins, dict):
        return {}
    return dict(pins)


def set_pins(workbench_dir: Path, updates: dict[str, str]) -> dict[str, Any]:
    """Rewrite selected pins in place, preserving every other key.

    Args:
        workbench_dir: Workbench directory
        updates: Mapping of primitive name to new pin (``v``-prefixed)

    Returns:
        The manifest as written
    """
    manifest = read_workbench_manifest(workbench_dir)
    pins = manifest.get("primitives")
    if not isinstance(pins, dict):
        pins = {}
    pins.update(updates)
    manifest["primitives"] = pins
    write_workbench_manifest(workbench_dir, manifest)
    return manifest
