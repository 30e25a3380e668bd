"""Marketplace manifest access.

The marketplace lives at ``.claude-plugin/marketplace.json`` in the
repository root and lists every workbench the repository publishes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from agonda.core.context import MARKETPLACE_FILE, find_repo_root
from agonda.core.manifest import load_json
from agonda.errors import NotFoundError


@dataclass
class MarketplacePlugin:
    """One plugin entry in the marketplace."""

    name: str
    version: str = "0.0.0"
    description: str = ""
    source: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> MarketplacePlugin:
        return cls(
            name=entry.get("name") or "",
            version=entry.get("version") or "0.0.0",
            description=entry.get("description") or "",
            source=entry.get("source") or "",
            category=entry.get("category") or "",
            tags=list(entry.get("tags") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def marketplace_path(repo_root: Path) -> Path:
    return repo_root / MARKETPLACE_FILE


def get_marketplace(cwd: Path | None = None) -> dict[str, Any]:
    """Load the repository's marketplace manifest.

    Raises:
        NotFoundError: If there is no marketplace.json
        ValidationError: If it is not valid JSON
    """
    path = marketplace_path(find_repo_root(cwd))
    if not path.is_file():
        raise NotFoundError(
            "No marketplace.json found at .claude-plugin/marketplace.json",
            code="marketplace_not_found",
            suggestion="Ensure you are in an Agonda repo with a marketplace configured",
        )
    data = load_json(path)
    return data if isinstance(data, dict) else {}


def get_marketplace_name(cwd: Path | None = None) -> str:
    return get_marketplace(cwd).get("name") or "unknown"


def _entries(marketplace: dict[str, Any]) -> list[dict[str, Any]]:
    plugins = marketplace.get("plugins")
    if not isinstance(plugins, list):
        return []
    return [p for p in plugins if isinstance(p, dict)]


def list_workbenches(cwd: Path | None = None) -> list[MarketplacePlugin]:
    """All plugins registered in the marketplace, in declaration order."""
    return [MarketplacePlugin.from_entry(p) for p in _entries(get_marketplace(cwd))]


def find_plugin(name: str, cwd: Path | None = None) -> dict[str, Any] | None:
    """Return the raw marketplace entry for *name*, or ``None``."""
    for entry in _entries(get_marketplace(cwd)):
        if entry.get("name") == name:
            return entry
    return None
