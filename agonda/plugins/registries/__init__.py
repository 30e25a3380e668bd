"""Primitive registry backends."""

from typing import Any

from agonda.config import ConfigError

from .abstract_registry import AbstractRegistry, Tag, TagCache
from .git_registry import GitRegistry
from .github_registry import DEFAULT_REPO, GitHubRegistry

REGISTRY_TYPES: dict[str, type[AbstractRegistry]] = {
    GitHubRegistry.REGISTRY_TYPE: GitHubRegistry,
    GitRegistry.REGISTRY_TYPE: GitRegistry,
}


def create_registry(settings: dict[str, Any] | None = None) -> AbstractRegistry:
    """Build the registry described by the ``registry`` config section.

    Args:
        settings: The ``registry`` mapping from the config file, or None
            for the default GitHub registry

    Raises:
        ConfigError: If the registry type is unknown or incomplete
    """
    settings = settings or {}
    registry_type = settings.get("type") or GitHubRegistry.REGISTRY_TYPE

    if registry_type == GitHubRegistry.REGISTRY_TYPE:
        return GitHubRegistry(
            repo=settings.get("repo") or DEFAULT_REPO,
            page_size=settings.get("page_size", 100),
            timeout=settings.get("timeout", 30),
            download_timeout=settings.get("download_timeout", 60),
        )

    if registry_type == GitRegistry.REGISTRY_TYPE:
        if not settings.get("url"):
            raise ConfigError(["registry.url is required when registry.type is 'git'"])
        return GitRegistry(settings["url"], timeout=settings.get("timeout", 30))

    raise ConfigError(
        [f"Unknown registry type '{registry_type}'. Available: {', '.join(sorted(REGISTRY_TYPES))}"]
    )


__all__ = [
    "AbstractRegistry",
    "GitHubRegistry",
    "GitRegistry",
    "REGISTRY_TYPES",
    "Tag",
    "TagCache",
    "create_registry",
]
