"""Abstract base class for primitive registry implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from functools import cmp_to_key
from pathlib import Path

from agonda.core.semver import compare_semver, parse_tag
from agonda.errors import NotFoundError
from agonda.output import MessageType, VerbosityLevel, message


@dataclass(frozen=True)
class Tag:
    """A remote tag: its name and the commit it points at."""

    name: str
    sha: str


class TagCache:
    """Tag listing cached for the lifetime of a registry instance.

    Populated on first use (or seeded), never expires on its own. Not
    safe for concurrent population; agonda is single-threaded.
    """

    def __init__(self, tags: list[Tag] | None = None):
        self._tags: list[Tag] | None = list(tags) if tags is not None else None

    @property
    def is_populated(self) -> bool:
        return self._tags is not None

    def get_or_fetch(self, fetcher: Callable[[], list[Tag]]) -> list[Tag]:
        """Return the cached tags, calling *fetcher* once if empty.

        If *fetcher* raises, the cache stays empty.
        """
        if self._tags is None:
            self._tags = list(fetcher())
        return self._tags

    def seed(self, tags: list[Tag]) -> None:
        self._tags = list(tags)

    def clear(self) -> None:
        self._tags = None


class AbstractRegistry(ABC):
    """Abstract base class for a tag-based primitive registry.

    Subclasses supply the two operations that touch the network:
    listing every tag and extracting one primitive at one tag. All
    version logic lives here so it can be exercised against a seeded
    cache.
    """

    # Subclasses must define this to identify their type
    REGISTRY_TYPE: str = "unknown"

    def __init__(self, cache: TagCache | None = None):
        self.cache = cache if cache is not None else TagCache()

    @abstractmethod
    def fetch_tags(self) -> list[Tag]:
        """Fetch the complete tag listing from the remote.

        Raises:
            NetworkError: If the listing cannot be fetched in full
        """

    @abstractmethod
    def _extract(self, tag_ref: str, primitive_name: str, target_dir: Path) -> None:
        """Materialize ``skills/<primitive_name>`` at *tag_ref* into *target_dir*.

        The result must be ``target_dir/<primitive_name>/...``.

        Raises:
            NetworkError: If the download or extraction fails
        """

    @abstractmethod
    def get_display_url(self) -> str:
        """Human-friendly location of the registry."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def tags(self) -> list[Tag]:
        """Return all tags, fetching them on first use."""
        return self.cache.get_or_fetch(self.fetch_tags)

    def list_versions(self, primitive_name: str) -> list[str]:
        """All versions of a primitive, newest first. Empty if none."""
        versions = []
        for tag in self.tags():
            parsed = parse_tag(tag.name)
            if parsed and parsed.primitive == primitive_name:
                versions.append(parsed.version)
        return sorted(versions, key=cmp_to_key(compare_semver), reverse=True)

    def latest_version(self, primitive_name: str) -> str | None:
        """Highest version of a primitive, or ``None`` if it has no tags."""
        versions = self.list_versions(primitive_name)
        return versions[0] if versions else None

    def list_primitives(self) -> list[str]:
        """Sorted unique primitive names found in the tag listing."""
        names = {parsed.primitive for tag in self.tags() if (parsed := parse_tag(tag.name))}
        return sorted(names)

    def has_tag(self, tag_ref: str) -> bool:
        return any(tag.name == tag_ref for tag in self.tags())

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------
    def download(self, primitive_name: str, version: str, target_dir: Path) -> Path:
        """Download one primitive at exactly *version* into *target_dir*.

        Returns:
            Path to the extracted ``target_dir/<primitive_name>`` directory

        Raises:
            NotFoundError: If no tag named ``<name>/v<version>`` exists
            NetworkError: If fetching the artifact fails
        """
        tag_ref = f"{primitive_name}/v{version}"
        if not self.has_tag(tag_ref):
            raise NotFoundError(
                f'Tag "{tag_ref}" not found in {self.get_display_url()}.',
                code="tag_not_found",
                suggestion='Run "agonda primitives status" to see available versions',
            )

        target_dir = Path(target_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        message(
            f"Downloading {tag_ref} into {target_dir}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        self._extract(tag_ref, primitive_name, target_dir)
        return target_dir / primitive_name

    # ------------------------------------------------------------------
    # String representations
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        return f"Registry(type={self.REGISTRY_TYPE}, url={self.get_display_url()})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(url='{self.get_display_url()}', "
            f"cached={self.cache.is_populated})"
        )
