"""Plain git registry implementation."""

import shutil
import tempfile
from pathlib import Path

import git

from agonda.errors import NetworkError
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries.abstract_registry import AbstractRegistry, Tag, TagCache

TAG_REF_PREFIX = "refs/tags/"
PEELED_SUFFIX = "^{}"


class GitRegistry(AbstractRegistry):
    """Primitive registry read straight from any git remote."""

    REGISTRY_TYPE = "git"

    def __init__(self, url: str, timeout: int = 30, cache: TagCache | None = None):
        """Initialize a git registry.

        Args:
            url: Git remote URL (ssh, https, or a local path)
            timeout: Seconds allowed for the tag listing

        Note: Does not contact the remote.
        """
        super().__init__(cache)
        self.url = url
        self.timeout = timeout

    def get_display_url(self) -> str:
        return self.url

    def fetch_tags(self) -> list[Tag]:
        """List tags with ``git ls-remote --tags``.

        Annotated tags appear twice; the peeled ``^{}`` line carries the
        commit the tag points at and wins.
        """
        try:
            output = git.cmd.Git().ls_remote("--tags", self.url, kill_after_timeout=self.timeout)
        except git.exc.GitCommandError as e:
            raise NetworkError(
                f"Cannot list tags of {self.url}: {e}",
                code="git_error",
                suggestion="Check the registry url and your git credentials",
            ) from e

        shas: dict[str, str] = {}
        for line in output.splitlines():
            sha, _, ref = line.partition("\t")
            if not ref.startswith(TAG_REF_PREFIX):
                continue
            name = ref[len(TAG_REF_PREFIX):]
            if name.endswith(PEELED_SUFFIX):
                shas[name[: -len(PEELED_SUFFIX)]] = sha
            else:
                shas.setdefault(name, sha)

        message(f"Fetched {len(shas)} tags from {self.url}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return [Tag(name, sha) for name, sha in shas.items()]

    def _extract(self, tag_ref: str, primitive_name: str, target_dir: Path) -> None:
        """Shallow-clone the tag and copy ``skills/<primitive_name>`` out."""
        with tempfile.TemporaryDirectory(prefix="agonda-clone-") as tmp:
            checkout = Path(tmp) / "registry"
            message(f"Cloning {self.url} at {tag_ref}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            try:
                git.Repo.clone_from(self.url, checkout, depth=1, branch=tag_ref)
            except git.exc.GitCommandError as e:
                raise NetworkError(
                    f"Failed to download {tag_ref}: {e}",
                    code="download_failed",
                    suggestion="Check the registry url and your git credentials",
                ) from e

            source = checkout / "skills" / primitive_name
            if source.is_dir():
                shutil.copytree(source, target_dir / primitive_name, dirs_exist_ok=True)
