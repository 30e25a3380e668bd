"""GitHub registry implementation backed by the ``gh`` CLI."""

import io
import json
import subprocess
import tarfile
from pathlib import Path

from agonda.errors import NetworkError, NotFoundError
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries.abstract_registry import AbstractRegistry, Tag, TagCache

DEFAULT_REPO = "alavida-ai/skills"

GH_SUGGESTION = "Check your network connection and gh auth status"


class GitHubRegistry(AbstractRegistry):
    """Primitive registry hosted as tags on a GitHub repository."""

    REGISTRY_TYPE = "github"

    def __init__(
        self,
        repo: str = DEFAULT_REPO,
        page_size: int = 100,
        timeout: int = 30,
        download_timeout: int = 60,
        cache: TagCache | None = None,
    ):
        """Initialize a GitHub registry.

        Args:
            repo: ``owner/name`` of the repository holding the tags
            page_size: Tags requested per API page
            timeout: Seconds allowed for each tag listing call
            download_timeout: Seconds allowed for one tarball download

        Note: Does not contact GitHub. The tag listing is fetched lazily.
        """
        super().__init__(cache)
        self.repo = repo
        self.page_size = page_size
        self.timeout = timeout
        self.download_timeout = download_timeout

    def get_display_url(self) -> str:
        return self.repo

    # ------------------------------------------------------------------
    # gh CLI
    # ------------------------------------------------------------------
    def _run_gh(self, endpoint: str, timeout: int) -> bytes:
        """Run ``gh api <endpoint>`` and return raw stdout.

        Raises:
            NetworkError: If gh is missing, times out, or fails
            NotFoundError: If GitHub answers 404
        """
        message(f"gh api {endpoint}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        try:
            result = subprocess.run(
                ["gh", "api", endpoint],
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise NetworkError(
                "GitHub CLI (gh) is not installed.",
                code="gh_not_installed",
                suggestion="Install gh: https://cli.github.com/",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise NetworkError(
                f"GitHub API call timed out after {timeout}s: {endpoint}",
                code="github_timeout",
                suggestion=GH_SUGGESTION,
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            if "HTTP 404" in stderr or "Not Found" in stderr:
                raise NotFoundError(
                    f"GitHub API returned 404 for {endpoint}",
                    code="github_not_found",
                )
            raise NetworkError(
                f"GitHub API call failed: {stderr or f'gh exited with {result.returncode}'}",
                code="github_api_error",
                suggestion=GH_SUGGESTION,
            )
        return result.stdout

    def _api_json(self, endpoint: str):
        raw = self._run_gh(endpoint, self.timeout)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise NetworkError(
                f"GitHub API returned invalid JSON for {endpoint}",
                code="github_api_error",
                suggestion=GH_SUGGESTION,
            ) from e

    # ------------------------------------------------------------------
    # AbstractRegistry
    # ------------------------------------------------------------------
    def fetch_tags(self) -> list[Tag]:
        """Fetch every tag, page by page, until a short page."""
        tags: list[Tag] = []
        page = 1
        while True:
            batch = self._api_json(f"repos/{self.repo}/tags?per_page={self.page_size}&page={page}")
            if not isinstance(batch, list):
                raise NetworkError(
                    f"Unexpected tag listing from {self.repo}",
                    code="github_api_error",
                    suggestion=GH_SUGGESTION,
                )
            if not batch:
                break
            tags.extend(Tag(t["name"], t["commit"]["sha"]) for t in batch)
            if len(batch) < self.page_size:
                break
            page += 1

        message(
            f"Fetched {len(tags)} tags from {self.repo}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return tags

    def _extract(self, tag_ref: str, primitive_name: str, target_dir: Path) -> None:
        """Fetch the tag tarball and unpack only ``skills/<primitive_name>``.

        Archive members look like ``<owner>-<repo>-<sha>/skills/<name>/...``;
        the first two components are stripped.
        """
        endpoint = f"repos/{self.repo}/tarball/refs/tags/{tag_ref}"
        try:
            data = self._run_gh(endpoint, self.download_timeout)
        except NetworkError as e:
            raise NetworkError(
                f"Failed to download {tag_ref}: {e.message}",
                code="download_failed",
                suggestion=GH_SUGGESTION,
            ) from e

        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
                selected = []
                for member in archive.getmembers():
                    parts = member.name.split("/")
                    if len(parts) < 3 or parts[1] != "skills" or parts[2] != primitive_name:
                        continue
                    member.name = "/".join(parts[2:])
                    selected.append(member)
                archive.extractall(target_dir, members=selected, filter="data")
        except (tarfile.TarError, OSError) as e:
            raise NetworkError(
                f"Failed to extract {tag_ref}: {e}",
                code="download_failed",
                suggestion=GH_SUGGESTION,
            ) from e
