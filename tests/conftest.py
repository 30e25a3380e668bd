"""Shared fixtures: throw-away repositories and an offline registry."""

import json
from collections import namedtuple
from pathlib import Path

import pytest

from agonda.agonda import main
from agonda.errors import NetworkError
from agonda.output import get_output
from agonda.plugins.registries import AbstractRegistry, Tag, TagCache

FAKE_TAGS = [
    Tag("visual-explainer/v1.0.0", "a1"),
    Tag("visual-explainer/v1.1.0", "a2"),
    Tag("visual-explainer/v2.0.0", "a3"),
    Tag("compound-learning/v1.0.0", "b1"),
    Tag("compound-learning/v1.1.0", "b2"),
    Tag("not-a-primitive", "c1"),
]


class FakeRegistry(AbstractRegistry):
    """Registry served from a seeded tag list; downloads write a stub SKILL.md."""

    REGISTRY_TYPE = "fake"

    def __init__(self, tags=None, failing=()):
        super().__init__(TagCache(FAKE_TAGS if tags is None else tags))
        self.failing = set(failing)
        self.downloads = []

    def fetch_tags(self):
        raise AssertionError("tag cache should be seeded")

    def get_display_url(self):
        return "fake/skills"

    def _extract(self, tag_ref, primitive_name, target_dir):
        if primitive_name in self.failing:
            raise NetworkError(f"Failed to download {tag_ref}", code="download_failed")
        self.downloads.append(tag_ref)
        skill = Path(target_dir) / primitive_name
        skill.mkdir(parents=True)
        (skill / "SKILL.md").write_text(f"---\nname: {primitive_name}\ndescription: {tag_ref}\n---\n")


@pytest.fixture(autouse=True)
def reset_output():
    """Keep the process-wide output settings from leaking between tests."""
    output = get_output()
    saved = (output.verbosity, output.use_color, output.quiet, output.json_mode)
    output.verbosity, output.use_color, output.quiet, output.json_mode = 0, False, False, False
    yield output
    output.verbosity, output.use_color, output.quiet, output.json_mode = saved


@pytest.fixture
def repo(tmp_path):
    """An empty repository root (marked by a ``.git`` directory)."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def write_json():
    def _write(path, data):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n")
        return path

    return _write


@pytest.fixture
def make_workbench(repo, write_json):
    """Create ``<repo>/<relative>`` with a workbench.json and, optionally, a valid plugin."""

    def _make(relative, primitives=None, plugin=True, manifest=None):
        path = repo / relative
        data = dict(manifest) if manifest is not None else {"name": path.name}
        if primitives is not None:
            data["primitives"] = primitives
        write_json(path / "workbench.json", data)
        if plugin:
            write_json(
                path / ".claude-plugin" / "plugin.json",
                {"name": path.name, "description": f"{path.name} workbench"},
            )
        return path

    return _make


@pytest.fixture
def make_marketplace(repo, write_json):
    """Write ``.claude-plugin/marketplace.json`` at the repository root."""

    def _make(plugins, name="agonda"):
        return write_json(repo / ".claude-plugin" / "marketplace.json", {"name": name, "plugins": plugins})

    return _make


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def registry_factory():
    return FakeRegistry


CliResult = namedtuple("CliResult", ["code", "out", "err"])

# Command modules that build a registry from the config
_REGISTRY_USERS = ("primitives_commands", "status_commands", "config_commands")


@pytest.fixture
def home(tmp_path, monkeypatch):
    """A throw-away home directory (user settings and ~/.agonda live here)."""
    path = tmp_path / "home"
    path.mkdir()
    monkeypatch.setenv("HOME", str(path))
    return path


@pytest.fixture
def cli(repo, home, monkeypatch, capsys, fake_registry):
    """Run ``agonda <argv>`` from the repository root against the offline registry.

    Returns a callable giving ``CliResult(code, out, err)``.
    """
    monkeypatch.chdir(repo)
    for module in _REGISTRY_USERS:
        monkeypatch.setattr(f"agonda.cli_extensions.{module}.create_registry", lambda settings=None: fake_registry)

    def _run(*argv):
        try:
            main(list(argv))
            code = 0
        except SystemExit as e:
            code = e.code or 0
        out, err = capsys.readouterr()
        return CliResult(code, out, err)

    return _run
