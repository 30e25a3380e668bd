"""Tests for core/manifest.py - Workbench manifest access."""

import json

import pytest

from agonda.core.manifest import (
    get_pins,
    load_json,
    read_json_safe,
    read_workbench_manifest,
    set_pins,
    write_workbench_manifest,
)
from agonda.errors import ValidationError


# ===========================================================================
# JSON helpers
# ===========================================================================
class TestLoadJson:

    def test_malformed_raises_validation_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        with pytest.raises(ValidationError) as exc_info:
            load_json(path)
        assert exc_info.value.code == "invalid_json"

    def test_undecodable_bytes_raise_validation_error(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"name": "b\xe9ta"}')
        with pytest.raises(ValidationError) as exc_info:
            load_json(path)
        assert exc_info.value.code == "invalid_json"
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_missing_raises_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")


class TestReadJsonSafe:

    def test_missing_returns_none(self, tmp_path):
        assert read_json_safe(tmp_path / "missing.json") is None

    def test_malformed_returns_none(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1,")
        assert read_json_safe(path) is None

    def test_undecodable_returns_none(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_bytes(b"\xff\xfe")
        assert read_json_safe(path) is None


# ===========================================================================
# Workbench manifest
# ===========================================================================
class TestReadWorkbenchManifest:

    def test_reads_object(self, tmp_path, write_json):
        write_json(tmp_path / "workbench.json", {"name": "alpha"})
        assert read_workbench_manifest(tmp_path) == {"name": "alpha"}

    def test_non_object_raises(self, tmp_path, write_json):
        write_json(tmp_path / "workbench.json", ["alpha"])
        with pytest.raises(ValidationError) as exc_info:
            read_workbench_manifest(tmp_path)
        assert exc_info.value.code == "invalid_manifest"


class TestWriteWorkbenchManifest:

    def test_indent_two_with_trailing_newline(self, tmp_path):
        write_workbench_manifest(tmp_path, {"name": "alpha", "primitives": {"foo": "v1.0.0"}})
        text = (tmp_path / "workbench.json").read_text()
        assert text.endswith("}\n")
        assert '\n  "name": "alpha"' in text


class TestPins:

    def test_get_pins_missing(self):
        assert get_pins({"name": "alpha"}) == {}

    def test_get_pins_non_mapping(self):
        assert get_pins({"primitives": ["foo"]}) == {}

    def test_set_pins_preserves_other_keys(self, tmp_path, write_json):
        write_json(tmp_path / "workbench.json", {
            "name": "alpha",
            "custom": {"keep": True},
            "primitives": {"foo": "v1.0.0", "bar": "v2.0.0"},
        })

        written = set_pins(tmp_path, {"foo": "v1.1.0"})

        on_disk = json.loads((tmp_path / "workbench.json").read_text())
        assert on_disk == written
        assert on_disk["custom"] == {"keep": True}
        assert on_disk["primitives"] == {"foo": "v1.1.0", "bar": "v2.0.0"}

    def test_set_pins_creates_mapping(self, tmp_path, write_json):
        write_json(tmp_path / "workbench.json", {"name": "alpha"})
        assert set_pins(tmp_path, {"foo": "v1.0.0"})["primitives"] == {"foo": "v1.0.0"}
