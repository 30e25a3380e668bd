"""Primitive tag parsing and semantic version comparison."""

from __future__ import annotations

import re
from typing import NamedTuple

# "<primitive>/v<major>.<minor>.<patch>[anything]"
_TAG_PATTERN = re.compile(r"^(.+)/v(\d+\.\d+\.\d+.*)$")


class ParsedTag(NamedTuple):
    """A registry tag split into primitive name and version."""

    primitive: str
    version: str


def parse_tag(tag_name: str) -> ParsedTag | None:
    """Parse a prefixed tag such as ``visual-explainer/v1.0.0``.

    Returns:
        ParsedTag, or ``None`` if the tag is not a primitive tag
    """
    match = _TAG_PATTERN.match(tag_name)
    if not match:
        return None
    return ParsedTag(match.group(1), match.group(2))


def _segment(parts: list[str], index: int) -> int:
    if index >= len(parts):
        return 0
    segment = parts[index]
    if not (segment.isascii() and segment.isdigit()):
        return 0
    return int(segment)


def compare_semver(a: str, b: str) -> int:
    """Compare two version strings on major, minor and patch.

    Missing or non-numeric segments count as 0 and anything past the
    third segment is ignored.

    Returns:
        Negative if ``a < b``, positive if ``a > b``, 0 if equal
    """
    pa = a.split(".")
    pb = b.split(".")
    for i in range(3):
        diff = _segment(pa, i) - _segment(pb, i)
        if diff:
            return diff
    return 0


def strip_v(version: str) -> str:
    """Drop a single leading ``v`` (manifests store ``v1.0.0``)."""
    return version[1:] if version.startswith("v") else version
