"""Primitive status resolution.

Compares every pin in a workbench manifest against the newest version
the registry knows about. Registry failures for one primitive never stop
the others; they classify as UNKNOWN.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from agonda.core.context import Workbench, resolve_target_workbenches
from agonda.core.semver import compare_semver, strip_v
from agonda.errors import attempt
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries.abstract_registry import AbstractRegistry

UNKNOWN_VERSION = "unknown"


# ------------------------------------------------------------------
# Result types
# ------------------------------------------------------------------
class PrimitiveStatus:
    """Status of one pinned primitive in one workbench."""

    CURRENT = "CURRENT"
    BEHIND = "BEHIND"
    UNKNOWN = "UNKNOWN"

    def __init__(self, name: str, pinned: str, latest: str, status: str):
        self.name = name
        self.pinned = pinned
        self.latest = latest
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pinned": self.pinned,
            "latest": self.latest,
            "status": self.status,
        }

    def __repr__(self) -> str:
        return (
            f"PrimitiveStatus({self.name!r}, pinned={self.pinned!r}, "
            f"latest={self.latest!r}, {self.status})"
        )


class WorkbenchPrimitives:
    """Primitive statuses for a single workbench."""

    def __init__(self, workbench: str, path: str, primitives: list[PrimitiveStatus]):
        self.workbench = workbench
        self.path = path
        self.primitives = primitives

    def to_dict(self) -> dict[str, Any]:
        return {
            "workbench": self.workbench,
            "path": self.path,
            "primitives": [p.to_dict() for p in self.primitives],
        }


class PrimitiveReport:
    """Primitive statuses across workbenches, with instance counts."""

    def __init__(self, results: list[WorkbenchPrimitives], fell_back: bool = False):
        self.results = results
        self.fell_back = fell_back

    @property
    def summary(self) -> dict[str, int]:
        counts = {"total": 0, "current": 0, "behind": 0, "unknown": 0}
        for result in self.results:
            for primitive in result.primitives:
                counts["total"] += 1
                counts[primitive.status.lower()] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary,
        }


# ------------------------------------------------------------------
# Resolution
# ------------------------------------------------------------------
def classify(pinned: str, latest: str | None) -> str:
    """CURRENT when ``pinned >= latest``, BEHIND when lower, UNKNOWN without a latest."""
    if latest is None:
        return PrimitiveStatus.UNKNOWN
    if compare_semver(pinned, latest) >= 0:
        return PrimitiveStatus.CURRENT
    return PrimitiveStatus.BEHIND


def check_workbench_primitives(
    workbench: Workbench,
    registry: AbstractRegistry,
) -> WorkbenchPrimitives:
    """Resolve the status of every primitive pinned by *workbench*."""
    statuses = []
    for name, pinned_version in workbench.primitives.items():
        pinned = strip_v(str(pinned_version))

        outcome = attempt(registry.latest_version, name)
        if not outcome.ok:
            message(
                f"Could not resolve latest version of {name}: {outcome.error}",
                MessageType.WARNING,
                VerbosityLevel.VERBOSE,
            )
        latest = outcome.value

        statuses.append(
            PrimitiveStatus(name, pinned, latest or UNKNOWN_VERSION, classify(pinned, latest))
        )

    return WorkbenchPrimitives(workbench.name, workbench.relative_path, statuses)


def check_all_primitives(
    registry: AbstractRegistry,
    all_workbenches: bool = False,
    cwd: Path | None = None,
    workbench: str | None = None,
) -> PrimitiveReport:
    """Check primitives across the targeted workbenches.

    Workbenches with no pins are left out of both the results and the
    summary.
    """
    target = resolve_target_workbenches(all_workbenches, cwd, workbench)
    results = [
        check_workbench_primitives(wb, registry)
        for wb in target.workbenches
        if wb.primitives
    ]
    return PrimitiveReport(results, fell_back=target.fell_back)
