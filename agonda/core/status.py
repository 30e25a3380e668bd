"""System-wide overview.

Combines plugin enablement, domain health, primitive freshness and
workspace discovery into one report. Each section degrades on its own:
a repository with no marketplace still reports its domains.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Any

from agonda.core.context import find_all_workbenches
from agonda.core.health import FRESHNESS_ERROR_DAYS, FRESHNESS_WARN_DAYS, HealthReport, run_health_checks
from agonda.core.plugins import DISABLED, ENABLED, list_plugins
from agonda.core.primitives import PrimitiveReport, PrimitiveStatus, check_workbench_primitives
from agonda.core.workspace import discover_workspaces, find_unmarked_workspaces
from agonda.errors import attempt
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries import AbstractRegistry


class StatusReport:
    """Overview of one repository."""

    def __init__(
        self,
        plugins: list[dict[str, Any]],
        health: HealthReport,
        primitives: PrimitiveReport,
        workspaces: list[dict[str, Any]],
        unmarked: list[dict[str, str]],
    ):
        self.plugins = plugins
        self.health = health
        self.primitives = primitives
        self.workspaces = workspaces
        self.unmarked = unmarked

    @property
    def enabled_plugins(self) -> list[str]:
        return [p["name"] for p in self.plugins if p["status"] == ENABLED]

    @property
    def disabled_plugins(self) -> list[str]:
        return [p["name"] for p in self.plugins if p["status"] == DISABLED]

    @property
    def warnings(self) -> list[str]:
        """Behind or unresolved primitives, then domain errors."""
        warnings = []
        for result in self.primitives.results:
            for p in result.primitives:
                if p.status == PrimitiveStatus.BEHIND:
                    warnings.append(f"{p.name} BEHIND in {result.workbench} ({p.pinned} → {p.latest})")
                elif p.status == PrimitiveStatus.UNKNOWN:
                    warnings.append(f"{p.name} UNKNOWN in {result.workbench}")
        for result in self.health.results:
            for issue in result.errors:
                warnings.append(f"[{result.domain}] {issue.check}: {issue.message}")
        return warnings

    @property
    def has_errors(self) -> bool:
        return self.health.summary["errors"] > 0 or self.primitives.summary["behind"] > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "plugins": {"enabled": self.enabled_plugins, "disabled": self.disabled_plugins},
            "domains": {
                "results": [
                    {"domain": r.domain, "errors": len(r.errors), "warnings": len(r.warnings)}
                    for r in self.health.results
                ],
                "summary": self.health.summary,
            },
            "primitives": self.primitives.to_dict(),
            "workspaces": {"active": len(self.workspaces), "unmarked": len(self.unmarked)},
            "warnings": self.warnings,
            "hasErrors": self.has_errors,
        }


def collect_status(
    registry: AbstractRegistry,
    cwd: Path | None = None,
    home: Path | None = None,
    today: datetime.date | None = None,
    warn_days: int = FRESHNESS_WARN_DAYS,
    error_days: int = FRESHNESS_ERROR_DAYS,
) -> StatusReport:
    """Build the overview for the repository containing *cwd*.

    Primitives are checked in every workbench of the repository that
    pins at least one.
    """
    outcome = attempt(list_plugins, cwd, home)
    if not outcome.ok:
        message(f"Plugins unavailable: {outcome.error}", MessageType.WARNING, VerbosityLevel.VERBOSE)
    plugins = outcome.value or []

    health = run_health_checks(cwd, today, warn_days, error_days)

    primitives = PrimitiveReport([
        check_workbench_primitives(wb, registry)
        for wb in find_all_workbenches(cwd)
        if wb.primitives
    ])

    return StatusReport(
        plugins,
        health,
        primitives,
        discover_workspaces(cwd),
        find_unmarked_workspaces(cwd),
    )
