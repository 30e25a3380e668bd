"""Core operations for agonda."""

from .context import (
    TargetResolution,
    Workbench,
    find_all_workbenches,
    find_repo_root,
    find_workbench_context,
    resolve_target_workbenches,
    resolve_workbench_flag,
)
from .health import HealthReport, discover_domains, run_health_checks
from .manifest import get_pins, read_workbench_manifest, set_pins, write_workbench_manifest
from .marketplace import MarketplacePlugin, find_plugin, get_marketplace, get_marketplace_name, list_workbenches
from .semver import ParsedTag, compare_semver, parse_tag, strip_v
from .validate import (
    MarketplaceValidation,
    ValidationIssue,
    ValidationReport,
    WorkbenchValidation,
    validate_all,
    validate_marketplace,
    validate_workbench,
)
from .workspace import discover_workspaces, find_unmarked_workspaces, find_workspaces_by_workbench

__all__ = [
    "HealthReport",
    "MarketplacePlugin",
    "MarketplaceValidation",
    "ParsedTag",
    "TargetResolution",
    "ValidationIssue",
    "ValidationReport",
    "Workbench",
    "WorkbenchValidation",
    "compare_semver",
    "discover_domains",
    "discover_workspaces",
    "find_all_workbenches",
    "find_plugin",
    "find_repo_root",
    "find_unmarked_workspaces",
    "find_workbench_context",
    "find_workspaces_by_workbench",
    "get_marketplace",
    "get_marketplace_name",
    "get_pins",
    "list_workbenches",
    "parse_tag",
    "read_workbench_manifest",
    "resolve_target_workbenches",
    "resolve_workbench_flag",
    "run_health_checks",
    "set_pins",
    "strip_v",
    "validate_all",
    "validate_marketplace",
    "validate_workbench",
    "write_workbench_manifest",
]
