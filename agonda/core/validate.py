"""Structural validation of workbenches and the marketplace.

Every check is independent: a failing check never hides the findings of
another, and nothing here writes to disk.
"""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path
from typing import Any

import yaml

from agonda.core.context import find_repo_root, resolve_target_workbenches
from agonda.core.manifest import WORKBENCH_MANIFEST, load_json
from agonda.core.marketplace import get_marketplace
from agonda.errors import ValidationError, attempt
from agonda.output import MessageType, VerbosityLevel, message

PLUGIN_DIR = ".claude-plugin"
PLUGIN_MANIFEST = Path(PLUGIN_DIR) / "plugin.json"
HOOKS_FILE = Path("hooks") / "hooks.json"
SKILL_FILE = "SKILL.md"

PLUGIN_ROOT_TOKEN = "${CLAUDE_PLUGIN_ROOT}"
RATIONALE_PREVIEW = 50
DELEGATE_TIMEOUT = 60

# "../" followed by "workbench" before any closing paren
_CROSS_WORKBENCH = re.compile(r"\.\./[^)]*workbench", re.IGNORECASE)


# ------------------------------------------------------------------
# Result types
# ------------------------------------------------------------------
class Check:
    """Issue categories."""

    MANIFEST_FIELD = "manifest-field"
    HOOK_INTEGRITY = "hook-integrity"
    MCP_SERVER_CONFIG = "mcp-server-config"
    SKILL_INTEGRITY = "skill-integrity"
    CROSS_REFERENCE = "cross-reference"
    DELEGATED = "delegated"
    STRUCTURE = "structure"
    FRONTMATTER = "frontmatter"
    FRESHNESS = "freshness"
    LINKS = "links"


class ValidationIssue:
    """A single finding."""

    ERROR = "error"
    WARNING = "warning"

    def __init__(self, level: str, check: str, message: str, path: str):
        self.level = level
        self.check = check
        self.message = message
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "check": self.check, "message": self.message, "path": self.path}

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def __repr__(self) -> str:
        return f"ValidationIssue({self.level!r}, {self.check!r}, {str(self)!r})"


class WorkbenchValidation:
    """Errors and warnings for one workbench."""

    def __init__(self, path: str):
        self.path = path
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []

    def error(self, check: str, text: str, path: str | None = None) -> None:
        self.errors.append(ValidationIssue(ValidationIssue.ERROR, check, text, path or self.path))

    def warning(self, check: str, text: str, path: str | None = None) -> None:
        self.warnings.append(ValidationIssue(ValidationIssue.WARNING, check, text, path or self.path))

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def is_clean(self) -> bool:
        return not self.errors and not self.warnings

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
        }


def summarize(results: list[WorkbenchValidation], extra_errors: int = 0) -> dict[str, int]:
    return {
        "workbenches": len(results),
        "errors": extra_errors + sum(len(r.errors) for r in results),
        "warnings": sum(len(r.warnings) for r in results),
    }


class ValidationReport:
    """Validation results for a set of workbenches."""

    def __init__(self, results: list[WorkbenchValidation], fell_back: bool = False):
        self.results = results
        self.fell_back = fell_back

    @property
    def summary(self) -> dict[str, int]:
        return summarize(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {"results": [r.to_dict() for r in self.results], "summary": self.summary}


class MarketplaceValidation:
    """Manifest-level errors plus per-workbench results."""

    def __init__(self, errors: list[str] | None = None, workbenches: list[WorkbenchValidation] | None = None):
        self.errors = errors if errors is not None else []
        self.workbenches = workbenches if workbenches is not None else []

    @property
    def summary(self) -> dict[str, int]:
        return summarize(self.workbenches, extra_errors=len(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "marketplace_errors": list(self.errors),
            "workbenches": [w.to_dict() for w in self.workbenches],
            "summary": self.summary,
        }


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------
def _relative(repo_root: Path, path: Path) -> str:
    return Path(os.path.relpath(path, repo_root)).as_posix()


def _read_json(path: Path, label: str, result: WorkbenchValidation, check: str) -> Any:
    """Load *path*, recording malformed JSON as an error. ``None`` on failure."""
    try:
        return load_json(path)
    except ValidationError as e:
        result.error(check, f"{label} is not valid JSON: {e.__cause__ or e}")
    except OSError as e:
        result.error(check, f"{label} could not be read: {e}")
    return None


def split_frontmatter(content: str) -> tuple[str | None, str | None]:
    """Split a markdown document into (frontmatter, error).

    Returns:
        The raw frontmatter text and ``None``, or ``None`` and one of
        ``"missing frontmatter"`` / ``"unclosed frontmatter"``
    """
    lines = content.splitlines()
    if not lines or lines[0].strip() != "---":
        return None, "missing frontmatter"
    for index in range(1, len(lines)):
        if lines[index].strip() == "---":
            return "\n".join(lines[1:index]), None
    return None, "unclosed frontmatter"


def parse_frontmatter(text: str) -> dict[str, Any]:
    """Parse frontmatter YAML into a mapping (empty if it is not one).

    Raises:
        yaml.YAMLError: If the block is not valid YAML
    """
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


# ------------------------------------------------------------------
# Individual checks
# ------------------------------------------------------------------
def _check_workbench_manifest(wb_path: Path, result: WorkbenchValidation) -> None:
    path = wb_path / WORKBENCH_MANIFEST
    if not path.is_file():
        return
    data = _read_json(path, WORKBENCH_MANIFEST, result, Check.MANIFEST_FIELD)
    if data is None:
        return
    if not isinstance(data, dict):
        result.error(Check.MANIFEST_FIELD, f"{WORKBENCH_MANIFEST} must contain a JSON object")
    elif "primitives" in data and not isinstance(data["primitives"], dict):
        result.error(Check.MANIFEST_FIELD, f'{WORKBENCH_MANIFEST} "primitives" must be an object')


def _check_plugin_manifest(wb_path: Path, result: WorkbenchValidation) -> dict[str, Any] | None:
    path = wb_path / PLUGIN_MANIFEST
    if not path.is_file():
        return None
    plugin = _read_json(path, "plugin.json", result, Check.MANIFEST_FIELD)
    if plugin is None:
        return None
    if not isinstance(plugin, dict):
        result.error(Check.MANIFEST_FIELD, "plugin.json must contain a JSON object")
        return None
    if not plugin.get("name"):
        result.error(Check.MANIFEST_FIELD, 'plugin.json missing "name" field')
    if not plugin.get("description"):
        result.warning(Check.MANIFEST_FIELD, 'plugin.json missing "description" field')
    return plugin


def _check_duplicate_hooks(wb_path: Path, plugin: dict[str, Any], result: WorkbenchValidation) -> None:
    if (wb_path / HOOKS_FILE).is_file() and plugin.get("hooks"):
        result.warning(
            Check.HOOK_INTEGRITY,
            "hooks declared in both plugin.json and hooks/hooks.json; "
            "hooks.json takes precedence, plugin.json hooks may be duplicates",
        )


def _check_mcp_entries(servers: dict[str, Any], label: str, result: WorkbenchValidation) -> None:
    for name, config in servers.items():
        if not isinstance(config, dict):
            result.error(Check.MCP_SERVER_CONFIG, f'{label} server "{name}" must be an object')
            continue
        has_command = "command" in config
        has_url = "url" in config
        if has_command and has_url:
            result.error(
                Check.MCP_SERVER_CONFIG,
                f'{label} server "{name}" declares both "command" and "url"; use exactly one',
            )
        elif not has_command and not has_url:
            result.error(
                Check.MCP_SERVER_CONFIG,
                f'{label} server "{name}" needs "command" (stdio) or "url" (http)',
            )


def _check_mcp_servers(wb_path: Path, plugin: dict[str, Any], result: WorkbenchValidation) -> None:
    if "mcpServers" not in plugin:
        return
    servers = plugin["mcpServers"]

    if isinstance(servers, dict):
        _check_mcp_entries(servers, "mcpServers", result)
        return

    if not isinstance(servers, str):
        result.error(
            Check.MCP_SERVER_CONFIG,
            f"mcpServers must be an object or a relative path to a JSON file, got {type(servers).__name__}",
        )
        return

    # String paths are relative to the .claude-plugin directory
    target = (wb_path / PLUGIN_DIR / servers).resolve()
    if not target.is_file():
        result.error(Check.MCP_SERVER_CONFIG, f"mcpServers references non-existent file: {servers}")
        return
    data = _read_json(target, servers, result, Check.MCP_SERVER_CONFIG)
    if data is None:
        return
    if not isinstance(data, dict) or not isinstance(data.get("mcpServers"), dict):
        result.error(Check.MCP_SERVER_CONFIG, f'{servers} must contain an "mcpServers" object')
        return
    _check_mcp_entries(data["mcpServers"], servers, result)


def _check_skill(skill_dir: Path, skill_rel: str, result: WorkbenchValidation) -> None:
    skill_md = skill_dir / SKILL_FILE
    if not skill_md.is_file():
        result.error(Check.SKILL_INTEGRITY, f"missing {SKILL_FILE}", skill_rel)
        return

    doc_rel = f"{skill_rel}/{SKILL_FILE}"
    try:
        content = skill_md.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        result.error(Check.SKILL_INTEGRITY, f"could not be read: {e}", doc_rel)
        return

    frontmatter, problem = split_frontmatter(content)
    if problem:
        result.error(Check.SKILL_INTEGRITY, problem, doc_rel)
    else:
        try:
            fields = parse_frontmatter(frontmatter)
        except yaml.YAMLError:
            result.error(Check.SKILL_INTEGRITY, "frontmatter is not valid YAML", doc_rel)
        else:
            for key in ("name", "description"):
                if not fields.get(key):
                    result.error(Check.SKILL_INTEGRITY, f'frontmatter missing "{key}"', doc_rel)

    if _CROSS_WORKBENCH.search(content):
        result.warning(
            Check.CROSS_REFERENCE,
            "contains cross-workbench path reference (../...workbench)",
            doc_rel,
        )


def _check_skills(wb_path: Path, result: WorkbenchValidation) -> None:
    skills_dir = wb_path / "skills"
    if not skills_dir.is_dir():
        return
    try:
        entries = sorted(p for p in skills_dir.iterdir() if p.is_dir())
    except OSError as e:
        result.error(Check.SKILL_INTEGRITY, f"skills directory could not be read: {e}")
        return
    for skill_dir in entries:
        _check_skill(skill_dir, f"{result.path}/skills/{skill_dir.name}", result)


def _iter_hooks(config: dict[str, Any]):
    """Yield every hook entry from a hooks configuration."""
    for groups in config.values():
        if not isinstance(groups, list):
            groups = [groups]
        for group in groups:
            if not isinstance(group, dict):
                continue
            hooks = group["hooks"] if "hooks" in group else [group]
            if not isinstance(hooks, list):
                continue
            for hook in hooks:
                if isinstance(hook, dict):
                    yield hook


def _check_hooks(wb_path: Path, result: WorkbenchValidation) -> None:
    path = wb_path / HOOKS_FILE
    if not path.is_file():
        return
    config = _read_json(path, "hooks/hooks.json", result, Check.HOOK_INTEGRITY)
    if config is None:
        return
    if not isinstance(config, dict):
        result.error(Check.HOOK_INTEGRITY, "hooks/hooks.json must contain a JSON object")
        return
    if isinstance(config.get("hooks"), dict):
        config = config["hooks"]

    for hook in _iter_hooks(config):
        command = hook.get("command")
        if not isinstance(command, str) or not command.strip():
            continue

        resolved_command = command.replace(PLUGIN_ROOT_TOKEN, str(wb_path))
        script = resolved_command.split()[0]
        if script.startswith(("/", ".")) and not (wb_path / script).exists():
            result.error(Check.HOOK_INTEGRITY, f"hook command references non-existent script: {script}")

        if not hook.get("rationale"):
            result.warning(
                Check.HOOK_INTEGRITY,
                f'hook missing "rationale" field: {command[:RATIONALE_PREVIEW]}',
            )


def _delegate(wb_path: Path, result: WorkbenchValidation) -> None:
    """Run ``claude plugin validate`` on the workbench."""
    try:
        proc = subprocess.run(
            ["claude", "plugin", "validate", str(wb_path)],
            capture_output=True,
            text=True,
            timeout=DELEGATE_TIMEOUT,
            check=False,
        )
    except FileNotFoundError:
        result.warning(Check.DELEGATED, "claude CLI not available, skipping delegated validation")
        return
    except subprocess.TimeoutExpired:
        result.error(Check.DELEGATED, f"claude plugin validate timed out after {DELEGATE_TIMEOUT}s")
        return

    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip() or f"exit code {proc.returncode}"
        result.error(Check.DELEGATED, f"claude plugin validate failed: {detail}")


# ------------------------------------------------------------------
# Entry points
# ------------------------------------------------------------------
def validate_workbench(wb_path: Path, repo_root: Path, delegate: bool = False) -> WorkbenchValidation:
    """Run every structural check against one workbench directory.

    Args:
        wb_path: Workbench directory
        repo_root: Repository root, for relative paths in messages
        delegate: Also run ``claude plugin validate``
    """
    wb_path = Path(wb_path)
    result = WorkbenchValidation(_relative(repo_root, wb_path))
    message(f"Validating {result.path}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    if delegate:
        _delegate(wb_path, result)

    _check_workbench_manifest(wb_path, result)
    plugin = _check_plugin_manifest(wb_path, result)
    if plugin is not None:
        _check_duplicate_hooks(wb_path, plugin, result)
        _check_mcp_servers(wb_path, plugin, result)
    _check_skills(wb_path, result)
    _check_hooks(wb_path, result)
    return result


def validate_workbenches(
    paths: list[Path],
    repo_root: Path,
    delegate: bool = False,
) -> list[WorkbenchValidation]:
    """Validate several workbenches; one unreadable workbench never stops the rest."""
    results = []
    for path in paths:
        outcome = attempt(validate_workbench, path, repo_root, delegate)
        if outcome.ok:
            results.append(outcome.value)
        else:
            failed = WorkbenchValidation(_relative(repo_root, Path(path)))
            failed.error(Check.STRUCTURE, f"validation aborted: {outcome.error}")
            results.append(failed)
    return results


def validate_all(
    all_workbenches: bool = False,
    cwd: Path | None = None,
    workbench: str | None = None,
    delegate: bool = False,
) -> ValidationReport:
    """Validate the current workbench, a named one, or all of them."""
    target = resolve_target_workbenches(all_workbenches, cwd, workbench)
    repo_root = find_repo_root(cwd)
    results = validate_workbenches([wb.path for wb in target.workbenches], repo_root, delegate)
    return ValidationReport(results, fell_back=target.fell_back)


def validate_marketplace(cwd: Path | None = None, delegate: bool = False) -> MarketplaceValidation:
    """Validate the marketplace manifest and every workbench it lists.

    Raises:
        NotFoundError: If the repository has no marketplace.json
    """
    result = MarketplaceValidation()
    try:
        marketplace = get_marketplace(cwd)
    except ValidationError as e:
        result.errors.append(f"marketplace.json is not valid JSON: {e.__cause__ or e}")
        return result

    repo_root = find_repo_root(cwd)
    plugins = marketplace.get("plugins", [])
    if not isinstance(plugins, list):
        result.errors.append('marketplace.json "plugins" must be a list')
        return result
    if not plugins:
        result.errors.append("marketplace.json declares no plugins")
        return result

    for entry in plugins:
        if not isinstance(entry, dict):
            result.errors.append("marketplace.json plugin entries must be objects")
            continue
        name = entry.get("name") or "(unnamed)"
        source = entry.get("source")
        if not source:
            result.errors.append(f'Plugin "{name}" missing "source" field')
            continue
        if not isinstance(source, str):
            message(
                f'Plugin "{name}" has a non-local source, not validated',
                MessageType.INFO,
                VerbosityLevel.VERBOSE,
            )
            continue

        wb_path = (repo_root / source).resolve()
        if not wb_path.exists():
            result.errors.append(f'Plugin "{name}" source path does not exist: {source}')
            continue

        result.workbenches.extend(validate_workbenches([wb_path], repo_root, delegate))

    return result

