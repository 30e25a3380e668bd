"""Knowledge-domain health checks.

A domain is ``domains/<name>/`` with a ``CLAUDE.md``. Its knowledge files
(``knowledge/*.md``) carry frontmatter recording who validated them and
when.
"""

from __future__ import annotations

import datetime
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from agonda.core.context import find_repo_root
from agonda.core.validate import Check, ValidationIssue, parse_frontmatter, split_frontmatter
from agonda.output import MessageType, VerbosityLevel, message

DOMAINS_DIR = "domains"
DOMAIN_FILE = "CLAUDE.md"
KNOWLEDGE_DIR = "knowledge"

REQUIRED_SECTIONS = ("Identity", "Purpose", "Boundaries", "Knowledge This Domain Owns")
REQUIRED_FRONTMATTER = ("description", "last-validated", "validated-by", "confidence", "tags")

FRESHNESS_WARN_DAYS = 90
FRESHNESS_ERROR_DAYS = 180

# [text](target "optional title")
_MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
_EXTERNAL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass
class Domain:
    """A knowledge domain on disk."""

    name: str
    path: Path
    claude_md: Path


class DomainHealth:
    """Findings for one domain."""

    def __init__(self, domain: str):
        self.domain = domain
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []

    def add(self, issue: ValidationIssue) -> None:
        if issue.level == ValidationIssue.ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
        }


class HealthReport:
    """Health results across every domain."""

    def __init__(self, results: list[DomainHealth]):
        self.results = results

    @property
    def summary(self) -> dict[str, int]:
        return {
            "domains": len(self.results),
            "errors": sum(len(r.errors) for r in self.results),
            "warnings": sum(len(r.warnings) for r in self.results),
        }

    def to_dict(self) -> dict[str, Any]:
        return {"results": [r.to_dict() for r in self.results], "summary": self.summary}


# ------------------------------------------------------------------
# Discovery
# ------------------------------------------------------------------
def discover_domains(cwd: Path | None = None) -> list[Domain]:
    """Every ``domains/<name>`` directory that has a CLAUDE.md, sorted by name."""
    domains_dir = find_repo_root(cwd) / DOMAINS_DIR
    if not domains_dir.is_dir():
        return []
    domains = []
    for entry in sorted(domains_dir.iterdir()):
        claude_md = entry / DOMAIN_FILE
        if entry.is_dir() and claude_md.is_file():
            domains.append(Domain(entry.name, entry, claude_md))
    return domains


def _knowledge_files(domain_path: Path) -> list[Path]:
    knowledge = domain_path / KNOWLEDGE_DIR
    if not knowledge.is_dir():
        return []
    return sorted(p for p in knowledge.iterdir() if p.is_file() and p.suffix == ".md")


def _rel(repo_root: Path, path: Path) -> str:
    return Path(os.path.relpath(path, repo_root)).as_posix()


def _read_doc(path: Path) -> str:
    # Undecodable bytes become U+FFFD
    return path.read_text(encoding="utf-8", errors="replace")


# ------------------------------------------------------------------
# Checks
# ------------------------------------------------------------------
def check_structure(claude_md: Path, label: str) -> list[ValidationIssue]:
    """Every required ``## <section>`` heading must be present."""
    if not claude_md.is_file():
        return [ValidationIssue(ValidationIssue.ERROR, Check.STRUCTURE, f"{DOMAIN_FILE} missing", label)]
    content = _read_doc(claude_md)
    return [
        ValidationIssue(
            ValidationIssue.ERROR, Check.STRUCTURE, f'Missing required section: "## {section}"', label,
        )
        for section in REQUIRED_SECTIONS
        if f"## {section}" not in content
    ]


def read_knowledge_frontmatter(path: Path) -> tuple[dict[str, Any] | None, str | None]:
    """Return (fields, problem) for one knowledge file."""
    frontmatter, problem = split_frontmatter(_read_doc(path))
    if problem:
        return None, "Missing frontmatter" if problem == "missing frontmatter" else "Unclosed frontmatter"
    try:
        return parse_frontmatter(frontmatter), None
    except yaml.YAMLError:
        return None, "Frontmatter is not valid YAML"


def check_frontmatter(fields: dict[str, Any], label: str) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            ValidationIssue.ERROR, Check.FRONTMATTER, f'Missing frontmatter field: "{field}"', label,
        )
        for field in REQUIRED_FRONTMATTER
        if fields.get(field) in (None, "", [])
    ]


def _as_date(value: Any) -> datetime.date | None:
    # YAML turns unquoted ISO dates into date objects
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def check_freshness(
    fields: dict[str, Any],
    label: str,
    today: datetime.date,
    warn_days: int = FRESHNESS_WARN_DAYS,
    error_days: int = FRESHNESS_ERROR_DAYS,
) -> list[ValidationIssue]:
    """Flag knowledge whose ``last-validated`` date is too old."""
    validated = _as_date(fields.get("last-validated"))
    if validated is None:
        return []
    days = (today - validated).days
    if days > error_days:
        return [ValidationIssue(
            ValidationIssue.ERROR, Check.FRESHNESS,
            f"Stale: last validated {days} days ago (>{error_days}d threshold)", label,
        )]
    if days > warn_days:
        return [ValidationIssue(
            ValidationIssue.WARNING, Check.FRESHNESS,
            f"Aging: last validated {days} days ago (>{warn_days}d threshold)", label,
        )]
    return []


def check_links(path: Path, label: str) -> list[ValidationIssue]:
    """Relative markdown links must point at files that exist."""
    issues = []
    for number, line in enumerate(_read_doc(path).splitlines(), start=1):
        for match in _MARKDOWN_LINK.finditer(line):
            target = match.group(1)
            if target.startswith("#") or _EXTERNAL.match(target):
                continue
            file_part = target.split("#", 1)[0].split("?", 1)[0]
            if not file_part:
                continue
            resolved = (path.parent / file_part) if not file_part.startswith("/") else Path(file_part)
            if not resolved.exists():
                issues.append(ValidationIssue(
                    ValidationIssue.WARNING, Check.LINKS,
                    f"Cannot find file `{file_part}`", f"{label}:{number}",
                ))
    return issues


def check_domain(
    domain: Domain,
    repo_root: Path,
    today: datetime.date | None = None,
    warn_days: int = FRESHNESS_WARN_DAYS,
    error_days: int = FRESHNESS_ERROR_DAYS,
) -> DomainHealth:
    """Run every health check for one domain."""
    today = today or datetime.date.today()
    health = DomainHealth(domain.name)
    claude_label = _rel(repo_root, domain.claude_md)

    for issue in check_structure(domain.claude_md, claude_label):
        health.add(issue)
    if domain.claude_md.is_file():
        for issue in check_links(domain.claude_md, claude_label):
            health.add(issue)

    for path in _knowledge_files(domain.path):
        label = _rel(repo_root, path)
        fields, problem = read_knowledge_frontmatter(path)
        if problem:
            health.add(ValidationIssue(ValidationIssue.ERROR, Check.FRONTMATTER, problem, label))
        else:
            for issue in check_frontmatter(fields, label):
                health.add(issue)
            for issue in check_freshness(fields, label, today, warn_days, error_days):
                health.add(issue)
        for issue in check_links(path, label):
            health.add(issue)

    message(
        f"{domain.name}: {len(health.errors)} error(s), {len(health.warnings)} warning(s)",
        MessageType.DEBUG,
        VerbosityLevel.DEBUG,
    )
    return health


def run_health_checks(
    cwd: Path | None = None,
    today: datetime.date | None = None,
    warn_days: int = FRESHNESS_WARN_DAYS,
    error_days: int = FRESHNESS_ERROR_DAYS,
) -> HealthReport:
    """Check every domain in the repository."""
    repo_root = find_repo_root(cwd)
    return HealthReport([
        check_domain(domain, repo_root, today, warn_days, error_days)
        for domain in discover_domains(cwd)
    ])
