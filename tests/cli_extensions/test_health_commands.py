"""Tests for cli_extensions/health_commands.py - Domain health CLI."""

import datetime
import json

import pytest

GOOD_CLAUDE_MD = """# Sales

## Identity
## Purpose
## Boundaries
## Knowledge This Domain Owns
"""


@pytest.fixture
def make_domain(repo):
    def _make(name, claude_md=GOOD_CLAUDE_MD, knowledge=None):
        path = repo / "domains" / name
        path.mkdir(parents=True)
        (path / "CLAUDE.md").write_text(claude_md)
        for filename, content in (knowledge or {}).items():
            (path / "knowledge").mkdir(exist_ok=True)
            (path / "knowledge" / filename).write_text(content)
        return path

    return _make


def _knowledge(days_ago):
    validated = datetime.date.today() - datetime.timedelta(days=days_ago)
    return (
        "---\n"
        "description: Pricing\n"
        f"last-validated: {validated.isoformat()}\n"
        "validated-by: sam\n"
        "confidence: high\n"
        "tags: [pricing]\n"
        "---\n"
    )


class TestHealthRun:
    """Test cases for ``agonda health run``."""

    def test_no_domains(self, cli):
        result = cli("health", "run")

        assert result.code == 0
        assert "No domains found." in result.out

    def test_healthy_domain(self, cli, make_domain):
        make_domain("sales", knowledge={"pricing.md": _knowledge(10)})

        result = cli("health", "run")

        assert result.code == 0
        assert "[PASS] sales" in result.out
        assert "  All checks passed." in result.out
        assert "Summary: 1 domains, 0 errors, 0 warnings" in result.out

    def test_errors_exit_validation(self, cli, make_domain):
        make_domain("sales", claude_md="# Sales\n")

        result = cli("health", "run")

        assert result.code == 2
        assert "[FAIL] sales" in result.out
        assert '  ERROR [structure] Missing required section: "## Identity"' in result.out
        assert "    domains/sales/CLAUDE.md" in result.out

    def test_warnings_do_not_fail(self, cli, make_domain):
        make_domain("sales", knowledge={"pricing.md": _knowledge(120)})

        result = cli("health", "run")

        assert result.code == 0
        assert "[WARN] sales" in result.out
        assert "  WARN [freshness] Aging: last validated 120 days ago (>90d threshold)" in result.out

    def test_thresholds_from_config(self, cli, make_domain, home):
        config_dir = home / ".agonda"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("health:\n  freshness_warn_days: 5\n  freshness_error_days: 8\n")
        make_domain("sales", knowledge={"pricing.md": _knowledge(10)})

        result = cli("health", "run")

        assert result.code == 2
        assert "Stale: last validated 10 days ago (>8d threshold)" in result.out

    def test_json(self, cli, make_domain):
        make_domain("sales", claude_md="# Sales\n")

        result = cli("--json", "health", "run")

        data = json.loads(result.out)
        assert data["summary"] == {"domains": 1, "errors": 4, "warnings": 0}
        assert data["results"][0]["domain"] == "sales"
        assert result.code == 2
