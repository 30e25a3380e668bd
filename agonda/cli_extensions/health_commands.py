"""CLI commands for knowledge-domain health checks."""

import argparse

from agonda.cli_extensions.common import exit_with, json_mode, print_result, print_usage
from agonda.config import ConfigData
from agonda.core.health import HealthReport, run_health_checks
from agonda.errors import ExitCode
from agonda.output import MessageType, VerbosityLevel, message


class HealthCommands:
    """Runs domain health checks."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``health`` command group."""
        health_parser = subparsers.add_parser("health", help="Run system health checks")
        health_sub = health_parser.add_subparsers(dest="health_command", help="Health commands")
        health_sub.add_parser(
            "run",
            help="Scan all domains for compliance",
            description="Check every domains/<name>/CLAUDE.md and its knowledge files for required "
            "sections, frontmatter, freshness and broken links. Exits 2 if any error is found.",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        if args.health_command is None:
            print_usage("health", [("run", "Scan all domains for compliance")])
            return
        if args.health_command == "run":
            health = config.get("health", {})
            report = run_health_checks(
                warn_days=health.get("freshness_warn_days", 90),
                error_days=health.get("freshness_error_days", 180),
            )
            HealthCommands.report(report)
            if report.summary["errors"]:
                exit_with(ExitCode.VALIDATION)

    @staticmethod
    def report(report: HealthReport) -> None:
        """Print a health report, one block per domain."""
        if json_mode():
            print_result(report)
            return

        if not report.results:
            message("No domains found.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for result in report.results:
            if result.errors:
                label = "FAIL"
            elif result.warnings:
                label = "WARN"
            else:
                label = "PASS"
            message(f"\n[{label}] {result.domain}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

            for level, issues in (("ERROR", result.errors), ("WARN", result.warnings)):
                for issue in issues:
                    message(f"  {level} [{issue.check}] {issue.message}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                    message(f"    {issue.path}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if not result.errors and not result.warnings:
                message("  All checks passed.", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        summary = report.summary
        message(
            f"\nSummary: {summary['domains']} domains, {summary['errors']} errors, {summary['warnings']} warnings",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )
