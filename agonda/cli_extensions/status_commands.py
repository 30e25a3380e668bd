"""CLI command for the system-wide overview."""

import argparse

from agonda.cli_extensions.common import exit_with, json_mode, print_result
from agonda.config import ConfigData
from agonda.core.status import StatusReport, collect_status
from agonda.errors import ExitCode
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries import create_registry


class StatusCommands:
    """Prints plugins, domains, primitives and workspaces at a glance."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        subparsers.add_parser(
            "status",
            help="System-wide overview",
            description="Summarise plugins, domains, primitives and workspaces. "
            "Exits 2 if a domain has errors or a primitive is behind.",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        health = config.get("health", {})
        report = collect_status(
            create_registry(config.get("registry")),
            warn_days=health.get("freshness_warn_days", 90),
            error_days=health.get("freshness_error_days", 180),
        )
        if json_mode():
            print_result(report)
        else:
            StatusCommands.display(report)

        if report.has_errors:
            exit_with(ExitCode.VALIDATION)

    @staticmethod
    def display(report: StatusReport) -> None:
        enabled = report.enabled_plugins
        message(
            f"Plugins: {len(enabled)} enabled, {len(report.disabled_plugins)} disabled ({', '.join(enabled)})",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )

        domains = report.health.results
        unhealthy = [r for r in domains if r.errors]
        if not domains:
            message("Domains: none found", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        elif not unhealthy:
            message(
                f"Domains: {len(domains)} healthy ({', '.join(r.domain for r in domains)})",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
        else:
            message(
                f"Domains: {len(domains) - len(unhealthy)} healthy, {len(unhealthy)} with errors",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )

        primitives = report.primitives.summary
        message(
            f"Primitives: {primitives['current']} current, {primitives['behind']} behind, "
            f"{primitives['unknown']} unknown",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )
        message(
            f"Workspaces: {len(report.workspaces)} active, {len(report.unmarked)} without .workbench markers",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )

        warnings = report.warnings
        if warnings:
            message(f"\nWarnings ({len(warnings)}):", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for warning in warnings:
                message(f"  {warning}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
