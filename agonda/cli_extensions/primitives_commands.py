"""CLI commands for skill primitives."""

import argparse

from agonda.cli_extensions.common import (
    add_target_arguments,
    exit_with,
    json_mode,
    notify_fell_back,
    print_result,
    print_usage,
)
from agonda.config import ConfigData
from agonda.core.context import resolve_target_workbenches
from agonda.core.installer import InstallAction, UpdateResult, install_primitives, update_primitive
from agonda.core.primitives import check_all_primitives
from agonda.errors import ExitCode
from agonda.output import MessageType, VerbosityLevel, message, table
from agonda.plugins.registries import AbstractRegistry, create_registry


class PrimitivesCommands:
    """Manages primitive status, install, update and listing."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``primitives`` command group.

        Args:
            subparsers: The subparsers object to add commands to
        """
        primitives_parser = subparsers.add_parser("primitives", help="Manage skill primitives")
        primitives_sub = primitives_parser.add_subparsers(
            dest="primitives_command", help="Primitive commands",
        )

        p = primitives_sub.add_parser(
            "status",
            help="Compare pinned versions against the latest in the registry",
            description="Show each pinned primitive as CURRENT, BEHIND or UNKNOWN. Exits 2 if any is behind.",
        )
        add_target_arguments(p)

        p = primitives_sub.add_parser(
            "install",
            help="Download primitives at their pinned versions",
            description="Install every pinned primitive into <workbench>/skills/. "
            "With --update, pins are bumped to the latest version first and written back on success.",
        )
        p.add_argument("--update", action="store_true", help="Bump pins to latest before installing")
        add_target_arguments(p, dry_run=True)

        p = primitives_sub.add_parser(
            "update",
            help="Update one primitive to its latest version",
            description="Install the latest version of a primitive and rewrite its pin in every targeted workbench.",
        )
        p.add_argument("name", help="Primitive name")
        add_target_arguments(p, dry_run=True)

        primitives_sub.add_parser(
            "list",
            help="List primitives available in the registry",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        """Process primitives CLI commands.

        Args:
            args: Parsed command-line arguments
            config: Loaded configuration data
        """
        if args.primitives_command is None:
            print_usage("primitives", [
                ("status", "Compare pinned versions against latest"),
                ("install", "Install primitives from workbench.json"),
                ("update", "Update a primitive to latest"),
                ("list", "List primitives in the registry"),
            ])
            return

        registry = create_registry(config.get("registry"))
        message(f"Using registry {registry}", MessageType.DEBUG, VerbosityLevel.DEBUG)

        if args.primitives_command == "status":
            PrimitivesCommands.status(registry, args.all_workbenches, args.workbench)
        elif args.primitives_command == "install":
            PrimitivesCommands.install(registry, args.all_workbenches, args.workbench, args.update, args.dry_run)
        elif args.primitives_command == "update":
            PrimitivesCommands.update(registry, args.name, args.all_workbenches, args.workbench, args.dry_run)
        elif args.primitives_command == "list":
            PrimitivesCommands.list_available(registry)

    @staticmethod
    def status(registry: AbstractRegistry, all_workbenches: bool = False, workbench: str | None = None) -> None:
        report = check_all_primitives(registry, all_workbenches, workbench=workbench)
        summary = report.summary

        if json_mode():
            print_result(report)
        elif not report.results:
            message("No workbenches with primitives found.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        else:
            notify_fell_back(report.fell_back)
            for result in report.results:
                message(f"\n{result.workbench} ({result.path})", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                table(
                    ["Primitive", "Pinned", "Latest", "Status"],
                    [[p.name, p.pinned, p.latest, p.status] for p in result.primitives],
                )
            message(
                f"\nSummary: {summary['current']} current, {summary['behind']} behind, "
                f"{summary['unknown']} unknown",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
            if summary["behind"]:
                message(
                    'Some primitives are behind. Run "agonda primitives update <name>" to update.',
                    MessageType.WARNING,
                    VerbosityLevel.ALWAYS,
                )

        if summary["behind"]:
            exit_with(ExitCode.VALIDATION)

    @staticmethod
    def install(
        registry: AbstractRegistry,
        all_workbenches: bool = False,
        workbench: str | None = None,
        update: bool = False,
        dry_run: bool = False,
    ) -> None:
        target = resolve_target_workbenches(all_workbenches, workbench=workbench)
        results = [
            install_primitives(wb, registry, update=update, dry_run=dry_run)
            for wb in target.workbenches
            if wb.primitives
        ]

        if json_mode():
            print_result([r.to_dict() for r in results])
        elif not results:
            message("No workbenches with primitives found.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        else:
            notify_fell_back(target.fell_back)
            if dry_run:
                message("Dry run, no changes written.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for result in results:
                if not result.actions:
                    continue
                message(f"\n{result.workbench} ({result.path})", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                for action in result.actions:
                    message(
                        f"  {_describe(action)}",
                        MessageType.ERROR if action.action == InstallAction.FAILED else MessageType.NORMAL,
                        VerbosityLevel.ALWAYS,
                    )

        if any(r.failed for r in results):
            exit_with(ExitCode.GENERAL)

    @staticmethod
    def update(
        registry: AbstractRegistry,
        name: str,
        all_workbenches: bool = False,
        workbench: str | None = None,
        dry_run: bool = False,
    ) -> None:
        target = resolve_target_workbenches(all_workbenches, workbench=workbench)
        result = update_primitive(name, target.workbenches, registry, dry_run=dry_run)

        if result.error == UpdateResult.NOT_FOUND:
            if json_mode():
                print_result(result)
            else:
                message(f'Primitive "{name}" not found in registry.', MessageType.ERROR, VerbosityLevel.ALWAYS)
            exit_with(ExitCode.NOT_FOUND)
            return

        if json_mode():
            print_result(result)
        elif not result.results:
            message(f'No workbenches pin "{name}".', MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        else:
            notify_fell_back(target.fell_back)
            if dry_run:
                message("Dry run, no changes written.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for r in result.results:
                arrow = "(current)" if r.action == InstallAction.CURRENT else f"{r.from_version} → {r.to_version}"
                prefix = "[dry-run] " if r.action.startswith("would_") else ""
                suffix = " (failed)" if r.action == InstallAction.FAILED else ""
                message(f"{prefix}{r.workbench}: {name} {arrow}{suffix}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        if any(r.action == InstallAction.FAILED for r in result.results):
            exit_with(ExitCode.GENERAL)

    @staticmethod
    def list_available(registry: AbstractRegistry) -> None:
        """Show every primitive published in the registry."""
        rows = []
        for name in registry.list_primitives():
            versions = registry.list_versions(name)
            rows.append({"name": name, "latest": versions[0] if versions else None, "versions": versions})

        if json_mode():
            print_result(rows)
            return
        if not rows:
            message(f"No primitives found in {registry.get_display_url()}.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        table(
            ["Primitive", "Latest", "Versions"],
            [[r["name"], r["latest"], ", ".join(r["versions"])] for r in rows],
        )


def _describe(action: InstallAction) -> str:
    """One human line for an install action, e.g. ``Would install: foo@1.0.0``."""
    verb = action.action
    prefix = ""
    if verb.startswith("would_"):
        prefix = "Would "
        verb = verb[len("would_"):]
    text = f"{prefix}{verb}: {action.name}@{action.version}"
    if action.from_version and action.action not in (InstallAction.SKIPPED, InstallAction.FAILED):
        text += f" (from {action.from_version})"
    if action.reason:
        text += f": {action.reason}"
    return text
