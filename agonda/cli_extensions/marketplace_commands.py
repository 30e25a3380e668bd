"""CLI commands for the repository marketplace."""

import argparse

from agonda.cli_extensions.common import exit_with, json_mode, print_result, print_usage, print_validation
from agonda.cli_extensions.workbench_commands import WorkbenchCommands
from agonda.config import ConfigData
from agonda.core.marketplace import list_workbenches
from agonda.core.validate import validate_marketplace
from agonda.errors import ExitCode
from agonda.output import MessageType, VerbosityLevel, message, table


class MarketplaceCommands:
    """Lists and validates the workbenches registered in marketplace.json."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``marketplace`` command group."""
        marketplace_parser = subparsers.add_parser(
            "marketplace", help="List and validate marketplace workbenches",
        )
        marketplace_sub = marketplace_parser.add_subparsers(
            dest="marketplace_command", help="Marketplace commands",
        )

        marketplace_sub.add_parser("list", help="List workbenches registered in marketplace.json")

        p = marketplace_sub.add_parser(
            "validate",
            help="Validate the marketplace and every workbench it lists",
            description="Check marketplace.json, then each plugin's source path, "
            "then run workbench validation on each source. Exits 2 if any error is found.",
        )
        WorkbenchCommands.add_delegate_argument(p)

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        if args.marketplace_command is None:
            print_usage("marketplace", [
                ("list", "List marketplace workbenches"),
                ("validate", "Cascade-validate the marketplace"),
            ])
        elif args.marketplace_command == "list":
            MarketplaceCommands.list_workbenches()
        elif args.marketplace_command == "validate":
            MarketplaceCommands.validate(WorkbenchCommands.delegate_enabled(args, config))

    @staticmethod
    def list_workbenches() -> None:
        workbenches = list_workbenches()
        if json_mode():
            print_result([w.to_dict() for w in workbenches])
            return
        if not workbenches:
            message("No workbenches found in marketplace.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        table(["Name", "Source", "Version"], [[w.name, w.source, w.version] for w in workbenches])

    @staticmethod
    def validate(delegate: bool = False) -> None:
        result = validate_marketplace(delegate=delegate)
        summary = result.summary

        if json_mode():
            print_result(result)
        else:
            for error in result.errors:
                message(f"  MARKETPLACE ERROR: {error}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            print_validation(result.workbenches)
            message(
                f"\nMarketplace validated. {summary['workbenches']} workbench(es), "
                f"{summary['errors']} error(s), {summary['warnings']} warning(s).",
                MessageType.INFO,
                VerbosityLevel.ALWAYS,
            )

        if summary["errors"]:
            exit_with(ExitCode.VALIDATION)
