"""CLI commands for workbench validation."""

import argparse

from agonda.cli_extensions.common import (
    add_target_arguments,
    exit_with,
    json_mode,
    notify_fell_back,
    print_result,
    print_usage,
    print_validation,
    print_validation_summary,
)
from agonda.config import ConfigData
from agonda.core.validate import validate_all
from agonda.errors import ExitCode


class WorkbenchCommands:
    """Manages workbench-related CLI commands."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``workbench`` command group."""
        workbench_parser = subparsers.add_parser("workbench", help="Validate workbench structure")
        workbench_sub = workbench_parser.add_subparsers(dest="workbench_command", help="Workbench commands")

        p = workbench_sub.add_parser(
            "validate",
            help="Validate workbench structure",
            description="Check manifests, skills, hooks and MCP server config. Exits 2 if any error is found.",
        )
        add_target_arguments(p)
        WorkbenchCommands.add_delegate_argument(p)

    @staticmethod
    def add_delegate_argument(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--delegate", action="store_true", default=None,
            help="Also run 'claude plugin validate' on each workbench",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        if args.workbench_command is None:
            print_usage("workbench", [("validate", "Validate workbench structure")])
            return
        if args.workbench_command == "validate":
            WorkbenchCommands.validate(
                args.all_workbenches,
                args.workbench,
                WorkbenchCommands.delegate_enabled(args, config),
            )

    @staticmethod
    def delegate_enabled(args: argparse.Namespace, config: ConfigData) -> bool:
        """``--delegate`` wins; otherwise ``validate.delegate`` from the config."""
        if args.delegate is not None:
            return args.delegate
        return bool(config.get("validate", {}).get("delegate", False))

    @staticmethod
    def validate(all_workbenches: bool = False, workbench: str | None = None, delegate: bool = False) -> None:
        report = validate_all(all_workbenches, workbench=workbench, delegate=delegate)

        if json_mode():
            print_result(report)
        else:
            notify_fell_back(report.fell_back)
            print_validation(report.results)
            print_validation_summary(report.summary)

        if report.summary["errors"]:
            exit_with(ExitCode.VALIDATION)
