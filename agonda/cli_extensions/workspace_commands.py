"""CLI commands for workspace discovery."""

import argparse

from agonda.cli_extensions.common import exit_with, json_mode, print_result, print_usage
from agonda.config import ConfigData
from agonda.core.context import find_workbench_context
from agonda.core.workspace import MARKER_FILE, discover_workspaces, find_unmarked_workspaces, find_workspaces_by_workbench
from agonda.errors import ExitCode
from agonda.output import MessageType, VerbosityLevel, message, table

_FIELDS = ("name", "path", "workbench", "domain", "created")


class WorkspaceCommands:
    """Lists workspaces and finds the ones belonging to a workbench."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``workspace`` command group."""
        workspace_parser = subparsers.add_parser("workspace", help="Discover workspaces")
        workspace_sub = workspace_parser.add_subparsers(dest="workspace_command", help="Workspace commands")

        workspace_sub.add_parser("list", help="Show all active workspaces")

        p = workspace_sub.add_parser(
            "current",
            help="Find the workspaces of a workbench",
            description="Print the path of every workspace whose marker names the workbench. "
            "Without a name, the workbench containing the current directory is used.",
        )
        p.add_argument("workbench_name", nargs="?", metavar="workbench", help="Workbench name")

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        if args.workspace_command is None:
            print_usage("workspace", [
                ("list", "Show all active workspaces"),
                ("current", "Find workspaces for a workbench"),
            ])
        elif args.workspace_command == "list":
            WorkspaceCommands.list_workspaces()
        elif args.workspace_command == "current":
            WorkspaceCommands.current(args.workbench_name)

    @staticmethod
    def list_workspaces() -> None:
        workspaces = discover_workspaces()
        unmarked = find_unmarked_workspaces()

        if json_mode():
            print_result({
                "workspaces": [{k: ws[k] for k in _FIELDS} for ws in workspaces],
                "warnings": [
                    {"path": u["path"], "message": f"Missing {MARKER_FILE} marker, invisible to the CLI"}
                    for u in unmarked
                ],
            })
            return

        if not workspaces:
            message("No active workspaces found.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        else:
            table(
                ["Workspace", "Workbench", "Domain", "Created"],
                [[ws["name"], ws["workbench"], ws["domain"], ws["created"]] for ws in workspaces],
            )

        if unmarked:
            message(f"\n{len(unmarked)} workspace(s) without {MARKER_FILE} marker:", MessageType.WARNING, VerbosityLevel.ALWAYS)
            for u in unmarked:
                message(f"  {u['path']}", MessageType.WARNING, VerbosityLevel.ALWAYS)
            message(f"Add a {MARKER_FILE} marker to make them discoverable.", MessageType.INFO, VerbosityLevel.ALWAYS)

    @staticmethod
    def current(workbench_name: str | None = None) -> None:
        if not workbench_name:
            context = find_workbench_context()
            if context is None:
                message("Usage: agonda workspace current <workbench-name>", MessageType.ERROR, VerbosityLevel.ALWAYS)
                exit_with(ExitCode.GENERAL)
                return
            workbench_name = context.name

        matches = find_workspaces_by_workbench(workbench_name)

        if json_mode():
            print_result([{k: ws[k] for k in _FIELDS} for ws in matches])
            return

        if not matches:
            message(f'No workspace found for workbench "{workbench_name}".', MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message(
                f"Tip: Create a workspace directory under workspace/active/ with a {MARKER_FILE} marker.",
                MessageType.INFO,
                VerbosityLevel.ALWAYS,
            )
            return

        if len(matches) > 1:
            message(f'Found {len(matches)} workspaces for "{workbench_name}":', MessageType.INFO, VerbosityLevel.ALWAYS)
        for ws in matches:
            message(ws["path"], MessageType.NORMAL, VerbosityLevel.ALWAYS)
