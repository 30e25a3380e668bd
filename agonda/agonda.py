#!/usr/bin/env python

"""Command-line interface for Agonda repositories."""

import argparse
import sys

from agonda import __version__
from agonda.cli_extensions import (
    ConfigCommands,
    HealthCommands,
    MarketplaceCommands,
    PluginCommands,
    PrimitivesCommands,
    StatusCommands,
    WorkbenchCommands,
    WorkspaceCommands,
)
from agonda.config import Config
from agonda.errors import AgondaError, format_error
from agonda.output import MessageType, VerbosityLevel, emit_json, get_output, message

# Grouped command help text
COMMAND_GROUPS = """
repository commands:
  status              System-wide overview of plugins, domains, primitives and workspaces
  workspace           Discover workspaces
  health              Run knowledge-domain health checks

workbench commands:
  workbench           Validate workbench structure
  marketplace         List and validate marketplace workbenches
  plugin              Validate, enable, disable and switch plugins

primitive commands:
  primitives          Check, install and update skill primitives

configuration file commands:
  config              Manage the configuration file

exit codes:
  0  Success
  1  General error (bad arguments, unexpected failure)
  2  Validation failure (invalid plugin, failed health check, primitive behind)
  3  Network error (registry unreachable, timeout)
  4  Not found (no repository, workbench or primitive)

Run 'agonda <command> --help' for details on a specific command.
"""

# Commands whose handlers take the Config instance rather than its data
_CONFIG_FILE_COMMANDS = {"config"}

COMMANDS = {
    "config": ConfigCommands,
    "health": HealthCommands,
    "marketplace": MarketplaceCommands,
    "plugin": PluginCommands,
    "primitives": PrimitivesCommands,
    "status": StatusCommands,
    "workbench": WorkbenchCommands,
    "workspace": WorkspaceCommands,
}


class GroupedHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that hides the subparser choices from positional arguments."""

    def _metavar_formatter(self, action, default_metavar):
        if action.choices is not None and isinstance(action, argparse._SubParsersAction):
            result = action.metavar if action.metavar is not None else ""

            def format_fn(tuple_size):
                if isinstance(result, tuple):
                    return result
                return (result,) * tuple_size

            return format_fn
        return super()._metavar_formatter(action, default_metavar)

    def _format_action(self, action):
        # Sub-commands are listed in the epilog instead
        if isinstance(action, argparse._SubParsersAction):
            return ""
        return super()._format_action(action)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with every command group registered."""
    parser = argparse.ArgumentParser(
        prog="agonda",
        description="Workspace discovery, primitive management, plugin management and health checks",
        formatter_class=GroupedHelpFormatter,
        epilog=COMMAND_GROUPS,
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress non-essential output")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v, -vv, -vvv)",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    for commands in COMMANDS.values():
        commands.add_cli_arguments(subparsers)
    return parser


def run(argv: list[str] | None = None, config: Config | None = None) -> None:
    """Parse *argv* and dispatch to the matching command group.

    Raises:
        AgondaError: Whatever the command raised
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure output system
    output_mgr = get_output()
    output_mgr.verbosity = args.verbose
    output_mgr.quiet = args.quiet
    output_mgr.json_mode = args.json
    if args.no_color or not sys.stdout.isatty():
        output_mgr.use_color = False

    message(f"Verbosity level: {args.verbose}", MessageType.DEBUG, VerbosityLevel.DEBUG)
    message(f"Command: {args.command}", MessageType.DEBUG, VerbosityLevel.DEBUG)

    if args.command is None:
        parser.print_help()
        return

    config = config or Config()
    commands = COMMANDS[args.command]
    if args.command in _CONFIG_FILE_COMMANDS:
        commands.process_cli_command(args, config)
    else:
        commands.process_cli_command(args, config.read())


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the agonda CLI."""
    try:
        run(argv)
    except AgondaError as e:
        if get_output().json_mode:
            emit_json(e.to_dict())
        else:
            message(format_error(e), MessageType.ERROR, VerbosityLevel.ALWAYS)
        sys.exit(int(e.exit_code))
    except KeyboardInterrupt:
        message("Interrupted", MessageType.ERROR, VerbosityLevel.ALWAYS)
        sys.exit(130)


if __name__ == "__main__":
    main()
