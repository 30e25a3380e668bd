"""CLI commands for plugin enablement and validation.

Plugins are the marketplace's workbenches as Claude sees them. Toggling
one rewrites ``enabledPlugins`` in the chosen settings scope.
"""

import argparse

from agonda.cli_extensions.common import (
    add_target_arguments,
    json_mode,
    print_result,
    print_usage,
)
from agonda.cli_extensions.workbench_commands import WorkbenchCommands
from agonda.config import ConfigData
from agonda.core.plugins import ENABLED, list_plugins, set_plugin_state, switch_plugin
from agonda.output import MessageType, VerbosityLevel, message, table
from agonda.utils.settings import SCOPE_PROJECT, SCOPES

RESTART_NOTICE = "Restart Claude Code for changes to take effect."


class PluginCommands:
    """Manages all plugin-related CLI commands."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Register the ``plugin`` command group."""
        plugin_parser = subparsers.add_parser("plugin", help="Validate and manage plugins")
        plugin_sub = plugin_parser.add_subparsers(dest="plugin_command", help="Plugin commands")

        plugin_sub.add_parser("list", help="Show all plugins and their enabled/disabled status")

        p = plugin_sub.add_parser("validate", help="Validate plugin/workbench structure")
        add_target_arguments(p)
        WorkbenchCommands.add_delegate_argument(p)

        for action in ("enable", "disable"):
            p = plugin_sub.add_parser(action, help=f"{action.capitalize()} a plugin")
            p.add_argument("name", help="Plugin name from marketplace.json")
            _add_scope_argument(p)

        p = plugin_sub.add_parser(
            "switch",
            help="Enable one plugin and disable the others",
            description="Enable the named plugin and disable every other enabled plugin. "
            "Use --keep to leave specific plugins enabled.",
        )
        p.add_argument("name", help="Plugin to switch to")
        p.add_argument("--keep", nargs="+", metavar="NAME", default=[], help="Plugins to keep enabled")
        _add_scope_argument(p)
        p.add_argument("--dry-run", action="store_true", help="Preview changes without writing anything")

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: ConfigData) -> None:
        """Process plugin CLI commands.

        Args:
            args: Parsed command-line arguments
            config: Loaded configuration data
        """
        if args.plugin_command is None:
            print_usage("plugin", [
                ("list", "Show all plugins and their status"),
                ("validate", "Validate plugin structure"),
                ("enable", "Enable a plugin"),
                ("disable", "Disable a plugin"),
                ("switch", "Switch to a single plugin"),
            ])
        elif args.plugin_command == "list":
            PluginCommands.list_plugins()
        elif args.plugin_command == "validate":
            WorkbenchCommands.validate(
                args.all_workbenches,
                args.workbench,
                WorkbenchCommands.delegate_enabled(args, config),
            )
        elif args.plugin_command == "enable":
            PluginCommands.set_state(args.name, True, args.scope)
        elif args.plugin_command == "disable":
            PluginCommands.set_state(args.name, False, args.scope)
        elif args.plugin_command == "switch":
            PluginCommands.switch(args.name, args.keep, args.scope, args.dry_run)

    @staticmethod
    def list_plugins() -> None:
        plugins = list_plugins()
        if json_mode():
            print_result([
                {k: p[k] for k in ("name", "status", "scope", "version", "description", "path")}
                for p in plugins
            ])
            return
        if not plugins:
            message("No plugins found in marketplace.json.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return
        table(
            ["Name", "Status", "Scope", "Version"],
            [[p["name"], p["status"], p["scope"], p["version"]] for p in plugins],
        )

    @staticmethod
    def set_state(name: str, enabled: bool, scope: str = SCOPE_PROJECT) -> None:
        result = set_plugin_state(name, enabled, scope)
        if json_mode():
            print_result(result)
            return

        if result["already_in_state"]:
            message(
                f"{result['key']} is already {result['action']} ({result['scope']} scope).",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
        else:
            verb = "Enabled" if result["action"] == ENABLED else "Disabled"
            message(f"{verb} {result['key']} in {result['scope']} scope.", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        message(RESTART_NOTICE, MessageType.INFO, VerbosityLevel.ALWAYS)

    @staticmethod
    def switch(name: str, keep: list[str] | None = None, scope: str = SCOPE_PROJECT, dry_run: bool = False) -> None:
        result = switch_plugin(name, keep=keep, scope=scope, dry_run=dry_run)
        if json_mode():
            print_result(result)
            return

        if dry_run:
            message("Dry run, no changes written:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message(f"  Enable: {name}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for other in result["disabled"]:
                message(f"  Disable: {other}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for kept in result["kept"]:
                message(f"  Keep: {kept}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for other in result["disabled"]:
            message(f"Disabled: {other}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for enabled in result["enabled"]:
            message(f"Enabled: {enabled}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for kept in result["kept"]:
            message(f"Kept: {kept}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(RESTART_NOTICE, MessageType.INFO, VerbosityLevel.ALWAYS)


def _add_scope_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--scope", choices=SCOPES, default=SCOPE_PROJECT,
        help="Settings scope to write (default: project)",
    )
