"""CLI commands for managing the configuration file."""

import argparse
import sys

import yaml

from agonda.cli_extensions.common import json_mode, print_result, print_usage
from agonda.config import Config, ConfigError
from agonda.errors import attempt
from agonda.output import MessageType, VerbosityLevel, message
from agonda.plugins.registries import create_registry


class ConfigCommands:
    """Manages configuration-related CLI commands."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add config subcommands to the argument parser.

        Args:
            subparsers: The subparsers object to add commands to
        """
        config_parser = subparsers.add_parser("config", help="Manage configuration")
        config_subparsers = config_parser.add_subparsers(dest="config_command", help="Configuration commands")

        config_subparsers.add_parser(
            "show",
            help="Display current configuration",
            description="Display the effective configuration: the file layered over the defaults.",
        )

        config_subparsers.add_parser(
            "validate",
            help="Validate configuration",
            description="Validate the configuration file structure and check that the registry is reachable.",
        )

        config_subparsers.add_parser(
            "template",
            help="Dump a starter configuration template to stdout",
            description="Print a commented YAML template to stdout that can be redirected to a config file.",
        )

        config_subparsers.add_parser(
            "where",
            help="Show configuration file location",
            description="Show the file paths for the configuration file and config directory.",
        )

        init_parser = config_subparsers.add_parser(
            "init",
            help="Create the configuration file from the template",
            description="Write the starter template to the configuration file.",
        )
        init_parser.add_argument("--force", action="store_true", help="Overwrite an existing configuration file")

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: Config) -> None:
        """Process config CLI commands.

        Args:
            args: Parsed command-line arguments
            config: Config instance to operate on
        """
        if args.config_command is None:
            print_usage("config", [
                ("show", "Display current configuration"),
                ("validate", "Validate configuration"),
                ("template", "Dump starter template to stdout"),
                ("where", "Show configuration file location"),
                ("init", "Create the configuration file"),
            ])
        elif args.config_command == "show":
            ConfigCommands.display(config)
        elif args.config_command == "validate":
            ConfigCommands.validate_all(config)
        elif args.config_command == "template":
            ConfigCommands.template()
        elif args.config_command == "where":
            ConfigCommands.show_location(config)
        elif args.config_command == "init":
            ConfigCommands.init(config, force=args.force)

    @staticmethod
    def display(config: Config) -> None:
        """Display the effective configuration.

        Args:
            config: Config instance
        """
        config_data = config.read()
        if json_mode():
            print_result(dict(config_data))
            return
        if not config.exists():
            message(f"No configuration file at {config.config_file}; showing defaults.",
                    MessageType.INFO, VerbosityLevel.ALWAYS)
        message(yaml.dump(dict(config_data), default_flow_style=False, sort_keys=False).rstrip(),
                MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def validate_all(config: Config) -> None:
        """Validate configuration structure and registry reachability.

        Args:
            config: Config instance
        """
        if not config.exists():
            message("No configuration file found. Run 'agonda config init' to create one.",
                    MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

        # Structure first; read() raises ConfigError with every problem
        config_data = config.read()
        message("Configuration structure is valid.", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

        registry = create_registry(config_data.get("registry"))
        message(f"\nChecking registry {registry.get_display_url()}...", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        outcome = attempt(registry.tags)
        if outcome.ok:
            message(f"  Reachable ({len(outcome.value)} tags)", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        else:
            message(f"  Unreachable: {outcome.error}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

    @staticmethod
    def template() -> None:
        """Dump a starter configuration template to stdout."""
        print(Config.generate_template())

    @staticmethod
    def init(config: Config, force: bool = False) -> None:
        """Write the starter template to the config file.

        Raises:
            ConfigError: If the file cannot be written
        """
        if config.exists() and not force:
            message(f"Configuration file already exists: {config.config_file}", MessageType.WARNING,
                    VerbosityLevel.ALWAYS)
            message("Use --force to overwrite it.", MessageType.INFO, VerbosityLevel.ALWAYS)
            return

        config.ensure_directories()
        try:
            config.config_file.write_text(Config.generate_template())
        except OSError as e:
            raise ConfigError(f"Failed to write configuration file: {e}") from e
        message(f"Configuration saved to {config.config_file}", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    @staticmethod
    def show_location(config: Config) -> None:
        """Show the location of the configuration file and directory.

        Args:
            config: Config instance
        """
        message("\nConfiguration Locations:\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Config directory: {config.config_directory}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Config file:      {config.config_file}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message("\nStatus:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if config.config_file.exists():
            message("  Config file exists", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        else:
            message("  Config file does not exist (defaults apply)", MessageType.WARNING, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
