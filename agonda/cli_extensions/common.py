"""Argument and output helpers shared by the command groups."""

import argparse
import sys

from agonda.errors import ExitCode
from agonda.output import MessageType, VerbosityLevel, emit_json, get_output, message

FELL_BACK_NOTICE = "Not inside a workbench; operating on all workbenches in the repository."


def add_target_arguments(parser: argparse.ArgumentParser, dry_run: bool = False) -> None:
    """Add ``--all`` / ``--workbench`` (and optionally ``--dry-run``) to *parser*."""
    parser.add_argument(
        "--all", dest="all_workbenches", action="store_true",
        help="Operate on all workbenches in the repository",
    )
    parser.add_argument(
        "--workbench", metavar="NAME_OR_PATH",
        help="Target one workbench by marketplace name or path",
    )
    if dry_run:
        parser.add_argument(
            "--dry-run", action="store_true",
            help="Preview changes without writing anything",
        )


def json_mode() -> bool:
    return get_output().json_mode


def print_result(data) -> None:
    """Emit *data* as JSON when ``--json`` is active."""
    emit_json(data.to_dict() if hasattr(data, "to_dict") else data)


def notify_fell_back(fell_back: bool) -> None:
    if fell_back:
        message(FELL_BACK_NOTICE, MessageType.INFO, VerbosityLevel.ALWAYS)


def print_usage(group: str, commands: list[tuple[str, str]]) -> None:
    """Print the sub-command list for a group invoked without a sub-command."""
    message(f"Usage: agonda {group} <command>", MessageType.NORMAL, VerbosityLevel.ALWAYS)
    message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
    message("Available commands:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
    width = max(len(name) for name, _ in commands) + 3
    for name, description in commands:
        message(f"  {name.ljust(width)}{description}", MessageType.NORMAL, VerbosityLevel.ALWAYS)


def exit_with(code: ExitCode) -> None:
    """Exit with *code* unless it is success."""
    if code != ExitCode.SUCCESS:
        sys.exit(int(code))


def print_validation(results) -> None:
    """Print ``path: valid`` or the errors and warnings of each workbench."""
    for result in results:
        if result.is_clean:
            message(f"{result.path}: valid", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            continue
        message(f"{result.path}:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for issue in result.errors:
            message(f"  ERROR: {issue}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for issue in result.warnings:
            message(f"  WARN:  {issue}", MessageType.NORMAL, VerbosityLevel.ALWAYS)


def print_validation_summary(summary: dict[str, int]) -> None:
    message(
        f"\n{summary['workbenches']} workbench(es) scanned. "
        f"{summary['errors']} error(s), {summary['warnings']} warning(s).",
        MessageType.INFO,
        VerbosityLevel.ALWAYS,
    )
