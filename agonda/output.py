"""Output system for agonda.

Primary results go to stdout so they can be piped; status, warnings and
errors go to stderr. Every message carries a type (for colouring) and a
verbosity level (for filtering against the ``-v`` count).
"""

import json
import os
import sys
from enum import Enum, IntEnum
from typing import Any


class MessageType(Enum):
    """Kind of message, used for colouring and stream selection."""

    NORMAL = "normal"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


class VerbosityLevel(IntEnum):
    """Minimum ``-v`` count required for a message to be shown."""

    ALWAYS = 0
    VERBOSE = 1
    EXTRA_VERBOSE = 2
    DEBUG = 3


_COLORS = {
    MessageType.INFO: "\033[36m",
    MessageType.SUCCESS: "\033[32m",
    MessageType.WARNING: "\033[33m",
    MessageType.ERROR: "\033[31m",
    MessageType.DEBUG: "\033[2m",
}
_RESET = "\033[0m"

# Types written to stdout; everything else is status on stderr
_STDOUT_TYPES = (MessageType.NORMAL, MessageType.SUCCESS)


class OutputManager:
    """Holds the process-wide output settings."""

    def __init__(self):
        self.verbosity = 0
        self.use_color = sys.stdout.isatty() and not os.environ.get("NO_COLOR")
        self.quiet = False
        self.json_mode = False

    def should_show(self, msg_type: MessageType, level: VerbosityLevel) -> bool:
        if self.verbosity < level:
            return False
        if self.quiet and msg_type in (MessageType.INFO, MessageType.SUCCESS):
            return False
        # JSON mode keeps stdout machine-readable
        if self.json_mode and msg_type in _STDOUT_TYPES:
            return False
        return True

    def format(self, text: str, msg_type: MessageType) -> str:
        color = _COLORS.get(msg_type)
        if not self.use_color or color is None:
            return text
        return f"{color}{text}{_RESET}"

    def message(self, text: str, msg_type: MessageType, level: VerbosityLevel) -> None:
        if not self.should_show(msg_type, level):
            return
        stream = sys.stdout if msg_type in _STDOUT_TYPES else sys.stderr
        stream.write(self.format(text, msg_type) + "\n")

    def emit_json(self, data: Any) -> None:
        sys.stdout.write(json.dumps(data, indent=2, default=str) + "\n")

    def table(self, headers: list[str], rows: list[list[Any]]) -> None:
        cells = [[str(c) if c is not None else "" for c in row] for row in rows]
        widths = [
            max([len(h)] + [len(row[i]) for row in cells if i < len(row)])
            for i, h in enumerate(headers)
        ]

        def _line(values: list[str]) -> str:
            return "  ".join(v.ljust(widths[i]) for i, v in enumerate(values)).rstrip()

        sys.stdout.write(_line(headers) + "\n")
        sys.stdout.write("  ".join("-" * w for w in widths) + "\n")
        for row in cells:
            sys.stdout.write(_line(row) + "\n")


_output = OutputManager()


def get_output() -> OutputManager:
    """Return the process-wide output manager."""
    return _output


def message(
    text: str,
    msg_type: MessageType = MessageType.NORMAL,
    level: VerbosityLevel = VerbosityLevel.ALWAYS,
) -> None:
    """Print *text* if the current verbosity allows it."""
    _output.message(text, msg_type, level)


def emit_json(data: Any) -> None:
    """Write *data* to stdout as pretty-printed JSON."""
    _output.emit_json(data)


def table(headers: list[str], rows: list[list[Any]]) -> None:
    """Write an aligned text table to stdout."""
    _output.table(headers, rows)
