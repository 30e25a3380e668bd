"""Error taxonomy and exit codes for agonda.

Every failure the CLI can report maps to one of a small set of exit
codes, so scripts can tell "the tool ran and found problems" (2) apart
from "the tool could not run" (1, 3, 4).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    GENERAL = 1
    VALIDATION = 2
    NETWORK = 3
    NOT_FOUND = 4


class AgondaError(Exception):
    """Base class for all agonda errors.

    Carries a machine-readable ``code``, the exit code the CLI should use,
    and an optional remediation hint.
    """

    default_code = "general_error"
    default_exit_code = ExitCode.GENERAL

    def __init__(
        self,
        message: str,
        code: str | None = None,
        exit_code: ExitCode | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.exit_code = exit_code if exit_code is not None else self.default_exit_code
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


class ValidationError(AgondaError):
    """Content violates a structural or schema rule."""

    default_code = "validation_error"
    default_exit_code = ExitCode.VALIDATION


class NetworkError(AgondaError):
    """A remote call or companion process failed, timed out, or is missing."""

    default_code = "network_error"
    default_exit_code = ExitCode.NETWORK


class NotFoundError(AgondaError):
    """A named entity does not exist where expected."""

    default_code = "not_found"
    default_exit_code = ExitCode.NOT_FOUND


def format_error(err: BaseException) -> str:
    """Format an error for human-readable stderr output."""
    if isinstance(err, AgondaError):
        text = f"Error: {err.message}"
        if err.suggestion:
            text += f"\n\nSuggestion: {err.suggestion}"
        return text
    return f"Error: {err}"


# ------------------------------------------------------------------
# Per-item outcomes for batch operations
# ------------------------------------------------------------------
@dataclass
class Outcome:
    """Result of one item in a batch: either a value or a captured error."""

    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def attempt(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Outcome:
    """Call *fn* and capture agonda and filesystem errors as an Outcome.

    Batch loops use this so one bad item is recorded and the loop moves
    on. Programming errors are not captured.
    """
    try:
        return Outcome(value=fn(*args, **kwargs))
    except (AgondaError, OSError) as exc:
        return Outcome(error=exc)
