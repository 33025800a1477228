"""Error taxonomy for bd failures.

Failures are classified once, here, from the exit status and stderr of a bd
invocation. Callers branch on the exception type (or its ``kind``) and never
look at stderr text themselves.

Classification is a first-match walk over ``CLASSIFICATION_RULES``. Each rule
names a kind and the substrings that must all appear in stderr. Anything that
matches no rule becomes ``ErrorKind.GENERIC_FAILURE`` with the full command and
stderr attached.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bdw.invoker import CommandResult


class ErrorKind(str, Enum):
    TOOL_NOT_INSTALLED = "tool-not-installed"
    NOT_A_REPOSITORY = "not-a-repository"
    SYNC_CONFLICT = "sync-conflict"
    NOT_FOUND = "not-found"
    DECODE_FAILURE = "decode-failure"
    CANCELLED = "cancelled"
    GENERIC_FAILURE = "generic-failure"


@dataclass(frozen=True)
class ClassificationRule:
    kind: ErrorKind
    needles: tuple[str, ...]

    def matches(self, stderr: str) -> bool:
        return all(needle in stderr for needle in self.needles)


# Order matters: the first matching rule wins.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(ErrorKind.NOT_A_REPOSITORY, ("not a beads repository",)),
    ClassificationRule(ErrorKind.NOT_A_REPOSITORY, ("No .beads directory",)),
    ClassificationRule(ErrorKind.NOT_A_REPOSITORY, (".beads", "not found")),
    ClassificationRule(ErrorKind.SYNC_CONFLICT, ("sync conflict",)),
    ClassificationRule(ErrorKind.SYNC_CONFLICT, ("CONFLICT",)),
    ClassificationRule(ErrorKind.NOT_FOUND, ("not found",)),
    ClassificationRule(ErrorKind.NOT_FOUND, ("Issue not found",)),
)


def classify(
    stderr: str,
    *,
    launch_failed: bool = False,
    rules: Sequence[ClassificationRule] = CLASSIFICATION_RULES,
) -> ErrorKind:
    """Map a failed invocation to an ErrorKind. Total: never raises."""
    if launch_failed:
        return ErrorKind.TOOL_NOT_INSTALLED
    text = stderr.strip()
    for rule in rules:
        if rule.matches(text):
            return rule.kind
    return ErrorKind.GENERIC_FAILURE


class BeadsError(Exception):
    """Base class for every failure surfaced by the bd adapter."""

    kind: ErrorKind = ErrorKind.GENERIC_FAILURE

    def __init__(self, message: str, *, args: Sequence[str] = (), stderr: str = "") -> None:
        super().__init__(message)
        self.command = tuple(args)
        self.stderr = stderr


class ToolNotInstalledError(BeadsError):
    kind = ErrorKind.TOOL_NOT_INSTALLED


class NotARepositoryError(BeadsError):
    kind = ErrorKind.NOT_A_REPOSITORY


class SyncConflictError(BeadsError):
    kind = ErrorKind.SYNC_CONFLICT


class IssueNotFoundError(BeadsError):
    kind = ErrorKind.NOT_FOUND


class DecodeError(BeadsError):
    """bd exited cleanly but its output did not have the expected shape.

    Usually means the installed bd is newer or older than this adapter expects.
    """

    kind = ErrorKind.DECODE_FAILURE


class CommandCancelledError(BeadsError):
    kind = ErrorKind.CANCELLED


class CommandFailedError(BeadsError):
    kind = ErrorKind.GENERIC_FAILURE

    def __init__(self, message: str, *, args: Sequence[str] = (), stderr: str = "", returncode: int = 1) -> None:
        super().__init__(message, args=args, stderr=stderr)
        self.returncode = returncode


_MESSAGES = {
    ErrorKind.TOOL_NOT_INSTALLED: (
        "bd not installed: run 'pip install beads-cli' or see https://github.com/anthropics/beads"
    ),
    ErrorKind.NOT_A_REPOSITORY: "not a beads repository (no .beads directory found)",
    ErrorKind.SYNC_CONFLICT: "beads sync conflict",
    ErrorKind.NOT_FOUND: "issue not found",
}

_ERROR_TYPES: dict[ErrorKind, type[BeadsError]] = {
    ErrorKind.TOOL_NOT_INSTALLED: ToolNotInstalledError,
    ErrorKind.NOT_A_REPOSITORY: NotARepositoryError,
    ErrorKind.SYNC_CONFLICT: SyncConflictError,
    ErrorKind.NOT_FOUND: IssueNotFoundError,
}


def error_for(result: "CommandResult") -> BeadsError:
    """Build the exception for a failed CommandResult."""
    stderr = result.stderr.strip()
    kind = classify(stderr, launch_failed=result.launch_error is not None)

    if kind is ErrorKind.GENERIC_FAILURE:
        cmd = " ".join(result.args)
        detail = stderr or f"exit status {result.returncode}"
        return CommandFailedError(f"bd {cmd}: {detail}", args=result.args, stderr=stderr, returncode=result.returncode)

    message = _MESSAGES[kind]
    if kind is ErrorKind.NOT_FOUND and stderr:
        message = stderr
    return _ERROR_TYPES[kind](message, args=result.args, stderr=stderr)
