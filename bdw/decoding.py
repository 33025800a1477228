"""Decode bd stdout into typed results.

Every decoder takes the argv vector that produced the output, so decode errors
name the exact command that misbehaved.
"""

import logging
from collections.abc import Sequence

from pydantic import TypeAdapter, ValidationError

from bdw import encoding
from bdw.errors import DecodeError, IssueNotFoundError
from bdw.models import Issue, SyncStatus

logger = logging.getLogger(__name__)

_ISSUE_LIST = TypeAdapter(list[Issue])

# bd is written in Go, which marshals a nil slice as null
_EMPTY_ARRAY_OUTPUTS = (b"", b"null")


def _decode_failure(command: Sequence[str], exc: ValidationError, stdout: bytes) -> DecodeError:
    cmd = " ".join(command)
    logger.warning("could not parse bd %s output (bd version mismatch?): %s", cmd, exc)
    return DecodeError(
        f"parsing bd {cmd} output: {exc.error_count()} validation error(s)",
        args=command,
        stderr=stdout.decode("utf-8", errors="replace")[:500],
    )


def decode_issues(stdout: bytes, command: Sequence[str] = ("list", encoding.JSON_FLAG)) -> list[Issue]:
    """Decode a JSON array of issues (list, ready, blocked)."""
    if stdout.strip() in _EMPTY_ARRAY_OUTPUTS:
        return []
    try:
        return _ISSUE_LIST.validate_json(stdout)
    except ValidationError as exc:
        raise _decode_failure(command, exc, stdout) from exc


def decode_shown_issue(stdout: bytes, issue_id: str, command: Sequence[str] | None = None) -> Issue:
    """`bd show --json` wraps the issue in a one-element array."""
    command = tuple(command or encoding.show_args(issue_id))
    issues = decode_issues(stdout, command)
    if not issues:
        raise IssueNotFoundError(f"issue not found: {issue_id}", args=command)
    return issues[0]


def decode_issue(stdout: bytes, command: Sequence[str] = ("create", encoding.JSON_FLAG)) -> Issue:
    """Decode a single, unwrapped issue object."""
    try:
        return Issue.model_validate_json(stdout)
    except ValidationError as exc:
        raise _decode_failure(command, exc, stdout) from exc


def decode_sync_status(stdout: bytes, command: Sequence[str] = ("sync", "--status", encoding.JSON_FLAG)) -> SyncStatus:
    try:
        return SyncStatus.model_validate_json(stdout)
    except ValidationError as exc:
        raise _decode_failure(command, exc, stdout) from exc


def decode_text(stdout: bytes) -> str:
    return stdout.decode("utf-8", errors="replace")
