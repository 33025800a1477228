"""Argument vectors for each bd subcommand.

Every function is pure. Absent fields emit nothing; present fields emit exactly
one ``--name=value`` token, value verbatim (arguments go to bd as a vector, so
no shell quoting). Flags come out in a fixed order so vectors compare equal.
"""

from collections.abc import Sequence

from bdw.models import PRIORITY_UNSET, CreateRequest, ListFilter, UpdateRequest

JSON_FLAG = "--json"


def _flag(name: str, value: object) -> str:
    return f"--{name}={value}"


def _priority_flags(priority: int) -> list[str]:
    return [] if priority == PRIORITY_UNSET else [_flag("priority", priority)]


def list_args(filters: ListFilter) -> list[str]:
    args = ["list", JSON_FLAG]
    if filters.status:
        args.append(_flag("status", filters.status))
    if filters.issue_type:
        args.append(_flag("type", filters.issue_type))
    args += _priority_flags(filters.priority)
    if filters.parent:
        args.append(_flag("parent", filters.parent))
    return args


def ready_args() -> list[str]:
    return ["ready", JSON_FLAG]


def blocked_args() -> list[str]:
    return ["blocked", JSON_FLAG]


def show_args(issue_id: str) -> list[str]:
    return ["show", issue_id, JSON_FLAG]


def create_args(request: CreateRequest) -> list[str]:
    args = ["create", JSON_FLAG]
    if request.title:
        args.append(_flag("title", request.title))
    if request.issue_type:
        args.append(_flag("type", request.issue_type))
    args += _priority_flags(request.priority)
    if request.description:
        args.append(_flag("description", request.description))
    if request.parent:
        args.append(_flag("parent", request.parent))
    return args


def update_args(issue_id: str, request: UpdateRequest) -> list[str]:
    args = ["update", issue_id]
    # None is "leave alone"; an empty string is a real value and clears the field.
    for name in ("title", "status", "priority", "description", "assignee"):
        value = getattr(request, name)
        if value is not None:
            args.append(_flag(name, value))
    return args


def close_args(issue_ids: Sequence[str], reason: str | None = None) -> list[str] | None:
    """Return the close vector, or None when there is nothing to close."""
    if not issue_ids:
        return None
    args = ["close", *issue_ids]
    if reason is not None:
        args.append(_flag("reason", reason))
    return args


def dep_add_args(issue_id: str, depends_on: str) -> list[str]:
    return ["dep", "add", issue_id, depends_on]


def dep_remove_args(issue_id: str, depends_on: str) -> list[str]:
    return ["dep", "remove", issue_id, depends_on]


def sync_args(from_main: bool = False) -> list[str]:
    return ["sync", "--from-main"] if from_main else ["sync"]


def sync_status_args() -> list[str]:
    return ["sync", "--status", JSON_FLAG]


def stats_args() -> list[str]:
    return ["stats"]


def probe_args() -> list[str]:
    return ["list", "--limit=1"]


def formula_list_args(as_json: bool = False) -> list[str]:
    args = ["formula", "list"]
    if as_json:
        args.append(JSON_FLAG)
    return args


def formula_show_args(name: str, as_json: bool = False) -> list[str]:
    args = ["formula", "show", name]
    if as_json:
        args.append(JSON_FLAG)
    return args
