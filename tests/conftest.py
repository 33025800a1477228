"""Shared test fixtures."""

import json
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path

import pytest

from bdw.client import Beads
from bdw.invoker import CommandResult, Invoker
from bdw.models import Issue


class FakeInvoker(Invoker):
    """Replays canned results in order and records every call."""

    def __init__(self, *results: CommandResult | BaseException) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, ...]] = []
        self.cwds: list[Path] = []
        self.timeouts: list[float | None] = []

    def run(self, args: Sequence[str], *, cwd: Path, timeout: float | None = None) -> CommandResult:
        self.calls.append(tuple(args))
        self.cwds.append(cwd)
        self.timeouts.append(timeout)
        if not self.results:
            raise AssertionError(f"unexpected bd call: {list(args)}")
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return replace(result, args=tuple(args))


def ok(stdout: bytes | str | object = b"") -> CommandResult:
    if isinstance(stdout, str):
        stdout = stdout.encode()
    elif not isinstance(stdout, bytes):
        stdout = json.dumps(stdout).encode()
    return CommandResult(args=(), returncode=0, stdout=stdout)


def failed(stderr: str, returncode: int = 1) -> CommandResult:
    return CommandResult(args=(), returncode=returncode, stderr=stderr)


def not_installed() -> CommandResult:
    return CommandResult(args=(), returncode=-1, launch_error="bd: executable not found")


@pytest.fixture
def fake_bd(tmp_path: Path) -> Callable[..., tuple[Beads, FakeInvoker]]:
    """Factory: fake_bd(*results) -> (Beads bound to tmp_path, its FakeInvoker)."""

    def _make(*results: CommandResult | BaseException) -> tuple[Beads, FakeInvoker]:
        invoker = FakeInvoker(*results)
        return Beads(tmp_path, invoker=invoker, timeout=5.0), invoker

    return _make


@pytest.fixture
def issue_node() -> dict:
    """One issue as `bd list --json` prints it."""
    return {
        "id": "gt-042",
        "title": "Fix null check in sync",
        "description": "Sync crashes when the remote is empty.",
        "status": "open",
        "priority": 1,
        "issue_type": "bug",
        "created_at": "2025-01-02T10:00:00Z",
        "updated_at": "2025-01-03T11:30:00Z",
        "assignee": "mayor",
        "parent": "gt-040",
        "children": [],
        "depends_on": ["gt-041"],
        "dependency_count": 1,
        "dependent_count": 2,
        "blocked_by_count": 0,
    }


@pytest.fixture
def show_node(issue_node: dict) -> dict:
    """One issue as `bd show --json` prints it, with detailed edges."""
    node = {k: v for k, v in issue_node.items() if not k.endswith("_count")}
    node["dependencies"] = [
        {
            "id": "gt-041",
            "title": "Add remote probe",
            "status": "closed",
            "priority": 2,
            "issue_type": "task",
            "dependency_type": "blocks",
        }
    ]
    node["dependents"] = [
        {"id": "gt-050", "title": "Release 0.4", "status": "open", "priority": 0, "issue_type": "epic"},
    ]
    return node


@pytest.fixture
def sample_issue(issue_node: dict) -> Issue:
    return Issue.model_validate(issue_node)


@pytest.fixture
def beads_workspace(tmp_path: Path) -> Path:
    """A directory that looks like a beads workspace."""
    root = tmp_path / "repo"
    (root / ".beads").mkdir(parents=True)
    return root
