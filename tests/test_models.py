"""Tests for bdw.models."""

import pytest
from pydantic import ValidationError

from bdw.models import PRIORITY_UNSET, CreateRequest, Issue, IssueDep, ListFilter, SyncStatus, UpdateRequest


def test_issue_frozen(sample_issue: Issue) -> None:
    with pytest.raises(ValidationError):
        sample_issue.title = "changed"  # type: ignore[misc]


def test_issue_defaults() -> None:
    issue = Issue(id="gt-1")
    assert issue.title == ""
    assert issue.closed_at is None
    assert issue.assignee is None
    assert issue.children == ()
    assert issue.dependencies == ()
    assert issue.dependency_count == 0


def test_issue_null_fields_fall_back_to_defaults() -> None:
    issue = Issue.model_validate({"id": "gt-1", "children": None, "assignee": None, "description": None})
    assert issue.children == ()
    assert issue.assignee is None
    assert issue.description == ""


def test_issue_ignores_unknown_fields() -> None:
    issue = Issue.model_validate({"id": "gt-1", "labels": ["x"], "compaction_level": 2})
    assert issue.id == "gt-1"


def test_issue_collections_are_tuples(sample_issue: Issue) -> None:
    assert sample_issue.depends_on == ("gt-041",)
    assert isinstance(sample_issue.children, tuple)


def test_issue_dep_relation_optional() -> None:
    dep = IssueDep(id="gt-9")
    assert dep.dependency_type is None


def test_sync_status_zero_value() -> None:
    status = SyncStatus()
    assert status.branch == ""
    assert status.ahead == 0
    assert status.behind == 0
    assert status.conflicts == ()


def test_sync_status_accepts_capitalised_keys() -> None:
    status = SyncStatus.model_validate({"Branch": "beads-sync", "Ahead": 2, "Behind": 1, "Conflicts": ["a.jsonl"]})
    assert status.branch == "beads-sync"
    assert status.ahead == 2
    assert status.conflicts == ("a.jsonl",)


def test_list_filter_defaults_are_unset() -> None:
    filters = ListFilter()
    assert filters.priority == PRIORITY_UNSET
    assert filters.status == ""


def test_list_filter_priority_zero_is_a_value() -> None:
    assert ListFilter(priority=0).priority == 0


def test_list_filter_rejects_priority_below_sentinel() -> None:
    with pytest.raises(ValidationError):
        ListFilter(priority=-2)


def test_create_request_allows_empty_title() -> None:
    assert CreateRequest().title == ""


def test_update_request_absent_vs_empty() -> None:
    assert UpdateRequest().is_empty
    cleared = UpdateRequest(description="")
    assert not cleared.is_empty
    assert cleared.description == ""
