"""Shared pydantic models: the contract between the bd adapter and main.py."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Priority sentinel for filters and create requests. The tool's scale is opaque
# (0 may be the most or least urgent), so 0 is a real value, never "unset".
PRIORITY_UNSET = -1


class _Record(BaseModel):
    """Base for records decoded from bd JSON output."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # bd emits null for empty optional fields; treat them as absent
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class IssueDep(_Record):
    """A dependency or dependent edge, as returned by `bd show`."""

    id: str
    title: str = ""
    status: str = ""
    priority: int = 0
    issue_type: str = ""
    dependency_type: str | None = None


class Issue(_Record):
    id: str
    title: str = ""
    description: str = ""
    status: str = ""
    priority: int = 0
    issue_type: str = ""  # task | bug | feature | epic
    created_at: str = ""
    updated_at: str = ""
    closed_at: str | None = None
    parent: str | None = None
    assignee: str | None = None
    children: tuple[str, ...] = ()
    depends_on: tuple[str, ...] = ()
    blocks: tuple[str, ...] = ()
    blocked_by: tuple[str, ...] = ()

    # Counts, populated by list-style queries only
    dependency_count: int = 0
    dependent_count: int = 0
    blocked_by_count: int = 0

    # Detailed edges, populated by show only
    dependencies: tuple[IssueDep, ...] = ()
    dependents: tuple[IssueDep, ...] = ()


class SyncStatus(_Record):
    """Sync state of the beads branch. The zero value means "never synced"."""

    branch: str = ""
    ahead: int = 0
    behind: int = 0
    conflicts: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _lower_keys(cls, data: Any) -> Any:
        # bd has emitted both "Branch" and "branch" across versions
        if isinstance(data, dict):
            return {str(k).lower(): v for k, v in data.items()}
        return data


class ListFilter(BaseModel):
    """Filters for `bd list`. Empty strings and PRIORITY_UNSET mean "no filter"."""

    model_config = ConfigDict(frozen=True)

    status: str = ""  # open | in_progress | closed | all
    issue_type: str = ""
    priority: int = Field(default=PRIORITY_UNSET, ge=PRIORITY_UNSET)
    parent: str = ""


class CreateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""  # bd decides what an empty title means
    issue_type: str = ""
    priority: int = Field(default=PRIORITY_UNSET, ge=PRIORITY_UNSET)
    description: str = ""
    parent: str = ""


class UpdateRequest(BaseModel):
    """Fields to change on an issue. None leaves a field alone; "" clears it."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    status: str | None = None
    priority: int | None = None
    description: str | None = None
    assignee: str | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)
