"""
Domain models for decadog.

Every model here is a snapshot fetched immediately before use. Nothing is
mutated in place: changes go to the APIs as explicit update payloads
(``IssueUpdate``, ``MilestoneUpdate``, ``PipelinePosition``) and callers refetch
if they need the new state.

Example:
    Building an update that clears an issue's milestone::

        update = IssueUpdate(milestone=None)
        update.to_payload()  # {"milestone": None}
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class IssueState(str, Enum):
    """State shared by issues and milestones on the tracker."""

    OPEN = "open"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


class Direction(str, Enum):
    """Sort direction accepted by list and search endpoints."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    def __str__(self) -> str:
        return self.value


class _Unset:
    """Marker for update fields that should not be sent at all."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class Milestone:
    """A tracker milestone. Represents one sprint."""

    id: int
    number: int
    title: str
    state: IssueState
    due_on: datetime | None = None

    def __str__(self) -> str:
        return self.title


@dataclass(frozen=True)
class OrganisationMember:
    """A member of the organisation owning the repository.

    Identity only; assignment checks compare ``login``.
    """

    login: str
    id: int

    def __str__(self) -> str:
        return self.login


@dataclass(frozen=True)
class Label:
    """A tracker label."""

    id: int
    name: str


@dataclass(frozen=True)
class Issue:
    """A tracker issue.

    ``milestone`` and ``assignees`` reflect the moment the issue was fetched.
    """

    id: int
    number: int
    state: IssueState
    title: str
    milestone: Milestone | None
    assignees: tuple[OrganisationMember, ...]
    labels: tuple[Label, ...]
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None
    url: str

    def __str__(self) -> str:
        return f"{self.number}: {self.title}"


@dataclass(frozen=True)
class Repository:
    """A tracker repository. Its ``id`` keys every overlay call."""

    id: int
    name: str


@dataclass(frozen=True)
class Estimate:
    """A story point value attached to an issue by the overlay.

    Values coming back from the API are not checked against the configured
    estimate domain.
    """

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class OverlayIssue:
    """Overlay metadata for a single tracker issue."""

    estimate: Estimate | None
    is_epic: bool


@dataclass(frozen=True)
class PipelineIssue:
    """An overlay reference to an issue sitting in a pipeline."""

    issue_number: int
    estimate: Estimate | None
    is_epic: bool
    position: int | None = None


@dataclass(frozen=True)
class Pipeline:
    """One kanban column on the overlay board."""

    id: str
    name: str
    issues: tuple[PipelineIssue, ...] = ()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Board:
    """Ordered pipelines of one repository (optionally one workspace)."""

    pipelines: tuple[Pipeline, ...]


@dataclass(frozen=True)
class Workspace:
    """An overlay workspace grouping one or more repositories."""

    id: str
    name: str | None = None
    description: str | None = None
    repositories: tuple[int, ...] = ()


@dataclass(frozen=True)
class PipelinePosition:
    """Target of an overlay issue move."""

    pipeline_id: str
    position: str = "top"

    def to_payload(self) -> dict[str, Any]:
        return {"pipeline_id": self.pipeline_id, "position": self.position}


@dataclass(frozen=True)
class Sprint:
    """A milestone paired with its overlay start date.

    Derived per operation, never stored.
    """

    milestone: Milestone
    start_date: datetime


@dataclass
class IssueUpdate:
    """Partial update of a tracker issue.

    Only fields that were set are sent. ``milestone=None`` is sent as JSON
    ``null`` and clears the milestone; leaving it ``UNSET`` keeps it.
    """

    milestone: Any = UNSET
    assignees: list[str] | None = None
    state: IssueState | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.milestone is not UNSET:
            payload["milestone"] = self.milestone
        if self.assignees is not None:
            payload["assignees"] = list(self.assignees)
        if self.state is not None:
            payload["state"] = self.state.value
        return payload


@dataclass
class MilestoneUpdate:
    """Partial update (or creation body) of a tracker milestone."""

    title: str | None = None
    state: IssueState | None = None
    description: str | None = None
    due_on: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.title is not None:
            payload["title"] = self.title
        if self.state is not None:
            payload["state"] = self.state.value
        if self.description is not None:
            payload["description"] = self.description
        if self.due_on is not None:
            payload["due_on"] = format_timestamp(self.due_on)
        return payload


@dataclass(frozen=True)
class SearchPage:
    """One page of a search endpoint."""

    incomplete_results: bool
    items: list[Any] = field(default_factory=list)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by both APIs.

    The trailing ``Z`` is replaced with ``+00:00`` for ``fromisoformat()``.
    """
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_timestamp(value: datetime) -> str:
    """Format a timestamp the way the APIs expect it (UTC, ``Z`` suffix)."""
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text
