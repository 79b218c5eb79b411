"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import structlog

from decadog.config.credential_fields import set_resolver
from decadog.engine.context import SprintContext
from decadog.models.domain import (
    Board,
    Issue,
    IssueState,
    Milestone,
    OrganisationMember,
    Pipeline,
    PipelineIssue,
    Repository,
)
from decadog.providers.base import EstimationOverlay, IssueTracker
from decadog.utils.prompts import ClickPrompter

TIMESTAMP = datetime(2019, 11, 4, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Undo process-wide configuration between tests."""
    for name in ("DECADOG_OWNER", "DECADOG_REPO", "DECADOG_GITHUB_TOKEN", "DECADOG_ZENHUB_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_resolver(None)


# =============================================================================
# Domain objects
# =============================================================================


def make_milestone(id: int = 100, number: int = 4, title: str = "Sprint 4") -> Milestone:
    return Milestone(id=id, number=number, title=title, state=IssueState.OPEN)


def make_issue(
    number: int = 42,
    id: int | None = None,
    state: IssueState = IssueState.OPEN,
    milestone: Milestone | None = None,
    assignees: tuple[str, ...] = (),
    title: str = "Fix login",
) -> Issue:
    return Issue(
        id=id if id is not None else 1000 + number,
        number=number,
        state=state,
        title=title,
        milestone=milestone,
        assignees=tuple(OrganisationMember(login=login, id=i) for i, login in enumerate(assignees)),
        labels=(),
        created_at=TIMESTAMP,
        updated_at=TIMESTAMP,
        closed_at=TIMESTAMP if state is IssueState.CLOSED else None,
        url=f"https://github.com/reinfer/platform/issues/{number}",
    )


@pytest.fixture
def milestone() -> Milestone:
    return make_milestone()


@pytest.fixture
def issue_factory():
    """Build issues with sensible defaults."""
    return make_issue


@pytest.fixture
def repository() -> Repository:
    return Repository(id=1234, name="platform")


@pytest.fixture
def board() -> Board:
    """Board with two pipelines; issue 7 is already in progress."""
    return Board(
        pipelines=(
            Pipeline(id="p-backlog", name="Backlog"),
            Pipeline(
                id="p-progress",
                name="In Progress",
                issues=(PipelineIssue(issue_number=7, estimate=None, is_epic=False),),
            ),
        )
    )


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def tracker() -> MagicMock:
    """Issue tracker mock."""
    return MagicMock(spec=IssueTracker)


@pytest.fixture
def overlay() -> MagicMock:
    """Estimation overlay mock."""
    return MagicMock(spec=EstimationOverlay)


@pytest.fixture
def context(tracker, overlay, repository, board) -> MagicMock:
    """SprintContext mock preloaded with repository, members and board."""
    ctx = MagicMock(spec=SprintContext)
    ctx.owner = "reinfer"
    ctx.repo = "platform"
    ctx.tracker = tracker
    ctx.overlay = overlay
    ctx.get_repository.return_value = repository
    ctx.get_members.return_value = [
        OrganisationMember(login="alice", id=1),
        OrganisationMember(login="bob", id=2),
    ]
    ctx.resolve_workspace_id.return_value = "ws-1"
    ctx.get_board.return_value = board
    return ctx


@pytest.fixture
def prompter() -> MagicMock:
    """Prompter mock; tests script answers via side_effect."""
    return MagicMock(spec=ClickPrompter)
