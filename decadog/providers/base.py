"""
Abstract interfaces for the two remote services.

The sprint engine talks to an issue tracker and an estimation overlay through
these interfaces only. Each client has its own base URL, credentials and
retry policy; the engine receives both as separate collaborators.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import datetime

from decadog.exceptions import UnexpectedResponseError
from decadog.models.domain import (
    Board,
    Issue,
    IssueUpdate,
    Milestone,
    MilestoneUpdate,
    OrganisationMember,
    OverlayIssue,
    PipelinePosition,
    Repository,
    Workspace,
)


class IssueTracker(ABC):
    """Issue, milestone, repository and member resources."""

    @abstractmethod
    def get_issue(self, owner: str, repo: str, issue_number: int) -> Issue:
        """Get an issue by owner, repo name and issue number."""

    @abstractmethod
    def patch_issue(self, owner: str, repo: str, issue_number: int, update: IssueUpdate) -> Issue:
        """Apply a partial update to an issue and return the new snapshot."""

    @abstractmethod
    def get_repository(self, owner: str, repo: str) -> Repository:
        """Get a repository by owner and repo name."""

    @abstractmethod
    def get_members(self, organisation: str) -> list[OrganisationMember]:
        """List members of an organisation."""

    @abstractmethod
    def get_milestones(self, owner: str, repo: str) -> list[Milestone]:
        """List open milestones, most recent first."""

    @abstractmethod
    def create_milestone(self, owner: str, repo: str, create: MilestoneUpdate) -> Milestone:
        """Create a milestone."""

    @abstractmethod
    def patch_milestone(
        self, owner: str, repo: str, milestone_number: int, update: MilestoneUpdate
    ) -> Milestone:
        """Apply a partial update to a milestone."""

    @abstractmethod
    def search_issues(self, query: str) -> Iterator[Issue]:
        """Lazily iterate over every issue matching a search query."""


class EstimationOverlay(ABC):
    """Board, pipeline, estimate and start date resources."""

    @abstractmethod
    def get_workspaces(self, repository_id: int) -> list[Workspace]:
        """List workspaces containing a repository."""

    @abstractmethod
    def get_board(self, repository_id: int, workspace_id: str | None = None) -> Board:
        """Get the board of a repository, optionally scoped to a workspace."""

    @abstractmethod
    def get_start_date(self, repository_id: int, milestone_number: int) -> datetime:
        """Get the start date recorded for a milestone."""

    @abstractmethod
    def set_start_date(self, repository_id: int, milestone_number: int, start_date: datetime) -> datetime:
        """Record the start date of a milestone."""

    @abstractmethod
    def get_issue(self, repository_id: int, issue_number: int) -> OverlayIssue:
        """Get estimate and epic flag of an issue."""

    @abstractmethod
    def set_estimate(self, repository_id: int, issue_number: int, estimate: int) -> None:
        """Set the estimate of an issue."""

    @abstractmethod
    def move_issue(
        self,
        repository_id: int,
        issue_number: int,
        position: PipelinePosition,
        workspace_id: str | None = None,
    ) -> None:
        """Move an issue to a position in a pipeline."""

    def get_first_workspace(self, repository_id: int) -> Workspace:
        """Get the first workspace containing a repository.

        Raises:
            UnexpectedResponseError: If the repository is in no workspace.
        """
        workspaces = self.get_workspaces(repository_id)
        if not workspaces:
            raise UnexpectedResponseError("No Zenhub workspace found for repository.")
        return workspaces[0]
