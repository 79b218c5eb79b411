"""
Repository-bound operations composed from the tracker and overlay clients.

``SprintContext`` pins one ``owner/repo`` and exposes the operations the
sprint workflows need, each expressed as one or two client calls. The two
clients are injected separately and keep their own retry policies.
"""

from collections.abc import Iterator
from datetime import datetime

import structlog

from decadog.models.domain import (
    Board,
    Issue,
    IssueState,
    IssueUpdate,
    Milestone,
    MilestoneUpdate,
    OrganisationMember,
    OverlayIssue,
    Pipeline,
    PipelinePosition,
    Repository,
    Sprint,
)
from decadog.providers.base import EstimationOverlay, IssueTracker
from decadog.providers.search import SearchQueryBuilder

log = structlog.get_logger(__name__)


class SprintContext:
    """Tracker and overlay operations scoped to one repository.

    Attributes:
        owner: Repository owner, also used as the organisation for members
        repo: Repository name
        tracker: Issue tracker client
        overlay: Estimation overlay client
        workspace_id: Overlay workspace, or None to use the repository's first
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        tracker: IssueTracker,
        overlay: EstimationOverlay,
        workspace_id: str | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.tracker = tracker
        self.overlay = overlay
        self.workspace_id = workspace_id

    def get_issue(self, issue_number: int) -> Issue:
        return self.tracker.get_issue(self.owner, self.repo, issue_number)

    def get_repository(self) -> Repository:
        return self.tracker.get_repository(self.owner, self.repo)

    def get_members(self) -> list[OrganisationMember]:
        return self.tracker.get_members(self.owner)

    def get_milestones(self) -> list[Milestone]:
        return self.tracker.get_milestones(self.owner, self.repo)

    def resolve_workspace_id(self, repository: Repository) -> str:
        """Configured workspace id, or the repository's first workspace."""
        if self.workspace_id is not None:
            return self.workspace_id
        return self.overlay.get_first_workspace(repository.id).id

    def get_board(self, repository: Repository, workspace_id: str | None) -> Board:
        return self.overlay.get_board(repository.id, workspace_id)

    def get_sprint(self, repository: Repository, milestone: Milestone) -> Sprint:
        """Pair a milestone with its overlay start date."""
        start_date = self.overlay.get_start_date(repository.id, milestone.number)
        return Sprint(milestone=milestone, start_date=start_date)

    def create_sprint(
        self, repository: Repository, sprint_number: str, start_date: datetime, due_on: datetime
    ) -> Sprint:
        """Create milestone ``Sprint <number>`` and record its start date.

        Not atomic: if recording the start date fails the milestone remains.
        """
        milestone = self.tracker.create_milestone(
            self.owner,
            self.repo,
            MilestoneUpdate(title=f"Sprint {sprint_number}", due_on=due_on),
        )
        recorded_start = self.overlay.set_start_date(repository.id, milestone.number, start_date)
        log.info("sprint_created", milestone=milestone.title, start_date=recorded_start.isoformat())
        return Sprint(milestone=milestone, start_date=recorded_start)

    def assign_issue_to_milestone(self, issue: Issue, milestone: Milestone | None) -> Issue:
        """Replace the issue's milestone; ``None`` clears it."""
        number = milestone.number if milestone is not None else None
        return self.tracker.patch_issue(self.owner, self.repo, issue.number, IssueUpdate(milestone=number))

    def assign_member_to_issue(self, member: OrganisationMember, issue: Issue) -> Issue:
        """Make ``member`` the only assignee of the issue."""
        return self.tracker.patch_issue(
            self.owner, self.repo, issue.number, IssueUpdate(assignees=[member.login])
        )

    def move_issue_to_pipeline(
        self, repository: Repository, issue: Issue, pipeline: Pipeline, workspace_id: str | None
    ) -> None:
        """Move the issue to the top of ``pipeline``."""
        self.overlay.move_issue(
            repository.id,
            issue.number,
            PipelinePosition(pipeline_id=pipeline.id),
            workspace_id=workspace_id,
        )

    def get_overlay_issue(self, repository: Repository, issue: Issue) -> OverlayIssue:
        return self.overlay.get_issue(repository.id, issue.number)

    def set_estimate(self, repository: Repository, issue: Issue, estimate: int) -> None:
        self.overlay.set_estimate(repository.id, issue.number, estimate)

    def search_issues(self, query: SearchQueryBuilder) -> Iterator[Issue]:
        """Search issues of this repository only."""
        scoped = query.owner_repo(self.owner, self.repo).issue()
        return self.tracker.search_issues(scoped.build())

    def retitle_milestone(self, milestone: Milestone, title: str) -> Milestone:
        return self.tracker.patch_milestone(self.owner, self.repo, milestone.number, MilestoneUpdate(title=title))

    def close_milestone(self, milestone: Milestone) -> Milestone:
        return self.tracker.patch_milestone(
            self.owner, self.repo, milestone.number, MilestoneUpdate(state=IssueState.CLOSED)
        )
