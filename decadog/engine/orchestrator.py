"""
Sprint workflows: create, sync and finish.

Each workflow is one operator session. Errors propagate to the caller and end
the workflow; only the triage loop run by ``sync`` absorbs per-issue errors.
Multi-step mutations (closing a sprint, creating one) are not atomic.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, time, timedelta

import structlog

from decadog.config.settings import DEFAULT_ESTIMATES
from decadog.engine.context import SprintContext
from decadog.engine.points import SprintPoints
from decadog.engine.triage import QUIT, MilestoneManager
from decadog.exceptions import UserInputError
from decadog.models.domain import Issue, IssueState, Milestone, Repository, Sprint
from decadog.providers.search import SearchQueryBuilder
from decadog.utils.prompts import Prompter, SelectOptions

log = structlog.get_logger(__name__)


def sprint_start(day: date) -> datetime:
    """Start of a sprint beginning on ``day``: midday UTC, as the overlay UI uses."""
    return datetime.combine(day, time(12, 0), tzinfo=UTC)


class SprintOrchestrator:
    """Runs the sprint workflows against one repository.

    Args:
        context: Repository-bound tracker and overlay operations
        prompter: Operator interaction
        estimates: Estimate values offered when an issue has none
        obsolete_label: Label excluding issues from the finish review
        sprint_length_days: Length of sprints created by ``create``
        today: Returns the current date; replaced in tests
    """

    def __init__(
        self,
        context: SprintContext,
        prompter: Prompter,
        estimates: Iterable[int] = DEFAULT_ESTIMATES,
        obsolete_label: str = "Z-obsolete",
        sprint_length_days: int = 14,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.context = context
        self.prompter = prompter
        self.estimates = tuple(estimates)
        self.obsolete_label = obsolete_label
        self.sprint_length_days = sprint_length_days
        self.today = today

    def create(self) -> Sprint | None:
        """Create a sprint starting today.

        Returns:
            The new sprint, or None if the operator declined.
        """
        if not self.prompter.confirm(
            f"Create sprint from today for {self.sprint_length_days} days?", default=False
        ):
            return None

        sprint_number = self.prompter.input("Sprint number")
        repository = self.context.get_repository()

        start_date = sprint_start(self.today())
        due_on = start_date + timedelta(days=self.sprint_length_days - 1)
        sprint = self.context.create_sprint(repository, sprint_number, start_date, due_on)

        self.prompter.echo(f"Created '{sprint.milestone.title}'")
        return sprint

    def sync(self) -> None:
        """Triage issues into a sprint chosen by the operator."""
        milestone = self._select_milestone("Sprint to sync")
        if milestone is None:
            return
        MilestoneManager(self.context, self.prompter, milestone).manage()

    def finish(self) -> SprintPoints | None:
        """Review, reconcile and optionally close a sprint.

        Review changes (milestone assignment, estimates) are kept even if the
        operator declines to close the sprint.

        Returns:
            The reconciled points, or None if the operator stopped before
            reconciliation.

        Raises:
            UserInputError: If the planned points are not a number or do not
                reconcile with the milestone's estimates.
        """
        milestone = self._select_milestone("Sprint to finish")
        if milestone is None:
            return None

        repository = self.context.get_repository()
        sprint = self.context.get_sprint(repository, milestone)

        self.prompter.echo()
        self.prompter.echo("Issues for review:")
        for issue in self._issues_for_review(sprint):
            self._review_issue(repository, sprint, issue)

        self.prompter.echo()
        self.prompter.echo("Issues open in sprint:")
        open_issues = list(
            self.context.search_issues(SearchQueryBuilder().state(IssueState.OPEN).milestone(milestone.title))
        )
        for issue in open_issues:
            self.prompter.echo(str(issue))

        self.prompter.echo()
        answer = self.prompter.input("Points planned this sprint (q: quit)")
        if answer == QUIT:
            return None
        try:
            planned = int(answer)
        except ValueError:
            raise UserInputError(f"Invalid number of planned points {answer}.") from None

        self.prompter.echo("Calculating points summary...")
        in_milestone, in_milestone_open = self._milestone_points(repository, milestone)
        points = SprintPoints.reconcile(planned, in_milestone, in_milestone_open)
        log.info(
            "sprint_points_reconciled",
            milestone=milestone.title,
            planned=points.planned,
            done_in_sprint=points.done_in_sprint,
            done_out_of_sprint=points.done_out_of_sprint,
        )

        self.prompter.echo(points.render_report(milestone.title))
        self.prompter.echo()

        if self.prompter.confirm("Close sprint?", default=False):
            self._close_sprint(milestone, points, open_issues)
        return points

    def _select_milestone(self, text: str) -> Milestone | None:
        milestones = self.context.get_milestones()
        if not milestones:
            self.prompter.echo("No open milestones.")
            return None
        return self.prompter.select(text, SelectOptions(milestones))

    def _issues_for_review(self, sprint: Sprint) -> list[Issue]:
        """Closed issues that may count towards the sprint, without duplicates.

        Combines issues without a milestone closed since the sprint started
        with closed issues in the sprint's milestone. Issues in any other
        milestone are dropped.
        """
        out_of_sprint = (
            SearchQueryBuilder()
            .no_milestone()
            .closed_on_or_after(sprint.start_date)
            .not_label(self.obsolete_label)
        )
        in_sprint = (
            SearchQueryBuilder()
            .milestone(sprint.milestone.title)
            .state(IssueState.CLOSED)
            .not_label(self.obsolete_label)
        )

        seen: set[int] = set()
        issues = []
        for query in (out_of_sprint, in_sprint):
            for issue in self.context.search_issues(query):
                if issue.id in seen:
                    continue
                seen.add(issue.id)
                if issue.milestone is not None and issue.milestone.id != sprint.milestone.id:
                    continue
                issues.append(issue)
        return issues

    def _review_issue(self, repository: Repository, sprint: Sprint, issue: Issue) -> None:
        overlay_issue = self.context.get_overlay_issue(repository, issue)
        if overlay_issue.is_epic:
            return

        shown = False

        def show_once() -> None:
            nonlocal shown
            if not shown:
                self.prompter.echo(f"{issue} -> {issue.url}")
                shown = True

        if issue.milestone is None:
            show_once()
            if not self.prompter.confirm("Assign to milestone?"):
                return
            self.context.assign_issue_to_milestone(issue, sprint.milestone)

        if overlay_issue.estimate is None:
            show_once()
            estimate = self.prompter.select("Estimate", SelectOptions(self.estimates))
            self.context.set_estimate(repository, issue, estimate)

    def _milestone_points(self, repository: Repository, milestone: Milestone) -> tuple[int, int]:
        """Sum estimates of all non-epic issues in the milestone, and of the open ones."""
        in_milestone = 0
        in_milestone_open = 0
        for issue in self.context.search_issues(SearchQueryBuilder().milestone(milestone.title)):
            overlay_issue = self.context.get_overlay_issue(repository, issue)
            if overlay_issue.is_epic:
                continue
            value = overlay_issue.estimate.value if overlay_issue.estimate is not None else 0
            in_milestone += value
            if issue.state is IssueState.OPEN:
                in_milestone_open += value
        return in_milestone, in_milestone_open

    def _close_sprint(self, milestone: Milestone, points: SprintPoints, open_issues: list[Issue]) -> None:
        self.context.retitle_milestone(milestone, points.closed_title(milestone.title))

        self.prompter.echo("Closing milestone.")
        self.context.close_milestone(milestone)

        self.prompter.echo("Removing open issues from milestone...")
        for issue in open_issues:
            self.context.assign_issue_to_milestone(issue, None)
        log.info("sprint_closed", milestone=milestone.title, unassigned=len(open_issues))
