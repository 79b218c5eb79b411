"""
Interactive triage of issues into a sprint.

The operator picks a pipeline, then enters issue numbers one at a time. For
each issue the manager makes sure it is:

1. in the sprint's milestone (confirmed; declining skips the issue)
2. in the chosen pipeline (moved to the top without confirmation)
3. assigned to the right person (confirmed; "no" offers a member choice)

Entering ``n`` returns to the pipeline choice and ``q`` ends the session.
Errors while handling one issue are logged and the next issue number is
requested.
"""

from enum import Enum

import structlog

from decadog.engine.assignment import (
    issue_in_milestone,
    issue_in_pipeline,
    member_assigned_to_issue,
)
from decadog.engine.context import SprintContext
from decadog.exceptions import DecadogError, UserInputError
from decadog.models.domain import Issue, Milestone, OrganisationMember, Pipeline
from decadog.utils.prompts import FuzzyOptions, Prompter

log = structlog.get_logger(__name__)

NEXT_PIPELINE = "n"
QUIT = "q"


class LoopStatus(Enum):
    """Outcome of triaging one issue."""

    SUCCESS = "success"
    NEXT_PIPELINE = "next_pipeline"
    QUIT = "quit"


class MilestoneManager:
    """Triage session for one milestone.

    Members, repository, workspace and board are loaded once when the
    manager is created; the pipeline snapshot is not refreshed during the
    session.
    """

    def __init__(self, context: SprintContext, prompter: Prompter, milestone: Milestone) -> None:
        self.context = context
        self.prompter = prompter
        self.milestone = milestone

        self.member_options: FuzzyOptions[OrganisationMember] = FuzzyOptions(
            ((member.login, member) for member in context.get_members()), kind="member"
        )
        self.repository = context.get_repository()
        self.workspace_id = context.resolve_workspace_id(self.repository)

        board = context.get_board(self.repository, self.workspace_id)
        self.pipeline_options: FuzzyOptions[Pipeline] = FuzzyOptions(
            ((pipeline.name, pipeline) for pipeline in board.pipelines), kind="pipeline"
        )
        log.info(
            "triage_session_loaded",
            milestone=milestone.title,
            members=len(self.member_options),
            pipelines=len(self.pipeline_options),
        )

    def manage(self) -> None:
        """Run the session until the operator quits."""
        while True:
            try:
                pipeline = self.prompter.fuzzy_select("Pipeline", self.pipeline_options)
            except UserInputError as e:
                log.error("pipeline_choice_failed", error=e.message)
                continue

            log.info("pipeline_selected", pipeline=pipeline.name)
            while True:
                try:
                    status = self.manage_issue(pipeline)
                except DecadogError as e:
                    log.error("issue_triage_failed", error=str(e))
                    continue

                if status is LoopStatus.NEXT_PIPELINE:
                    break
                if status is LoopStatus.QUIT:
                    return

    def manage_issue(self, pipeline: Pipeline) -> LoopStatus:
        """Triage a single issue into the milestone and ``pipeline``."""
        answer = self.prompter.input("Issue number (n: next pipeline, q: quit)")
        if answer == QUIT:
            return LoopStatus.QUIT
        if answer == NEXT_PIPELINE:
            return LoopStatus.NEXT_PIPELINE

        try:
            issue_number = int(answer)
        except ValueError:
            raise UserInputError(f"Invalid issue number {answer}.") from None

        issue = self.context.get_issue(issue_number)
        self.prompter.echo(str(issue))

        if issue_in_milestone(issue, self.milestone):
            self.prompter.echo("Already in milestone.")
        elif self.prompter.confirm("Assign to milestone?"):
            self.context.assign_issue_to_milestone(issue, self.milestone)
        else:
            return LoopStatus.SUCCESS

        if issue_in_pipeline(issue, pipeline):
            self.prompter.echo("Already in pipeline.")
        else:
            self.context.move_issue_to_pipeline(self.repository, issue, pipeline, self.workspace_id)

        if self._should_update_assignment(issue):
            member = self.prompter.fuzzy_select("Assignee", self.member_options)
            if not member_assigned_to_issue(member, issue):
                self.context.assign_member_to_issue(member, issue)

        return LoopStatus.SUCCESS

    def _should_update_assignment(self, issue: Issue) -> bool:
        if not issue.assignees:
            return not self.prompter.confirm("Leave unassigned?")

        logins = ", ".join(member.login for member in issue.assignees)
        return not self.prompter.confirm(f"Assigned to {logins}; is this correct?")
