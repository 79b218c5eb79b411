"""Tests for decadog.engine.triage."""

from unittest.mock import call

import httpx
import pytest

from decadog.engine.context import SprintContext
from decadog.engine.triage import LoopStatus, MilestoneManager
from decadog.exceptions import RemoteClientError, UserInputError
from decadog.models.domain import IssueState, Milestone, OrganisationMember
from decadog.providers.github_rest import GitHubClient


@pytest.fixture
def manager(context, prompter, milestone):
    return MilestoneManager(context, prompter, milestone)


@pytest.fixture
def backlog(board):
    return board.pipelines[0]


@pytest.fixture
def in_progress(board):
    return board.pipelines[1]


# =============================================================================
# Session setup
# =============================================================================


class TestSetup:
    def test_loads_session_once(self, manager, context, repository):
        context.get_members.assert_called_once_with()
        context.get_repository.assert_called_once_with()
        context.resolve_workspace_id.assert_called_once_with(repository)
        context.get_board.assert_called_once_with(repository, "ws-1")

        assert manager.member_options.keys() == ["alice", "bob"]
        assert manager.pipeline_options.keys() == ["Backlog", "In Progress"]


# =============================================================================
# Single issue
# =============================================================================


class TestManageIssue:
    def test_quit(self, manager, prompter, backlog):
        prompter.input.return_value = "q"

        assert manager.manage_issue(backlog) is LoopStatus.QUIT

    def test_next_pipeline(self, manager, prompter, backlog):
        prompter.input.return_value = "n"

        assert manager.manage_issue(backlog) is LoopStatus.NEXT_PIPELINE

    def test_invalid_issue_number(self, manager, prompter, context, backlog):
        prompter.input.return_value = "seven"

        with pytest.raises(UserInputError, match="Invalid issue number seven."):
            manager.manage_issue(backlog)

        context.get_issue.assert_not_called()

    def test_fully_triaged_issue_is_untouched(
        self, manager, prompter, context, milestone, issue_factory, in_progress
    ):
        context.get_issue.return_value = issue_factory(number=7, milestone=milestone, assignees=("alice",))
        prompter.input.return_value = "7"
        prompter.confirm.return_value = True

        assert manager.manage_issue(in_progress) is LoopStatus.SUCCESS

        context.get_issue.assert_called_once_with(7)
        context.assign_issue_to_milestone.assert_not_called()
        context.move_issue_to_pipeline.assert_not_called()
        context.assign_member_to_issue.assert_not_called()
        prompter.confirm.assert_called_once_with("Assigned to alice; is this correct?")
        prompter.echo.assert_any_call("Already in milestone.")
        prompter.echo.assert_any_call("Already in pipeline.")

    def test_new_issue_is_assigned_and_moved(
        self, manager, prompter, context, milestone, repository, issue_factory, backlog
    ):
        issue = issue_factory(number=42)
        context.get_issue.return_value = issue
        prompter.input.return_value = "42"
        prompter.confirm.side_effect = [True, False]
        prompter.fuzzy_select.return_value = OrganisationMember(login="bob", id=2)

        assert manager.manage_issue(backlog) is LoopStatus.SUCCESS

        assert prompter.confirm.call_args_list == [
            call("Assign to milestone?"),
            call("Leave unassigned?"),
        ]
        context.assign_issue_to_milestone.assert_called_once_with(issue, milestone)
        context.move_issue_to_pipeline.assert_called_once_with(repository, issue, backlog, "ws-1")
        prompter.fuzzy_select.assert_called_once_with("Assignee", manager.member_options)
        context.assign_member_to_issue.assert_called_once_with(OrganisationMember(login="bob", id=2), issue)

    def test_declining_milestone_skips_issue(self, manager, prompter, context, issue_factory, backlog):
        context.get_issue.return_value = issue_factory(number=42)
        prompter.input.return_value = "42"
        prompter.confirm.return_value = False

        assert manager.manage_issue(backlog) is LoopStatus.SUCCESS

        context.assign_issue_to_milestone.assert_not_called()
        context.move_issue_to_pipeline.assert_not_called()
        prompter.fuzzy_select.assert_not_called()

    def test_issue_in_other_milestone_needs_confirmation(
        self, manager, prompter, context, milestone, issue_factory, in_progress
    ):
        other = Milestone(id=200, number=3, title="Sprint 3", state=IssueState.OPEN)
        issue = issue_factory(number=7, milestone=other, assignees=("alice",))
        context.get_issue.return_value = issue
        prompter.input.return_value = "7"
        prompter.confirm.return_value = True

        manager.manage_issue(in_progress)

        prompter.confirm.assert_any_call("Assign to milestone?")
        context.assign_issue_to_milestone.assert_called_once_with(issue, milestone)

    def test_leave_unassigned(self, manager, prompter, context, milestone, issue_factory, in_progress):
        context.get_issue.return_value = issue_factory(number=7, milestone=milestone)
        prompter.input.return_value = "7"
        prompter.confirm.return_value = True

        manager.manage_issue(in_progress)

        prompter.confirm.assert_called_once_with("Leave unassigned?")
        prompter.fuzzy_select.assert_not_called()

    def test_choosing_current_assignee_does_not_patch(
        self, manager, prompter, context, milestone, issue_factory, in_progress
    ):
        context.get_issue.return_value = issue_factory(number=7, milestone=milestone, assignees=("alice",))
        prompter.input.return_value = "7"
        prompter.confirm.return_value = False
        prompter.fuzzy_select.return_value = OrganisationMember(login="alice", id=1)

        manager.manage_issue(in_progress)

        context.assign_member_to_issue.assert_not_called()


# =============================================================================
# Session loop
# =============================================================================


class TestManage:
    def test_quit_ends_session(self, manager, prompter, backlog):
        prompter.fuzzy_select.return_value = backlog
        prompter.input.return_value = "q"

        manager.manage()

        prompter.fuzzy_select.assert_called_once_with("Pipeline", manager.pipeline_options)

    def test_next_pipeline_prompts_again(self, manager, prompter, backlog, in_progress):
        prompter.fuzzy_select.side_effect = [backlog, in_progress]
        prompter.input.side_effect = ["n", "q"]

        manager.manage()

        assert prompter.fuzzy_select.call_count == 2

    def test_errors_do_not_end_session(self, manager, prompter, context, backlog):
        prompter.fuzzy_select.return_value = backlog
        prompter.input.side_effect = ["oops", "404", "q"]
        context.get_issue.side_effect = RemoteClientError("Github error: Not Found", status_code=404)

        manager.manage()

        context.get_issue.assert_called_once_with(404)
        assert prompter.input.call_count == 3

    def test_unknown_pipeline_is_prompted_again(self, manager, prompter, backlog):
        prompter.fuzzy_select.side_effect = [UserInputError("Unknown pipeline choice 'x'"), backlog]
        prompter.input.return_value = "q"

        manager.manage()

        assert prompter.fuzzy_select.call_count == 2

    def test_malformed_issue_does_not_end_session(self, prompter, overlay, board, milestone):
        routes = {
            ("GET", "/orgs/reinfer/members"): httpx.Response(200, json=[{"login": "alice", "id": 1}]),
            ("GET", "/repos/reinfer/platform"): httpx.Response(200, json={"id": 1234, "name": "platform"}),
            ("GET", "/repos/reinfer/platform/issues/7"): httpx.Response(200, json={"id": 1, "number": 7}),
        }
        tracker = GitHubClient(
            "mock_token",
            transport=httpx.MockTransport(lambda request: routes[(request.method, request.url.path)]),
        )
        overlay.get_board.return_value = board
        context = SprintContext("reinfer", "platform", tracker, overlay, workspace_id="ws-1")
        prompter.fuzzy_select.return_value = board.pipelines[0]
        prompter.input.side_effect = ["7", "q"]

        MilestoneManager(context, prompter, milestone).manage()

        assert prompter.input.call_count == 2
        prompter.confirm.assert_not_called()
