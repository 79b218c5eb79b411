"""Predicates for whether one object is already assigned to another."""

from decadog.models.domain import Issue, Milestone, OrganisationMember, Pipeline


def issue_in_milestone(issue: Issue, milestone: Milestone) -> bool:
    """Whether the issue's milestone is ``milestone`` (compared by id)."""
    return issue.milestone is not None and issue.milestone.id == milestone.id


def issue_in_pipeline(issue: Issue, pipeline: Pipeline) -> bool:
    """Whether the pipeline snapshot lists the issue's number."""
    return any(pipeline_issue.issue_number == issue.number for pipeline_issue in pipeline.issues)


def member_assigned_to_issue(member: OrganisationMember, issue: Issue) -> bool:
    return any(assignee.login == member.login for assignee in issue.assignees)
