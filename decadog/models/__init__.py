"""Domain models for sprint management.

Key Models:
    - Issue, Milestone, OrganisationMember, Label, Repository: tracker snapshots
    - OverlayIssue, Estimate, Pipeline, Board, Workspace: overlay snapshots
    - Sprint: milestone paired with its overlay start date
    - IssueUpdate, MilestoneUpdate, PipelinePosition: update payloads

Example:
    >>> from decadog.models import IssueUpdate
    >>> IssueUpdate(assignees=["octocat"]).to_payload()
    {'assignees': ['octocat']}
"""

from decadog.models.domain import (
    UNSET,
    Board,
    Direction,
    Estimate,
    Issue,
    IssueState,
    IssueUpdate,
    Label,
    Milestone,
    MilestoneUpdate,
    OrganisationMember,
    OverlayIssue,
    Pipeline,
    PipelineIssue,
    PipelinePosition,
    Repository,
    Sprint,
    Workspace,
)

__all__ = [
    "UNSET",
    "Board",
    "Direction",
    "Estimate",
    "Issue",
    "IssueState",
    "IssueUpdate",
    "Label",
    "Milestone",
    "MilestoneUpdate",
    "OrganisationMember",
    "OverlayIssue",
    "Pipeline",
    "PipelineIssue",
    "PipelinePosition",
    "Repository",
    "Sprint",
    "Workspace",
]
