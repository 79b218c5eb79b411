"""ZenHub estimation overlay client using direct REST API calls.

Workspace-scoped endpoints live under ``p2``; repository-scoped ones under
``p1``. Board reads and issue moves use the workspace form when a workspace
id is known.
"""

from datetime import datetime
from typing import Any

import httpx
import structlog

from decadog.exceptions import UnexpectedResponseError
from decadog.models.domain import (
    Board,
    Estimate,
    OverlayIssue,
    Pipeline,
    PipelineIssue,
    PipelinePosition,
    Workspace,
    format_timestamp,
    parse_timestamp,
)
from decadog.providers.base import EstimationOverlay
from decadog.providers.http import RestClient, response_converter, validate_header_value

log = structlog.get_logger(__name__)

DEFAULT_ZENHUB_URL = "https://api.zenhub.io/"


class ZenHubClient(RestClient, EstimationOverlay):
    """ZenHub implementation of the estimation overlay."""

    service = "Zenhub"

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_ZENHUB_URL,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ):
        validate_header_value(token, self.service, "Authentication")
        super().__init__(
            base_url,
            headers={"X-Authentication-Token": token},
            max_retries=max_retries,
            transport=transport,
        )

    def get_workspaces(self, repository_id: int) -> list[Workspace]:
        log.info("get_workspaces", repository_id=repository_id)
        data = self.request("GET", f"p2/repositories/{repository_id}/workspaces")
        return self._parse_workspaces(data)

    def get_board(self, repository_id: int, workspace_id: str | None = None) -> Board:
        """Get the pipelines of a repository's board, in board order."""
        if workspace_id is None:
            path = f"p1/repositories/{repository_id}/board"
        else:
            path = f"p2/workspaces/{workspace_id}/repositories/{repository_id}/board"

        log.info("get_board", repository_id=repository_id, workspace_id=workspace_id)
        data = self.request("GET", path)
        return self._parse_board(data)

    def get_start_date(self, repository_id: int, milestone_number: int) -> datetime:
        log.info("get_start_date", repository_id=repository_id, milestone_number=milestone_number)
        data = self.request(
            "GET", f"p1/repositories/{repository_id}/milestones/{milestone_number}/start_date"
        )
        return self._parse_start_date(data)

    def set_start_date(self, repository_id: int, milestone_number: int, start_date: datetime) -> datetime:
        log.info(
            "set_start_date",
            repository_id=repository_id,
            milestone_number=milestone_number,
            start_date=format_timestamp(start_date),
        )
        data = self.request(
            "POST",
            f"p1/repositories/{repository_id}/milestones/{milestone_number}/start_date",
            json={"start_date": format_timestamp(start_date)},
        )
        return self._parse_start_date(data)

    def get_issue(self, repository_id: int, issue_number: int) -> OverlayIssue:
        """Get the estimate and epic flag of an issue."""
        log.info("get_overlay_issue", repository_id=repository_id, issue_number=issue_number)
        data = self.request("GET", f"p1/repositories/{repository_id}/issues/{issue_number}")
        return self._parse_overlay_issue(data)

    def set_estimate(self, repository_id: int, issue_number: int, estimate: int) -> None:
        log.info("set_estimate", repository_id=repository_id, issue_number=issue_number, estimate=estimate)
        self.request(
            "PUT",
            f"p1/repositories/{repository_id}/issues/{issue_number}/estimate",
            json={"estimate": estimate},
            expect_body=False,
        )

    def move_issue(
        self,
        repository_id: int,
        issue_number: int,
        position: PipelinePosition,
        workspace_id: str | None = None,
    ) -> None:
        """Move an issue to a pipeline position (``top`` by default)."""
        if workspace_id is None:
            path = f"p1/repositories/{repository_id}/issues/{issue_number}/moves"
        else:
            path = f"p2/workspaces/{workspace_id}/repositories/{repository_id}/issues/{issue_number}/moves"

        log.info(
            "move_issue",
            repository_id=repository_id,
            issue_number=issue_number,
            pipeline_id=position.pipeline_id,
            position=position.position,
        )
        self.request("POST", path, json=position.to_payload(), expect_body=False)

    @response_converter
    def _parse_pipeline(self, data: dict[str, Any]) -> Pipeline:
        return Pipeline(
            id=data["id"],
            name=data["name"],
            issues=tuple(
                PipelineIssue(
                    issue_number=issue["issue_number"],
                    estimate=self._parse_estimate(issue.get("estimate")),
                    is_epic=bool(issue.get("is_epic", False)),
                    position=issue.get("position"),
                )
                for issue in data.get("issues") or []
            ),
        )

    @response_converter
    def _parse_estimate(self, data: dict[str, Any] | None) -> Estimate | None:
        if not data:
            return None
        return Estimate(value=data["value"])

    @response_converter
    def _parse_start_date(self, data: dict[str, Any]) -> datetime:
        start_date = parse_timestamp(data.get("start_date"))
        if start_date is None:
            raise UnexpectedResponseError(f"{self.service} milestone has no start date.")
        return start_date

    @response_converter
    def _parse_workspaces(self, data: list[dict[str, Any]]) -> list[Workspace]:
        return [
            Workspace(
                id=workspace["id"],
                name=workspace.get("name"),
                description=workspace.get("description"),
                repositories=tuple(workspace.get("repositories") or ()),
            )
            for workspace in data
        ]

    @response_converter
    def _parse_board(self, data: dict[str, Any]) -> Board:
        return Board(pipelines=tuple(self._parse_pipeline(p) for p in data.get("pipelines") or []))

    @response_converter
    def _parse_overlay_issue(self, data: dict[str, Any]) -> OverlayIssue:
        return OverlayIssue(
            estimate=self._parse_estimate(data.get("estimate")),
            is_epic=bool(data.get("is_epic", False)),
        )
