"""GitHub issue tracker client using direct REST API v3 calls."""

from typing import Any

import httpx
import structlog

from decadog.models.domain import (
    Direction,
    Issue,
    IssueState,
    IssueUpdate,
    Label,
    Milestone,
    MilestoneUpdate,
    OrganisationMember,
    Repository,
    parse_timestamp,
)
from decadog.providers.base import IssueTracker
from decadog.providers.http import RestClient, response_converter, validate_header_value
from decadog.providers.pagination import PaginatedSearch

log = structlog.get_logger(__name__)

DEFAULT_GITHUB_URL = "https://api.github.com/"


class GitHubClient(RestClient, IssueTracker):
    """GitHub implementation of the issue tracker, using token auth."""

    service = "Github"

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_GITHUB_URL,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize GitHub client.

        Args:
            token: GitHub personal access token
            base_url: GitHub API base URL (for GitHub Enterprise)
            max_retries: Attempts for GET requests failing at the transport level
            transport: Optional httpx transport (used by tests)

        Raises:
            ConfigurationError: If the token or base URL cannot be used
        """
        validate_header_value(token, self.service, "Authorization")
        super().__init__(
            base_url,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github.v3+json",
            },
            max_retries=max_retries,
            transport=transport,
        )

    def get_issue(self, owner: str, repo: str, issue_number: int) -> Issue:
        """Get an issue by owner, repo name and issue number."""
        log.info("get_issue", owner=owner, repo=repo, issue_number=issue_number)
        return self._parse_issue(self.request("GET", f"repos/{owner}/{repo}/issues/{issue_number}"))

    def patch_issue(self, owner: str, repo: str, issue_number: int, update: IssueUpdate) -> Issue:
        """Update an issue.

        A ``milestone`` in the update replaces any existing milestone, and
        ``assignees`` replaces the whole assignee list.
        """
        payload = update.to_payload()
        log.info("patch_issue", owner=owner, repo=repo, issue_number=issue_number, fields=sorted(payload))
        data = self.request("PATCH", f"repos/{owner}/{repo}/issues/{issue_number}", json=payload)
        return self._parse_issue(data)

    def get_repository(self, owner: str, repo: str) -> Repository:
        log.info("get_repository", owner=owner, repo=repo)
        data = self.request("GET", f"repos/{owner}/{repo}")
        return self._parse_repository(data)

    def get_members(self, organisation: str) -> list[OrganisationMember]:
        log.info("get_members", organisation=organisation)
        data = self.request("GET", f"orgs/{organisation}/members")
        return self._parse_members(data)

    def get_milestones(self, owner: str, repo: str) -> list[Milestone]:
        """Get open milestones, in descending order."""
        log.info("get_milestones", owner=owner, repo=repo)
        data = self.request(
            "GET",
            f"repos/{owner}/{repo}/milestones",
            params={"direction": Direction.DESCENDING.value},
        )
        return self._parse_milestones(data)

    def create_milestone(self, owner: str, repo: str, create: MilestoneUpdate) -> Milestone:
        log.info("create_milestone", owner=owner, repo=repo, title=create.title)
        data = self.request("POST", f"repos/{owner}/{repo}/milestones", json=create.to_payload())
        return self._parse_milestone(data)

    def patch_milestone(
        self, owner: str, repo: str, milestone_number: int, update: MilestoneUpdate
    ) -> Milestone:
        payload = update.to_payload()
        log.info(
            "patch_milestone",
            owner=owner,
            repo=repo,
            milestone_number=milestone_number,
            fields=sorted(payload),
        )
        data = self.request("PATCH", f"repos/{owner}/{repo}/milestones/{milestone_number}", json=payload)
        return self._parse_milestone(data)

    def search_issues(
        self,
        query: str,
        sort: str | None = "updated",
        order: Direction | None = Direction.ASCENDING,
        per_page: int | None = None,
    ) -> PaginatedSearch[Issue]:
        """Search issues, following result pages lazily.

        Args:
            query: Search query, see ``SearchQueryBuilder``
            sort: Sort field, or None for best match
            order: Sort direction; ignored unless ``sort`` is set
            per_page: Page size requested from the API

        Returns:
            Iterator over matching issues. The first page has already been
            fetched when this returns.
        """
        log.info("search_issues", query=query)
        params: dict[str, Any] = {"q": query}
        if sort is not None:
            params["sort"] = sort
            if order is not None:
                params["order"] = order.value
        if per_page is not None:
            params["per_page"] = per_page

        request = self.http.build_request("GET", "search/issues", params=params)
        return PaginatedSearch(
            self.http,
            request,
            self._parse_issue,
            self.service,
            max_retries=self.max_retries,
            backoff_factor=self.backoff_factor,
        )

    @response_converter
    def _parse_issue(self, data: dict[str, Any]) -> Issue:
        """Parse issue data from a GitHub REST API response.

        Field mappings:
            - data["html_url"] -> url
            - data["milestone"] -> milestone (None when unset)
            - data["assignees"] -> assignees (login and id only)
            - data["closed_at"] -> closed_at (None while open)
        """
        milestone_data = data.get("milestone")
        return Issue(
            id=data["id"],
            number=data["number"],
            state=IssueState(data["state"]),
            title=data["title"],
            milestone=self._parse_milestone(milestone_data) if milestone_data else None,
            assignees=tuple(self._parse_member(member) for member in data.get("assignees") or []),
            labels=tuple(Label(id=label["id"], name=label["name"]) for label in data.get("labels") or []),
            created_at=parse_timestamp(data["created_at"]),
            updated_at=parse_timestamp(data["updated_at"]),
            closed_at=parse_timestamp(data.get("closed_at")),
            url=data["html_url"],
        )

    @response_converter
    def _parse_milestone(self, data: dict[str, Any]) -> Milestone:
        return Milestone(
            id=data["id"],
            number=data["number"],
            title=data["title"],
            state=IssueState(data["state"]),
            due_on=parse_timestamp(data.get("due_on")),
        )

    @response_converter
    def _parse_member(self, data: dict[str, Any]) -> OrganisationMember:
        return OrganisationMember(login=data["login"], id=data["id"])

    @response_converter
    def _parse_members(self, data: list[dict[str, Any]]) -> list[OrganisationMember]:
        return [self._parse_member(member) for member in data]

    @response_converter
    def _parse_milestones(self, data: list[dict[str, Any]]) -> list[Milestone]:
        return [self._parse_milestone(milestone) for milestone in data]

    @response_converter
    def _parse_repository(self, data: dict[str, Any]) -> Repository:
        return Repository(id=data["id"], name=data["name"])
