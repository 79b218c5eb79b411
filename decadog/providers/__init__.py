"""Clients for the issue tracker (GitHub) and estimation overlay (ZenHub)."""

from decadog.providers.base import EstimationOverlay, IssueTracker
from decadog.providers.github_rest import GitHubClient
from decadog.providers.pagination import PaginatedSearch
from decadog.providers.search import SearchQueryBuilder
from decadog.providers.zenhub_rest import ZenHubClient

__all__ = [
    "EstimationOverlay",
    "GitHubClient",
    "IssueTracker",
    "PaginatedSearch",
    "SearchQueryBuilder",
    "ZenHubClient",
]
