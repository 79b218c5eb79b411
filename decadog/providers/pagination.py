"""Lazy iteration over the tracker's paginated search API.

A search response is a page envelope ``{"incomplete_results": bool, "items":
[...]}``. The URL of the following page, if any, is advertised in the
``Link`` response header as ``<url>; rel="next"``.

``PaginatedSearch`` loads the first page when it is created and fetches the
next page only when the current one has been consumed. There is no cycle
detection: an API whose ``next`` links loop back would make iteration
endless.
"""

import re
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

import httpx
import structlog

from decadog.exceptions import TransportError, UnexpectedResponseError
from decadog.models.domain import SearchPage
from decadog.providers.http import interpret_response
from decadog.utils.retry import call_with_retry

log = structlog.get_logger(__name__)

T = TypeVar("T")

LINK_NEXT_PATTERN = re.compile(r'<(?P<url>[^>]+)>;[^,]* rel="next"')

_END_OF_PAGE = object()


def next_page_url(response: httpx.Response) -> str | None:
    """Extract the ``rel="next"`` URL from a response's ``Link`` header."""
    header = response.headers.get("link")
    if not header:
        return None
    match = LINK_NEXT_PATTERN.search(header)
    if match is None:
        return None
    return match.group("url")


def parse_search_page(data: Any, service: str) -> SearchPage:
    """Validate a search page envelope."""
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise UnexpectedResponseError(f"{service} search response has no items list.")
    return SearchPage(
        incomplete_results=bool(data.get("incomplete_results", False)),
        items=data["items"],
    )


class PaginatedSearch(Generic[T]):
    """Iterator over every item of a search, page by page.

    Errors from any page fetch (``RemoteClientError``,
    ``UnexpectedResponseError``, ``TransportError``) are raised from
    ``__next__``. Items yielded before the failure remain valid. Page
    requests failing at the transport level are retried up to
    ``max_retries`` attempts, like every other read.

    Example:
        >>> request = client.build_request("GET", "search/issues", params={"q": q})
        >>> for issue in PaginatedSearch(client, request, parse_issue, "Github"):
        ...     print(issue)
    """

    def __init__(
        self,
        client: httpx.Client,
        initial_request: httpx.Request,
        parse_item: Callable[[dict[str, Any]], T],
        service: str,
        max_retries: int = 1,
        backoff_factor: float = 2.0,
    ) -> None:
        self._client = client
        self._parse_item = parse_item
        self._service = service
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor
        # Subsequent pages reuse the initial request's auth headers
        self._headers = initial_request.headers.copy()
        self._page: Iterator[dict[str, Any]] = iter(())
        self._next_page_url: str | None = None
        self.incomplete_results = False
        self.pages_fetched = 0

        self._apply_response(self._send(initial_request))

    def _send(self, request: httpx.Request) -> httpx.Response:
        return call_with_retry(
            lambda: self._send_once(request),
            max_attempts=self._max_retries,
            backoff_factor=self._backoff_factor,
            exceptions=(TransportError,),
        )

    def _send_once(self, request: httpx.Request) -> httpx.Response:
        log.debug("search_page_request", method=request.method, url=str(request.url))
        try:
            return self._client.send(request)
        except httpx.TransportError as e:
            raise TransportError(f"{self._service} search request failed: {e}") from e

    def _apply_response(self, response: httpx.Response) -> None:
        """Store the items of a page and the link to the page after it."""
        page = parse_search_page(interpret_response(response, self._service), self._service)
        self._next_page_url = next_page_url(response)
        self._page = iter(page.items)
        self.incomplete_results = self.incomplete_results or page.incomplete_results
        self.pages_fetched += 1

    def _fetch_next_page(self, url: str) -> None:
        request = self._client.build_request("GET", url, headers=self._headers)
        self._apply_response(self._send(request))

    def __iter__(self) -> "PaginatedSearch[T]":
        return self

    def __next__(self) -> T:
        while True:
            item = next(self._page, _END_OF_PAGE)
            if item is not _END_OF_PAGE:
                return self._parse_item(item)

            if self._next_page_url is None:
                raise StopIteration

            url = self._next_page_url
            # Clear first so a failed fetch leaves the search exhausted
            self._next_page_url = None
            self._fetch_next_page(url)
