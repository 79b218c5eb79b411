"""
Shared HTTP plumbing for the REST clients.

Both API clients are synchronous ``httpx.Client`` wrappers. This module holds
the parts they share: validating the base URL and auth header at
construction, sending requests with transport errors mapped into the
decadog hierarchy, and turning responses into JSON or errors.

Response interpretation:
    - 2xx: decoded JSON body (or ``None`` when no body is expected)
    - 4xx: ``RemoteClientError`` carrying the API's error body
    - anything else: ``UnexpectedResponseError``
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import structlog

from decadog.exceptions import (
    ConfigurationError,
    RemoteClientError,
    TransportError,
    UnexpectedResponseError,
)
from decadog.utils.retry import call_with_retry

log = structlog.get_logger(__name__)

USER_AGENT = "decadog"

F = TypeVar("F", bound=Callable[..., Any])


def validate_base_url(url: str, service: str) -> str:
    """Check that ``url`` is an absolute http(s) URL.

    Raises:
        ConfigurationError: If the URL cannot be used as an API base.
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError(f"Invalid {service} base url {url}") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"Invalid {service} base url {url}")
    return url


def validate_header_value(value: str, service: str, header: str) -> str:
    """Check that a token can be sent as an HTTP header value.

    Raises:
        ConfigurationError: If the token is empty or contains characters
            that are not allowed in a header.
    """
    if not value:
        raise ConfigurationError(f"{service} token is required.")
    if not value.isprintable() or not value.isascii():
        raise ConfigurationError(f"Invalid {service} token for {header} header.")
    return value


def interpret_response(response: httpx.Response, service: str, expect_body: bool = True) -> Any:
    """Turn a response into decoded JSON, or raise the matching error.

    Args:
        response: Response to interpret.
        service: Name used in error messages ("Github", "Zenhub").
        expect_body: Whether a 2xx response carries a JSON body.

    Returns:
        Decoded JSON, or ``None`` when ``expect_body`` is false.

    Raises:
        RemoteClientError: On a 4xx status.
        UnexpectedResponseError: On any other non-2xx status, or when a 2xx
            body is not valid JSON.
    """
    status = response.status_code

    if response.is_success:
        if not expect_body:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UnexpectedResponseError(
                f"{service} response body is not valid JSON.",
                status_code=status,
                response_text=response.text,
            ) from e

    if response.is_client_error:
        body: Any = None
        try:
            body = response.json()
        except ValueError:
            log.debug("client_error_body_not_json", service=service, status=status)

        detail = response.text or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            detail = body["message"]
        raise RemoteClientError(
            f"{service} error: {detail}",
            status_code=status,
            response_text=response.text,
            body=body,
        )

    raise UnexpectedResponseError(
        f"{service} error: unexpected response status code.",
        status_code=status,
        response_text=response.text,
    )


def response_converter(func: F) -> F:
    """Decorate a client's ``_parse_*`` method to report malformed data.

    A missing key or a value of the wrong shape raises
    ``UnexpectedResponseError`` naming the client's ``service``, so callers
    only ever see the decadog hierarchy.

    Example:
        >>> class Client(RestClient):
        ...     @response_converter
        ...     def _parse_repository(self, data):
        ...         return Repository(id=data["id"], name=data["name"])
    """

    @functools.wraps(func)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(self, *args, **kwargs)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.debug("malformed_response", service=self.service, converter=func.__name__, error=repr(e))
            raise UnexpectedResponseError(
                f"{self.service} response is missing or has a malformed field: {e!r}"
            ) from e

    return wrapper  # type: ignore[return-value]


class RestClient:
    """Base for the tracker and overlay clients.

    Owns one ``httpx.Client`` with the auth header installed as a default
    header. GET requests are retried on transport failures up to
    ``max_retries`` attempts; writes are sent once.
    """

    service = "API"

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str],
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = validate_base_url(base_url, self.service)
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._client = httpx.Client(
            base_url=base_url,
            headers={"User-Agent": USER_AGENT, **headers},
            timeout=timeout,
            transport=transport,
        )

    @property
    def http(self) -> httpx.Client:
        """The underlying ``httpx.Client``."""
        return self._client

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request, mapping transport failures."""
        log.debug("http_request", method=request.method, url=str(request.url))
        try:
            return self._client.send(request)
        except httpx.TransportError as e:
            raise TransportError(f"{self.service} request failed: {e}") from e

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        expect_body: bool = True,
    ) -> Any:
        """Build, send and interpret one request.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            params: Optional query parameters.
            json: Optional JSON body.
            expect_body: Whether the success response carries JSON.

        Returns:
            Decoded JSON body, or ``None``.
        """
        request = self._client.build_request(method, path, params=params, json=json)

        if method.upper() == "GET":
            response = call_with_retry(
                lambda: self.send(request),
                max_attempts=self.max_retries,
                backoff_factor=self.backoff_factor,
                exceptions=(TransportError,),
            )
        else:
            response = self.send(request)

        return interpret_response(response, self.service, expect_body=expect_body)
