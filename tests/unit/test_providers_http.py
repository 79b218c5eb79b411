"""Tests for decadog.providers.http."""

from unittest.mock import patch

import httpx
import pytest

from decadog.exceptions import (
    ConfigurationError,
    RemoteClientError,
    TransportError,
    UnexpectedResponseError,
)
from decadog.providers.http import (
    RestClient,
    interpret_response,
    validate_base_url,
    validate_header_value,
)


class TestValidation:
    @pytest.mark.parametrize("url", ["https://api.github.com/", "http://localhost:8080/api/v3/"])
    def test_valid_base_url(self, url):
        assert validate_base_url(url, "Github") == url

    @pytest.mark.parametrize("url", ["not a url", "api.github.com", "ftp://example.com/", ""])
    def test_invalid_base_url(self, url):
        with pytest.raises(ConfigurationError, match=f"Invalid Github base url {url}"):
            validate_base_url(url, "Github")

    def test_valid_token(self):
        assert validate_header_value("zenhub_token", "Zenhub", "Authentication") == "zenhub_token"

    def test_token_with_newline(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_header_value("invalid header char -> \n", "Zenhub", "Authentication")

        assert exc_info.value.message == "Invalid Zenhub token for Authentication header."

    def test_empty_token(self):
        with pytest.raises(ConfigurationError, match="Github token is required"):
            validate_header_value("", "Github", "Authorization")


class TestInterpretResponse:
    """Test status code handling shared by both clients."""

    def test_success_returns_json(self):
        response = httpx.Response(200, json={"id": 1})

        assert interpret_response(response, "Github") == {"id": 1}

    def test_success_without_body(self):
        assert interpret_response(httpx.Response(204), "Zenhub", expect_body=False) is None

    def test_success_with_invalid_json(self):
        with pytest.raises(UnexpectedResponseError, match="not valid JSON"):
            interpret_response(httpx.Response(200, text="<html>"), "Github")

    def test_client_error_carries_body(self):
        body = {"message": "Not Found", "documentation_url": "https://developer.github.com/v3"}
        response = httpx.Response(404, json=body)

        with pytest.raises(RemoteClientError) as exc_info:
            interpret_response(response, "Github")

        error = exc_info.value
        assert error.status_code == 404
        assert error.body == body
        assert error.message == "Github error: Not Found"
        assert str(error) == "Github error: Not Found (HTTP 404)"

    def test_client_error_plain_text(self):
        response = httpx.Response(401, text="Bad credentials")

        with pytest.raises(RemoteClientError) as exc_info:
            interpret_response(response, "Zenhub")

        assert exc_info.value.body is None
        assert exc_info.value.message == "Zenhub error: Bad credentials"

    @pytest.mark.parametrize("status", [301, 500, 503])
    def test_other_status_is_unexpected(self, status):
        with pytest.raises(UnexpectedResponseError) as exc_info:
            interpret_response(httpx.Response(status), "Github")

        assert exc_info.value.status_code == status


class TestRestClient:
    """Test request sending and retries."""

    def test_default_headers(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = RestClient(
            "https://api.example.com/", {"X-Token": "abc"}, transport=httpx.MockTransport(handler)
        )
        client.request("GET", "things")

        assert seen[0].headers["User-Agent"] == "decadog"
        assert seen[0].headers["X-Token"] == "abc"
        assert seen[0].url == "https://api.example.com/things"

    def test_get_retried_on_transport_error(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json={"ok": True})

        client = RestClient("https://api.example.com/", {}, transport=httpx.MockTransport(handler))

        with patch("decadog.utils.retry.time.sleep") as mock_sleep:
            assert client.request("GET", "things") == {"ok": True}

        assert len(attempts) == 3
        assert mock_sleep.call_count == 2

    def test_get_gives_up_after_max_retries(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = RestClient(
            "https://api.example.com/", {}, max_retries=2, transport=httpx.MockTransport(handler)
        )

        with patch("decadog.utils.retry.time.sleep"), pytest.raises(TransportError):
            client.request("GET", "things")

    def test_writes_are_not_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection reset", request=request)

        client = RestClient("https://api.example.com/", {}, transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError):
            client.request("PATCH", "things/1", json={"a": 1})

        assert len(attempts) == 1

    def test_client_errors_are_not_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(404, json={"message": "Not Found"})

        client = RestClient("https://api.example.com/", {}, transport=httpx.MockTransport(handler))

        with pytest.raises(RemoteClientError):
            client.request("GET", "things/1")

        assert len(attempts) == 1

    def test_context_manager_closes_client(self):
        client = RestClient("https://api.example.com/", {})

        with client:
            pass

        assert client.http.is_closed
