"""Exception hierarchy for decadog.

Exception Hierarchy:
    DecadogError (base)
    ├── ConfigurationError
    ├── CredentialError
    │   ├── CredentialNotFoundError
    │   ├── CredentialFormatError
    │   └── BackendNotAvailableError
    ├── UserInputError
    └── ExternalServiceError
        ├── RemoteClientError
        ├── UnexpectedResponseError
        └── TransportError

Only the triage loop absorbs these errors; everywhere else they propagate up
to the CLI command that started the operation.

Example Usage:
    >>> from decadog.exceptions import UserInputError
    >>> try:
    ...     number = int(text)
    ... except ValueError as e:
    ...     raise UserInputError(f"Invalid issue number {text}.") from e
"""

from typing import Any


class DecadogError(Exception):
    """Base exception for all decadog errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(DecadogError):
    """Configuration-related errors.

    Fatal to the whole subcommand and never retried.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Token not usable as an HTTP header value
        - Malformed API base URL
    """

    pass


class CredentialError(DecadogError):
    """Credential-related errors.

    Attributes:
        message: Human-readable error description
        reference: The credential reference that failed (e.g., "@keyring:decadog/github_token")
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.reference = reference
        self.suggestion = suggestion

        full_message = message
        if reference:
            full_message = f"{message} (reference: {reference})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # Preserve original message (super sets self.message to full_message)
        self.message = message


class CredentialNotFoundError(CredentialError):
    """Credential is referenced in config but missing from its backend."""

    pass


class CredentialFormatError(CredentialError):
    """Credential reference has invalid format."""

    pass


class BackendNotAvailableError(CredentialError):
    """Requested backend is not available on this system."""

    pass


class UserInputError(DecadogError):
    """Operator input could not be used.

    Always recoverable by entering something else.

    Examples:
        - Issue number that is not a number
        - Planned points outside the range allowed by the milestone
        - Fuzzy choice that matches no option
    """

    pass


class ExternalServiceError(DecadogError):
    """Communication with the tracker or overlay API failed.

    Attributes:
        status_code: HTTP status code (if applicable)
        response_text: Response body text (if applicable)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class RemoteClientError(ExternalServiceError):
    """The API rejected the request with a 4xx status.

    Attributes:
        body: The structured error body returned by the API, when it was JSON
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
        body: Any = None,
    ) -> None:
        self.body = body
        super().__init__(message, status_code=status_code, response_text=response_text)


class UnexpectedResponseError(ExternalServiceError):
    """The API answered with something we cannot use.

    Examples:
        - 5xx or other non-2xx/4xx status
        - Body that is not the expected JSON
        - A relation the remote should have returned is missing
    """

    pass


class TransportError(ExternalServiceError):
    """The request never produced a response (connection, DNS, timeout)."""

    pass
