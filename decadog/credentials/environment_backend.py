"""Environment variable credential backend."""

import os

import structlog

log = structlog.get_logger(__name__)


class EnvironmentBackend:
    """Read credentials from environment variables.

    Suited to CI jobs and shells where tokens are exported before running
    ``decadog``. Values are visible to child processes and are not persisted.

    Example:
        >>> os.environ["GITHUB_TOKEN"] = "ghp_abc123"
        >>> EnvironmentBackend().get("GITHUB_TOKEN")
        'ghp_abc123'
    """

    @property
    def name(self) -> str:
        return "environment"

    @property
    def available(self) -> bool:
        """Environment backend is always available."""
        return True

    def get(self, service: str, key: str | None = None) -> str | None:
        """Retrieve a credential from the environment variable ``service``.

        ``key`` is accepted for protocol compatibility and ignored.
        """
        value = os.getenv(service)
        if value is not None:
            log.debug("credential_from_environment", variable=service)
        return value
