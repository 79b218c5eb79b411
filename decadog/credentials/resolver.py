"""Resolve credential references in configuration to actual secrets."""

import re
from collections.abc import Sequence

import structlog

from decadog.credentials.backend import CredentialBackend
from decadog.credentials.environment_backend import EnvironmentBackend
from decadog.credentials.keyring_backend import KEYRING_NAMESPACE, KeyringBackend
from decadog.exceptions import (
    BackendNotAvailableError,
    CredentialFormatError,
    CredentialNotFoundError,
)

log = structlog.get_logger(__name__)

TOKEN_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "ghr_", "github_pat_")


class CredentialResolver:
    """Resolve credential references to actual values.

    Supported reference formats:
    1. ``@keyring:service/key`` - OS keyring
    2. ``${VAR_NAME}`` - environment variable
    3. Anything else - returned as-is, with a warning if it looks like a token

    Example:
        >>> resolver = CredentialResolver()
        >>> resolver.resolve("${GITHUB_TOKEN}")
        'ghp_xyz789...'
        >>> resolver.resolve("@keyring:zenhub/token")
        'zh_abc123...'
    """

    KEYRING_PATTERN = re.compile(r"^@keyring:([^/]+)/(.+)$")
    ENV_PATTERN = re.compile(r"^\$\{([A-Z_][A-Z0-9_]*)\}$")

    def __init__(self, backends: Sequence[CredentialBackend] | None = None) -> None:
        """Initialize credential resolver.

        Args:
            backends: Backends to resolve against, in lookup order. Defaults
                to the environment and keyring backends.
        """
        if backends is None:
            backends = (EnvironmentBackend(), KeyringBackend())
        self.backends: tuple[CredentialBackend, ...] = tuple(backends)
        self._cache: dict[str, str] = {}

    def resolve(self, value: str, cache: bool = True) -> str:
        """Resolve a credential reference.

        Raises:
            CredentialNotFoundError: If the referenced credential is missing
            CredentialFormatError: If the value looks like a malformed reference
            BackendNotAvailableError: If the required backend is unavailable
        """
        if cache and value in self._cache:
            return self._cache[value]

        keyring_match = self.KEYRING_PATTERN.match(value)
        env_match = self.ENV_PATTERN.match(value)

        if keyring_match:
            resolved = self._resolve_via_backend(
                "keyring", keyring_match.group(1), keyring_match.group(2), value
            )
        elif env_match:
            resolved = self._resolve_via_backend("environment", env_match.group(1), None, value)
        elif value.startswith("@keyring:"):
            raise CredentialFormatError(
                "Invalid keyring reference",
                reference=value,
                suggestion="Use the form @keyring:service/key",
            )
        else:
            if self._looks_like_token(value):
                log.warning(
                    "direct_credential_value",
                    hint="Consider using @keyring:service/key or ${ENV_VAR} instead.",
                )
            return value

        if cache:
            self._cache[value] = resolved
        return resolved

    def _resolve_via_backend(self, backend_name: str, service: str, key: str | None, reference: str) -> str:
        backend = next((b for b in self.backends if b.name == backend_name), None)
        if backend is None:
            raise BackendNotAvailableError(f"No {backend_name} backend configured", reference=reference)
        if not backend.available:
            raise BackendNotAvailableError(
                f"{backend_name.capitalize()} backend is not available on this system",
                reference=reference,
                suggestion="Use environment variables instead: ${VAR_NAME}",
            )

        credential = backend.get(service, key)
        if credential is None:
            if backend_name == "environment":
                raise CredentialNotFoundError(
                    f"Environment variable not set: {service}",
                    reference=reference,
                    suggestion=f"export {service}='your-credential-here'",
                )
            raise CredentialNotFoundError(
                f"Credential not found in keyring: {service}/{key}",
                reference=reference,
                suggestion=f"keyring set {KEYRING_NAMESPACE}/{service} {key}",
            )

        log.debug("credential_resolved", backend=backend_name, service=service)
        return credential

    @staticmethod
    def _looks_like_token(value: str) -> bool:
        """Heuristic check for values that look like API tokens."""
        if not value:
            return False
        if value.startswith(TOKEN_PREFIXES):
            return True
        return len(value) > 20 and value.replace("-", "").replace("_", "").isalnum()

    def clear_cache(self) -> None:
        self._cache.clear()
