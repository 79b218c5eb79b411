"""OS keyring credential backend.

Platform Support:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

from typing import cast

import keyring
import structlog
from keyring.backends.fail import Keyring as FailKeyring
from keyring.errors import KeyringError

from decadog.exceptions import BackendNotAvailableError, CredentialError

log = structlog.get_logger(__name__)

KEYRING_NAMESPACE = "decadog"


class KeyringBackend:
    """Read credentials from the system keyring.

    Credentials are namespaced under ``decadog/<service>``, so the reference
    ``@keyring:github/token`` reads the password stored for service
    ``decadog/github`` and username ``token``.

    Example:
        >>> backend = KeyringBackend()
        >>> backend.set("github", "token", "ghp_abc123")
        >>> backend.get("github", "token")
        'ghp_abc123'
    """

    @property
    def name(self) -> str:
        return "keyring"

    @property
    def available(self) -> bool:
        """Check whether a functional keyring backend is configured.

        Headless systems without a secret service fall back to keyring's
        ``fail`` backend, which counts as unavailable.
        """
        try:
            return not isinstance(keyring.get_keyring(), FailKeyring)
        except KeyringError as e:
            log.debug("keyring_unavailable", error=str(e))
            return False

    def get(self, service: str, key: str | None = None) -> str | None:
        """Retrieve a credential from the keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If the keyring operation fails
        """
        self._require_available()
        reference = f"@keyring:{service}/{key}"

        try:
            credential = cast(str | None, keyring.get_password(f"{KEYRING_NAMESPACE}/{service}", key or ""))
        except KeyringError as e:
            raise CredentialError(f"Keyring operation failed: {e}", reference=reference) from e

        if credential is not None:
            log.debug("credential_from_keyring", service=service, key=key)
        return credential

    def set(self, service: str, key: str, value: str) -> None:
        """Store a credential in the keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If the keyring operation fails
        """
        self._require_available()
        if not value:
            raise ValueError("Credential value cannot be empty")

        try:
            keyring.set_password(f"{KEYRING_NAMESPACE}/{service}", key, value)
        except KeyringError as e:
            raise CredentialError(
                f"Failed to store credential: {e}", reference=f"@keyring:{service}/{key}"
            ) from e
        log.info("credential_stored", service=service, key=key)

    def _require_available(self) -> None:
        if not self.available:
            raise BackendNotAvailableError(
                "Keyring backend is not available",
                suggestion="Configure a system keyring, or use environment variables: ${VAR_NAME}",
            )
