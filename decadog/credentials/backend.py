"""Protocol for credential storage backends."""

from typing import Protocol


class CredentialBackend(Protocol):
    """Interface every credential backend implements.

    Backends are looked up by ``name`` when the resolver parses a reference,
    so ``@keyring:...`` goes to the backend named ``keyring``.
    """

    @property
    def name(self) -> str:
        """Backend identifier (e.g., 'keyring', 'environment')."""
        ...

    @property
    def available(self) -> bool:
        """Whether this backend can be used on the current system."""
        ...

    def get(self, service: str, key: str | None = None) -> str | None:
        """Retrieve a credential.

        Args:
            service: Service identifier, or variable name for the environment
            key: Key within the service; unused by the environment backend

        Returns:
            Credential value or None if not found

        Raises:
            BackendNotAvailableError: If backend is not available
        """
        ...
