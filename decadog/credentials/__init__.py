"""Credential reference resolution for configuration secrets.

Token fields in ``decadog.yml`` may hold a reference instead of the secret
itself:

- ``${GITHUB_TOKEN}`` reads an environment variable
- ``@keyring:github/token`` reads the OS keyring (service ``decadog/github``)
"""

from decadog.credentials.backend import CredentialBackend
from decadog.credentials.environment_backend import EnvironmentBackend
from decadog.credentials.keyring_backend import KeyringBackend
from decadog.credentials.resolver import CredentialResolver

__all__ = [
    "CredentialBackend",
    "CredentialResolver",
    "EnvironmentBackend",
    "KeyringBackend",
]
