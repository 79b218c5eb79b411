"""Pydantic field types that resolve credential references while loading."""

from typing import Annotated, Any

from pydantic import BeforeValidator, SecretStr
from pydantic_core import PydanticCustomError

from decadog.credentials import CredentialResolver
from decadog.exceptions import CredentialError

_resolver: CredentialResolver | None = None


def get_resolver() -> CredentialResolver:
    """Get or create the process-wide credential resolver."""
    global _resolver
    if _resolver is None:
        _resolver = CredentialResolver()
    return _resolver


def set_resolver(resolver: CredentialResolver | None) -> None:
    """Replace the credential resolver (``None`` restores the default)."""
    global _resolver
    _resolver = resolver


def resolve_credential_secret(value: Any) -> Any:
    """Resolve a credential reference into a ``SecretStr``.

    Supports ``@keyring:service/key``, ``${VAR_NAME}`` and direct values.

    Raises:
        PydanticCustomError: If credential resolution fails
    """
    if value is None or isinstance(value, SecretStr):
        return value
    if not isinstance(value, str):
        return SecretStr(str(value))

    try:
        return SecretStr(get_resolver().resolve(value))
    except CredentialError as e:
        error_msg = e.message
        if e.suggestion:
            error_msg = f"{error_msg}\n\nSuggestion: {e.suggestion}"
        raise PydanticCustomError(
            "credential_resolution_error", error_msg, {"reference": e.reference}
        ) from e


CredentialSecret = Annotated[SecretStr, BeforeValidator(resolve_credential_secret)]


__all__ = [
    "CredentialSecret",
    "get_resolver",
    "resolve_credential_secret",
    "set_resolver",
]
