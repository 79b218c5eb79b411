"""
Settings for decadog, loaded from ``decadog.yml`` and the environment.

Example ``decadog.yml``::

    owner: reinfer
    repo: platform
    github_token: "@keyring:github/token"
    zenhub_token: ${ZENHUB_TOKEN}
    estimates: [0, 1, 2, 3, 5, 8, 13]

Every field can also be set from an environment variable prefixed with
``DECADOG_`` (``DECADOG_REPO=platform``); environment values take precedence
over the file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from decadog.config.credential_fields import CredentialSecret
from decadog.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

DEFAULT_CONFIG_FILE = "decadog.yml"

DEFAULT_ESTIMATES = (0, 1, 2, 3, 5, 8, 13)

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


class DecadogSettings(BaseSettings):
    """Repository, service and sprint settings.

    Token fields support credential references:
    - github_token: "@keyring:github/token"
    - github_token: "${GITHUB_TOKEN}"
    """

    model_config = SettingsConfigDict(
        env_prefix="DECADOG_",
        case_sensitive=False,
        frozen=True,
    )

    owner: str = Field(..., description="Repository owner, also used as the organisation")
    repo: str = Field(..., description="Repository name")
    github_url: str = Field(default="https://api.github.com/", description="GitHub API base URL")
    github_token: CredentialSecret = Field(..., description="GitHub token (supports @keyring:, ${ENV})")
    zenhub_url: str = Field(default="https://api.zenhub.io/", description="ZenHub API base URL")
    zenhub_token: CredentialSecret | None = Field(
        default=None, description="ZenHub token (supports @keyring:, ${ENV})"
    )
    zenhub_workspace_id: str | None = Field(
        default=None, description="ZenHub workspace; defaults to the repository's first workspace"
    )
    estimates: tuple[int, ...] = Field(default=DEFAULT_ESTIMATES, description="Allowed estimate values")
    obsolete_label: str = Field(default="Z-obsolete", description="Label excluded from sprint review")
    sprint_length_days: int = Field(default=14, ge=1, description="Length of a new sprint in days")
    exit_on_error: bool = Field(default=False, description="Exit non-zero when a command fails")
    max_retries: int = Field(default=3, ge=1, description="Attempts for reads failing at the transport level")

    @field_validator("estimates")
    @classmethod
    def _check_estimates(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("at least one estimate value is required")
        if any(estimate < 0 for estimate in value):
            raise ValueError("estimate values must not be negative")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values read from the YAML file (passed as init kwargs)
        return env_settings, init_settings

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> DecadogSettings:
        """Load settings from a YAML file and the environment.

        Args:
            config_path: Explicit configuration file, which must exist. When
                omitted, ``./decadog.yml`` is read if it exists.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid,
                or required settings are absent.
        """
        if config_path is not None:
            config_file = Path(config_path)
            if not config_file.exists():
                raise ConfigurationError(f"Configuration file not found: {config_path}")
        else:
            config_file = Path(DEFAULT_CONFIG_FILE)

        config_dict: dict[str, Any] = {}
        if config_file.exists():
            config_dict = cls._read_yaml(config_file)
            log.debug("config_loaded", path=str(config_file))

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def _read_yaml(cls, config_file: Path) -> dict[str, Any]:
        try:
            with open(config_file) as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_file}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_file}: {e}") from e

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")
        return config_dict

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ``${VAR_NAME}`` placeholders with environment variables.

        Supports two syntaxes:
        - ``${VAR_NAME}`` - required variable (raises if not set)
        - ``${VAR_NAME:-default}`` - optional with default value

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            if default_value is not None:
                return default_value
            raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return ENV_VAR_PATTERN.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
