"""Configuration loading."""

from decadog.config.settings import DecadogSettings

__all__ = ["DecadogSettings"]
