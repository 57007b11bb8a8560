"""Application configuration."""

from snx_api.config.settings import APISettings

__all__ = ["APISettings"]
