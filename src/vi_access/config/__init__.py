"""Configuration loading (environment variables plus optional YAML)."""

from vi_access.config.settings import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_API_VERSION,
    DEFAULT_AZURE_RESOURCE,
    DEFAULT_HTTP_CLIENT_NAME,
    ApiResourceSettings,
    AppConfig,
    LoggingSettings,
    ResilienceSettings,
    load_config,
)

__all__ = [
    "ApiResourceSettings",
    "ResilienceSettings",
    "LoggingSettings",
    "AppConfig",
    "load_config",
    "DEFAULT_API_VERSION",
    "DEFAULT_AZURE_RESOURCE",
    "DEFAULT_API_ENDPOINT",
    "DEFAULT_HTTP_CLIENT_NAME",
]
