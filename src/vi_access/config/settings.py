"""Video Indexer access configuration from environment variables and YAML.

Every setting has a documented default and can be overridden by an
environment variable. An optional YAML file (``VI_CONFIG_FILE`` or an explicit
path) is layered on top, and ``${VAR_NAME}`` / ``${VAR_NAME:-default}``
references inside it are expanded from the environment.

Credentials are deliberately absent here: they are read by
``vi_access.auth.credentials.resolve`` and never live in YAML.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any
from urllib.parse import quote

import yaml

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2022-08-01"
DEFAULT_AZURE_RESOURCE = "https://management.azure.com"
DEFAULT_API_ENDPOINT = "https://api.videoindexer.ai"
DEFAULT_HTTP_CLIENT_NAME = "AccountAccess-client"

PROVIDER_PATH = "providers/Microsoft.VideoIndexer/accounts"


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any, environ: Mapping[str, str]) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} from ``environ``."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value, environ) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, environ) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return environ.get(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _env(environ: Mapping[str, str], key: str, default: str = "") -> str:
    """Read an env var, treating blank values as unset."""
    value = environ.get(key, "")
    return value.strip() if value and value.strip() else default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ApiResourceSettings:
    """Resource manager and service coordinates of the one configured account.

    Attributes:
        subscription_id: Azure subscription holding the account
        resource_group: Resource group holding the account
        account_name: Video Indexer account name
        api_version: Resource manager api-version query value
        azure_resource: Resource manager base URL, also the token audience
        api_endpoint: Video Indexer service base URL
        http_client_name: Name of the resilient HTTP client to use
    """

    subscription_id: str = ""
    resource_group: str = ""
    account_name: str = ""
    api_version: str = DEFAULT_API_VERSION
    azure_resource: str = DEFAULT_AZURE_RESOURCE
    api_endpoint: str = DEFAULT_API_ENDPOINT
    http_client_name: str = DEFAULT_HTTP_CLIENT_NAME

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ApiResourceSettings":
        """
        Build settings from environment variables.

        Environment Variables:
            SUBSCRIPTION_ID, VI_RESOURCE_GROUP, VI_ACCOUNT_NAME,
            API_VERSION, AZURE_RESOURCE, API_ENDPOINT, DEFAULT_HTTP_CLIENT_NAME
        """
        env = os.environ if environ is None else environ
        return cls(
            subscription_id=_env(env, "SUBSCRIPTION_ID"),
            resource_group=_env(env, "VI_RESOURCE_GROUP"),
            account_name=_env(env, "VI_ACCOUNT_NAME"),
            api_version=_env(env, "API_VERSION", DEFAULT_API_VERSION),
            azure_resource=_env(env, "AZURE_RESOURCE", DEFAULT_AZURE_RESOURCE),
            api_endpoint=_env(env, "API_ENDPOINT", DEFAULT_API_ENDPOINT),
            http_client_name=_env(env, "DEFAULT_HTTP_CLIENT_NAME", DEFAULT_HTTP_CLIENT_NAME),
        )

    def is_valid(self) -> bool:
        """True when subscription, resource group and account name are all set."""
        return all(
            value and value.strip()
            for value in (self.subscription_id, self.resource_group, self.account_name)
        )

    def missing_settings(self) -> list[str]:
        """Names of the environment variables that still need a value."""
        required = {
            "SUBSCRIPTION_ID": self.subscription_id,
            "VI_RESOURCE_GROUP": self.resource_group,
            "VI_ACCOUNT_NAME": self.account_name,
        }
        return [name for name, value in required.items() if not (value and value.strip())]

    @property
    def arm_scope(self) -> str:
        return f"{self.azure_resource.rstrip('/')}/.default"

    def accounts_uri(self) -> str:
        """Resource manager URI listing the accounts of the resource group."""
        return (
            f"{self.azure_resource.rstrip('/')}/subscriptions/{self.subscription_id}"
            f"/resourcegroups/{self.resource_group}/{PROVIDER_PATH}"
            f"?api-version={self.api_version}"
        )

    def _account_base(self, account_name: str | None) -> str:
        name = quote(account_name or self.account_name, safe="")
        return (
            f"{self.azure_resource.rstrip('/')}/subscriptions/{self.subscription_id}"
            f"/resourcegroups/{self.resource_group}/{PROVIDER_PATH}/{name}"
        )

    def account_uri(self, account_name: str | None = None) -> str:
        """Resource manager URI of a single account."""
        return f"{self._account_base(account_name)}?api-version={self.api_version}"

    def generate_access_token_uri(self, account_name: str | None = None) -> str:
        """Resource manager URI of the account's generateAccessToken action."""
        return (
            f"{self._account_base(account_name)}/generateAccessToken"
            f"?api-version={self.api_version}"
        )


@dataclass
class ResilienceSettings:
    """Retry and timeout policy for the resilient HTTP client."""

    max_retry_attempts: int = 4
    base_delay_seconds: float = 2.0
    max_delay_seconds: float = 30.0
    timeout_seconds: float = 5.0
    jitter: bool = False

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.max_retry_attempts = int(self.max_retry_attempts)
        self.base_delay_seconds = float(self.base_delay_seconds)
        self.max_delay_seconds = float(self.max_delay_seconds)
        self.timeout_seconds = float(self.timeout_seconds)
        self.jitter = _as_bool(self.jitter)
        if self.max_retry_attempts < 0:
            raise ValueError(
                f"max_retry_attempts must be >= 0, got {self.max_retry_attempts}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ResilienceSettings":
        env = os.environ if environ is None else environ
        return cls(
            max_retry_attempts=_env(env, "VI_MAX_RETRY_ATTEMPTS", "4"),
            base_delay_seconds=_env(env, "VI_RETRY_BASE_DELAY", "2.0"),
            timeout_seconds=_env(env, "VI_HTTP_TIMEOUT", "5.0"),
        )


@dataclass
class LoggingSettings:
    level: str = "INFO"
    json_format: bool = False
    log_dir: str | None = None
    log_to_stdout: bool = True

    def __post_init__(self):
        self.level = str(self.level).upper()
        self.json_format = _as_bool(self.json_format)
        self.log_to_stdout = _as_bool(self.log_to_stdout)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LoggingSettings":
        env = os.environ if environ is None else environ
        return cls(
            level=_env(env, "LOG_LEVEL", "INFO"),
            json_format=_env(env, "LOG_JSON", "false"),
            log_dir=_env(env, "LOG_DIR") or None,
            log_to_stdout=_env(env, "LOG_TO_STDOUT", "true"),
        )


@dataclass
class AppConfig:
    """Complete configuration, grouped by concern.

    Configuration structure (YAML):
        api:
          subscription_id: ${SUBSCRIPTION_ID}
          resource_group: ${VI_RESOURCE_GROUP}
          account_name: ${VI_ACCOUNT_NAME}
          api_version: "2022-08-01"
        resilience:
          max_retry_attempts: 4
          base_delay_seconds: 2.0
          timeout_seconds: 5.0
        logging:
          level: INFO
          json_format: false
    """

    api: ApiResourceSettings = field(default_factory=ApiResourceSettings)
    resilience: ResilienceSettings = field(default_factory=ResilienceSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        return cls(
            api=ApiResourceSettings.from_env(environ),
            resilience=ResilienceSettings.from_env(environ),
            logging=LoggingSettings.from_env(environ),
        )


def _is_unexpanded(value: Any) -> bool:
    """True for a ${VAR} reference whose variable is unset and has no default."""
    return isinstance(value, str) and re.fullmatch(r"\$\{[^}]+\}", value) is not None


def _overlay(instance, section: dict[str, Any] | None, section_name: str):
    """Return a copy of a settings dataclass with YAML values applied."""
    if not section:
        return instance
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{section_name}' must be a mapping")

    known = {f.name for f in fields(instance)}
    unknown = sorted(set(section) - known)
    if unknown:
        logger.warning(
            "Ignoring unknown config keys in section %s",
            section_name,
            extra={"config_section": section_name, "unknown_keys": unknown},
        )
    values = {
        k: v
        for k, v in section.items()
        if k in known and v not in (None, "") and not _is_unexpanded(v)
    }
    if isinstance(instance, ApiResourceSettings):
        # YAML turns an unquoted 2022-08-01 into a date
        values = {k: str(v) for k, v in values.items()}
    return replace(instance, **values)


def load_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """
    Load configuration from environment variables and an optional YAML file.

    Args:
        path: YAML file to overlay. Falls back to ``VI_CONFIG_FILE`` when unset.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        AppConfig with env defaults and YAML overrides applied

    Raises:
        ValueError: If a config section is malformed or a value is invalid
    """
    env = os.environ if environ is None else environ
    config = AppConfig.from_env(env)

    if path is None and _env(env, "VI_CONFIG_FILE"):
        path = _env(env, "VI_CONFIG_FILE")
    if path is None:
        return config

    config_path = Path(path)
    if not config_path.exists():
        logger.warning(
            "Config file not found, using environment only",
            extra={"config_file": str(config_path)},
        )
        return config

    data = _expand_env_vars(load_yaml(config_path), env)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    logger.debug("Loaded config file", extra={"config_file": str(config_path)})

    return AppConfig(
        api=_overlay(config.api, data.get("api"), "api"),
        resilience=_overlay(config.resilience, data.get("resilience"), "resilience"),
        logging=_overlay(config.logging, data.get("logging"), "logging"),
    )


__all__ = [
    "ApiResourceSettings",
    "ResilienceSettings",
    "LoggingSettings",
    "AppConfig",
    "load_config",
    "load_yaml",
    "DEFAULT_API_VERSION",
    "DEFAULT_AZURE_RESOURCE",
    "DEFAULT_API_ENDPOINT",
    "DEFAULT_HTTP_CLIENT_NAME",
]
