"""
Video Indexer authentication and resilient access.

Acquires a management-plane (ARM) token with azure-identity, exchanges it
for a permission- and scope-limited account access token, resolves the
configured account's id and location, and runs every outbound call through a
renewable aiohttp client with retry and per-attempt timeout.

Example:
    >>> from vi_access import Authenticator, Permission, Scope, load_config
    >>> async with Authenticator.from_config(load_config()) as auth:
    ...     token = await auth.get_access_token(Permission.READER, Scope.ACCOUNT)
"""

from vi_access.accounts import Account, AccountResolver
from vi_access.auth import (
    AccountTokenExchanger,
    ArmTokenAcquirer,
    Authenticator,
    Credential,
    Permission,
    Scope,
    TokenRequest,
    resolve,
    run_sync,
)
from vi_access.config import AppConfig, load_config
from vi_access.errors import (
    AccountNotFound,
    AuthFailure,
    Timeout,
    TokenExchangeFailure,
    VideoIndexerError,
)
from vi_access.http import DurableHttpClient, HttpClientFactory, ResiliencePolicy

__version__ = "0.1.0"

__all__ = [
    "Authenticator",
    "run_sync",
    "Credential",
    "resolve",
    "ArmTokenAcquirer",
    "AccountTokenExchanger",
    "Permission",
    "Scope",
    "TokenRequest",
    "Account",
    "AccountResolver",
    "DurableHttpClient",
    "HttpClientFactory",
    "ResiliencePolicy",
    "AppConfig",
    "load_config",
    "VideoIndexerError",
    "AuthFailure",
    "TokenExchangeFailure",
    "AccountNotFound",
    "Timeout",
]
