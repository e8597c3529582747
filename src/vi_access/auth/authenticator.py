"""
Authenticator facade: ARM token, then account access token, on every call.

``Authenticator.from_config`` is the composition root. It wires the
credential, the resilient HTTP client, the ARM acquirer, the exchanger and
the account resolver into one object the caller owns and closes.

Example:
    >>> async with Authenticator.from_config(load_config()) as auth:
    ...     token = await auth.get_access_token(Permission.READER, Scope.VIDEO, video_id="abc")
"""

import asyncio
import logging
from collections.abc import Coroutine, Mapping
from typing import Any, TypeVar

from vi_access.accounts.models import Account
from vi_access.accounts.resolver import AccountResolver
from vi_access.auth.arm import ArmTokenAcquirer
from vi_access.auth.credentials import Credential, resolve
from vi_access.auth.exchange import AccountTokenExchanger, Permission, Scope
from vi_access.config.settings import AppConfig
from vi_access.http.client import ClientOptions, DurableHttpClient, HttpClientFactory
from vi_access.http.policy import ResiliencePolicy
from vi_access.http.urls import SecureUri, build_secure_uri, create_query_string
from vi_access.types import ArmTokenSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Authenticator:
    """
    Single entry point for authenticated access.

    No token is kept between calls: every ``get_access_token`` acquires a new
    ARM token and exchanges it.

    Args:
        arm: Source of ARM bearer tokens
        exchanger: Account token exchanger
        resolver: Account resolver, required by get_account and build_api_uri
    """

    def __init__(
        self,
        arm: ArmTokenSource,
        exchanger: AccountTokenExchanger,
        resolver: AccountResolver | None = None,
    ):
        self.arm = arm
        self.exchanger = exchanger
        self.resolver = resolver

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        credential: Credential | None = None,
        http: DurableHttpClient | None = None,
    ) -> "Authenticator":
        """
        Build a fully wired Authenticator.

        Args:
            config: Application configuration
            credential: Identity configuration (default: resolved from env)
            http: Resilient HTTP client (default: one registered under
                ``config.api.http_client_name`` with the configured policy)
        """
        settings = config.api
        if http is None:
            factory = HttpClientFactory()
            factory.register(
                settings.http_client_name,
                ClientOptions(policy=ResiliencePolicy.from_settings(config.resilience)),
            )
            http = DurableHttpClient(factory, settings.http_client_name)

        arm = ArmTokenAcquirer(credential or resolve(), settings.azure_resource)
        return cls(
            arm=arm,
            exchanger=AccountTokenExchanger(http, settings),
            resolver=AccountResolver(arm, http, settings),
        )

    @property
    def http(self) -> DurableHttpClient:
        return self.exchanger.http

    async def __aenter__(self) -> "Authenticator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http.close()

    async def get_access_token(
        self,
        permission: Permission = Permission.CONTRIBUTOR,
        scope: Scope = Scope.ACCOUNT,
        *,
        video_id: str | None = None,
        project_id: str | None = None,
    ) -> str:
        """
        Acquire an account access token for a (permission, scope) pair.

        Raises:
            AuthFailure: No ARM token could be acquired
            TokenExchangeFailure: The exchange failed after retries
            Timeout: Every exchange attempt exceeded the per-attempt budget
        """
        try:
            arm_token = await self.arm.get_arm_token()
            return await self.exchanger.get_account_token(
                arm_token,
                permission,
                scope,
                video_id=video_id,
                project_id=project_id,
            )
        except Exception as e:
            logger.error(
                "An error occurred while authenticating.",
                extra={
                    "permission": getattr(permission, "value", permission),
                    "scope": getattr(scope, "value", scope),
                    "error_type": type(e).__name__,
                    "error_message": str(e)[:200],
                },
            )
            raise

    async def get_video_access_token(
        self,
        video_id: str,
        permission: Permission = Permission.CONTRIBUTOR,
    ) -> str:
        """Access token limited to one video."""
        return await self.get_access_token(permission, Scope.VIDEO, video_id=video_id)

    def _require_resolver(self) -> AccountResolver:
        if self.resolver is None:
            raise RuntimeError("Authenticator was built without an AccountResolver")
        return self.resolver

    async def get_account(
        self,
        account_name: str | None = None,
        *,
        force_refresh: bool = False,
    ) -> Account:
        return await self._require_resolver().get_account(
            account_name, force_refresh=force_refresh
        )

    async def build_api_uri(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        permission: Permission = Permission.CONTRIBUTOR,
        scope: Scope = Scope.ACCOUNT,
    ) -> SecureUri:
        """
        Build an authenticated Video Indexer API URI.

        Produces ``{api_endpoint}/{location}/Accounts/{account_id}/{path}``
        with ``params`` and the access token in the query string.

        Returns:
            SecureUri whose ``log_uri`` has the token masked
        """
        account = await self.get_account()
        token = await self.get_access_token(permission, scope)

        endpoint = self.exchanger.settings.api_endpoint.rstrip("/")
        base = f"{endpoint}/{account.location}/Accounts/{account.id}/{path.lstrip('/')}"
        if params:
            query = create_query_string(params)
            if query:
                base = f"{base}?{query}"
        return build_secure_uri(base, token)


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a coroutine to completion from synchronous code.

    Raises:
        RuntimeError: If called while an event loop is running in this thread
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("run_sync() cannot be called from a running event loop; await instead")


__all__ = [
    "Authenticator",
    "run_sync",
]
