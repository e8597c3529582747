"""
Account resolution with a process-lifetime cache.

The configured account's id and location are treated as immutable for the
lifetime of the resolver: the first valid lookup is cached and every later
``get_account`` call returns it, whatever account name is passed. Listing
goes to the network every time since membership can change between calls.
"""

import asyncio
import logging

from vi_access.accounts.models import Account
from vi_access.config.settings import ApiResourceSettings
from vi_access.errors.exceptions import AccountNotFound, ApiRequestError
from vi_access.http.client import DurableHttpClient, HttpResponse
from vi_access.http.urls import verify_status
from vi_access.types import ArmTokenSource

logger = logging.getLogger(__name__)


class AccountResolver:
    """
    Looks up accounts through the resource manager.

    Concurrent first callers share a single lookup: the check-then-fill
    sequence runs under an asyncio.Lock.

    Args:
        arm: Source of ARM bearer tokens
        http: Resilient HTTP client
        settings: Subscription, resource group and default account name
    """

    def __init__(
        self,
        arm: ArmTokenSource,
        http: DurableHttpClient,
        settings: ApiResourceSettings,
    ):
        self.arm = arm
        self.http = http
        self.settings = settings
        self._account: Account | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_account(self) -> Account | None:
        return self._account

    def clear_cache(self) -> None:
        if self._account is not None:
            logger.debug(
                "Cleared cached account",
                extra={"account_id": self._account.id},
            )
        self._account = None

    def _not_found(self, account_name: str, cause: Exception) -> AccountNotFound:
        return AccountNotFound(
            account_name,
            subscription_id=self.settings.subscription_id,
            resource_group=self.settings.resource_group,
            cause=cause,
        )

    async def get_account(
        self,
        account_name: str | None = None,
        *,
        force_refresh: bool = False,
    ) -> Account:
        """
        Return the account, looking it up on first use.

        Args:
            account_name: Account to look up (default: configured account).
                Ignored once an account is cached.
            force_refresh: Look up again and replace the cache on success

        Returns:
            Account with non-empty id and location

        Raises:
            AccountNotFound: The lookup answered with an unusable account
            ApiRequestError: The lookup answered with a status other than 200
            AuthFailure: No ARM token could be acquired
            Timeout: Every attempt exceeded the per-attempt budget
        """
        if self._account is not None and not force_refresh:
            return self._account

        async with self._lock:
            if self._account is not None and not force_refresh:
                return self._account

            account = await self._lookup(account_name or self.settings.account_name)
            self._account = account
            return account

    async def _lookup(self, account_name: str) -> Account:
        logger.info("Getting account %s.", account_name, extra={"account_name": account_name})
        arm_token = await self.arm.get_arm_token()

        def parse(response: HttpResponse) -> Account:
            verify_status(response, 200)
            try:
                return Account.from_payload(response.json(), name=account_name)
            except ValueError as e:
                logger.error(
                    "Account %s not found. Check SubscriptionId, ResourceGroup, accountName are valid.",
                    account_name,
                    extra={
                        "account_name": account_name,
                        "subscription_id": self.settings.subscription_id,
                        "resource_group": self.settings.resource_group,
                        "error_message": str(e)[:200],
                    },
                )
                raise self._not_found(account_name, e) from e

        account = await self.http.client().request(
            "GET",
            self.settings.account_uri(account_name),
            headers={"Authorization": f"Bearer {arm_token}"},
            parse=parse,
            operation="getAccount",
        )

        logger.info(
            "Account %s resolved",
            account_name,
            extra={
                "account_name": account_name,
                "account_id": account.id,
                "location": account.location,
            },
        )
        return account

    async def list_accounts(self) -> list[Account]:
        """
        List the accounts of the configured resource group.

        Never cached and never touches the cached account. Entries without
        an id or location are skipped.

        Raises:
            ApiRequestError: The listing answered with a status other than 200
            AuthFailure: No ARM token could be acquired
        """
        arm_token = await self.arm.get_arm_token()

        def parse(response: HttpResponse) -> list:
            verify_status(response, 200)
            try:
                payload = response.json()
            except ValueError as e:
                raise ApiRequestError(
                    "Account listing returned invalid JSON",
                    status_code=response.status,
                    body=response.body,
                    cause=e,
                ) from e
            if not isinstance(payload, dict):
                return []
            return payload.get("value") or []

        entries = await self.http.client().request(
            "GET",
            self.settings.accounts_uri(),
            headers={"Authorization": f"Bearer {arm_token}"},
            parse=parse,
            operation="listAccounts",
        )

        accounts = []
        for entry in entries:
            try:
                accounts.append(Account.from_payload(entry))
            except ValueError as e:
                name = entry.get("name") if isinstance(entry, dict) else None
                logger.warning(
                    "Skipping invalid account entry %s",
                    name,
                    extra={"account_name": name, "error_message": str(e)[:200]},
                )

        logger.info(
            "Listed %d accounts",
            len(accounts),
            extra={"resource_group": self.settings.resource_group, "account_count": len(accounts)},
        )
        return accounts


__all__ = ["AccountResolver"]
