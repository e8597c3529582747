"""Management-plane (ARM) bearer token acquisition."""

import logging

from vi_access.auth.credentials import Credential
from vi_access.config.settings import DEFAULT_AZURE_RESOURCE
from vi_access.errors.exceptions import AuthFailure

logger = logging.getLogger(__name__)


class ArmTokenAcquirer:
    """
    Acquires ARM tokens scoped to ``{azure_resource}/.default``.

    Nothing is cached here: every call builds a fresh azure-identity
    credential, asks it for a token and closes it. Failures are not retried.

    Args:
        credential: Resolved identity configuration
        azure_resource: Resource manager base URL (the token audience)
    """

    def __init__(self, credential: Credential, azure_resource: str = DEFAULT_AZURE_RESOURCE):
        self.credential = credential
        self.azure_resource = azure_resource

    @property
    def scope(self) -> str:
        return f"{self.azure_resource.rstrip('/')}/.default"

    def _failure(self, e: Exception) -> AuthFailure:
        logger.error(
            "Failed to acquire ARM token",
            extra={
                "auth_mode": self.credential.auth_mode,
                "resource": self.azure_resource,
                "error_type": type(e).__name__,
                "error_message": str(e)[:200],
            },
        )
        return AuthFailure(
            f"Failed to acquire ARM token for {self.azure_resource} "
            f"(auth mode: {self.credential.auth_mode})",
            cause=e,
            context={"auth_mode": self.credential.auth_mode, "resource": self.azure_resource},
        )

    def _checked(self, token: str | None) -> str:
        if not token:
            raise AuthFailure(
                f"Identity provider returned an empty token for {self.azure_resource}",
                context={"auth_mode": self.credential.auth_mode, "resource": self.azure_resource},
            )
        logger.debug(
            "Acquired ARM token",
            extra={
                "auth_mode": self.credential.auth_mode,
                "resource": self.azure_resource,
                "token_length": len(token),
            },
        )
        return token

    async def get_arm_token(self) -> str:
        """
        Acquire an ARM token.

        Cancelling the awaiting task cancels the acquisition.

        Returns:
            Bearer token string

        Raises:
            AuthFailure: If the credential cannot be built or the identity
                provider refuses or cannot be reached
        """
        try:
            async with self.credential.async_token_credential() as token_credential:
                access_token = await token_credential.get_token(self.scope)
        except Exception as e:
            raise self._failure(e) from e
        return self._checked(access_token.token)

    def get_arm_token_sync(self) -> str:
        """
        Blocking variant of get_arm_token.

        Raises:
            AuthFailure: Same conditions as get_arm_token
        """
        try:
            with self.credential.token_credential() as token_credential:
                access_token = token_credential.get_token(self.scope)
        except Exception as e:
            raise self._failure(e) from e
        return self._checked(access_token.token)


__all__ = ["ArmTokenAcquirer"]
