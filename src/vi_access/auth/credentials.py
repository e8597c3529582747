"""
Credential resolution for the Video Indexer resource manager handshake.

Turns configured secrets into a token-acquisition strategy:

    - Client id AND client secret set: ClientSecretCredential (service principal)
    - Otherwise: DefaultAzureCredential (managed identity, environment,
      Azure CLI, ...), pinned to the tenant when one is configured

Environment Variables:
    VIDEOINDEXER_TENANT_ID: Azure AD tenant ID
    VIDEOINDEXER_CLIENT_ID: Service principal client ID
    VIDEOINDEXER_CLIENT_SECRET: Service principal secret

Missing values never fail resolution; they select the ambient credential
chain instead.

Example:
    >>> credential = resolve()
    >>> credential.auth_mode
    'default'
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.identity.aio import ClientSecretCredential as AsyncClientSecretCredential
from azure.identity.aio import DefaultAzureCredential as AsyncDefaultAzureCredential

logger = logging.getLogger(__name__)

TENANT_ID_ENV = "VIDEOINDEXER_TENANT_ID"
CLIENT_ID_ENV = "VIDEOINDEXER_CLIENT_ID"
CLIENT_SECRET_ENV = "VIDEOINDEXER_CLIENT_SECRET"

AUTH_MODE_CLIENT_SECRET = "client_secret"
AUTH_MODE_DEFAULT = "default"


@dataclass(frozen=True)
class Credential:
    """
    Immutable identity configuration.

    The secret is excluded from repr so the object can be logged safely.

    Attributes:
        tenant_id: Azure AD tenant ID (optional)
        client_id: Service principal client ID (optional)
        client_secret: Service principal secret (optional)
    """

    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)

    @property
    def has_client_secret(self) -> bool:
        """True when both client id and client secret are configured."""
        return bool(self.client_id) and bool(self.client_secret)

    @property
    def auth_mode(self) -> str:
        """"client_secret" or "default", for diagnostics."""
        return AUTH_MODE_CLIENT_SECRET if self.has_client_secret else AUTH_MODE_DEFAULT

    def _default_credential_kwargs(self) -> dict[str, str]:
        if not self.tenant_id:
            return {}
        return {
            "shared_cache_tenant_id": self.tenant_id,
            "interactive_browser_tenant_id": self.tenant_id,
            "visual_studio_code_tenant_id": self.tenant_id,
        }

    def token_credential(self):
        """
        Build a new synchronous azure-identity credential.

        Returns:
            ClientSecretCredential or DefaultAzureCredential. The caller
            closes it.

        Raises:
            ValueError: If azure-identity rejects the configuration
                (e.g. client secret mode without a tenant id)
        """
        if self.has_client_secret:
            logger.debug(
                "Using client secret Service Principal authentication",
                extra={"tenant_id": self.tenant_id, "azure_client_id": self.client_id},
            )
            return ClientSecretCredential(
                tenant_id=self.tenant_id,
                client_id=self.client_id,
                client_secret=self.client_secret,
            )

        logger.debug(
            "Using DefaultAzureCredential (managed identity, env vars, CLI, etc.)",
            extra={"tenant_id": self.tenant_id or None},
        )
        return DefaultAzureCredential(**self._default_credential_kwargs())

    def async_token_credential(self):
        """Async twin of token_credential (azure.identity.aio)."""
        if self.has_client_secret:
            logger.debug(
                "Using client secret Service Principal authentication",
                extra={"tenant_id": self.tenant_id, "azure_client_id": self.client_id},
            )
            return AsyncClientSecretCredential(
                tenant_id=self.tenant_id,
                client_id=self.client_id,
                client_secret=self.client_secret,
            )

        logger.debug(
            "Using DefaultAzureCredential (managed identity, env vars, CLI, etc.)",
            extra={"tenant_id": self.tenant_id or None},
        )
        return AsyncDefaultAzureCredential(**self._default_credential_kwargs())

    def get_diagnostics(self) -> dict:
        """Credential configuration without secrets, for health checks and the CLI."""
        return {
            "auth_mode": self.auth_mode,
            "tenant_id": self.tenant_id or None,
            "client_id_configured": bool(self.client_id),
            "client_secret_configured": bool(self.client_secret),
        }


def resolve(environ: Mapping[str, str] | None = None) -> Credential:
    """
    Build the Credential from the environment.

    Pure function of its input: no network access and no error path.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Credential with empty strings for unset values
    """
    env = os.environ if environ is None else environ
    credential = Credential(
        tenant_id=(env.get(TENANT_ID_ENV) or "").strip(),
        client_id=(env.get(CLIENT_ID_ENV) or "").strip(),
        client_secret=env.get(CLIENT_SECRET_ENV) or "",
    )
    logger.debug(
        "Resolved credential configuration",
        extra={"auth_mode": credential.auth_mode, "tenant_id": credential.tenant_id or None},
    )
    return credential


__all__ = [
    "Credential",
    "resolve",
    "AUTH_MODE_CLIENT_SECRET",
    "AUTH_MODE_DEFAULT",
    "TENANT_ID_ENV",
    "CLIENT_ID_ENV",
    "CLIENT_SECRET_ENV",
]
