"""
Exchange of an ARM token for a Video Indexer account access token.

The ARM token is POSTed to the account's ``generateAccessToken`` action
together with the requested permission and scope. The returned token is
only valid for that (permission, scope) pair.
"""

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vi_access.config.settings import ApiResourceSettings
from vi_access.errors.exceptions import TokenExchangeFailure
from vi_access.http.client import DurableHttpClient, HttpResponse

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Privilege of the issued token."""

    READER = "Reader"
    CONTRIBUTOR = "Contributor"
    ACCESS_ADMINISTRATOR = "MyAccessAdministrator"
    OWNER = "Owner"


class Scope(str, Enum):
    """Level of the resources the issued token is valid for."""

    ACCOUNT = "Account"
    PROJECT = "Project"
    VIDEO = "Video"


class TokenRequest(BaseModel):
    """Body of a generateAccessToken call."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    permission_type: Permission = Field(default=Permission.CONTRIBUTOR, alias="permissionType")
    scope: Scope = Scope.ACCOUNT
    video_id: str | None = Field(default=None, alias="videoId")
    project_id: str | None = Field(default=None, alias="projectId")

    def to_body(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GenerateAccessTokenResponse(BaseModel):
    """Response of a generateAccessToken call."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("accessToken is empty")
        return v


class AccountTokenExchanger:
    """
    Calls generateAccessToken through the resilient HTTP client.

    The Authorization header travels on the individual request, so
    concurrent exchanges with different ARM tokens never share header state.
    """

    def __init__(self, http: DurableHttpClient, settings: ApiResourceSettings):
        self.http = http
        self.settings = settings

    def _parse(self, response: HttpResponse) -> str:
        if not response.ok:
            logger.error(
                "Token exchange failed with HTTP %s",
                response.status,
                extra={
                    "http_status": response.status,
                    "response_body": response.body[:500],
                },
            )
            raise TokenExchangeFailure(
                f"generateAccessToken returned HTTP {response.status}",
                status_code=response.status,
                body=response.body,
                retry_after=response.retry_after,
            )

        try:
            parsed = GenerateAccessTokenResponse.model_validate_json(response.body)
        except ValidationError as e:
            raise TokenExchangeFailure(
                "generateAccessToken response did not contain a usable accessToken",
                status_code=response.status,
                body=response.body,
                cause=e,
            ) from e
        return parsed.access_token

    async def get_account_token(
        self,
        arm_token: str,
        permission: Permission = Permission.CONTRIBUTOR,
        scope: Scope = Scope.ACCOUNT,
        *,
        video_id: str | None = None,
        project_id: str | None = None,
        account_name: str | None = None,
    ) -> str:
        """
        Exchange an ARM token for an account access token.

        Args:
            arm_token: Management-plane bearer token
            permission: Privilege of the requested token
            scope: Account, Project or Video
            video_id: Video the token is limited to (Video scope)
            project_id: Project the token is limited to (Project scope)
            account_name: Account to issue for (default: configured account)

        Returns:
            Access token string

        Raises:
            ValueError: If arm_token is empty
            TokenExchangeFailure: Non-2xx or unusable response after retries
            Timeout: Every attempt exceeded the per-attempt budget
        """
        if not arm_token:
            raise ValueError("arm_token must not be empty")

        request = TokenRequest(
            permission_type=Permission(permission),
            scope=Scope(scope),
            video_id=video_id,
            project_id=project_id,
        )
        body = request.to_body()
        logger.info(
            "Getting Account access token: %s",
            request.model_dump_json(by_alias=True, exclude_none=True),
            extra={"permission": request.permission_type.value, "scope": request.scope.value},
        )

        token = await self.http.client().request(
            "POST",
            self.settings.generate_access_token_uri(account_name),
            headers={"Authorization": f"Bearer {arm_token}"},
            json=body,
            parse=self._parse,
            operation="generateAccessToken",
        )

        logger.info(
            "Got Account access token: %s, %s",
            request.scope.value,
            request.permission_type.value,
            extra={"token_length": len(token)},
        )
        return token


__all__ = [
    "Permission",
    "Scope",
    "TokenRequest",
    "GenerateAccessTokenResponse",
    "AccountTokenExchanger",
]
