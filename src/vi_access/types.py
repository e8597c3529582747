"""
Core types and protocols shared across the package.

Keeps the error classification enum and the structural protocols in one
place so that errors, resilience and the HTTP layer agree on them.
"""

from enum import Enum
from typing import Protocol


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that should retry with backoff
                   (e.g., attempt timeouts, connection resets, 429/5xx)
        AUTH: Authentication failures from the identity provider or a 401
        PERMANENT: Failures that won't succeed on retry
                   (e.g., 403/404, an account missing its id or location)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class ArmTokenSource(Protocol):
    """
    Anything that can hand out a management-plane bearer token.

    The account resolver and the authenticator only depend on this shape,
    which keeps them testable without azure-identity.
    """

    async def get_arm_token(self) -> str:
        """
        Acquire a bearer token for the resource manager audience.

        Raises:
            AuthFailure: If the identity provider cannot issue a token
        """
        ...


__all__ = [
    "ErrorCategory",
    "ArmTokenSource",
]
