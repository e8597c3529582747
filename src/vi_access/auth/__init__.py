"""
Two-tier authentication.

Components:
    - Credential / resolve: identity configuration from the environment
    - ArmTokenAcquirer: management-plane bearer tokens via azure-identity
    - AccountTokenExchanger: ARM token to scoped account access token
    - Authenticator: facade chaining the two on every call
"""

from vi_access.auth.arm import ArmTokenAcquirer
from vi_access.auth.authenticator import Authenticator, run_sync
from vi_access.auth.credentials import Credential, resolve
from vi_access.auth.exchange import (
    AccountTokenExchanger,
    GenerateAccessTokenResponse,
    Permission,
    Scope,
    TokenRequest,
)

__all__ = [
    "Credential",
    "resolve",
    "ArmTokenAcquirer",
    "Permission",
    "Scope",
    "TokenRequest",
    "GenerateAccessTokenResponse",
    "AccountTokenExchanger",
    "Authenticator",
    "run_sync",
]
