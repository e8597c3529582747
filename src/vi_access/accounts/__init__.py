"""Account lookup and caching."""

from vi_access.accounts.models import Account, ArmAccountPayload, ArmAccountProperties
from vi_access.accounts.resolver import AccountResolver

__all__ = [
    "Account",
    "ArmAccountPayload",
    "ArmAccountProperties",
    "AccountResolver",
]
