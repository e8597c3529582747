"""Video Indexer account model and the ARM payload it is read from."""

from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ArmAccountProperties(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "accountId"))


class ArmAccountPayload(BaseModel):
    """The parts of an ARM account resource this package reads."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    location: str | None = None
    properties: ArmAccountProperties | None = None


@dataclass(frozen=True)
class Account:
    """
    A resolved account.

    Both ``id`` and ``location`` are non-empty; payloads that cannot satisfy
    that never become an Account.
    """

    id: str
    location: str
    name: str | None = None

    @classmethod
    def from_payload(cls, payload: Any, name: str | None = None) -> "Account":
        """
        Build an Account from an ARM account resource.

        Args:
            payload: Decoded JSON of the resource
            name: Fallback name when the payload carries none

        Raises:
            ValueError: If the payload is malformed or the id or location
                is missing or blank (pydantic.ValidationError included)
        """
        parsed = ArmAccountPayload.model_validate(payload)
        account_id = (parsed.properties.id if parsed.properties else None) or ""
        location = parsed.location or ""

        missing = [
            field_name
            for field_name, value in (("properties.id", account_id), ("location", location))
            if not value.strip()
        ]
        if missing:
            raise ValueError(f"Account payload is missing {', '.join(missing)}")

        return cls(id=account_id.strip(), location=location.strip(), name=parsed.name or name)


__all__ = [
    "Account",
    "ArmAccountPayload",
    "ArmAccountProperties",
]
