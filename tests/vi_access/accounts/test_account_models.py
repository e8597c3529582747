"""Tests for the Account model."""

import pytest

from vi_access.accounts.models import Account, ArmAccountPayload


class TestAccountFromPayload:

    def test_valid_payload(self):
        account = Account.from_payload(
            {
                "name": "vi-account",
                "location": "westus2",
                "properties": {"id": "acc-1", "accountName": "vi-account"},
            }
        )

        assert account == Account(id="acc-1", location="westus2", name="vi-account")

    def test_account_id_alias(self):
        account = Account.from_payload({"location": "eastus", "properties": {"accountId": "acc-2"}})

        assert account.id == "acc-2"

    def test_fallback_name(self):
        account = Account.from_payload(
            {"location": "eastus", "properties": {"id": "acc-1"}}, name="configured"
        )

        assert account.name == "configured"

    @pytest.mark.parametrize(
        "payload",
        [
            {"location": "", "properties": {"id": "x"}},
            {"location": "   ", "properties": {"id": "x"}},
            {"location": "westus2", "properties": {"id": ""}},
            {"location": "westus2", "properties": {}},
            {"location": "westus2"},
            {"properties": {"id": "x"}},
            {},
        ],
    )
    def test_missing_id_or_location_rejected(self, payload):
        with pytest.raises(ValueError, match="missing"):
            Account.from_payload(payload)

    @pytest.mark.parametrize("payload", [None, [], "text", {"location": 12}])
    def test_malformed_payload_rejected(self, payload):
        with pytest.raises(ValueError):
            Account.from_payload(payload)

    def test_ignores_unrelated_fields(self):
        parsed = ArmAccountPayload.model_validate(
            {"location": "westus2", "tags": {"env": "dev"}, "properties": {"id": "a", "x": 1}}
        )

        assert parsed.location == "westus2"
        assert parsed.properties.id == "a"

    def test_account_is_immutable(self):
        account = Account(id="a", location="l")

        with pytest.raises(AttributeError):
            account.id = "b"
