"""Tests for credential resolution."""

from unittest.mock import patch

from vi_access.auth.credentials import (
    AUTH_MODE_CLIENT_SECRET,
    AUTH_MODE_DEFAULT,
    Credential,
    resolve,
)


# =============================================================================
# resolve
# =============================================================================


class TestResolve:
    """Tests for reading the credential from the environment."""

    def test_all_values_present(self):
        credential = resolve(
            {
                "VIDEOINDEXER_TENANT_ID": "tenant",
                "VIDEOINDEXER_CLIENT_ID": "client",
                "VIDEOINDEXER_CLIENT_SECRET": "secret",
            }
        )

        assert credential == Credential("tenant", "client", "secret")
        assert credential.auth_mode == AUTH_MODE_CLIENT_SECRET

    def test_nothing_configured_selects_default_chain(self):
        credential = resolve({})

        assert credential == Credential()
        assert credential.has_client_secret is False
        assert credential.auth_mode == AUTH_MODE_DEFAULT

    def test_client_id_without_secret_selects_default_chain(self):
        credential = resolve({"VIDEOINDEXER_CLIENT_ID": "client"})

        assert credential.auth_mode == AUTH_MODE_DEFAULT

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("VIDEOINDEXER_TENANT_ID", " tenant ")

        assert resolve().tenant_id == "tenant"

    def test_secret_not_in_repr(self):
        credential = Credential("tenant", "client", "super-secret")

        assert "super-secret" not in repr(credential)


# =============================================================================
# Token credential construction
# =============================================================================


class TestTokenCredential:
    """Tests for selecting the azure-identity credential type."""

    @patch("vi_access.auth.credentials.ClientSecretCredential")
    def test_client_secret_mode(self, mock_cls):
        Credential("tenant", "client", "secret").token_credential()

        mock_cls.assert_called_once_with(
            tenant_id="tenant",
            client_id="client",
            client_secret="secret",
        )

    @patch("vi_access.auth.credentials.DefaultAzureCredential")
    def test_default_mode_pins_tenant(self, mock_cls):
        Credential(tenant_id="tenant").token_credential()

        mock_cls.assert_called_once_with(
            shared_cache_tenant_id="tenant",
            interactive_browser_tenant_id="tenant",
            visual_studio_code_tenant_id="tenant",
        )

    @patch("vi_access.auth.credentials.DefaultAzureCredential")
    def test_default_mode_without_tenant(self, mock_cls):
        Credential().token_credential()

        mock_cls.assert_called_once_with()

    @patch("vi_access.auth.credentials.AsyncClientSecretCredential")
    def test_async_client_secret_mode(self, mock_cls):
        Credential("tenant", "client", "secret").async_token_credential()

        mock_cls.assert_called_once_with(
            tenant_id="tenant",
            client_id="client",
            client_secret="secret",
        )

    @patch("vi_access.auth.credentials.AsyncDefaultAzureCredential")
    def test_async_default_mode(self, mock_cls):
        Credential(tenant_id="tenant").async_token_credential()

        mock_cls.assert_called_once_with(
            shared_cache_tenant_id="tenant",
            interactive_browser_tenant_id="tenant",
            visual_studio_code_tenant_id="tenant",
        )


class TestDiagnostics:

    def test_diagnostics_never_include_secret(self):
        diagnostics = Credential("tenant", "client", "secret").get_diagnostics()

        assert diagnostics == {
            "auth_mode": "client_secret",
            "tenant_id": "tenant",
            "client_id_configured": True,
            "client_secret_configured": True,
        }
        assert "secret" not in diagnostics.values()
