"""Tests for the exception hierarchy and error classification."""

import pytest

from vi_access.errors.exceptions import (
    MAX_BODY_CHARS,
    AccountNotFound,
    ApiRequestError,
    AuthFailure,
    PermanentError,
    ThrottlingError,
    Timeout,
    TokenExchangeFailure,
    TransientError,
    TransportError,
    VideoIndexerError,
    classify_exception,
    classify_http_status,
    wrap_exception,
)
from vi_access.types import ErrorCategory


class TestVideoIndexerError:
    """Tests for the base exception."""

    def test_defaults(self):
        error = VideoIndexerError("boom")
        assert error.message == "boom"
        assert error.cause is None
        assert error.context == {}
        assert error.category == ErrorCategory.UNKNOWN
        assert error.is_retryable is True

    def test_str_includes_cause(self):
        cause = ValueError("inner")
        error = VideoIndexerError("outer", cause=cause)
        assert str(error) == "outer | Caused by: inner"


class TestDomainErrors:
    """Tests for the errors raised by the access layer."""

    def test_auth_failure_is_never_retried(self):
        error = AuthFailure("bad secret")
        assert error.category == ErrorCategory.AUTH
        assert error.is_retryable is False

    def test_token_exchange_failure_is_transient_and_keeps_body(self):
        error = TokenExchangeFailure("forbidden", status_code=403, body='{"error":"denied"}')
        assert error.category == ErrorCategory.TRANSIENT
        assert error.is_retryable is True
        assert error.status_code == 403
        assert error.context["status_code"] == 403
        assert error.context["response_body"] == '{"error":"denied"}'

    def test_token_exchange_failure_truncates_large_body_in_context(self):
        body = "x" * (MAX_BODY_CHARS + 50)
        error = TokenExchangeFailure("too big", status_code=500, body=body)
        assert len(error.context["response_body"]) == MAX_BODY_CHARS + 3
        assert error.body == body

    def test_timeout_is_transient(self):
        error = Timeout("slow", timeout_seconds=5.0)
        assert isinstance(error, TransientError)
        assert error.context["timeout_seconds"] == 5.0
        assert error.is_retryable is True

    def test_transport_error_is_transient(self):
        assert TransportError("reset").category == ErrorCategory.TRANSIENT

    def test_account_not_found_names_configuration(self):
        error = AccountNotFound("vi-account", subscription_id="sub-1", resource_group="rg-1")
        assert isinstance(error, PermanentError)
        assert error.is_retryable is False
        assert "vi-account" in error.message
        assert "sub-1" in error.message
        assert "rg-1" in error.message
        assert error.context == {
            "account_name": "vi-account",
            "subscription_id": "sub-1",
            "resource_group": "rg-1",
        }

    @pytest.mark.parametrize(
        "status,category",
        [
            (401, ErrorCategory.AUTH),
            (403, ErrorCategory.PERMANENT),
            (404, ErrorCategory.PERMANENT),
            (429, ErrorCategory.TRANSIENT),
            (503, ErrorCategory.TRANSIENT),
        ],
    )
    def test_api_request_error_category_follows_status(self, status, category):
        error = ApiRequestError("unexpected", status_code=status, body="body")
        assert error.category == category
        assert error.context["status_code"] == status


class TestClassifyHttpStatus:
    """Tests for HTTP status classification."""

    def test_success_is_not_an_error(self):
        assert classify_http_status(200) == ErrorCategory.UNKNOWN

    def test_408_is_transient(self):
        assert classify_http_status(408) == ErrorCategory.TRANSIENT

    def test_client_errors_are_permanent(self):
        assert classify_http_status(400) == ErrorCategory.PERMANENT
        assert classify_http_status(409) == ErrorCategory.PERMANENT

    def test_server_errors_are_transient(self):
        assert classify_http_status(500) == ErrorCategory.TRANSIENT
        assert classify_http_status(504) == ErrorCategory.TRANSIENT


class TestClassifyException:
    """Tests for classification of foreign exceptions."""

    def test_typed_error_answers_for_itself(self):
        assert classify_exception(AuthFailure("x")) == ErrorCategory.AUTH

    def test_connection_errors_are_transient(self):
        assert classify_exception(ConnectionError("connection reset by peer")) == (
            ErrorCategory.TRANSIENT
        )

    def test_timeouts_are_transient(self):
        assert classify_exception(TimeoutError("read timeout")) == ErrorCategory.TRANSIENT

    def test_not_found_is_permanent(self):
        assert classify_exception(RuntimeError("404 not found")) == ErrorCategory.PERMANENT

    def test_unknown_is_unknown(self):
        assert classify_exception(RuntimeError("something odd")) == ErrorCategory.UNKNOWN


class TestWrapException:
    """Tests for wrap_exception."""

    def test_typed_error_is_returned_as_is_with_context(self):
        error = TransientError("flaky")
        wrapped = wrap_exception(error, context={"operation": "getAccount"})
        assert wrapped is error
        assert error.context["operation"] == "getAccount"

    def test_throttling_message_becomes_throttling_error(self):
        wrapped = wrap_exception(RuntimeError("429 throttled"))
        assert isinstance(wrapped, ThrottlingError)

    def test_permanent_message_becomes_permanent_error(self):
        wrapped = wrap_exception(RuntimeError("403 forbidden"))
        assert isinstance(wrapped, PermanentError)

    def test_unknown_falls_back_to_default_class(self):
        cause = RuntimeError("odd")
        wrapped = wrap_exception(cause)
        assert type(wrapped) is VideoIndexerError
        assert wrapped.cause is cause

    def test_connection_message_becomes_transport_error(self):
        wrapped = wrap_exception(ConnectionError("connection refused"))
        assert isinstance(wrapped, TransportError)
        assert wrapped.is_retryable is True


class TestHttpFailure:

    def test_small_body_kept_verbatim(self):
        error = ApiRequestError("bad", status_code=404, body="missing")
        assert error.context["response_body"] == "missing"
        assert error.body == "missing"

    def test_status_optional(self):
        error = TokenExchangeFailure("garbled", body="{}")
        assert error.status_code is None
        assert "status_code" not in error.context
