"""Exception hierarchy and error classification."""

from vi_access.errors.exceptions import (
    AccountNotFound,
    ApiRequestError,
    AuthFailure,
    HttpFailure,
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

__all__ = [
    "ErrorCategory",
    "VideoIndexerError",
    "HttpFailure",
    "TransientError",
    "PermanentError",
    "AuthFailure",
    "TokenExchangeFailure",
    "AccountNotFound",
    "Timeout",
    "TransportError",
    "ThrottlingError",
    "ApiRequestError",
    "classify_http_status",
    "classify_exception",
    "wrap_exception",
]
