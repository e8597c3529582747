"""
Exception hierarchy for Video Indexer access.

Every error carries an ErrorCategory. The resilience policy reads the
category (through ``is_retryable``) to decide whether another attempt is
worth making, so nothing downstream has to parse messages.
"""

from vi_access.types import ErrorCategory

# Raw response bodies kept in exception context are capped at this many characters
MAX_BODY_CHARS = 2000

RETRYABLE_CATEGORIES = frozenset(
    {ErrorCategory.TRANSIENT, ErrorCategory.AUTH, ErrorCategory.UNKNOWN}
)


class VideoIndexerError(Exception):
    """
    Base exception for all Video Indexer access errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    @property
    def is_retryable(self) -> bool:
        return self.category in RETRYABLE_CATEGORIES

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message} | Caused by: {self.cause}"


class HttpFailure(VideoIndexerError):
    """
    An HTTP answer that could not be used. Keeps status and raw body.

    ``retry_after`` carries the server's Retry-After hint in seconds, which
    the retry policy waits instead of its own backoff.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
        retry_after: float | None = None,
    ):
        context = dict(context or {})
        if status_code is not None:
            context["status_code"] = status_code
        if body is not None:
            context["response_body"] = (
                body if len(body) <= MAX_BODY_CHARS else body[:MAX_BODY_CHARS] + "..."
            )
        super().__init__(message, cause, context)
        self.status_code = status_code
        self.body = body
        self.retry_after = retry_after


class AuthFailure(VideoIndexerError):
    """
    The identity provider could not issue an ARM token.

    Covers bad credentials, unreachable token endpoints and invalid
    credential configuration. Never retried.
    """

    category = ErrorCategory.AUTH

    @property
    def is_retryable(self) -> bool:
        return False


class TokenExchangeFailure(HttpFailure):
    """generateAccessToken answered with a non-2xx status or an unusable body."""

    category = ErrorCategory.TRANSIENT


class ApiRequestError(HttpFailure):
    """
    Unexpected HTTP status from a resource manager or service endpoint.

    The category follows the status code: a 503 is retried while a 404
    surfaces on the first attempt.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message, status_code, body, cause, context, retry_after)
        self.category = classify_http_status(status_code)


class TransientError(VideoIndexerError):
    category = ErrorCategory.TRANSIENT


class ThrottlingError(TransientError):
    """429 from the server. ``retry_after`` holds the server's hint in seconds."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.retry_after = retry_after


class TransportError(TransientError):
    """Connection-level failure (reset, refused, DNS, closed pool)."""


class Timeout(TransientError):
    """A single attempt exceeded the per-attempt time budget."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        context = dict(context or {})
        if timeout_seconds is not None:
            context["timeout_seconds"] = timeout_seconds
        super().__init__(message, cause, context)
        self.timeout_seconds = timeout_seconds


class PermanentError(VideoIndexerError):
    category = ErrorCategory.PERMANENT


class AccountNotFound(PermanentError):
    """The account lookup answered without a usable id or location."""

    def __init__(
        self,
        account_name: str | None,
        subscription_id: str | None = None,
        resource_group: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            f"Account '{account_name}' not found. Check SubscriptionId "
            f"'{subscription_id}', ResourceGroup '{resource_group}' and "
            f"account name '{account_name}' are valid.",
            cause,
            {
                "account_name": account_name,
                "subscription_id": subscription_id,
                "resource_group": resource_group,
            },
        )
        self.account_name = account_name
        self.subscription_id = subscription_id
        self.resource_group = resource_group


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify an HTTP status code. 2xx/3xx are UNKNOWN (not an error)."""
    if status_code == 401:
        return ErrorCategory.AUTH
    if status_code in (408, 429) or status_code >= 500:
        return ErrorCategory.TRANSIENT
    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT
    return ErrorCategory.UNKNOWN


_CONNECTION_MARKERS = (
    "connectionerror",
    "connection refused",
    "connection reset",
    "connection aborted",
    "server disconnected",
    "name resolution",
    "dns",
    "socket",
    "broken pipe",
)
_THROTTLE_MARKERS = ("429", "throttl", "rate limit")

# First match wins; markers are looked up in "<type name> <message>", lowercased
_CLASSIFICATION = (
    (ErrorCategory.TRANSIENT, _CONNECTION_MARKERS + ("timeout",)),
    (ErrorCategory.AUTH, ("401", "unauthorized", "authentication", "token expired", "invalid token", "aadsts")),
    (ErrorCategory.TRANSIENT, _THROTTLE_MARKERS + ("502", "503", "504")),
    (ErrorCategory.PERMANENT, ("403", "forbidden", "404", "not found")),
)


def _describe(exc: Exception) -> str:
    return f"{type(exc).__name__} {exc}".lower()


def classify_exception(exc: Exception) -> ErrorCategory:
    """Classify any exception; typed errors answer for themselves."""
    if isinstance(exc, VideoIndexerError):
        return exc.category

    text = _describe(exc)
    for category, markers in _CLASSIFICATION:
        if any(m in text for m in markers):
            return category
    return ErrorCategory.UNKNOWN


def wrap_exception(
    exc: Exception,
    default_class: type = VideoIndexerError,
    context: dict | None = None,
) -> VideoIndexerError:
    """
    Wrap a foreign exception in the matching VideoIndexerError subclass.

    Typed errors are returned as they are, with ``context`` merged in.
    Foreign AUTH-looking errors fall back to ``default_class``: only the ARM
    acquirer raises AuthFailure, and it does so explicitly.
    """
    if isinstance(exc, VideoIndexerError):
        if context:
            exc.context.update(context)
        return exc

    context = context or {}
    category = classify_exception(exc)
    text = _describe(exc)

    if category == ErrorCategory.TRANSIENT:
        if any(m in text for m in _THROTTLE_MARKERS):
            cls = ThrottlingError
        elif any(m in text for m in _CONNECTION_MARKERS):
            cls = TransportError
        else:
            cls = TransientError
    elif category == ErrorCategory.PERMANENT:
        cls = PermanentError
    else:
        cls = default_class
    return cls(str(exc), cause=exc, context=context)
