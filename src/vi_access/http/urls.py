"""URL and status helpers shared by callers of the resilient client."""

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote, urlencode

from vi_access.errors.exceptions import ApiRequestError
from vi_access.http.client import HttpResponse

MASKED_TOKEN = "***"


@dataclass(frozen=True)
class SecureUri:
    """A request URI carrying an access token, plus a copy safe to log."""

    uri: str
    log_uri: str

    def __str__(self) -> str:
        return self.log_uri

    def __repr__(self) -> str:
        return f"SecureUri(log_uri={self.log_uri!r})"


def create_query_string(parameters: Mapping[str, object]) -> str:
    """URL-encode parameters, dropping None values and lowercasing booleans."""
    cleaned = {}
    for key, value in parameters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = str(value).lower()
        cleaned[key] = value
    return urlencode(cleaned, quote_via=quote)


def build_secure_uri(base_uri: str, access_token: str | None) -> SecureUri:
    """
    Append ``accessToken`` to a URI and produce a log-safe twin.

    The log copy carries ``accessToken=***``. Without a token both are the
    unchanged base URI.
    """
    if not access_token:
        return SecureUri(uri=base_uri, log_uri=base_uri)

    separator = "&" if "?" in base_uri else "?"
    return SecureUri(
        uri=f"{base_uri}{separator}accessToken={quote(access_token, safe='')}",
        log_uri=f"{base_uri}{separator}accessToken={MASKED_TOKEN}",
    )


def verify_status(response: HttpResponse, expected_status: int) -> HttpResponse:
    """
    Require an exact status code.

    Raises:
        ApiRequestError: Classified by status, carrying the response body and
            any Retry-After hint
    """
    if response.status != expected_status:
        raise ApiRequestError(
            f"Expected HTTP {expected_status} but got {response.status}",
            status_code=response.status,
            body=response.body,
            retry_after=response.retry_after,
        )
    return response


__all__ = [
    "SecureUri",
    "create_query_string",
    "build_secure_uri",
    "verify_status",
]
