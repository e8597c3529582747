"""
Resilient HTTP access.

Components:
    - ResiliencePolicy: retry with exponential backoff plus per-attempt timeout
    - HttpClientFactory / DurableHttpClient: named, renewable aiohttp clients
    - URL helpers: query strings, token-masked URIs, status checks
"""

from vi_access.http.client import (
    ClientOptions,
    DurableHttpClient,
    HttpClientFactory,
    HttpClientHandle,
    HttpResponse,
    create_session,
)
from vi_access.http.policy import DEFAULT_POLICY, NO_RETRY, ResiliencePolicy
from vi_access.http.urls import (
    SecureUri,
    build_secure_uri,
    create_query_string,
    verify_status,
)

__all__ = [
    # Policy
    "ResiliencePolicy",
    "DEFAULT_POLICY",
    "NO_RETRY",
    # Clients
    "ClientOptions",
    "create_session",
    "HttpResponse",
    "HttpClientHandle",
    "HttpClientFactory",
    "DurableHttpClient",
    # URL helpers
    "SecureUri",
    "build_secure_uri",
    "create_query_string",
    "verify_status",
]
