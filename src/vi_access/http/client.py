"""
Named, renewable aiohttp clients with a fixed resilience policy.

A ``HttpClientFactory`` knows how to build each named client. A
``DurableHttpClient`` owns the shared "current" handle for one name and can
swap it for a freshly built one (``renew``) when a connection pool wedges.

Every request goes out with ``allow_redirects=False``: the service answers
some calls with a redirect whose ``Location`` is the payload, so callers read
``HttpResponse.location`` instead of following it. Authorization and other
per-call headers are attached to the individual request, never to the shared
session.
"""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar
from urllib.parse import urlsplit

import aiohttp

from vi_access.config.settings import DEFAULT_HTTP_CLIENT_NAME
from vi_access.errors.exceptions import TransportError
from vi_access.http.policy import DEFAULT_POLICY, ResiliencePolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class HttpResponse:
    """Fully read response of one attempt."""

    status: int
    headers: dict[str, str]
    body: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def location(self) -> str | None:
        return self.header("Location")

    @property
    def retry_after(self) -> float | None:
        """Retry-After in seconds; None when absent or given as an HTTP date."""
        value = self.header("Retry-After")
        if value is None:
            return None
        try:
            seconds = float(value)
        except ValueError:
            return None
        return seconds if seconds >= 0 else None

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.body)


@dataclass(frozen=True)
class ClientOptions:
    """How to build the session behind a named client."""

    max_connections: int = 100
    max_connections_per_host: int = 10
    enable_ssl: bool = True
    default_headers: Mapping[str, str] = field(
        default_factory=lambda: {"Accept": "application/json"}
    )
    policy: ResiliencePolicy = DEFAULT_POLICY


def create_session(options: ClientOptions) -> aiohttp.ClientSession:
    """
    Create an aiohttp ClientSession for a named client.

    The session-level total timeout matches the policy's per-attempt budget;
    the policy enforces the same bound around each attempt.

    Note:
        Must be called while an event loop is running. Caller owns the
        session lifecycle.
    """
    connector = aiohttp.TCPConnector(
        limit=options.max_connections,
        limit_per_host=options.max_connections_per_host,
        ssl=options.enable_ssl,
        ttl_dns_cache=300,
    )
    timeout = aiohttp.ClientTimeout(total=options.policy.timeout_seconds)
    return aiohttp.ClientSession(
        connector=connector,
        timeout=timeout,
        headers=dict(options.default_headers),
    )


class HttpClientHandle:
    """
    One session plus the policy every request through it runs under.

    Attributes:
        name: Name of the client configuration it was built from
        client_id: Unique id of this handle (distinct after every renew)
        created_at: When the underlying session was built
    """

    def __init__(
        self,
        name: str,
        session: aiohttp.ClientSession,
        policy: ResiliencePolicy = DEFAULT_POLICY,
    ):
        self.name = name
        self.session = session
        self.policy = policy
        self.client_id = uuid.uuid4().hex[:12]
        self.created_at = datetime.now(UTC)

    @property
    def closed(self) -> bool:
        return self.session.closed

    async def close(self) -> None:
        if not self.session.closed:
            await self.session.close()
            await asyncio.sleep(0)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
        params: Mapping[str, str] | None = None,
        parse: Callable[[HttpResponse], T] | None = None,
        operation: str | None = None,
    ) -> HttpResponse | T:
        """
        Send a request under the resilience policy.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Headers for this request only
            json: JSON body
            params: Query parameters
            parse: Applied to the response inside each attempt; raising a
                retryable error from it triggers a retry
            operation: Name for logs and errors (default "METHOD /path")

        Returns:
            ``parse(response)`` when ``parse`` is given, else the HttpResponse

        Raises:
            Timeout: Every attempt exceeded the per-attempt budget
            TransportError: Connection-level failure on the last attempt
            VideoIndexerError: Whatever ``parse`` raised on the last attempt
        """
        op = operation or f"{method.upper()} {urlsplit(url).path}"

        async def attempt():
            response = await self._send(method, url, headers, json, params, op)
            if parse is None:
                return response
            return parse(response)

        return await self.policy.execute(attempt, name=op)

    async def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        json_body: Any,
        params: Mapping[str, str] | None,
        operation: str,
    ) -> HttpResponse:
        start = time.perf_counter()
        try:
            async with self.session.request(
                method,
                url,
                headers=dict(headers) if headers else None,
                json=json_body,
                params=params,
                allow_redirects=False,
            ) as response:
                # Undecodable bytes become U+FFFD
                body = await response.text(errors="replace")
                result = HttpResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                    url=str(response.url),
                )
        except TimeoutError:
            raise
        except aiohttp.ClientError as e:
            logger.warning(
                "HTTP connection error for %s",
                operation,
                extra={
                    "operation": operation,
                    "http_method": method.upper(),
                    "http_url": url,
                    "client_name": self.name,
                    "http_client_id": self.client_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e)[:200],
                },
            )
            raise TransportError(
                f"Connection error for {operation}: {e}",
                cause=e,
                context={"operation": operation},
            ) from e

        logger.debug(
            "HTTP %s %s -> %s",
            method.upper(),
            urlsplit(url).path,
            result.status,
            extra={
                "operation": operation,
                "http_method": method.upper(),
                "http_status": result.status,
                "http_client_id": self.client_id,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return result


class HttpClientFactory:
    """Registry of named client configurations."""

    def __init__(self):
        self._options: dict[str, ClientOptions] = {}

    def register(self, name: str, options: ClientOptions | None = None) -> None:
        self._options[name] = options or ClientOptions()

    def is_registered(self, name: str) -> bool:
        return name in self._options

    def create(self, name: str) -> HttpClientHandle | None:
        """Build a new handle for ``name``, or None if it is not registered."""
        options = self._options.get(name)
        if options is None:
            return None
        return HttpClientHandle(name, create_session(options), options.policy)


class DurableHttpClient:
    """
    Shared, renewable handle for one named client.

    ``client()`` builds the handle lazily on first use (a session needs a
    running event loop) and the first one built is kept as
    ``default_client``. ``renew()`` swaps in a new handle and retires the old
    one. A retired handle is closed once ``retire_grace_seconds`` have passed
    (default: the longest a request can run under its policy), so requests
    already in flight on it finish. ``close()`` closes whatever is left.
    """

    def __init__(
        self,
        factory: HttpClientFactory | None = None,
        name: str = DEFAULT_HTTP_CLIENT_NAME,
        retire_grace_seconds: float | None = None,
    ):
        self._factory = factory
        self.name = name
        self.retire_grace_seconds = retire_grace_seconds
        self._default: HttpClientHandle | None = None
        self._current: HttpClientHandle | None = None
        self._retired: list[HttpClientHandle] = []
        self._pending_closes: set[asyncio.Task] = set()
        self._closed = False

    async def __aenter__(self) -> "DurableHttpClient":
        self.client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def default_client(self) -> HttpClientHandle | None:
        return self._default

    @property
    def retired_clients(self) -> list[HttpClientHandle]:
        """Replaced handles that have not been closed yet."""
        return list(self._retired)

    def new_client(self) -> HttpClientHandle:
        """Build a fresh handle the caller owns; the shared one is untouched."""
        if self._closed:
            raise RuntimeError("DurableHttpClient is closed, cannot create new client")

        handle = self._factory.create(self.name) if self._factory else None
        if handle is None:
            logger.warning(
                "No HTTP client registered as %s, building one with default options",
                self.name,
                extra={"client_name": self.name},
            )
            options = ClientOptions()
            handle = HttpClientHandle(self.name, create_session(options), options.policy)

        logger.debug(
            "Created HTTP client",
            extra={"client_name": self.name, "http_client_id": handle.client_id},
        )
        return handle

    def client(self) -> HttpClientHandle:
        """Current shared handle, built on first use."""
        if self._current is None or self._current.closed:
            self._current = self.new_client()
            if self._default is None:
                self._default = self._current
        return self._current

    def renew(self) -> HttpClientHandle:
        """Replace the current handle with a newly built one and return it."""
        previous = self._current
        self._current = self.new_client()
        if self._default is None:
            self._default = self._current
        if previous is not None:
            self._retire(previous)

        logger.info(
            "Renewed HTTP client %s",
            self.name,
            extra={"client_name": self.name, "http_client_id": self._current.client_id},
        )
        return self._current

    def _retire(self, handle: HttpClientHandle) -> None:
        self._retired.append(handle)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop to close it on; close() picks it up
            return

        grace = self.retire_grace_seconds
        if grace is None:
            grace = handle.policy.max_duration
        task = asyncio.create_task(self._close_retired(handle, grace))
        self._pending_closes.add(task)
        task.add_done_callback(self._pending_closes.discard)

    async def _close_retired(self, handle: HttpClientHandle, grace: float) -> None:
        await asyncio.sleep(grace)
        await handle.close()
        if handle in self._retired:
            self._retired.remove(handle)
        logger.debug(
            "Closed retired HTTP client",
            extra={"client_name": self.name, "http_client_id": handle.client_id},
        )

    async def close(self) -> None:
        self._closed = True
        pending = list(self._pending_closes)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        handles = [self._current, self._default, *self._retired]
        seen: set[str] = set()
        for handle in handles:
            if handle is None or handle.client_id in seen:
                continue
            seen.add(handle.client_id)
            await handle.close()
        self._retired.clear()
        self._current = None


__all__ = [
    "HttpResponse",
    "ClientOptions",
    "create_session",
    "HttpClientHandle",
    "HttpClientFactory",
    "DurableHttpClient",
]
