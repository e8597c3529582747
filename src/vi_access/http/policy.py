"""
Resilience policy applied to every call made through a resilient client.

One attempt is bounded by ``timeout_seconds``; failed attempts are retried
``max_retry_attempts`` times with exponential backoff starting at
``base_delay``. With the defaults that is 1 initial attempt plus 4 retries,
waiting 2s, 4s, 8s and 16s between them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from vi_access.config.settings import ResilienceSettings
from vi_access.errors.exceptions import Timeout
from vi_access.resilience.retry import RetryConfig, with_retry_async

T = TypeVar("T")


@dataclass(frozen=True)
class ResiliencePolicy:
    """Retry plus per-attempt timeout."""

    max_retry_attempts: int = 4
    base_delay: float = 2.0
    max_delay: float = 30.0
    timeout_seconds: float = 5.0
    jitter: bool = False

    @classmethod
    def from_settings(cls, settings: ResilienceSettings) -> "ResiliencePolicy":
        return cls(
            max_retry_attempts=settings.max_retry_attempts,
            base_delay=settings.base_delay_seconds,
            max_delay=settings.max_delay_seconds,
            timeout_seconds=settings.timeout_seconds,
            jitter=settings.jitter,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retry_attempts + 1

    @property
    def max_duration(self) -> float:
        """Upper bound in seconds on one request run under this policy.

        Each backoff is counted at ``max_delay`` since a server Retry-After
        hint can stretch it that far.
        """
        return self.max_attempts * self.timeout_seconds + self.max_retry_attempts * self.max_delay

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential_base=2.0,
            jitter=self.jitter,
        )

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str = "request",
    ) -> T:
        """
        Run ``operation`` under the policy.

        Each call of ``operation`` is one attempt and must perform the whole
        request (send plus body read) so the timeout covers all of it.

        Args:
            operation: Zero-argument coroutine function, called once per attempt
            name: Operation name for log records and error messages

        Returns:
            Result of the first successful attempt

        Raises:
            Timeout: If the final attempt exceeded the per-attempt budget
            VideoIndexerError: The last classified failure otherwise
        """
        timeout = self.timeout_seconds

        async def attempt() -> T:
            try:
                return await asyncio.wait_for(operation(), timeout=timeout)
            except TimeoutError as e:
                raise Timeout(
                    f"{name} timed out after {timeout}s",
                    timeout_seconds=timeout,
                    cause=e,
                    context={"operation": name},
                ) from e

        run = with_retry_async(config=self.retry_config(), operation=name)(attempt)
        return await run()


DEFAULT_POLICY = ResiliencePolicy()
NO_RETRY = ResiliencePolicy(max_retry_attempts=0)


__all__ = [
    "ResiliencePolicy",
    "DEFAULT_POLICY",
    "NO_RETRY",
]
