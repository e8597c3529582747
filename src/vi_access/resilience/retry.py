"""
Async retry with exponential backoff driven by error classification.

Transient failures (timeouts, connection errors, 429/5xx, failed token
exchanges) back off and try again. Permanent failures and AuthFailure
surface on the attempt that raised them.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps

from vi_access.errors.exceptions import (
    RETRYABLE_CATEGORIES,
    VideoIndexerError,
    classify_exception,
    wrap_exception,
)

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Backoff schedule and attempt budget.

    ``max_attempts`` counts the first call, so 5 means one call plus four
    retries. Delay before retry ``n`` (0-indexed) is
    ``base_delay * exponential_base ** n``, capped at ``max_delay``.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    # Equal jitter: half of each delay fixed, half random
    jitter: bool = True
    # Wait an error's ``retry_after`` (server hint) instead of the computed delay
    respect_retry_after: bool = True

    def __post_init__(self):
        self.max_attempts = int(self.max_attempts)
        self.base_delay = float(self.base_delay)
        self.max_delay = float(self.max_delay)
        self.exponential_base = float(self.exponential_base)
        # bool("false") would be True
        if not isinstance(self.jitter, bool):
            self.jitter = str(self.jitter).strip().lower() in ("1", "true", "yes")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def get_delay(self, attempt: int, error: Exception | None = None) -> float:
        """Seconds to wait after the 0-indexed ``attempt`` failed with ``error``."""
        server_hint = getattr(error, "retry_after", None)
        if self.respect_retry_after and server_hint is not None:
            return min(float(server_hint), self.max_delay)

        delay = self.base_delay * self.exponential_base**attempt
        if self.jitter:
            delay = delay / 2 + random.uniform(0, delay / 2)
        return min(delay, self.max_delay)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        if attempt + 1 >= self.max_attempts:
            return False
        if isinstance(error, VideoIndexerError):
            return error.is_retryable
        return classify_exception(error) in RETRYABLE_CATEGORIES


DEFAULT_RETRY = RetryConfig(max_attempts=3, base_delay=1.0)


def _failure_extra(operation: str, attempt: int, error: Exception) -> dict[str, object]:
    category = classify_exception(error)
    return {
        "operation": operation,
        "attempt": attempt + 1,
        "error_type": type(error).__name__,
        "error_category": category.value,
        "error_message": str(error)[:200],
    }


def _log_giving_up(operation: str, attempt: int, error: Exception, config: RetryConfig) -> None:
    extra = _failure_extra(operation, attempt, error)
    if isinstance(error, VideoIndexerError) and not error.is_retryable:
        logger.warning("Permanent error for %s, not retrying", operation, extra=extra)
        return
    extra["max_attempts"] = config.max_attempts
    logger.error("Max retries exhausted for %s", operation, extra=extra)


def _log_backoff(
    operation: str, attempt: int, error: Exception, config: RetryConfig, delay: float
) -> None:
    extra = _failure_extra(operation, attempt, error)
    extra["max_attempts"] = config.max_attempts
    extra["delay_seconds"] = round(delay, 2)
    server_hint = getattr(error, "retry_after", None)
    if config.respect_retry_after and server_hint is not None:
        extra["delay_source"] = "server"
        extra["server_retry_after"] = server_hint
    else:
        extra["delay_source"] = "exponential_backoff"
    logger.warning(
        "Retryable error for %s, retrying in %.1fs", operation, delay, extra=extra
    )


def with_retry_async(config: RetryConfig | None = None, operation: str | None = None):
    """
    Decorate a coroutine function with classification-aware retries.

    Foreign exceptions are wrapped in the matching VideoIndexerError before
    classification; typed errors pass through unchanged.

    Args:
        config: Retry configuration (defaults to DEFAULT_RETRY)
        operation: Name used in log records (defaults to the function name)

    Usage:
        @with_retry_async(config=RetryConfig(max_attempts=5, base_delay=2.0))
        async def fetch_account():
            ...
    """
    config = config or DEFAULT_RETRY

    def decorator(func: Callable[..., Awaitable]):
        name = operation or func.__name__

        @wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    error = wrap_exception(e)

                    if not config.should_retry(error, attempt):
                        _log_giving_up(name, attempt, error, config)
                        if error is e:
                            raise
                        raise error from e

                    delay = config.get_delay(attempt, error)
                    _log_backoff(name, attempt, error, config, delay)
                    await asyncio.sleep(delay)
                    attempt += 1
                    continue

                if attempt:
                    logger.info(
                        "Retry succeeded for %s after %d attempts",
                        name,
                        attempt + 1,
                        extra={
                            "operation": name,
                            "attempt": attempt + 1,
                            "total_attempts": config.max_attempts,
                        },
                    )
                return result

        return wrapper

    return decorator


__all__ = [
    "RetryConfig",
    "with_retry_async",
    "DEFAULT_RETRY",
]
