"""
Resilience primitives.

Components:
    - RetryConfig: Exponential backoff configuration
    - @with_retry_async: Classification-aware async retry
"""

from .retry import (
    DEFAULT_RETRY,
    RetryConfig,
    with_retry_async,
)

__all__ = [
    "RetryConfig",
    "with_retry_async",
    "DEFAULT_RETRY",
]
