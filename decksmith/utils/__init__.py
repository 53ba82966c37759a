"""Utility functions."""

from decksmith.utils.logging import get_logger
from decksmith.utils.rate_limiter import RateLimiter, format_retry_after
from decksmith.utils.retry import with_retry

__all__ = [
    "get_logger",
    "RateLimiter",
    "format_retry_after",
    "with_retry",
]
