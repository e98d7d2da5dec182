"""Time-window throttling, independent of the concurrency-bounded scheduler."""

from .rate_limiter import RateLimiter

__all__ = ["RateLimiter"]
