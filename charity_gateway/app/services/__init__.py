"""Business services for the charity gateway.

This package provides:
- Sliding-window rate limiting (RateLimiter, RateLimitSweeper)
- Input sanitization and validation
- Response validation, transformation and formatting
"""

from charity_gateway.app.services.rate_limiter import RateLimiter, RateLimitResult, RateLimitSweeper

__all__ = [
    "RateLimiter",
    "RateLimitResult",
    "RateLimitSweeper",
]
