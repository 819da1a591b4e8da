"""
HTTP middleware: perimeter defenses, logging and rate limiting.
"""

from leadcapture.middleware.body_limit import BodySizeLimitMiddleware
from leadcapture.middleware.logging import AccessLogMiddleware
from leadcapture.middleware.perimeter import PerimeterMiddleware
from leadcapture.middleware.rate_limiter import (
    FixedWindowRateLimiter,
    RateLimit,
    general_rate_limit,
    strict_rate_limit,
)
from leadcapture.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AccessLogMiddleware",
    "BodySizeLimitMiddleware",
    "FixedWindowRateLimiter",
    "PerimeterMiddleware",
    "RateLimit",
    "SecurityHeadersMiddleware",
    "general_rate_limit",
    "strict_rate_limit",
]
