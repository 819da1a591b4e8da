from __future__ import annotations

from typing import Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

CSP_DIRECTIVES = [
    "default-src 'self'",
    "script-src 'self'",
    "style-src 'self'",
    "img-src 'self' data:",
    "connect-src 'self'",
    "font-src 'self'",
    "object-src 'none'",
    "frame-ancestors 'none'",
    "form-action 'self'",
    "base-uri 'self'",
    "upgrade-insecure-requests",
]

DEFAULT_SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": "; ".join(CSP_DIRECTIVES),
    "Cross-Origin-Opener-Policy": "same-origin",
    # The landing page is served from another origin.
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Sets the general hardening header set on every response."""

    def __init__(self, app, headers: Optional[Dict[str, str]] = None):
        super().__init__(app)
        self.security_headers = headers or DEFAULT_SECURITY_HEADERS

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in self.security_headers.items():
            response.headers.setdefault(header, value)
        return response
