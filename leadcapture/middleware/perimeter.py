from __future__ import annotations

import re
import uuid
from typing import Iterable, List, Optional, Pattern

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from leadcapture.core.exceptions import INTERNAL_ERROR_MESSAGE
from leadcapture.core.logging import get_structlog_logger, set_request_id
from leadcapture.security.client_ip import resolve_client_ip
from leadcapture.security.events import SecurityEventLogger, SecurityEventType

logger = get_structlog_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"

# Force-browsing and scanner probes.
BLOCKED_PATH_PATTERNS: List[Pattern[str]] = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"/\.git",
        r"/\.env",
        r"/\.svn",
        r"/\.htaccess",
        r"/\.htpasswd",
        r"/\.ds_store",
        r"/backup/",
        r"/wp-admin",
        r"/wp-login",
        r"/wp-content",
        r"/xmlrpc\.php",
        r"/phpmyadmin",
        r"/admin/?$",
        r"/administrator",
        r"/web\.config",
        r"/server-status",
        r"/server-info",
        r"/composer\.(json|lock)",
        r"/package\.json",
        r"/package-lock\.json",
        r"/node_modules",
    )
]

EXTRA_SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "on",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Permissions-Policy": (
        "camera=(), microphone=(), geolocation=(), interest-cohort=(), payment=(), usb=()"
    ),
}


def is_blocked_path(path: str, patterns: Iterable[Pattern[str]] = BLOCKED_PATH_PATTERNS) -> bool:
    return any(pattern.search(path) for pattern in patterns)


class PerimeterMiddleware(BaseHTTPMiddleware):
    """Request tagging, probe blocking and the extra hardening headers.

    Never performs I/O. Short-circuits with a 404 for blocked paths and turns
    any exception escaping the app into the generic 500, so error responses
    still leave through the header middlewares.
    """

    def __init__(
        self,
        app,
        security_log: SecurityEventLogger,
        blocked_patterns: Optional[List[Pattern[str]]] = None,
        development: bool = False,
    ):
        super().__init__(app)
        self.security_log = security_log
        self.development = development
        self.blocked_patterns = blocked_patterns or BLOCKED_PATH_PATTERNS

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_id(request_id)

        path = request.url.path
        if is_blocked_path(path, self.blocked_patterns):
            self.security_log.log(
                SecurityEventType.SCANNER_PROBE,
                ip=resolve_client_ip(request),
                path=path,
                method=request.method,
                detail="Blocked path access attempt",
            )
            # Same answer as an unknown path.
            response = JSONResponse(status_code=404, content={"error": "Not Found"})
        else:
            try:
                response = await call_next(request)
            except Exception as e:
                response = self._internal_error(request, e)

        response.headers[REQUEST_ID_HEADER] = request_id
        for header, value in EXTRA_SECURITY_HEADERS.items():
            response.headers[header] = value

        return response

    def _internal_error(self, request: Request, exc: Exception) -> JSONResponse:
        self.security_log.log(
            SecurityEventType.UNHANDLED_ERROR,
            ip=resolve_client_ip(request),
            path=request.url.path,
            method=request.method,
            detail="Unhandled exception",
        )

        if self.development:
            logger.error(
                "unhandled.exception",
                error_type=type(exc).__name__,
                error=str(exc),
                path=request.url.path,
                exc_info=exc,
            )

        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})
