"""
Request body size limiting.

Rejects declared payloads above ``max_body_bytes`` before any route runs.
Chunked bodies carry no length up front; the leads route re-checks the bytes
it actually reads.
"""
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from leadcapture.core.exceptions import MalformedBodyError, PayloadTooLargeError
from leadcapture.security.client_ip import resolve_client_ip
from leadcapture.security.events import SecurityEventLogger


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_bytes: int, security_log: SecurityEventLogger):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes
        self.security_log = security_log

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length is None:
            return await call_next(request)

        try:
            declared = int(content_length)
        except ValueError:
            return self._reject(request, MalformedBodyError(event_detail="Invalid Content-Length header"))

        if declared > self.max_body_bytes:
            return self._reject(
                request,
                PayloadTooLargeError(event_detail=f"Declared {declared} bytes, limit {self.max_body_bytes}"),
            )

        return await call_next(request)

    def _reject(self, request: Request, exc) -> JSONResponse:
        self.security_log.log(
            exc.event_type,
            ip=resolve_client_ip(request),
            path=request.url.path,
            method=request.method,
            detail=exc.event_detail,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
