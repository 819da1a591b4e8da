from __future__ import annotations

import time

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from leadcapture.core.logging import get_structlog_logger
from leadcapture.security.client_ip import resolve_client_ip

logger = get_structlog_logger(__name__)

# Paths polled by monitors; not worth an access log line each.
QUIET_PATHS = ("/api/health", "/metrics")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Request/response logging.

    Logs method, path, status and timing only. Headers, query strings and
    bodies can carry personal data and are never logged.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        self._log_request(request)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request.exception",
                method=request.method,
                path=request.url.path,
                response_time_ms=(time.perf_counter() - start_time) * 1000,
                exception_type=type(e).__name__,
            )
            raise

        response_time = time.perf_counter() - start_time
        response.headers["X-Response-Time"] = f"{response_time:.3f}"

        self._log_response(request, response, response_time)

        return response

    def _log_request(self, request: Request) -> None:
        if request.url.path in QUIET_PATHS:
            return

        logger.info(
            "request.received",
            method=request.method,
            path=request.url.path,
            client_ip=resolve_client_ip(request),
            content_length=request.headers.get("content-length", "0"),
        )

    def _log_response(self, request: Request, response: Response, response_time: float) -> None:
        if request.url.path in QUIET_PATHS:
            return

        status_code = response.status_code
        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "response_time_ms": response_time * 1000,
        }

        if 400 <= status_code < 500:
            log_data["error_type"] = "client_error"
            logger.warning("response.sent", **log_data)
        elif status_code >= 500:
            log_data["error_type"] = "server_error"
            logger.warning("response.sent", **log_data)
        else:
            logger.info("response.sent", **log_data)
