from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from leadcapture import __version__
from leadcapture.core.config import Settings, settings as default_settings
from leadcapture.core.exceptions import INTERNAL_ERROR_MESSAGE, BaseAPIException, DatastoreError
from leadcapture.core.logging import configure_structlog, get_structlog_logger
from leadcapture.middleware.body_limit import BodySizeLimitMiddleware
from leadcapture.middleware.logging import AccessLogMiddleware
from leadcapture.middleware.perimeter import REQUEST_ID_HEADER, PerimeterMiddleware
from leadcapture.middleware.rate_limiter import build_rate_limiters
from leadcapture.middleware.security_headers import SecurityHeadersMiddleware
from leadcapture.routes import health, leads
from leadcapture.security.client_ip import resolve_client_ip
from leadcapture.security.events import SecurityEventLogger, SecurityEventType, SecuritySink
from leadcapture.security.origin import OriginValidator
from leadcapture.services.datastore import LeadStore, SupabaseLeadStore

logger = get_structlog_logger(__name__)


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info("application.starting", environment=settings.environment)

        if settings.sentry_dsn:
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                environment=settings.environment,
                integrations=[
                    AsyncioIntegration(),
                    FastApiIntegration(),
                    StarletteIntegration(),
                ],
                traces_sample_rate=1.0 if settings.is_development else 0.1,
                send_default_pii=False,
            )
            logger.info("sentry.initialized")

        if not settings.supabase_url or not settings.supabase_service_role_key:
            logger.warning("datastore.not_configured")

        logger.info("application.started", allowed_origins=settings.origins())
        yield
        logger.info("application.shutdown_complete")

    return lifespan


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(BaseAPIException)
    async def api_exception_handler(request: Request, exc: BaseAPIException):
        """Render API errors and record their security event."""
        if exc.event_type is not None:
            app.state.security_log.log(
                exc.event_type,
                ip=resolve_client_ip(request),
                path=request.url.path,
                method=request.method,
                detail=exc.event_detail,
            )

        if isinstance(exc, DatastoreError) and settings.is_development:
            logger.error("lead.persist_failed", error=exc.internal_detail)

        content = {"error": exc.message}
        if exc.details:
            content["details"] = exc.details

        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unmatched paths (404) and wrong methods (405, with Allow)."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions without leaking internals."""
        app.state.security_log.log(
            SecurityEventType.UNHANDLED_ERROR,
            ip=resolve_client_ip(request),
            path=request.url.path,
            method=request.method,
            detail="Unhandled exception",
        )

        if settings.is_development:
            logger.error(
                "unhandled.exception",
                error_type=type(exc).__name__,
                error=str(exc),
                path=request.url.path,
                exc_info=exc,
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[LeadStore] = None,
    sink: Optional[SecuritySink] = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the application with its collaborators injected once."""
    settings = settings or default_settings
    configure_structlog(settings)

    app = FastAPI(
        title="Lead Capture API",
        version=__version__,
        description="Lead-capture form backend with perimeter defenses",
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=_lifespan(settings),
    )

    security_log = SecurityEventLogger(sink)

    app.state.settings = settings
    app.state.security_log = security_log
    app.state.origin_validator = OriginValidator(settings.origins(), development=settings.is_development)
    app.state.rate_limiters = build_rate_limiters(settings, clock=clock)
    app.state.lead_store = store or SupabaseLeadStore.from_settings(settings)

    # Added inner-first: the last one added wraps all the others.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=settings.max_body_bytes,
        security_log=security_log,
    )
    app.add_middleware(
        PerimeterMiddleware,
        security_log=security_log,
        development=settings.is_development,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
        max_age=86400,
    )
    app.add_middleware(SecurityHeadersMiddleware)

    _register_exception_handlers(app, settings)

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(leads.router, prefix=settings.api_prefix)

    if settings.metrics_enabled and not settings.is_testing:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    logger.info("application.configured", environment=settings.environment)
    return app


app = create_app()
