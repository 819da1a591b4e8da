from __future__ import annotations

from typing import Any, Dict, Optional

from leadcapture.security.events import SecurityEventType

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


class BaseAPIException(Exception):
    """Base exception for all API errors.

    ``event_type`` names the security event recorded when the exception is
    turned into a response; ``event_detail`` is the free-text detail attached
    to that event and must never carry request values.
    """

    event_type: Optional[SecurityEventType] = None

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        event_detail: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.headers = headers
        self.event_detail = event_detail
        super().__init__(self.message)


class AuthorizationError(BaseAPIException):
    """Request origin is not trusted."""
    event_type = SecurityEventType.CSRF_VIOLATION

    def __init__(self, message: str = "Solicitud no autorizada", **kwargs):
        super().__init__(message, status_code=403, **kwargs)


class MalformedBodyError(BaseAPIException):
    """Request body could not be parsed."""
    event_type = SecurityEventType.MALFORMED_BODY

    def __init__(self, message: str = "Cuerpo de la solicitud inválido", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class ValidationError(BaseAPIException):
    """Lead payload failed schema validation."""
    event_type = SecurityEventType.VALIDATION_FAILURE

    def __init__(self, message: str = "Datos inválidos", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class PayloadTooLargeError(BaseAPIException):
    """Request body exceeds the configured limit."""
    event_type = SecurityEventType.OVERSIZED_PAYLOAD

    def __init__(self, message: str = "La solicitud excede el tamaño máximo permitido", **kwargs):
        super().__init__(message, status_code=413, **kwargs)


class UnsupportedMediaTypeError(BaseAPIException):
    """Request does not declare a JSON body."""
    event_type = SecurityEventType.INVALID_CONTENT_TYPE

    def __init__(self, message: str = "Content-Type debe ser application/json", **kwargs):
        super().__init__(message, status_code=415, **kwargs)


class RateLimitError(BaseAPIException):
    """Rate limit exceeded."""
    event_type = SecurityEventType.RATE_LIMIT_EXCEEDED

    def __init__(
        self,
        message: str = "Demasiadas solicitudes. Intenta más tarde.",
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class DatastoreError(BaseAPIException):
    """Datastore write failed.

    ``internal_detail`` is for developer logs only and is never rendered.
    """
    event_type = SecurityEventType.UNHANDLED_ERROR

    def __init__(
        self,
        message: str = INTERNAL_ERROR_MESSAGE,
        internal_detail: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("event_detail", "DB or runtime error")
        super().__init__(message, status_code=500, **kwargs)
        self.internal_detail = internal_detail
