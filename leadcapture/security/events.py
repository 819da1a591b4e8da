"""
Structured security event logging.

Events are deterministic, machine-parsable records meant for alerting rules.
They carry only the event type, client IP, request path, method and a short
detail string: never request bodies, credentials, headers or form values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol

from leadcapture.core.logging import get_security_logger

# Plain stdlib logger: used only when the security sink itself fails.
_fallback_logger = logging.getLogger(__name__)


class SecurityEventType(str, Enum):
    CSRF_VIOLATION = "CSRF_VIOLATION"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    HONEYPOT_TRIGGERED = "HONEYPOT_TRIGGERED"
    OVERSIZED_PAYLOAD = "OVERSIZED_PAYLOAD"
    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    MALFORMED_BODY = "MALFORMED_BODY"
    SCANNER_PROBE = "SCANNER_PROBE"
    BLOCKED_PATH = "BLOCKED_PATH"
    UNHANDLED_ERROR = "UNHANDLED_ERROR"


@dataclass(frozen=True)
class SecurityEvent:
    type: SecurityEventType
    ip: str
    path: str
    method: Optional[str] = None
    detail: Optional[str] = None


class SecuritySink(Protocol):
    def emit(self, event: SecurityEvent) -> None:
        ...


class StructlogSecuritySink:
    """Writes one JSON line per event through structlog."""

    def __init__(self, logger: Optional[Any] = None, logger_name: str = "security"):
        self.logger = logger or get_security_logger(logger_name)

    def emit(self, event: SecurityEvent) -> None:
        fields = {
            "severity": "SECURITY",
            "ts": datetime.now(timezone.utc).isoformat(),
            "type": event.type.value,
            "ip": event.ip,
            "path": event.path,
        }
        if event.method:
            fields["method"] = event.method
        if event.detail:
            fields["detail"] = event.detail

        self.logger.warning("security.event", **fields)


class SecurityEventLogger:
    """Records security events on an injected sink, best-effort."""

    def __init__(self, sink: Optional[SecuritySink] = None):
        self.sink = sink or StructlogSecuritySink()

    def record(self, event: SecurityEvent) -> None:
        try:
            self.sink.emit(event)
        except Exception as e:
            # A broken sink must never block the response.
            _fallback_logger.error("security sink failed: %s", type(e).__name__)

    def log(
        self,
        event_type: SecurityEventType,
        *,
        ip: str,
        path: str,
        method: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.record(SecurityEvent(type=event_type, ip=ip, path=path, method=method, detail=detail))
