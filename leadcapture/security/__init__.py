"""
Security primitives shared by middleware and routes.
"""

from leadcapture.security.client_ip import resolve_client_ip
from leadcapture.security.events import (
    SecurityEvent,
    SecurityEventLogger,
    SecurityEventType,
    StructlogSecuritySink,
)
from leadcapture.security.origin import OriginCheckResult, OriginValidator

__all__ = [
    "OriginCheckResult",
    "OriginValidator",
    "SecurityEvent",
    "SecurityEventLogger",
    "SecurityEventType",
    "StructlogSecuritySink",
    "resolve_client_ip",
]
