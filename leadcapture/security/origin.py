"""
Cross-site request forgery protection via Origin/Referer validation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlsplit

from fastapi import Request

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class OriginCheckResult:
    valid: bool
    reason: Optional[str] = None


def origin_of(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for an absolute URL, or None."""
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        return None

    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


class OriginValidator:
    def __init__(self, allowed_origins: Iterable[str], development: bool = False):
        self.allowed_origins = frozenset(allowed_origins)
        self.development = development

    def check(self, request: Request) -> OriginCheckResult:
        # Local development skips the check entirely.
        if self.development:
            return OriginCheckResult(valid=True)

        origin = request.headers.get("origin")
        if origin:
            if origin in self.allowed_origins:
                return OriginCheckResult(valid=True)
            return OriginCheckResult(valid=False, reason=f"Rejected origin: {origin}")

        referer = request.headers.get("referer")
        if referer:
            referer_origin = origin_of(referer)
            if referer_origin is None:
                return OriginCheckResult(valid=False, reason="Malformed referer header")
            if referer_origin in self.allowed_origins:
                return OriginCheckResult(valid=True)
            return OriginCheckResult(valid=False, reason=f"Rejected referer origin: {referer_origin}")

        return OriginCheckResult(valid=False, reason="Missing Origin and Referer headers")
