from __future__ import annotations

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def resolve_client_ip(request: Request) -> str:
    """Best-effort client address.

    Trusts the first ``X-Forwarded-For`` hop, which is only sound behind a
    single trusted reverse proxy; the header is client-suppliable otherwise.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    client = request.client
    if client and client.host:
        return client.host

    return UNKNOWN_CLIENT
