"""Programmatic uvicorn entry point.

Usage:
    python -m leadcapture
"""
from __future__ import annotations

import uvicorn

from leadcapture.core.config import settings


def main() -> None:
    uvicorn.run(
        "leadcapture.main:app",
        host=settings.api_host,
        port=settings.api_port,
        proxy_headers=True,
        forwarded_allow_ips="127.0.0.1",
        server_header=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
