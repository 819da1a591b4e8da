from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional, Protocol

import aiohttp

from leadcapture.core.config import Settings
from leadcapture.core.exceptions import DatastoreError
from leadcapture.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)


class LeadStore(Protocol):
    async def insert(self, table: str, record: Mapping[str, Any]) -> None:
        ...


class SupabaseLeadStore:
    """Inserts rows through the Supabase REST gateway using the service role key."""

    def __init__(
        self,
        url: Optional[str],
        service_role_key: Optional[str],
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ):
        self.url = url.rstrip("/") if url else None
        self.service_role_key = service_role_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseLeadStore":
        return cls(settings.supabase_url, settings.supabase_service_role_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.service_role_key or "",
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
            "User-Agent": "LeadCapture-API/1.0",
        }

    def table_url(self, table: str) -> str:
        return f"{self.url}/rest/v1/{table}"

    async def insert(self, table: str, record: Mapping[str, Any]) -> None:
        if not self.url or not self.service_role_key:
            raise DatastoreError(
                internal_detail="Missing datastore configuration (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)"
            )

        try:
            session_kwargs = {"timeout": self.timeout} if self.timeout else {}
            async with aiohttp.ClientSession(**session_kwargs) as session:
                async with session.post(
                    self.table_url(table),
                    json=dict(record),
                    headers=self._headers(),
                ) as response:
                    if 200 <= response.status < 300:
                        logger.debug("datastore.inserted", table=table, status_code=response.status)
                        return
                    error_text = await response.text()
                    raise DatastoreError(internal_detail=f"HTTP {response.status}: {error_text[:200]}")
        except asyncio.TimeoutError as e:
            raise DatastoreError(internal_detail="Request timeout") from e
        except aiohttp.ClientError as e:
            raise DatastoreError(internal_detail=f"Client error: {str(e)[:200]}") from e
