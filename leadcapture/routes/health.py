from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    timestamp: str
    service: str


@router.get("/health", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Liveness probe."""
    return HealthCheckResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        service=request.app.state.settings.service_name,
    )
