from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from leadcapture.core.exceptions import (
    AuthorizationError,
    DatastoreError,
    MalformedBodyError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from leadcapture.core.logging import get_structlog_logger
from leadcapture.middleware.rate_limiter import general_rate_limit
from leadcapture.schemas.lead import LeadCreatedResponse
from leadcapture.security.client_ip import resolve_client_ip
from leadcapture.security.events import SecurityEventType
from leadcapture.services.validation import build_sanitized_lead, validate_lead

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["leads"])

SUCCESS_MESSAGE = "Lead registrado correctamente"


async def read_json_object(request: Request, max_body_bytes: int) -> Dict[str, Any]:
    """Read the body, enforce the size cap, and parse it as a JSON object."""
    body = bytearray()
    # Chunked bodies declare no length; stop reading once past the cap.
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_body_bytes:
            raise PayloadTooLargeError(event_detail=f"Body exceeds limit of {max_body_bytes} bytes")

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise MalformedBodyError(event_detail="Body is not valid JSON") from e

    if not isinstance(payload, dict):
        raise MalformedBodyError(event_detail="JSON body must be an object")

    return payload


@router.post(
    "/leads",
    response_model=LeadCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(general_rate_limit)],
)
async def create_lead(request: Request):
    """Accept a landing-page lead.

    Steps are terminal at the first failure: origin, content type, body,
    honeypot, schema validation, sanitization, insert.
    """
    state = request.app.state
    settings = state.settings

    origin_check = state.origin_validator.check(request)
    if not origin_check.valid:
        raise AuthorizationError(event_detail=origin_check.reason)

    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise UnsupportedMediaTypeError()

    payload = await read_json_object(request, settings.max_body_bytes)

    # Bots filling the hidden field get the same answer as a real success.
    if payload.get(settings.honeypot_field) not in (None, "", False, 0):
        state.security_log.log(
            SecurityEventType.HONEYPOT_TRIGGERED,
            ip=resolve_client_ip(request),
            path=request.url.path,
            method=request.method,
        )
        return LeadCreatedResponse(message=SUCCESS_MESSAGE)

    payload.pop(settings.honeypot_field, None)

    result = validate_lead(payload)
    if not result.ok:
        raise ValidationError(
            details=result.errors,
            event_detail="Invalid fields: " + ", ".join(sorted(result.errors)),
        )

    lead = build_sanitized_lead(result.lead, settings.lead_origin_tag)

    try:
        await state.lead_store.insert(settings.leads_table, lead.to_record())
    except DatastoreError:
        raise
    except Exception as e:
        raise DatastoreError(internal_detail=f"{type(e).__name__}: {e}") from e

    logger.info("lead.persisted", table=settings.leads_table, origen=lead.origen)

    return LeadCreatedResponse(message=SUCCESS_MESSAGE)
