from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from leadcapture.schemas.lead import MENSAJE_MAX_LENGTH, LeadSubmission, SanitizedLead

# C0 controls, DEL, C1 controls and markup-relevant characters.
_UNSAFE_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f<>&\"']")

_OPTIONAL_TEXT_FIELDS = (
    "empresa",
    "telefono",
    "mensaje",
    "servicio",
    "presupuesto",
    "contacto_pref",
    "utm_source",
    "utm_medium",
    "utm_campaign",
)

_FIELD_MESSAGES: Dict[str, Dict[str, str]] = {
    "nombre": {
        "missing": "El nombre es obligatorio",
        "string_too_short": "El nombre debe tener al menos 2 caracteres",
        "string_too_long": "El nombre no puede exceder 100 caracteres",
        "string_pattern_mismatch": "El nombre contiene caracteres no válidos",
    },
    "email": {
        "missing": "El email es obligatorio",
        "string_too_long": "El email es demasiado largo",
        "value_error": "Email inválido",
    },
    "empresa": {"string_too_long": "El nombre de empresa no puede exceder 100 caracteres"},
    "telefono": {"string_too_long": "El teléfono no puede exceder 32 caracteres"},
    "mensaje": {"string_too_long": "El mensaje no puede exceder 500 caracteres"},
    "servicio": {"string_too_long": "El servicio no puede exceder 64 caracteres"},
    "presupuesto": {"string_too_long": "El presupuesto no puede exceder 64 caracteres"},
    "contacto_pref": {"string_too_long": "La preferencia no puede exceder 16 caracteres"},
    "utm_source": {"string_too_long": "El valor no puede exceder 100 caracteres"},
    "utm_medium": {"string_too_long": "El valor no puede exceder 100 caracteres"},
    "utm_campaign": {"string_too_long": "El valor no puede exceder 100 caracteres"},
}

_TYPE_MESSAGES = {
    "missing": "Campo obligatorio",
    "string_type": "Debe ser un texto",
    "bool_type": "Debe ser verdadero o falso",
}

_DEFAULT_MESSAGE = "Valor inválido"


@dataclass
class LeadValidationResult:
    lead: Optional[LeadSubmission] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.lead is not None and not self.errors


def sanitize(value: str) -> str:
    """Strip control and markup characters, then surrounding whitespace."""
    return _UNSAFE_CHARS.sub("", value).strip()


def _message_for(field_name: str, error_type: str) -> str:
    per_field = _FIELD_MESSAGES.get(field_name, {})
    if error_type in per_field:
        return per_field[error_type]
    return _TYPE_MESSAGES.get(error_type, _DEFAULT_MESSAGE)


def validate_lead(raw: Mapping[str, Any]) -> LeadValidationResult:
    """Validate a raw payload into a LeadSubmission.

    Never raises: failures come back as a field -> localized message map.
    Only the first error of each field is reported.
    """
    try:
        lead = LeadSubmission.model_validate(dict(raw))
    except PydanticValidationError as e:
        errors: Dict[str, str] = {}
        for error in e.errors():
            loc = error.get("loc") or ("_root",)
            field_name = str(loc[0])
            errors.setdefault(field_name, _message_for(field_name, error.get("type", "")))
        return LeadValidationResult(errors=errors)

    # The name must still be a name once markup characters are gone.
    if len(sanitize(lead.nombre)) < 2:
        return LeadValidationResult(
            errors={"nombre": _FIELD_MESSAGES["nombre"]["string_too_short"]}
        )

    return LeadValidationResult(lead=lead)


def _sanitize_optional(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return sanitize(value) or None


def build_sanitized_lead(lead: LeadSubmission, origin_tag: str) -> SanitizedLead:
    """Second, independent layer: strip markup from every text field."""
    optional = {name: _sanitize_optional(getattr(lead, name)) for name in _OPTIONAL_TEXT_FIELDS}
    if optional["mensaje"] is not None:
        optional["mensaje"] = optional["mensaje"][:MENSAJE_MAX_LENGTH]

    return SanitizedLead(
        nombre=sanitize(lead.nombre),
        email=sanitize(str(lead.email)).lower(),
        origen=origin_tag,
        consent=lead.consent,
        **optional,
    )
