from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictBool, field_validator
from pydantic_core import PydanticCustomError

EMAIL_MAX_LENGTH = 254
MENSAJE_MAX_LENGTH = 500

# Letters (including Latin-1 accented), whitespace, dot, apostrophe, hyphen.
NOMBRE_PATTERN = r"^[a-zA-ZÀ-ÿ\s.'-]+$"


class LeadSubmission(BaseModel):
    """Lead-capture form payload as submitted by the landing page."""

    model_config = ConfigDict(extra="ignore")

    nombre: str = Field(min_length=2, max_length=100, pattern=NOMBRE_PATTERN)
    email: EmailStr
    empresa: Optional[str] = Field(default=None, max_length=100)
    telefono: Optional[str] = Field(default=None, max_length=32)
    mensaje: Optional[str] = Field(default=None, max_length=MENSAJE_MAX_LENGTH)
    servicio: Optional[str] = Field(default=None, max_length=64)
    presupuesto: Optional[str] = Field(default=None, max_length=64)
    contacto_pref: Optional[str] = Field(default=None, max_length=16)
    utm_source: Optional[str] = Field(default=None, max_length=100)
    utm_medium: Optional[str] = Field(default=None, max_length=100)
    utm_campaign: Optional[str] = Field(default=None, max_length=100)
    consent: Optional[StrictBool] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        value = value.strip().lower()
        if len(value) > EMAIL_MAX_LENGTH:
            raise PydanticCustomError(
                "string_too_long",
                "String should have at most {max_length} characters",
                {"max_length": EMAIL_MAX_LENGTH},
            )
        return value


@dataclass(frozen=True)
class SanitizedLead:
    """Record written to the datastore. Built once, never mutated."""

    nombre: str
    email: str
    origen: str
    empresa: Optional[str] = None
    telefono: Optional[str] = None
    mensaje: Optional[str] = None
    servicio: Optional[str] = None
    presupuesto: Optional[str] = None
    contacto_pref: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    consent: Optional[bool] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


class LeadCreatedResponse(BaseModel):
    success: bool = True
    message: str
