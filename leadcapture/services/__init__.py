"""
Lead validation, sanitization and persistence services.
"""

from leadcapture.services.datastore import LeadStore, SupabaseLeadStore
from leadcapture.services.validation import (
    LeadValidationResult,
    build_sanitized_lead,
    sanitize,
    validate_lead,
)

__all__ = [
    # Persistence
    "LeadStore",
    "SupabaseLeadStore",
    # Validation
    "LeadValidationResult",
    "build_sanitized_lead",
    "sanitize",
    "validate_lead",
]
