"""
Pydantic schemas and record types for lead submissions.
"""

from leadcapture.schemas.lead import LeadCreatedResponse, LeadSubmission, SanitizedLead

__all__ = [
    "LeadCreatedResponse",
    "LeadSubmission",
    "SanitizedLead",
]
