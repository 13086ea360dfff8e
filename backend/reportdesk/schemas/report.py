"""
ReportDesk Backend: Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract of the reports endpoints.
Why:   Strict input validation, automatic serialization, and OpenAPI docs.
How:   FastAPI validates request bodies against these models and serializes
       responses through them (by alias, so the wire names stay canonical).

Wire names:
    Python attributes are snake_case; the JSON contract keeps the names
    existing clients already use: studyUID, patientID, patientName,
    createdAt, updatedAt. Requests accept either spelling.

Envelopes mirror the responses clients already parse:
    list    → {"success": true, "count": n, "data": [...]}
    create  → {"success": true, "data": {...}}
    others  → {"data": ...} or {"status": "..."}
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from reportdesk.models.report import ReportStatus


def _wire(name: str, python_name: str) -> dict:
    """Alias kwargs: accept both spellings on input, emit the wire name on output."""
    return {
        "validation_alias": AliasChoices(name, python_name),
        "serialization_alias": name,
    }


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ReportCreate(BaseModel):
    """
    Body of POST /api/v1/reports.

    There is deliberately no `owner` or `status` field: the service sets
    owner to the caller and status to 'new'. Extra keys are ignored.
    """
    study_uid: Optional[str] = Field(default=None, max_length=128, **_wire("studyUID", "study_uid"))
    content: Optional[str] = Field(default=None, description="Report body")
    title: Optional[str] = Field(default=None, max_length=255)
    patient_id: Optional[str] = Field(default=None, max_length=64, **_wire("patientID", "patient_id"))
    patient_name: Optional[str] = Field(
        default=None, max_length=255, **_wire("patientName", "patient_name")
    )

    model_config = ConfigDict(extra="ignore")


class ReportUpdate(BaseModel):
    """
    Body of PUT /api/v1/reports/{id} and PUT /api/v1/reports/status/{studyUID}.

    Partial update: only keys present in the body are written. `status`
    may be omitted but not null. `owner` is not part of the model, so a
    client-supplied owner is dropped before it reaches the service.
    """
    content: Optional[str] = None
    status: ReportStatus = Field(
        default=ReportStatus.NEW,
        description="New lifecycle state: new, completed, verified",
    )
    title: Optional[str] = Field(default=None, max_length=255)
    patient_id: Optional[str] = Field(default=None, max_length=64, **_wire("patientID", "patient_id"))
    patient_name: Optional[str] = Field(
        default=None, max_length=255, **_wire("patientName", "patient_name")
    )

    model_config = ConfigDict(extra="ignore")

    def changes(self) -> dict:
        """Fields the client actually sent, keyed by ORM attribute name."""
        return self.model_dump(exclude_unset=True, mode="json")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ReportResponse(BaseModel):
    """Full representation of a report."""
    id: uuid.UUID = Field(description="Unique report identifier (UUID)")
    study_uid: Optional[str] = Field(default=None, **_wire("studyUID", "study_uid"))
    content: Optional[str] = None
    status: ReportStatus
    owner: str = Field(description="Caller id of the creating user")
    title: Optional[str] = None
    patient_id: Optional[str] = Field(default=None, **_wire("patientID", "patient_id"))
    patient_name: Optional[str] = Field(default=None, **_wire("patientName", "patient_name"))
    created_at: datetime = Field(**_wire("createdAt", "created_at"))
    updated_at: datetime = Field(**_wire("updatedAt", "updated_at"))

    model_config = ConfigDict(from_attributes=True)


class ReportListResponse(BaseModel):
    """Returned by GET /api/v1/reports."""
    success: bool = True
    count: int = Field(description="Number of reports in `data`")
    data: List[ReportResponse]


class ReportCreatedResponse(BaseModel):
    """Returned by POST /api/v1/reports with HTTP 201."""
    success: bool = True
    data: ReportResponse


class ReportEnvelope(BaseModel):
    """Single report wrapped in `data`."""
    data: ReportResponse


class ReportCollectionEnvelope(BaseModel):
    """Several reports wrapped in `data` (fetch by studyUID)."""
    data: List[ReportResponse]


class ReportStatusResponse(BaseModel):
    """Returned by GET /api/v1/reports/status/{studyUID}."""
    status: ReportStatus


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "Cannot modify a verified report",
            "details": {"reason": "verified-locked"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
