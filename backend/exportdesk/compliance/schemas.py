"""Pydantic schemas for the compliance API

Request/response models for the /compliance endpoints. Domain models
(ComplianceDocument and its records) are returned as-is; this module only
adds the request bodies and the list/summary envelopes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.compliance.models import (
    AttachmentType,
    ComplianceDocument,
    ComplianceShipment,
    ComplianceSubmissionStep,
    EvidenceSource,
)
from ..domain.compliance.document_status import SubmissionStatus, VersionStatus


# ============================================================================
# Request Schemas
# ============================================================================

class FormUpdateRequest(BaseModel):
    """Full form payload (PUT /documents/{id}/form); validated per doc kind."""
    form: Dict[str, Any]


class StatusUpdateRequest(BaseModel):
    """Schema for POST /documents/{id}/status"""
    status: str = Field(..., description="Raw or canonical status; normalized server-side")
    note: Optional[str] = None
    record_timeline: bool = False
    actor: str = "You"


class ActorRequest(BaseModel):
    actor: str = "You"


class AttachmentCreate(BaseModel):
    """Attachment metadata (file upload mechanics are out of scope)"""
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    type: AttachmentType = AttachmentType.SUPPORTING
    uploaded_at: Optional[datetime] = None
    note: Optional[str] = None
    size_label: Optional[str] = None

    model_config = ConfigDict(extra='forbid')


class EvidenceCreate(AttachmentCreate):
    source: EvidenceSource = EvidenceSource.UPLOAD
    link: Optional[str] = None


class VersionCreate(BaseModel):
    """Schema for POST /documents/{id}/versions (number assigned server-side)"""
    id: Optional[str] = None
    label: str = Field(..., min_length=1)
    created_by: str = "You"
    status: VersionStatus = VersionStatus.DRAFT
    official: bool = False
    note: Optional[str] = None
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    set_current: bool = False

    model_config = ConfigDict(extra='forbid')


class CurrentVersionUpdate(BaseModel):
    version_id: str
    actor: str = "You"


class TimelineEntryCreate(BaseModel):
    actor: str
    action: str = Field(..., min_length=1)
    description: Optional[str] = None
    at: Optional[datetime] = None


class SubmissionCreate(BaseModel):
    """Schema for POST /documents/{id}/submission

    Every field is optional: an empty body submits with a generated
    tracking id and default steps.
    """
    tracking_id: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.SUBMITTED
    submitted_at: Optional[datetime] = None
    steps: Optional[List[ComplianceSubmissionStep]] = None
    ack_url: Optional[str] = None
    packet_url: Optional[str] = None
    actor: str = "You"

    model_config = ConfigDict(extra='forbid')


# ============================================================================
# Response Schemas
# ============================================================================

class DocumentListResponse(BaseModel):
    items: List[ComplianceDocument]
    total: int


class ShipmentSummary(BaseModel):
    """Shipment with its rolled-up document readiness"""
    shipment: ComplianceShipment
    readiness: str


class ShipmentListResponse(BaseModel):
    items: List[ShipmentSummary]
    total: int


class ReadinessResponse(BaseModel):
    counts: Dict[str, int]
    total: int


class StatusInfo(BaseModel):
    """Display metadata for one canonical status"""
    status: str
    label: str
    readiness: str
    tone: str
    sort_order: int
