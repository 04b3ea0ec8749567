"""Compliance document aggregate and its immutable records.

These are domain models (not API schemas). Every record is frozen; the
DocumentStore replaces a whole ComplianceDocument on each mutation, so a
reader never observes a partially-updated document.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .document_status import DocumentStatus, PortalBehavior, SubmissionStatus, VersionStatus
from .forms import ComplianceForm, DocKey, TransportMode

SUBMISSION_STEP_ORDER = ("submitted", "received", "under_review", "decision")


class AttachmentType(str, Enum):
    LAB = "lab"
    INVOICE = "invoice"
    CERTIFICATE = "certificate"
    EVIDENCE = "evidence"
    SUPPORTING = "supporting"


class EvidenceSource(str, Enum):
    UPLOAD = "upload"
    PORTAL = "portal"
    EMAIL = "email"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ComplianceAttachment(BaseModel):
    """User-supplied supporting material (metadata only)."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: AttachmentType = AttachmentType.SUPPORTING
    uploaded_at: datetime
    note: Optional[str] = None
    size_label: Optional[str] = None


class ComplianceEvidence(ComplianceAttachment):
    """Authority- or system-supplied proof such as receipts and signed copies."""
    source: EvidenceSource = EvidenceSource.UPLOAD
    link: Optional[str] = None


class ComplianceTimelineEntry(BaseModel):
    """Permanent audit record for a document."""
    model_config = ConfigDict(frozen=True)

    id: str
    at: datetime
    actor: str
    action: str
    description: Optional[str] = None


class ComplianceDocumentVersion(BaseModel):
    """Immutable version record; numbers are assigned by the version ledger."""
    model_config = ConfigDict(frozen=True)

    id: str
    version: int = Field(..., ge=1)
    label: str
    created_at: datetime
    created_by: str
    status: VersionStatus
    official: bool = False
    note: Optional[str] = None
    file_name: Optional[str] = None
    file_url: Optional[str] = None


class VersionDraft(BaseModel):
    """Caller-supplied version content before the ledger numbers it."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    label: str
    created_by: str
    status: VersionStatus = VersionStatus.DRAFT
    official: bool = False
    created_at: Optional[datetime] = None
    note: Optional[str] = None
    file_name: Optional[str] = None
    file_url: Optional[str] = None


class ComplianceSubmissionStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    status: StepStatus = StepStatus.PENDING
    timestamp: Optional[datetime] = None
    note: Optional[str] = None

    @model_validator(mode="after")
    def _timestamp_matches_status(self) -> "ComplianceSubmissionStep":
        if self.status == StepStatus.PENDING and self.timestamp is not None:
            raise ValueError(f"Pending step '{self.id}' cannot carry a timestamp")
        if self.status != StepStatus.PENDING and self.timestamp is None:
            raise ValueError(f"Step '{self.id}' left pending without a timestamp")
        return self


class ComplianceSubmissionInfo(BaseModel):
    """One submission of a document to the state portal."""
    model_config = ConfigDict(frozen=True)

    tracking_id: str
    status: SubmissionStatus = SubmissionStatus.SUBMITTED
    submitted_at: datetime
    ack_at: Optional[datetime] = None
    decision_at: Optional[datetime] = None
    steps: Tuple[ComplianceSubmissionStep, ...]
    ack_url: Optional[str] = None
    packet_url: Optional[str] = None
    rejection_reason: Optional[str] = None

    @model_validator(mode="after")
    def _rejection_has_reason(self) -> "ComplianceSubmissionInfo":
        if self.status == SubmissionStatus.REJECTED and not (self.rejection_reason or "").strip():
            raise ValueError("A rejected submission needs a rejection reason")
        return self

    @model_validator(mode="after")
    def _steps_in_fixed_order(self) -> "ComplianceSubmissionInfo":
        step_ids = tuple(step.id for step in self.steps)
        if step_ids != SUBMISSION_STEP_ORDER:
            raise ValueError(
                f"Submission steps must be {list(SUBMISSION_STEP_ORDER)}, got {list(step_ids)}"
            )
        return self

    def step(self, step_id: str) -> ComplianceSubmissionStep:
        return next(step for step in self.steps if step.id == step_id)

    def with_step(self, step_id: str, **changes) -> Tuple[ComplianceSubmissionStep, ...]:
        """Steps tuple with one step replaced (other steps untouched)."""
        return tuple(
            ComplianceSubmissionStep.model_validate({**step.model_dump(), **changes})
            if step.id == step_id else step
            for step in self.steps
        )


class ComplianceShipment(BaseModel):
    """Read-only shipment context owned by the shipment registry."""
    model_config = ConfigDict(frozen=True)

    id: str
    reference: str
    buyer: str
    route: str
    destination: str = ""
    incoterm: str
    mode: TransportMode
    due_date: Optional[str] = None
    issues: int = 0
    cost_status: str = "balanced"
    cost_note: Optional[str] = None
    owner: str = ""
    documents: Tuple[str, ...] = ()


class ComplianceDocument(BaseModel):
    """Compliance document aggregate, one per (shipment, doc kind)."""
    model_config = ConfigDict(frozen=True)

    id: str
    doc_key: DocKey
    shipment_id: str
    shipment_ref: str
    title: str
    status: DocumentStatus = DocumentStatus.REQUIRED
    form: ComplianceForm
    owner: str = ""
    owner_role: str = ""
    due_date: Optional[str] = None
    expiry_date: Optional[str] = None
    portal_behavior: PortalBehavior = PortalBehavior.MANUAL
    last_updated: datetime
    attachments: Tuple[ComplianceAttachment, ...] = ()
    evidence: Tuple[ComplianceEvidence, ...] = ()
    timeline: Tuple[ComplianceTimelineEntry, ...] = ()
    versions: Tuple[ComplianceDocumentVersion, ...] = ()
    current_version_id: Optional[str] = None
    submission: Optional[ComplianceSubmissionInfo] = None
    warnings: Tuple[str, ...] = ()
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _current_version_exists(self) -> "ComplianceDocument":
        if self.versions:
            if not any(v.id == self.current_version_id for v in self.versions):
                raise ValueError(
                    f"current_version_id {self.current_version_id!r} does not reference a version"
                )
        return self
