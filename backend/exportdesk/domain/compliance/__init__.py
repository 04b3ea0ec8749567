"""Compliance domain module - statuses, document aggregate, version ledger, ready-check."""

from .document_status import (
    DocumentStatus,
    SubmissionStatus,
    VersionStatus,
    ReadinessClass,
    PortalBehavior,
    normalize_status,
    classify_status,
    status_label,
    status_tone,
    status_sort_order,
    document_status_for_submission,
    is_consistent_with_submission,
    can_set_status,
    can_transition_submission,
)
from .errors import (
    ComplianceError,
    DocumentNotFoundError,
    AttachmentNotFoundError,
    VersionNotFoundError,
    InvalidTransitionError,
    FormIncompleteError,
    LedgerError,
)
from .forms import (
    DocKey,
    TransportMode,
    PhytoForm,
    PhytoProductLine,
    PhytoTreatment,
    CooForm,
    InsuranceForm,
    form_type_for,
)
from .models import (
    AttachmentType,
    EvidenceSource,
    StepStatus,
    ComplianceAttachment,
    ComplianceEvidence,
    ComplianceTimelineEntry,
    ComplianceDocumentVersion,
    VersionDraft,
    ComplianceSubmissionStep,
    ComplianceSubmissionInfo,
    ComplianceShipment,
    ComplianceDocument,
)
from .ready_check import ReadyCheckResult, run_ready_check

__all__ = [
    "DocumentStatus",
    "SubmissionStatus",
    "VersionStatus",
    "ReadinessClass",
    "PortalBehavior",
    "normalize_status",
    "classify_status",
    "status_label",
    "status_tone",
    "status_sort_order",
    "document_status_for_submission",
    "is_consistent_with_submission",
    "can_set_status",
    "can_transition_submission",
    "ComplianceError",
    "DocumentNotFoundError",
    "AttachmentNotFoundError",
    "VersionNotFoundError",
    "InvalidTransitionError",
    "FormIncompleteError",
    "LedgerError",
    "DocKey",
    "TransportMode",
    "PhytoForm",
    "PhytoProductLine",
    "PhytoTreatment",
    "CooForm",
    "InsuranceForm",
    "form_type_for",
    "AttachmentType",
    "EvidenceSource",
    "StepStatus",
    "ComplianceAttachment",
    "ComplianceEvidence",
    "ComplianceTimelineEntry",
    "ComplianceDocumentVersion",
    "VersionDraft",
    "ComplianceSubmissionStep",
    "ComplianceSubmissionInfo",
    "ComplianceShipment",
    "ComplianceDocument",
    "ReadyCheckResult",
    "run_ready_check",
]
