"""Compliance status vocabularies, normalization and transition rules.

Three vocabularies are in play, each its own enum:

- DocumentStatus: the canonical status persisted on a compliance document
- SubmissionStatus: the status of one submission to the state portal
- VersionStatus: the status stamped on an immutable version record

Legacy and free-form status strings are reconciled into DocumentStatus by
normalize_status(). The readiness partition (ready / attention / blocked) is
derived from the canonical status only.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class DocumentStatus(str, Enum):
    """Canonical document status.

    State flow (typical):
    REQUIRED → DRAFT → READY → SUBMITTED → UNDER_REVIEW → SIGNED → ACTIVE
                                                       ↘ REJECTED → DRAFT
    ACTIVE documents may later lapse to EXPIRED.
    """
    REQUIRED = "required"
    DRAFT = "draft"
    READY = "ready"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"
    SIGNED = "signed"
    ACTIVE = "active"
    EXPIRED = "expired"


class SubmissionStatus(str, Enum):
    """Status of a submission to the state portal."""
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    SIGNED = "signed"
    REJECTED = "rejected"


class VersionStatus(str, Enum):
    """Status stamped on a version record."""
    DRAFT = "draft"
    READY = "ready"
    SUBMITTED = "submitted"
    SIGNED = "signed"


class ReadinessClass(str, Enum):
    """Portfolio readiness partition of the canonical statuses."""
    READY = "ready"
    ATTENTION = "attention"
    BLOCKED = "blocked"


class PortalBehavior(str, Enum):
    """How the simulated state portal resolves a submission."""
    AUTO_SIGN = "auto-sign"
    AUTO_REJECT = "auto-reject"
    MANUAL = "manual"


# Legacy vocabulary still found in stored shipment documents
LEGACY_STATUS_ALIASES: Dict[str, DocumentStatus] = {
    "generated": DocumentStatus.READY,
    "approved": DocumentStatus.SIGNED,
}

DEFAULT_STATUS = DocumentStatus.REQUIRED


def normalize_status(raw: Union[DocumentStatus, str, None]) -> DocumentStatus:
    """Map any status value onto the canonical DocumentStatus.

    Total and idempotent: never raises, and
    normalize_status(normalize_status(x)) == normalize_status(x).

    Args:
        raw: Canonical status, legacy string, or None

    Returns:
        Canonical status; DEFAULT_STATUS for unknown input

    Example:
        >>> normalize_status("approved")
        <DocumentStatus.SIGNED: 'signed'>
        >>> normalize_status("bogus-status")
        <DocumentStatus.REQUIRED: 'required'>
    """
    if isinstance(raw, DocumentStatus):
        return raw
    if not isinstance(raw, str):
        logger.warning(
            "Non-string document status, falling back to default",
            extra={"raw_status": repr(raw), "fallback": DEFAULT_STATUS.value},
        )
        return DEFAULT_STATUS

    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    if key in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[key]
    try:
        return DocumentStatus(key)
    except ValueError:
        logger.warning(
            f"Unknown document status '{raw}', falling back to default",
            extra={"raw_status": raw, "fallback": DEFAULT_STATUS.value},
        )
        return DEFAULT_STATUS


READINESS: Dict[DocumentStatus, ReadinessClass] = {
    DocumentStatus.REQUIRED: ReadinessClass.BLOCKED,
    DocumentStatus.DRAFT: ReadinessClass.ATTENTION,
    DocumentStatus.READY: ReadinessClass.READY,
    DocumentStatus.SUBMITTED: ReadinessClass.ATTENTION,
    DocumentStatus.UNDER_REVIEW: ReadinessClass.ATTENTION,
    DocumentStatus.REJECTED: ReadinessClass.BLOCKED,
    DocumentStatus.SIGNED: ReadinessClass.READY,
    DocumentStatus.ACTIVE: ReadinessClass.READY,
    DocumentStatus.EXPIRED: ReadinessClass.BLOCKED,
}

STATUS_LABELS: Dict[DocumentStatus, str] = {
    DocumentStatus.REQUIRED: "Required",
    DocumentStatus.DRAFT: "Draft",
    DocumentStatus.READY: "Ready",
    DocumentStatus.SUBMITTED: "Submitted",
    DocumentStatus.UNDER_REVIEW: "Under review",
    DocumentStatus.REJECTED: "Rejected",
    DocumentStatus.SIGNED: "Signed",
    DocumentStatus.ACTIVE: "Active",
    DocumentStatus.EXPIRED: "Expired",
}

STATUS_TONES: Dict[DocumentStatus, str] = {
    DocumentStatus.REQUIRED: "negative",
    DocumentStatus.DRAFT: "caution",
    DocumentStatus.READY: "positive",
    DocumentStatus.SUBMITTED: "neutral",
    DocumentStatus.UNDER_REVIEW: "caution",
    DocumentStatus.REJECTED: "negative",
    DocumentStatus.SIGNED: "positive",
    DocumentStatus.ACTIVE: "positive",
    DocumentStatus.EXPIRED: "negative",
}

# Display order for status columns and sorted lists
STATUS_SORT_ORDER: List[DocumentStatus] = [
    DocumentStatus.REQUIRED,
    DocumentStatus.DRAFT,
    DocumentStatus.READY,
    DocumentStatus.SUBMITTED,
    DocumentStatus.UNDER_REVIEW,
    DocumentStatus.SIGNED,
    DocumentStatus.ACTIVE,
    DocumentStatus.EXPIRED,
    DocumentStatus.REJECTED,
]


def classify_status(status: Union[DocumentStatus, str, None]) -> ReadinessClass:
    """Classify a status as ready, attention or blocked."""
    return READINESS[normalize_status(status)]


def status_label(status: Union[DocumentStatus, str, None]) -> str:
    """Human-readable label for display."""
    return STATUS_LABELS[normalize_status(status)]


def status_tone(status: Union[DocumentStatus, str, None]) -> str:
    return STATUS_TONES[normalize_status(status)]


def status_sort_order(status: Union[DocumentStatus, str, None]) -> int:
    return STATUS_SORT_ORDER.index(normalize_status(status))


SUBMISSION_TO_DOCUMENT_STATUS: Dict[SubmissionStatus, DocumentStatus] = {
    SubmissionStatus.SUBMITTED: DocumentStatus.SUBMITTED,
    SubmissionStatus.UNDER_REVIEW: DocumentStatus.UNDER_REVIEW,
    SubmissionStatus.SIGNED: DocumentStatus.SIGNED,
    SubmissionStatus.REJECTED: DocumentStatus.REJECTED,
}

_unmapped = set(SubmissionStatus) - set(SUBMISSION_TO_DOCUMENT_STATUS)
if _unmapped:
    raise RuntimeError(f"Submission statuses without document mapping: {_unmapped}")


def document_status_for_submission(status: SubmissionStatus) -> DocumentStatus:
    """Document status image of a submission status."""
    return SUBMISSION_TO_DOCUMENT_STATUS[SubmissionStatus(status)]


def is_consistent_with_submission(
    document_status: DocumentStatus,
    submission_status: SubmissionStatus,
) -> bool:
    """Check document status against its submission (signed may be promoted to active)."""
    expected = document_status_for_submission(submission_status)
    if expected == DocumentStatus.SIGNED:
        return document_status in (DocumentStatus.SIGNED, DocumentStatus.ACTIVE)
    return document_status == expected


IN_FLIGHT_SUBMISSION_STATUSES = (SubmissionStatus.SUBMITTED, SubmissionStatus.UNDER_REVIEW)

# Statuses reachable through set_document_status, keyed by the current
# submission status (None when the document has no submission).
MANUAL_STATUS_TRANSITIONS: Dict[Optional[SubmissionStatus], List[DocumentStatus]] = {
    None: [
        DocumentStatus.REQUIRED,
        DocumentStatus.DRAFT,
        DocumentStatus.READY,
        DocumentStatus.REJECTED,
        DocumentStatus.SIGNED,
        DocumentStatus.ACTIVE,
        DocumentStatus.EXPIRED,
    ],
    SubmissionStatus.SUBMITTED: [],  # Owned by the submission cycle
    SubmissionStatus.UNDER_REVIEW: [],  # Owned by the submission cycle
    SubmissionStatus.SIGNED: [DocumentStatus.SIGNED, DocumentStatus.ACTIVE],
    SubmissionStatus.REJECTED: [DocumentStatus.REJECTED],
}

SUBMISSION_TRANSITIONS: Dict[SubmissionStatus, List[SubmissionStatus]] = {
    SubmissionStatus.SUBMITTED: [SubmissionStatus.UNDER_REVIEW, SubmissionStatus.REJECTED],
    SubmissionStatus.UNDER_REVIEW: [SubmissionStatus.SIGNED, SubmissionStatus.REJECTED],
    SubmissionStatus.SIGNED: [],  # Terminal
    SubmissionStatus.REJECTED: [],  # Terminal
}


def can_set_status(
    submission_status: Optional[SubmissionStatus],
    target: DocumentStatus,
) -> bool:
    """Check whether set_document_status may move a document to target.

    Example:
        >>> can_set_status(None, DocumentStatus.READY)
        True
        >>> can_set_status(SubmissionStatus.UNDER_REVIEW, DocumentStatus.DRAFT)
        False
    """
    return target in MANUAL_STATUS_TRANSITIONS.get(submission_status, [])


def can_transition_submission(current: SubmissionStatus, new: SubmissionStatus) -> bool:
    """Check a submission status change; unchanged status is always allowed."""
    if current == new:
        return True
    return new in SUBMISSION_TRANSITIONS.get(current, [])


def get_allowed_submission_transitions(status: SubmissionStatus) -> List[SubmissionStatus]:
    return SUBMISSION_TRANSITIONS.get(status, [])
