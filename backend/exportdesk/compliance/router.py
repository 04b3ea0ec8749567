"""Compliance API Router - documents, submissions, shipments and readiness.

Every mutating endpoint delegates to one DocumentStore operation and maps
domain errors onto HTTP status codes:

- DocumentNotFoundError, AttachmentNotFoundError, VersionNotFoundError,
  ShipmentNotFoundError: 404
- InvalidTransitionError, FormIncompleteError, LedgerError: 409
"""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from ..audit.service import new_timeline_entry
from ..connectors.ports import ShipmentNotFoundError
from ..dependencies import get_document_store
from ..domain.compliance.document_status import (
    DocumentStatus,
    classify_status,
    normalize_status,
    status_label,
    status_sort_order,
    status_tone,
)
from ..domain.compliance.errors import (
    AttachmentNotFoundError,
    ComplianceError,
    DocumentNotFoundError,
    FormIncompleteError,
    VersionNotFoundError,
)
from ..domain.compliance.forms import form_type_for
from ..domain.compliance.models import (
    ComplianceAttachment,
    ComplianceDocument,
    ComplianceEvidence,
    ComplianceShipment,
    VersionDraft,
)
from .readiness import shipment_readiness, summarize_readiness
from .schemas import (
    ActorRequest,
    AttachmentCreate,
    CurrentVersionUpdate,
    DocumentListResponse,
    EvidenceCreate,
    FormUpdateRequest,
    ReadinessResponse,
    ShipmentListResponse,
    ShipmentSummary,
    StatusInfo,
    StatusUpdateRequest,
    SubmissionCreate,
    TimelineEntryCreate,
    VersionCreate,
)
from .store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compliance", tags=["compliance"])

NOT_FOUND_ERRORS = (DocumentNotFoundError, AttachmentNotFoundError, VersionNotFoundError, ShipmentNotFoundError)


def _to_http(exc: Exception) -> HTTPException:
    """Map a domain error to an HTTPException."""
    if isinstance(exc, NOT_FOUND_ERRORS):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, FormIncompleteError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "missing_fields": exc.missing_fields},
        )
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


# ============================================================================
# Documents
# ============================================================================

@router.get("/documents", response_model=DocumentListResponse)
def list_documents(
    shipment_id: Optional[str] = Query(None, description="Filter by shipment"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by canonical status"),
    store: DocumentStore = Depends(get_document_store),
) -> DocumentListResponse:
    """List compliance documents, optionally by shipment and status."""
    documents = store.list_documents(shipment_id=shipment_id)
    if status_filter:
        wanted = normalize_status(status_filter)
        documents = [doc for doc in documents if doc.status == wanted]
    return DocumentListResponse(items=documents, total=len(documents))


@router.get("/documents/{doc_id}", response_model=ComplianceDocument)
def get_document(doc_id: str, store: DocumentStore = Depends(get_document_store)) -> ComplianceDocument:
    try:
        return store.get_document(doc_id)
    except DocumentNotFoundError as e:
        raise _to_http(e)


@router.put("/documents/{doc_id}/form", response_model=ComplianceDocument)
def update_form(
    doc_id: str,
    request: FormUpdateRequest,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    """Replace the document's form. The payload is validated against the
    form model of the document's kind (PHYTO, COO, INSURANCE)."""
    try:
        document = store.get_document(doc_id)
        form = form_type_for(document.doc_key).model_validate(request.form)
        return store.update_form(doc_id, lambda _previous: form)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )
    except ComplianceError as e:
        raise _to_http(e)


@router.post("/documents/{doc_id}/status", response_model=ComplianceDocument)
def set_document_status(
    doc_id: str,
    request: StatusUpdateRequest,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    try:
        return store.set_document_status(
            doc_id,
            request.status,
            note=request.note,
            record_timeline=request.record_timeline,
            actor=request.actor,
        )
    except ComplianceError as e:
        raise _to_http(e)


@router.post("/documents/{doc_id}/draft", response_model=ComplianceDocument)
def save_draft(
    doc_id: str,
    request: Optional[ActorRequest] = None,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    try:
        return store.save_draft(doc_id, actor=(request or ActorRequest()).actor)
    except ComplianceError as e:
        raise _to_http(e)


@router.post("/documents/{doc_id}/ready", response_model=ComplianceDocument)
def mark_ready(
    doc_id: str,
    request: Optional[ActorRequest] = None,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    """Run the form ready-check and mark the document ready.

    Returns 409 with the missing fields when the form is incomplete.
    """
    try:
        return store.mark_ready(doc_id, actor=(request or ActorRequest()).actor)
    except ComplianceError as e:
        raise _to_http(e)


# ============================================================================
# Attachments, evidence, timeline
# ============================================================================

@router.post("/documents/{doc_id}/attachments", response_model=ComplianceDocument, status_code=201)
def add_attachment(
    doc_id: str,
    request: AttachmentCreate,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    attachment = ComplianceAttachment(
        id=request.id or f"att_{uuid4().hex[:12]}",
        name=request.name,
        type=request.type,
        uploaded_at=request.uploaded_at or store.scheduler.clock(),
        note=request.note,
        size_label=request.size_label,
    )
    try:
        return store.add_attachment(doc_id, attachment)
    except ComplianceError as e:
        raise _to_http(e)


@router.delete("/documents/{doc_id}/attachments/{attachment_id}", response_model=ComplianceDocument)
def remove_attachment(
    doc_id: str,
    attachment_id: str,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    try:
        return store.remove_attachment(doc_id, attachment_id)
    except ComplianceError as e:
        raise _to_http(e)


@router.post("/documents/{doc_id}/evidence", response_model=ComplianceDocument, status_code=201)
def add_evidence(
    doc_id: str,
    request: EvidenceCreate,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    evidence = ComplianceEvidence(
        id=request.id or f"evi_{uuid4().hex[:12]}",
        name=request.name,
        type=request.type,
        uploaded_at=request.uploaded_at or store.scheduler.clock(),
        note=request.note,
        size_label=request.size_label,
        source=request.source,
        link=request.link,
    )
    try:
        return store.add_evidence(doc_id, evidence, actor="You")
    except ComplianceError as e:
        raise _to_http(e)


@router.post("/documents/{doc_id}/timeline", response_model=ComplianceDocument, status_code=201)
def add_timeline_entry(
    doc_id: str,
    request: TimelineEntryCreate,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    entry = new_timeline_entry(request.actor, request.action, request.description, at=request.at)
    try:
        return store.add_timeline_entry(doc_id, entry)
    except ComplianceError as e:
        raise _to_http(e)


# ============================================================================
# Versions
# ============================================================================

@router.post("/documents/{doc_id}/versions", response_model=ComplianceDocument, status_code=201)
def add_version(
    doc_id: str,
    request: VersionCreate,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    draft = VersionDraft(**request.model_dump(exclude={"set_current"}))
    try:
        return store.add_version(doc_id, draft, set_current=request.set_current)
    except ComplianceError as e:
        raise _to_http(e)


@router.put("/documents/{doc_id}/current-version", response_model=ComplianceDocument)
def set_current_version(
    doc_id: str,
    request: CurrentVersionUpdate,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    try:
        return store.set_current_version(doc_id, request.version_id, actor=request.actor)
    except ComplianceError as e:
        raise _to_http(e)


# ============================================================================
# Submission cycle
# ============================================================================

@router.post("/documents/{doc_id}/submission", response_model=ComplianceDocument, status_code=201)
def start_submission(
    doc_id: str,
    request: Optional[SubmissionCreate] = None,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    """Submit the document to the state portal.

    The simulated portal then moves the submission through review to a
    decision according to the document's portal behavior.
    """
    request = request or SubmissionCreate()
    try:
        submission = store.build_submission(
            tracking_id=request.tracking_id,
            status=request.status,
            submitted_at=request.submitted_at,
            steps=request.steps,
            ack_url=request.ack_url,
            packet_url=request.packet_url,
        )
        return store.start_submission(doc_id, submission, actor=request.actor)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )
    except ComplianceError as e:
        raise _to_http(e)


@router.delete("/documents/{doc_id}/submission", response_model=ComplianceDocument)
def clear_submission(doc_id: str, store: DocumentStore = Depends(get_document_store)) -> ComplianceDocument:
    try:
        return store.clear_submission(doc_id)
    except ComplianceError as e:
        raise _to_http(e)


@router.post("/documents/{doc_id}/reopen", response_model=ComplianceDocument)
def reopen_for_correction(
    doc_id: str,
    request: Optional[ActorRequest] = None,
    store: DocumentStore = Depends(get_document_store),
) -> ComplianceDocument:
    try:
        return store.reopen_for_correction(doc_id, actor=(request or ActorRequest()).actor)
    except ComplianceError as e:
        raise _to_http(e)


# ============================================================================
# Shipments, readiness, status vocabulary
# ============================================================================

@router.get("/shipments", response_model=ShipmentListResponse)
def list_shipments(store: DocumentStore = Depends(get_document_store)) -> ShipmentListResponse:
    documents = store.list_documents()
    items = [
        ShipmentSummary(shipment=shipment, readiness=shipment_readiness(documents, shipment.id).value)
        for shipment in store.list_shipments()
    ]
    return ShipmentListResponse(items=items, total=len(items))


@router.get("/shipments/{shipment_id}", response_model=ComplianceShipment)
def get_shipment(shipment_id: str, store: DocumentStore = Depends(get_document_store)) -> ComplianceShipment:
    try:
        return store.get_shipment(shipment_id)
    except ShipmentNotFoundError as e:
        raise _to_http(e)


@router.get("/readiness", response_model=ReadinessResponse)
def readiness(
    shipment_id: Optional[str] = Query(None, description="Restrict to one shipment"),
    store: DocumentStore = Depends(get_document_store),
) -> ReadinessResponse:
    documents = store.list_documents(shipment_id=shipment_id)
    return ReadinessResponse(counts=summarize_readiness(documents), total=len(documents))


@router.get("/statuses", response_model=list[StatusInfo])
def list_statuses() -> list[StatusInfo]:
    """Label, readiness class and tone of every canonical status, in display order."""
    statuses = sorted(DocumentStatus, key=status_sort_order)
    return [
        StatusInfo(
            status=s.value,
            label=status_label(s),
            readiness=classify_status(s).value,
            tone=status_tone(s),
            sort_order=status_sort_order(s),
        )
        for s in statuses
    ]
