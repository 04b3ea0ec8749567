"""DocumentStore - the single mutator of compliance document aggregates.

Every state change of a compliance document goes through one of the
operations below. Each operation:

- raises DocumentNotFoundError for an unknown document id
- runs under a store-wide re-entrant lock (request handlers and simulated
  portal transitions never interleave)
- replaces the whole document with an updated copy and returns it

Status changes are mirrored to the authority through the MirrorDispatcher
(fire-and-forget). Starting a submission arms the SubmissionSimulator.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set
from uuid import uuid4

from ..audit.service import SYSTEM_ACTOR, append_entry, new_timeline_entry
from ..config import Settings, get_settings
from ..connectors.dispatcher import MirrorDispatcher
from ..connectors.ports import ShipmentDirectoryPort, ShipmentNotFoundError
from ..domain.compliance.document_status import (
    IN_FLIGHT_SUBMISSION_STATUSES,
    DocumentStatus,
    SubmissionStatus,
    can_set_status,
    can_transition_submission,
    document_status_for_submission,
    get_allowed_submission_transitions,
    normalize_status,
)
from ..domain.compliance.errors import (
    AttachmentNotFoundError,
    DocumentNotFoundError,
    FormIncompleteError,
    InvalidTransitionError,
    VersionNotFoundError,
)
from ..domain.compliance.forms import ComplianceForm, form_type_for
from ..domain.compliance.models import (
    ComplianceAttachment,
    ComplianceDocument,
    ComplianceEvidence,
    ComplianceShipment,
    ComplianceSubmissionInfo,
    ComplianceSubmissionStep,
    ComplianceTimelineEntry,
    StepStatus,
    VersionDraft,
)
from ..domain.compliance.ready_check import run_ready_check
from ..domain.compliance.version_ledger import append_version, current_version, get_version
from ..observability.metrics import document_status_changes_total, submissions_started_total
from ..workers.scheduler import Scheduler
from ..workers.submission_simulator import SubmissionSimulator

logger = logging.getLogger(__name__)

USER_ACTOR = "You"

FormUpdater = Callable[[ComplianceForm], ComplianceForm]
SubmissionUpdater = Callable[[ComplianceSubmissionInfo], ComplianceSubmissionInfo]


def default_submission_steps(submitted_at: datetime) -> tuple:
    """Steps of a fresh submission: sent and received, review and decision pending."""
    return (
        ComplianceSubmissionStep(id="submitted", label="Submitted", status=StepStatus.COMPLETED, timestamp=submitted_at),
        ComplianceSubmissionStep(id="received", label="Received", status=StepStatus.COMPLETED, timestamp=submitted_at),
        ComplianceSubmissionStep(id="under_review", label="Under review"),
        ComplianceSubmissionStep(id="decision", label="Signed & returned"),
    )


class DocumentStore:
    """In-memory store of compliance documents.

    Usage:
        store = DocumentStore(documents, dispatcher, scheduler)
        store.start_submission("doc_phyto_s5005")
        scheduler.advance(5200)
        assert store.get_document("doc_phyto_s5005").status == DocumentStatus.ACTIVE
    """

    def __init__(
        self,
        documents: Iterable[ComplianceDocument],
        dispatcher: MirrorDispatcher,
        scheduler: Scheduler,
        shipments: Optional[ShipmentDirectoryPort] = None,
        settings: Optional[Settings] = None,
    ):
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.shipments = shipments
        self.settings = settings or get_settings()
        self.lock = threading.RLock()
        self._documents: Dict[str, ComplianceDocument] = {doc.id: doc for doc in documents}
        self._tracking_ids: Set[str] = {
            doc.submission.tracking_id for doc in self._documents.values() if doc.submission
        }
        self._initialized = False
        self.simulator = SubmissionSimulator(self, scheduler, self.settings)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_documents(self, shipment_id: Optional[str] = None) -> List[ComplianceDocument]:
        with self.lock:
            documents = list(self._documents.values())
        if shipment_id is not None:
            documents = [doc for doc in documents if doc.shipment_id == shipment_id]
        return documents

    def get_document(self, doc_id: str) -> ComplianceDocument:
        with self.lock:
            return self._require(doc_id)

    def find_document(self, doc_id: str) -> Optional[ComplianceDocument]:
        with self.lock:
            return self._documents.get(doc_id)

    def list_shipments(self) -> List[ComplianceShipment]:
        if self.shipments is None:
            return []
        return self.shipments.list_shipments()

    def get_shipment(self, shipment_id: str) -> ComplianceShipment:
        if self.shipments is None:
            raise ShipmentNotFoundError(shipment_id)
        return self.shipments.get_shipment(shipment_id)

    def has_tracking_id(self, tracking_id: str) -> bool:
        with self.lock:
            return tracking_id in self._tracking_ids

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        return self.scheduler.clock()

    def _require(self, doc_id: str) -> ComplianceDocument:
        document = self._documents.get(doc_id)
        if document is None:
            raise DocumentNotFoundError(doc_id)
        return document

    def _replace(self, document: ComplianceDocument, **updates) -> ComplianceDocument:
        updates.setdefault("last_updated", self._now())
        updated = document.model_copy(update=updates)
        self._documents[document.id] = updated
        return updated

    def _log(
        self,
        document: ComplianceDocument,
        actor: str,
        action: str,
        description: Optional[str] = None,
        at: Optional[datetime] = None,
    ):
        entry = new_timeline_entry(actor, action, description, at=at or self._now())
        return append_entry(document.id, document.timeline, entry)

    def _status_changed(self, document: ComplianceDocument, note: Optional[str] = None) -> None:
        document_status_changes_total.labels(status=document.status.value).inc()
        self.dispatcher.dispatch(document.shipment_id, document.doc_key, document.status, note)

    def _with_rejection_reason(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        if raw.get("status") == SubmissionStatus.REJECTED and not (raw.get("rejection_reason") or "").strip():
            return {**raw, "rejection_reason": self.settings.DEFAULT_REJECTION_REASON}
        return raw

    def _generate_tracking_id(self) -> str:
        while True:
            tracking_id = f"{self.settings.TRACKING_ID_PREFIX}-{uuid4().hex[:6].upper()}"
            if tracking_id not in self._tracking_ids:
                return tracking_id

    # ------------------------------------------------------------------
    # Form and status
    # ------------------------------------------------------------------

    def update_form(self, doc_id: str, updater: FormUpdater) -> ComplianceDocument:
        """Replace the form with updater(form).

        Status, versions and timeline are untouched.

        Raises:
            DocumentNotFoundError: Unknown document
            InvalidTransitionError: updater returned a different form type
        """
        with self.lock:
            document = self._require(doc_id)
            form = updater(document.form)
            expected = form_type_for(document.doc_key)
            if not isinstance(form, expected):
                raise InvalidTransitionError(
                    f"{document.doc_key.value} document {doc_id} needs a {expected.__name__}, "
                    f"got {type(form).__name__}"
                )
            return self._replace(document, form=form)

    def set_document_status(
        self,
        doc_id: str,
        status,
        note: Optional[str] = None,
        record_timeline: bool = False,
        actor: str = SYSTEM_ACTOR,
    ) -> ComplianceDocument:
        """Set the document status outside the submission cycle.

        The raw status is normalized first. While a submission exists the
        target must agree with it (see MANUAL_STATUS_TRANSITIONS).

        Args:
            doc_id: Document id
            status: Raw or canonical status
            note: Optional note (timeline description, mirror note)
            record_timeline: Append "Status set to <status>"
            actor: Timeline actor

        Raises:
            DocumentNotFoundError: Unknown document
            InvalidTransitionError: Status conflicts with the current submission
        """
        normalized = normalize_status(status)
        with self.lock:
            document = self._require(doc_id)
            submission_status = document.submission.status if document.submission else None
            if not can_set_status(submission_status, normalized):
                raise InvalidTransitionError(
                    f"Cannot set {doc_id} to {normalized.value} while its submission is "
                    f"{submission_status.value if submission_status else 'absent'}"
                )

            updates = {"status": normalized}
            if record_timeline:
                updates["timeline"] = self._log(document, actor, f"Status set to {normalized.value}", note)
            updated = self._replace(document, **updates)
            self._status_changed(updated, note)

        logger.info(
            f"Document {doc_id} status set to {normalized.value}",
            extra={"doc_id": doc_id, "status": normalized.value, "actor": actor},
        )
        return updated

    def save_draft(self, doc_id: str, actor: str = USER_ACTOR) -> ComplianceDocument:
        return self.set_document_status(
            doc_id, DocumentStatus.DRAFT, note="Saved as draft", record_timeline=True, actor=actor
        )

    def mark_ready(self, doc_id: str, actor: str = USER_ACTOR) -> ComplianceDocument:
        """Run the form ready-check and move the document to ready.

        Raises:
            FormIncompleteError: The form fails the ready-check
        """
        with self.lock:
            document = self._require(doc_id)
            result = run_ready_check(document, checked_at=self._now())
            if not result.is_ready:
                raise FormIncompleteError(
                    doc_id,
                    result.missing_fields,
                    message=f"Document {doc_id} is not ready: {'; '.join(result.blocking_reasons)}",
                )
            return self.set_document_status(
                doc_id, DocumentStatus.READY, note="All checks passed", record_timeline=True, actor=actor
            )

    # ------------------------------------------------------------------
    # Attachments, evidence, timeline
    # ------------------------------------------------------------------

    def add_attachment(
        self, doc_id: str, attachment: ComplianceAttachment, actor: str = USER_ACTOR
    ) -> ComplianceDocument:
        with self.lock:
            document = self._require(doc_id)
            return self._replace(
                document,
                attachments=document.attachments + (attachment,),
                timeline=self._log(document, actor, "Attachment added", attachment.name, at=attachment.uploaded_at),
            )

    def remove_attachment(self, doc_id: str, attachment_id: str, actor: str = USER_ACTOR) -> ComplianceDocument:
        """Remove an attachment and record the removal on the timeline.

        Raises:
            AttachmentNotFoundError: The document holds no such attachment
        """
        with self.lock:
            document = self._require(doc_id)
            removed = next((a for a in document.attachments if a.id == attachment_id), None)
            if removed is None:
                raise AttachmentNotFoundError(doc_id, attachment_id)
            return self._replace(
                document,
                attachments=tuple(a for a in document.attachments if a.id != attachment_id),
                timeline=self._log(document, actor, "Attachment removed", removed.name),
            )

    def add_evidence(self, doc_id: str, evidence: ComplianceEvidence, actor: str = SYSTEM_ACTOR) -> ComplianceDocument:
        with self.lock:
            document = self._require(doc_id)
            return self._replace(
                document,
                evidence=document.evidence + (evidence,),
                timeline=self._log(document, actor, "Evidence added", evidence.name, at=evidence.uploaded_at),
            )

    def add_timeline_entry(self, doc_id: str, entry: ComplianceTimelineEntry) -> ComplianceDocument:
        with self.lock:
            document = self._require(doc_id)
            return self._replace(
                document,
                timeline=append_entry(doc_id, document.timeline, entry),
                last_updated=entry.at,
            )

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def add_version(self, doc_id: str, draft: VersionDraft, set_current: bool = False) -> ComplianceDocument:
        """Append a version to the document's ledger.

        The current pointer moves when set_current is true, when the ledger
        had no current version, or when the version is official.
        Writes a "Version added" timeline entry under the version author.

        Raises:
            LedgerError: The draft id already exists
        """
        with self.lock:
            document = self._require(doc_id)
            versions, current_id, version = append_version(
                document.versions,
                document.current_version_id,
                draft,
                now=self._now(),
                set_current=set_current,
            )
            description = f"Version {version.version} ({version.label})"
            if current_version(versions, current_id) == version:
                description += ", now current"
            logger.info(
                f"Version {version.version} ({version.label}) added to {doc_id}",
                extra={"doc_id": doc_id, "status": version.status.value},
            )
            return self._replace(
                document,
                versions=versions,
                current_version_id=current_id,
                timeline=self._log(document, version.created_by, "Version added", description),
            )

    def set_current_version(self, doc_id: str, version_id: str, actor: str = USER_ACTOR) -> ComplianceDocument:
        """Point the current version at an existing version.

        Raises:
            VersionNotFoundError: The version id is not in the ledger
        """
        with self.lock:
            document = self._require(doc_id)
            version = get_version(document.versions, version_id)
            if version is None:
                raise VersionNotFoundError(doc_id, version_id)
            return self._replace(
                document,
                current_version_id=version_id,
                timeline=self._log(
                    document, actor, "Current version changed", f"Version {version.version} ({version.label})"
                ),
            )

    # ------------------------------------------------------------------
    # Submission cycle
    # ------------------------------------------------------------------

    def build_submission(
        self,
        tracking_id: Optional[str] = None,
        status: SubmissionStatus = SubmissionStatus.SUBMITTED,
        submitted_at: Optional[datetime] = None,
        steps: Optional[Iterable[ComplianceSubmissionStep]] = None,
        ack_url: Optional[str] = None,
        packet_url: Optional[str] = None,
    ) -> ComplianceSubmissionInfo:
        """Submission record with defaults filled in (tracking id, steps, timestamps)."""
        with self.lock:
            submitted_at = submitted_at or self._now()
            return ComplianceSubmissionInfo.model_validate(self._with_rejection_reason({
                "tracking_id": tracking_id or self._generate_tracking_id(),
                "status": status,
                "submitted_at": submitted_at,
                "ack_at": submitted_at,
                "steps": tuple(steps) if steps else default_submission_steps(submitted_at),
                "ack_url": ack_url,
                "packet_url": packet_url,
            }))

    def start_submission(
        self,
        doc_id: str,
        submission: Optional[ComplianceSubmissionInfo] = None,
        actor: str = USER_ACTOR,
    ) -> ComplianceDocument:
        """Submit a document to the state portal and arm the simulator.

        Args:
            doc_id: Document id
            submission: Submission record; generated (with a fresh TRK- tracking
                id and default steps) when omitted
            actor: Timeline actor

        Raises:
            DocumentNotFoundError: Unknown document
            InvalidTransitionError: A submission is already in flight, or the
                tracking id was already used in this store
        """
        with self.lock:
            document = self._require(doc_id)
            if document.submission and document.submission.status in IN_FLIGHT_SUBMISSION_STATUSES:
                raise InvalidTransitionError(
                    f"Document {doc_id} already has submission {document.submission.tracking_id} "
                    f"{document.submission.status.value}"
                )

            if submission is None:
                submission = self.build_submission()
            elif submission.tracking_id in self._tracking_ids:
                raise InvalidTransitionError(f"Tracking id {submission.tracking_id} was already used")

            tracking_id = submission.tracking_id
            self._tracking_ids.add(tracking_id)

            updated = self._replace(
                document,
                submission=submission,
                status=document_status_for_submission(submission.status),
                last_updated=submission.submitted_at,
                timeline=self._log(
                    document,
                    actor,
                    "Submitted to state portal",
                    f"Tracking ID {tracking_id}",
                    at=submission.submitted_at,
                ),
            )
            self._status_changed(updated)
            submissions_started_total.labels(portal_behavior=updated.portal_behavior.value).inc()
            self.simulator.arm(doc_id, tracking_id, updated.portal_behavior, submission.status)

        logger.info(
            f"Submission {tracking_id} started for {doc_id}",
            extra={
                "doc_id": doc_id,
                "tracking_id": tracking_id,
                "portal_behavior": updated.portal_behavior.value,
                "actor": actor,
            },
        )
        return updated

    def update_submission(self, doc_id: str, updater: SubmissionUpdater) -> ComplianceDocument:
        """Apply updater to the submission and re-derive the document status.

        A signed submission keeps a document that is already active at
        active. A status change replaces any pending simulated transition:
        a submission still in flight is re-armed for its next portal step
        (under_review gets the decision timer), a decided one is cancelled.
        A rejection without a reason gets DEFAULT_REJECTION_REASON.

        Raises:
            DocumentNotFoundError: Unknown document
            InvalidTransitionError: No submission, tracking id changed, or the
                status change is not in SUBMISSION_TRANSITIONS
        """
        with self.lock:
            document = self._require(doc_id)
            current = document.submission
            if current is None:
                raise InvalidTransitionError(f"Document {doc_id} has no submission to update")

            updated_submission = ComplianceSubmissionInfo.model_validate(
                self._with_rejection_reason(updater(current).model_dump())
            )
            if updated_submission.tracking_id != current.tracking_id:
                raise InvalidTransitionError(
                    f"Tracking id of {doc_id} cannot change "
                    f"({current.tracking_id} -> {updated_submission.tracking_id})"
                )
            if not can_transition_submission(current.status, updated_submission.status):
                allowed = [s.value for s in get_allowed_submission_transitions(current.status)] or "none"
                raise InvalidTransitionError(
                    f"Submission {current.tracking_id} cannot move from "
                    f"{current.status.value} to {updated_submission.status.value} (allowed: {allowed})"
                )

            status = document_status_for_submission(updated_submission.status)
            if status == DocumentStatus.SIGNED and document.status == DocumentStatus.ACTIVE:
                status = DocumentStatus.ACTIVE

            updated = self._replace(document, submission=updated_submission, status=status)
            if status != document.status:
                self._status_changed(updated)
            if updated_submission.status != current.status:
                if updated_submission.status in IN_FLIGHT_SUBMISSION_STATUSES:
                    self.simulator.arm(
                        doc_id, current.tracking_id, updated.portal_behavior, updated_submission.status
                    )
                else:
                    self.simulator.cancel(doc_id)
            return updated

    def clear_submission(self, doc_id: str, actor: str = SYSTEM_ACTOR) -> ComplianceDocument:
        """Remove the submission and cancel its pending transitions.

        Versions, attachments and status are untouched. Clearing a document
        without a submission returns it unchanged.
        """
        with self.lock:
            document = self._require(doc_id)
            self.simulator.cancel(doc_id)
            if document.submission is None:
                return document
            tracking_id = document.submission.tracking_id
            updated = self._replace(
                document,
                submission=None,
                timeline=self._log(document, actor, "Submission cleared", f"Tracking ID {tracking_id}"),
            )

        logger.info(
            f"Submission {tracking_id} cleared from {doc_id}",
            extra={"doc_id": doc_id, "tracking_id": tracking_id, "actor": actor},
        )
        return updated

    def reopen_for_correction(self, doc_id: str, actor: str = USER_ACTOR) -> ComplianceDocument:
        """Clear a rejected submission and return the document to draft.

        Raises:
            InvalidTransitionError: The document was not rejected
        """
        with self.lock:
            document = self._require(doc_id)
            submission = document.submission
            rejected = (
                submission.status == SubmissionStatus.REJECTED
                if submission
                else document.status == DocumentStatus.REJECTED
            )
            if not rejected:
                raise InvalidTransitionError(f"Document {doc_id} is not rejected; nothing to reopen")

            self.clear_submission(doc_id, actor=actor)
            return self.set_document_status(
                doc_id,
                DocumentStatus.DRAFT,
                note="Reopened for correction",
                record_timeline=True,
                actor=actor,
            )

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def initialize(self, resume_submissions: bool = True) -> int:
        """Mirror every document status once and resume in-flight submissions.

        Idempotent: later calls do nothing.

        Returns:
            Number of statuses pushed to the mirror
        """
        with self.lock:
            if self._initialized:
                return 0
            documents = list(self._documents.values())
            for document in documents:
                self.dispatcher.dispatch(document.shipment_id, document.doc_key, document.status)
                submission = document.submission
                if resume_submissions and submission and submission.status in IN_FLIGHT_SUBMISSION_STATUSES:
                    self.simulator.arm(document.id, submission.tracking_id, document.portal_behavior, submission.status)
            self._initialized = True

        logger.info(f"Document store initialized with {len(documents)} documents")
        return len(documents)
