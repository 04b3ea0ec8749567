"""Simulated state-portal decisions for submitted compliance documents.

After a submission starts, the portal is modelled as:

    submitted --(review delay)--> under_review --(decision delay)--> signed | rejected

Each scheduled transition carries the (doc_id, tracking_id) it was armed
for and re-checks the document when it fires; a transition whose
submission was cleared, replaced or moved on is discarded. At most one
transition is pending per document.

The simulator re-enters the DocumentStore through its public operations,
always under the store lock (store lock first, then simulator lock).
"""

import logging
import threading
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..audit.service import PORTAL_ACTOR, SYSTEM_ACTOR, new_timeline_entry
from ..config import Settings, get_settings
from ..domain.compliance.document_status import DocumentStatus, PortalBehavior, SubmissionStatus, VersionStatus
from ..domain.compliance.models import (
    AttachmentType,
    ComplianceEvidence,
    EvidenceSource,
    StepStatus,
    VersionDraft,
)
from ..observability.metrics import pending_submission_timers, stale_transitions_total, submission_decisions_total
from .scheduler import ScheduledHandle, Scheduler

if TYPE_CHECKING:
    from ..compliance.store import DocumentStore

logger = logging.getLogger(__name__)

SIGNED_VERSION_NOTE = "Signed copy received, replaced as current version."


class SubmissionSimulator:
    """Schedules and applies portal review/decision transitions.

    Usage:
        simulator = SubmissionSimulator(store, scheduler, settings)
        simulator.arm("doc_phyto_s5005", "TRK-4F2A9C", PortalBehavior.AUTO_SIGN)
    """

    def __init__(self, store: "DocumentStore", scheduler: Scheduler, settings: Optional[Settings] = None):
        self.store = store
        self.scheduler = scheduler
        self.settings = settings or get_settings()
        self._pending: Dict[str, Tuple[str, ScheduledHandle]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Handle bookkeeping
    # ------------------------------------------------------------------

    def arm(
        self,
        doc_id: str,
        tracking_id: str,
        behavior: PortalBehavior,
        status: SubmissionStatus = SubmissionStatus.SUBMITTED,
    ) -> None:
        """Schedule the next portal transition for a submission.

        A submitted submission gets the review transition, one already under
        review gets the decision. Supersedes any transition pending for the
        document. Manual portals schedule nothing; the submission stays where
        it is until updated explicitly.
        """
        behavior = PortalBehavior(behavior)
        status = SubmissionStatus(status)
        self.cancel(doc_id)
        if behavior == PortalBehavior.MANUAL:
            logger.info(
                f"Manual portal for {doc_id}: no simulated decision scheduled",
                extra={"doc_id": doc_id, "tracking_id": tracking_id, "portal_behavior": behavior.value},
            )
            return
        if status == SubmissionStatus.SUBMITTED:
            self._schedule(
                doc_id,
                tracking_id,
                self.settings.SUBMISSION_REVIEW_DELAY_MS,
                self._on_review,
                behavior,
            )
        elif status == SubmissionStatus.UNDER_REVIEW:
            self._schedule(doc_id, tracking_id, self._decision_delay(behavior), self._on_decision, behavior)

    def _decision_delay(self, behavior: PortalBehavior) -> int:
        if behavior == PortalBehavior.AUTO_SIGN:
            return self.settings.SUBMISSION_SIGN_DELAY_MS
        return self.settings.SUBMISSION_REJECT_DELAY_MS

    def cancel(self, doc_id: str) -> bool:
        """Cancel the pending transition for a document, if any."""
        with self._lock:
            entry = self._pending.pop(doc_id, None)
            pending_submission_timers.set(len(self._pending))
        if entry is None:
            return False
        tracking_id, handle = entry
        handle.cancel()
        logger.debug(
            f"Cancelled pending submission transition for {doc_id}",
            extra={"doc_id": doc_id, "tracking_id": tracking_id},
        )
        return True

    def pending_tracking_id(self, doc_id: str) -> Optional[str]:
        with self._lock:
            entry = self._pending.get(doc_id)
        return entry[0] if entry else None

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _schedule(self, doc_id: str, tracking_id: str, delay_ms: int, callback, *args) -> None:
        with self._lock:
            handle = self.scheduler.call_later(delay_ms, callback, doc_id, tracking_id, *args)
            self._pending[doc_id] = (tracking_id, handle)
            pending_submission_timers.set(len(self._pending))

    def _release(self, doc_id: str, tracking_id: str) -> None:
        """Forget the handle that just fired (only if it is still ours)."""
        with self._lock:
            entry = self._pending.get(doc_id)
            if entry is not None and entry[0] == tracking_id:
                del self._pending[doc_id]
            pending_submission_timers.set(len(self._pending))

    def _is_current(self, stage: str, doc_id: str, tracking_id: str, expected: SubmissionStatus) -> bool:
        document = self.store.find_document(doc_id)
        submission = document.submission if document else None
        if submission is None or submission.tracking_id != tracking_id or submission.status != expected:
            logger.debug(
                f"Discarding stale {stage} transition for {doc_id}",
                extra={"doc_id": doc_id, "tracking_id": tracking_id, "stage": stage},
            )
            stale_transitions_total.labels(stage=stage).inc()
            return False
        return True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_review(self, doc_id: str, tracking_id: str, behavior: PortalBehavior) -> None:
        with self.store.lock:
            self._release(doc_id, tracking_id)
            if not self._is_current("review", doc_id, tracking_id, SubmissionStatus.SUBMITTED):
                return

            now = self.scheduler.clock()
            # Moving to under_review re-arms this simulator with the decision timer
            self.store.update_submission(
                doc_id,
                lambda submission: submission.model_copy(update={
                    "status": SubmissionStatus.UNDER_REVIEW,
                    "steps": submission.with_step(
                        "under_review", status=StepStatus.COMPLETED, timestamp=now
                    ),
                }),
            )
            self.store.add_timeline_entry(
                doc_id,
                new_timeline_entry(PORTAL_ACTOR, "Review started", f"Tracking ID {tracking_id}", at=now),
            )

    def _on_decision(self, doc_id: str, tracking_id: str, behavior: PortalBehavior) -> None:
        with self.store.lock:
            self._release(doc_id, tracking_id)
            if not self._is_current("decision", doc_id, tracking_id, SubmissionStatus.UNDER_REVIEW):
                return
            if behavior == PortalBehavior.AUTO_SIGN:
                self._apply_signed(doc_id, tracking_id)
            else:
                self._apply_rejected(doc_id, tracking_id)

    def _apply_signed(self, doc_id: str, tracking_id: str) -> None:
        now = self.scheduler.clock()
        document = self.store.update_submission(
            doc_id,
            lambda submission: submission.model_copy(update={
                "status": SubmissionStatus.SIGNED,
                "decision_at": now,
                "steps": submission.with_step("decision", status=StepStatus.COMPLETED, timestamp=now),
            }),
        )
        doc_key = document.doc_key.value

        self.store.add_timeline_entry(
            doc_id,
            new_timeline_entry(PORTAL_ACTOR, "Signed copy returned", f"Tracking ID {tracking_id}", at=now),
        )
        self.store.add_version(
            doc_id,
            VersionDraft(
                label="Signed official",
                created_by=PORTAL_ACTOR,
                created_at=now,
                status=VersionStatus.SIGNED,
                official=True,
                note=SIGNED_VERSION_NOTE,
                file_name=f"{doc_key}-{document.shipment_ref}-signed.pdf",
            ),
            set_current=True,
        )
        self.store.add_evidence(
            doc_id,
            ComplianceEvidence(
                id=f"evi_{tracking_id.lower()}_signed",
                name=f"{doc_key} signed copy.pdf",
                type=AttachmentType.CERTIFICATE,
                uploaded_at=now,
                source=EvidenceSource.PORTAL,
            ),
            actor=PORTAL_ACTOR,
        )
        self.store.set_document_status(
            doc_id,
            DocumentStatus.ACTIVE,
            note="Signed copy returned",
            record_timeline=True,
            actor=SYSTEM_ACTOR,
        )

        submission_decisions_total.labels(outcome="signed").inc()
        logger.info(
            f"Submission {tracking_id} signed for {doc_id}",
            extra={"doc_id": doc_id, "tracking_id": tracking_id, "status": DocumentStatus.ACTIVE.value},
        )

    def _apply_rejected(self, doc_id: str, tracking_id: str) -> None:
        now = self.scheduler.clock()
        reason = self.settings.DEFAULT_REJECTION_REASON

        def reject(submission):
            rejection_reason = submission.rejection_reason or reason
            return submission.model_copy(update={
                "status": SubmissionStatus.REJECTED,
                "decision_at": now,
                "rejection_reason": rejection_reason,
                "steps": submission.with_step(
                    "decision",
                    label="Rejected",
                    status=StepStatus.REJECTED,
                    timestamp=now,
                    note=rejection_reason,
                ),
            })

        self.store.update_submission(doc_id, reject)
        self.store.set_document_status(
            doc_id,
            DocumentStatus.REJECTED,
            note="Fix & resubmit",
            record_timeline=True,
            actor=PORTAL_ACTOR,
        )

        submission_decisions_total.labels(outcome="rejected").inc()
        logger.info(
            f"Submission {tracking_id} rejected for {doc_id}",
            extra={"doc_id": doc_id, "tracking_id": tracking_id, "status": DocumentStatus.REJECTED.value},
        )
