"""Unit tests for the simulated state-portal submission cycle.

All timings use the default delays: review after 2000 ms, signing after a
further 3200 ms, rejection after a further 2800 ms.
"""

from prometheus_client import REGISTRY

from exportdesk.domain.compliance.document_status import (
    DocumentStatus,
    PortalBehavior,
    SubmissionStatus,
    VersionStatus,
)
from exportdesk.domain.compliance.forms import DocKey
from exportdesk.domain.compliance.models import EvidenceSource, StepStatus


def stale_count(stage):
    return REGISTRY.get_sample_value("exportdesk_stale_transitions_total", {"stage": stage}) or 0.0


class TestAutoSign:
    """Test submitted → under_review → signed → active"""

    def test_full_cycle(self, make_store, phyto_document, scheduler, mirror):
        store = make_store([phyto_document("doc_a", portal_behavior="auto-sign")])
        before = store.get_document("doc_a")

        document = store.start_submission("doc_a")
        assert document.submission.tracking_id
        assert document.status == DocumentStatus.SUBMITTED

        scheduler.advance(2000)
        document = store.get_document("doc_a")
        assert document.submission.status == SubmissionStatus.UNDER_REVIEW
        assert document.status == DocumentStatus.UNDER_REVIEW
        assert document.submission.step("under_review").status == StepStatus.COMPLETED
        assert document.submission.step("under_review").timestamp == scheduler.clock()

        scheduler.advance(3200)
        document = store.get_document("doc_a")
        assert document.submission.status == SubmissionStatus.SIGNED
        assert document.status == DocumentStatus.ACTIVE
        assert len(document.versions) == len(before.versions) + 1
        assert len(document.evidence) == len(before.evidence) + 1

        signed = document.versions[-1]
        assert signed.official is True
        assert signed.status == VersionStatus.SIGNED
        assert signed.version == 2
        assert document.current_version_id == signed.id
        assert signed.file_name == "PHYTO-PL-2025-EX-9001-signed.pdf"

        evidence = document.evidence[-1]
        assert evidence.source == EvidenceSource.PORTAL
        assert document.submission.decision_at == scheduler.clock()
        assert document.submission.step("decision").status == StepStatus.COMPLETED

        assert mirror.latest_status("s_9001", DocKey.PHYTO) == DocumentStatus.ACTIVE
        assert store.simulator.pending_count() == 0

    def test_timeline(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a")])
        tracking_id = store.start_submission("doc_a").submission.tracking_id
        scheduler.advance(5200)
        actions = [entry.action for entry in store.get_document("doc_a").timeline]
        assert actions == [
            "Submitted to state portal",
            "Review started",
            "Signed copy returned",
            "Version added",
            "Evidence added",
            "Status set to active",
        ]
        review = store.get_document("doc_a").timeline[1]
        assert review.description == f"Tracking ID {tracking_id}"

    def test_nothing_happens_before_review_delay(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a")])
        store.start_submission("doc_a")
        scheduler.advance(1999)
        assert store.get_document("doc_a").submission.status == SubmissionStatus.SUBMITTED

    def test_started_under_review(self, make_store, phyto_document, scheduler):
        """Test a submission supplied as under_review goes straight to the decision"""
        store = make_store([phyto_document("doc_a")])
        now = scheduler.clock()
        submission = store.build_submission(status=SubmissionStatus.UNDER_REVIEW)
        submission = submission.model_copy(update={
            "steps": submission.with_step("under_review", status=StepStatus.COMPLETED, timestamp=now),
        })
        assert store.start_submission("doc_a", submission).status == DocumentStatus.UNDER_REVIEW
        scheduler.advance(3200)
        assert store.get_document("doc_a").status == DocumentStatus.ACTIVE


class TestAutoReject:
    """Test submitted → under_review → rejected"""

    def test_full_cycle(self, make_store, phyto_document, scheduler, settings):
        store = make_store([phyto_document("doc_a", portal_behavior="auto-reject")])
        before = store.get_document("doc_a")
        store.start_submission("doc_a")

        scheduler.advance(2000)
        assert store.get_document("doc_a").submission.status == SubmissionStatus.UNDER_REVIEW

        scheduler.advance(2799)
        assert store.get_document("doc_a").submission.status == SubmissionStatus.UNDER_REVIEW

        scheduler.advance(1)
        document = store.get_document("doc_a")
        assert document.submission.status == SubmissionStatus.REJECTED
        assert document.status == DocumentStatus.REJECTED
        assert document.submission.rejection_reason == settings.DEFAULT_REJECTION_REASON
        assert document.versions == before.versions
        assert document.current_version_id == before.current_version_id

        decision = document.submission.step("decision")
        assert decision.status == StepStatus.REJECTED
        assert decision.label == "Rejected"
        assert decision.note == settings.DEFAULT_REJECTION_REASON
        assert document.timeline[-1].action == "Status set to rejected"
        assert document.timeline[-1].description == "Fix & resubmit"

    def test_reopen_and_resubmit(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a", portal_behavior="auto-reject")])
        first = store.start_submission("doc_a").submission.tracking_id
        scheduler.advance(4800)
        store.reopen_for_correction("doc_a")
        second = store.start_submission("doc_a").submission.tracking_id
        assert second != first
        scheduler.advance(4800)
        assert store.get_document("doc_a").status == DocumentStatus.REJECTED


class TestExplicitSubmissionUpdates:
    """Test explicit submission updates that keep the submission in flight"""

    def _move_to_review(self, store, doc_id, scheduler):
        now = scheduler.clock()
        return store.update_submission(
            doc_id,
            lambda sub: sub.model_copy(update={
                "status": SubmissionStatus.UNDER_REVIEW,
                "steps": sub.with_step("under_review", status=StepStatus.COMPLETED, timestamp=now),
            }),
        )

    def test_moved_to_review_gets_signed(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a", portal_behavior="auto-sign")])
        tracking_id = store.start_submission("doc_a").submission.tracking_id
        scheduler.advance(500)

        document = self._move_to_review(store, "doc_a", scheduler)
        assert document.status == DocumentStatus.UNDER_REVIEW
        assert store.simulator.pending_tracking_id("doc_a") == tracking_id
        assert store.simulator.pending_count() == 1

        scheduler.advance(3199)
        assert store.get_document("doc_a").submission.status == SubmissionStatus.UNDER_REVIEW

        scheduler.advance(1)
        document = store.get_document("doc_a")
        assert document.submission.status == SubmissionStatus.SIGNED
        assert document.status == DocumentStatus.ACTIVE
        assert store.simulator.pending_count() == 0
        # The review timer armed at submission was replaced, so review never ran
        assert "Review started" not in [entry.action for entry in document.timeline]

    def test_moved_to_review_gets_rejected(self, make_store, phyto_document, scheduler, settings):
        store = make_store([phyto_document("doc_a", portal_behavior="auto-reject")])
        store.start_submission("doc_a")
        self._move_to_review(store, "doc_a", scheduler)

        scheduler.advance(2800)
        document = store.get_document("doc_a")
        assert document.status == DocumentStatus.REJECTED
        assert document.submission.rejection_reason == settings.DEFAULT_REJECTION_REASON

    def test_manual_portal_stays_in_review(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a", portal_behavior="manual")])
        store.start_submission("doc_a")
        self._move_to_review(store, "doc_a", scheduler)
        assert store.simulator.pending_count() == 0
        scheduler.advance(600_000)
        assert store.get_document("doc_a").submission.status == SubmissionStatus.UNDER_REVIEW

    def test_same_status_update_keeps_pending_timer(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a")])
        store.start_submission("doc_a")
        scheduler.advance(1000)
        store.update_submission("doc_a", lambda sub: sub.model_copy(update={"ack_url": "https://portal.example/ack/1"}))
        scheduler.advance(1000)
        assert store.get_document("doc_a").submission.status == SubmissionStatus.UNDER_REVIEW


class TestManual:

    def test_no_automatic_transition(self, make_store, phyto_document, scheduler):
        """Test a manual portal leaves the submission at submitted"""
        store = make_store([phyto_document("doc_a", portal_behavior="manual")])
        store.start_submission("doc_a")
        assert store.simulator.pending_count() == 0
        scheduler.advance(600_000)
        document = store.get_document("doc_a")
        assert document.submission.status == SubmissionStatus.SUBMITTED
        assert document.status == DocumentStatus.SUBMITTED


class TestCancellation:
    """Test that superseded submissions never apply transitions"""

    def test_clear_before_review(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a")])
        store.start_submission("doc_a")
        scheduler.advance(500)
        store.clear_submission("doc_a")
        assert store.get_document("doc_a").submission is None

        before = store.get_document("doc_a")
        scheduler.advance(10_000)
        assert store.get_document("doc_a") == before

    def test_clear_during_review(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a")])
        store.start_submission("doc_a")
        scheduler.advance(3000)
        store.clear_submission("doc_a")
        before = store.get_document("doc_a")
        scheduler.advance(10_000)
        assert store.get_document("doc_a") == before
        assert len(before.versions) == 1

    def test_clear_then_new_submission(self, make_store, phyto_document, scheduler):
        """Test a transition armed for A never touches B"""
        store = make_store([phyto_document("doc_a")])
        store.start_submission("doc_a", store.build_submission(tracking_id="TRK-AAAAAA"))
        scheduler.advance(1000)
        store.clear_submission("doc_a")
        store.start_submission("doc_a", store.build_submission(tracking_id="TRK-BBBBBB"))

        scheduler.advance(1000)  # A's review time
        assert store.get_document("doc_a").submission.status == SubmissionStatus.SUBMITTED

        scheduler.advance(1000)  # B's review time
        assert store.get_document("doc_a").submission.status == SubmissionStatus.UNDER_REVIEW

        scheduler.advance(3200)
        document = store.get_document("doc_a")
        assert document.status == DocumentStatus.ACTIVE
        assert len(document.versions) == 2
        reviews = [e for e in document.timeline if e.action == "Review started"]
        assert [e.description for e in reviews] == ["Tracking ID TRK-BBBBBB"]

    def test_stale_transition_discarded_at_fire_time(self, make_store, phyto_document, scheduler):
        """Test the fire-time guard for a transition whose handle was not cancelled"""
        store = make_store([phyto_document("doc_a")])
        store.start_submission("doc_a", store.build_submission(tracking_id="TRK-CURRENT"))
        before_stale = stale_count("review")

        store.simulator.arm("doc_a", "TRK-STALE", PortalBehavior.AUTO_SIGN)
        scheduler.advance(2000)

        document = store.get_document("doc_a")
        assert document.submission.tracking_id == "TRK-CURRENT"
        assert document.submission.status == SubmissionStatus.SUBMITTED
        assert stale_count("review") == before_stale + 1

    def test_one_pending_transition_per_document(self, make_store, phyto_document, scheduler):
        store = make_store([phyto_document("doc_a"), phyto_document("doc_b")])
        store.start_submission("doc_a")
        store.start_submission("doc_b")
        assert store.simulator.pending_count() == 2
        scheduler.run_pending()  # flush mirror pushes
        store.simulator.arm("doc_a", store.get_document("doc_a").submission.tracking_id, PortalBehavior.AUTO_SIGN)
        assert store.simulator.pending_count() == 2
        assert scheduler.pending_count() == 2

    def test_cancel_without_pending(self, make_store, phyto_document):
        store = make_store([phyto_document("doc_a")])
        assert store.simulator.cancel("doc_a") is False

    def test_documents_are_independent(self, make_store, phyto_document, scheduler):
        store = make_store([
            phyto_document("doc_a", portal_behavior="auto-sign"),
            phyto_document("doc_b", portal_behavior="auto-reject"),
        ])
        store.start_submission("doc_a")
        scheduler.advance(1000)
        store.start_submission("doc_b")
        scheduler.advance(4200)
        assert store.get_document("doc_a").status == DocumentStatus.ACTIVE
        assert store.get_document("doc_b").status == DocumentStatus.UNDER_REVIEW
        scheduler.advance(1600)
        assert store.get_document("doc_b").status == DocumentStatus.REJECTED
