"""Prometheus metrics for the compliance document lifecycle."""

from prometheus_client import Counter, Gauge

# Document status metrics
document_status_changes_total = Counter(
    "exportdesk_document_status_changes_total",
    "Document status changes applied by the store",
    ["status"]
)

# Submission metrics
submissions_started_total = Counter(
    "exportdesk_submissions_started_total",
    "Submissions started to the state portal",
    ["portal_behavior"]  # auto-sign|auto-reject|manual
)

submission_decisions_total = Counter(
    "exportdesk_submission_decisions_total",
    "Terminal decisions applied by the submission simulator",
    ["outcome"]  # signed|rejected
)

stale_transitions_total = Counter(
    "exportdesk_stale_transitions_total",
    "Scheduled submission transitions discarded because their submission was superseded",
    ["stage"]  # review|decision
)

pending_submission_timers = Gauge(
    "exportdesk_pending_submission_timers",
    "Submission transitions currently scheduled"
)

# Authority mirror metrics
mirror_push_total = Counter(
    "exportdesk_mirror_push_total",
    "Status pushes to the authority mirror",
    ["mirror_type", "status"]  # status: success|error
)
