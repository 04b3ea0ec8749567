"""Logging, request correlation and Prometheus metrics for ExportDesk."""

from .logging_config import (
    bind_request_id,
    configure_logging,
    generate_request_id,
    get_request_id,
    reset_request_id,
)
from .metrics import (
    document_status_changes_total,
    mirror_push_total,
    pending_submission_timers,
    stale_transitions_total,
    submission_decisions_total,
    submissions_started_total,
)
from .middleware import RequestIDMiddleware

__all__ = [
    "configure_logging",
    "bind_request_id",
    "reset_request_id",
    "get_request_id",
    "generate_request_id",
    "document_status_changes_total",
    "submissions_started_total",
    "submission_decisions_total",
    "stale_transitions_total",
    "pending_submission_timers",
    "mirror_push_total",
    "RequestIDMiddleware",
]
