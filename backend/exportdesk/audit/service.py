"""Audit trail for compliance documents.

The document timeline is the permanent audit record: entries are appended,
never mutated or deleted. Every appended entry is also emitted on the
`exportdesk.audit` logger so the trail reaches the central log pipeline.

Actions recorded by the lifecycle manager:
- Status set to <status> (note: Saved as draft, All checks passed,
  Signed copy returned, Fix & resubmit, Reopened for correction)
- Attachment added / Attachment removed
- Evidence added
- Current version changed
- Submitted to state portal / Review started / Signed copy returned
- Submission cleared
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple
from uuid import uuid4

from ..domain.compliance.models import ComplianceTimelineEntry

audit_logger = logging.getLogger("exportdesk.audit")

Timeline = Tuple[ComplianceTimelineEntry, ...]

SYSTEM_ACTOR = "System"
PORTAL_ACTOR = "State Portal"


def generate_entry_id() -> str:
    return f"tl_{uuid4().hex[:12]}"


def new_timeline_entry(
    actor: str,
    action: str,
    description: Optional[str] = None,
    at: Optional[datetime] = None,
) -> ComplianceTimelineEntry:
    """Create a timeline entry.

    This function does not validate action names - callers choose the
    phrasing shown in the document history.

    Args:
        actor: Who performed the action ("You", "System", "State Portal", ...)
        action: Short action phrase (e.g., "Attachment added")
        description: Optional detail line
        at: Event timestamp (defaults to now, UTC)

    Returns:
        ComplianceTimelineEntry: The new, unappended entry
    """
    return ComplianceTimelineEntry(
        id=generate_entry_id(),
        at=at or datetime.now(timezone.utc),
        actor=actor,
        action=action,
        description=description,
    )


def append_entry(doc_id: str, timeline: Timeline, entry: ComplianceTimelineEntry) -> Timeline:
    """Append an entry to a document timeline and log it.

    Args:
        doc_id: Document the timeline belongs to (for the log record)
        timeline: Existing timeline
        entry: Entry to append

    Returns:
        Timeline: New timeline tuple ending with entry
    """
    audit_logger.info(
        f"{entry.actor}: {entry.action}",
        extra={
            "doc_id": doc_id,
            "actor": entry.actor,
            "action": entry.action,
            "entry_id": entry.id,
            "at": entry.at.isoformat(),
        },
    )
    return timeline + (entry,)


def sorted_for_display(timeline: Timeline) -> Timeline:
    """Newest-first ordering by entry timestamp (stable for equal timestamps)."""
    indexed = list(enumerate(timeline))
    indexed.sort(key=lambda pair: (pair[1].at, pair[0]), reverse=True)
    return tuple(entry for _, entry in indexed)
