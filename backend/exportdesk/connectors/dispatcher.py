"""
Mirror Dispatcher - Fire-and-forget delivery of status pushes

Handles the authority mirror side of a status change:
- Schedules the push off the caller's stack (zero-delay scheduler callback)
- Calls the configured AuthorityMirrorPort
- Logs and counts failures

Pushes are never retried and failures never reach the document store.
"""

import logging
from typing import Optional

from ..domain.compliance.document_status import DocumentStatus
from ..domain.compliance.forms import DocKey
from ..observability.metrics import mirror_push_total
from ..workers.scheduler import ScheduledHandle, Scheduler
from .ports import AuthorityMirrorPort


logger = logging.getLogger(__name__)


class MirrorDispatcher:
    """
    Dispatches status pushes to an authority mirror without blocking.

    Usage:
        dispatcher = MirrorDispatcher(MirrorRegistry.get("LOG"), scheduler)
        dispatcher.dispatch("s_5001", DocKey.PHYTO, DocumentStatus.READY)
    """

    def __init__(self, mirror: AuthorityMirrorPort, scheduler: Scheduler):
        self.mirror = mirror
        self.scheduler = scheduler

    def dispatch(
        self,
        shipment_id: str,
        doc_key: DocKey,
        status: DocumentStatus,
        note: Optional[str] = None,
    ) -> ScheduledHandle:
        """
        Schedule a status push.

        Args:
            shipment_id: Shipment the document belongs to
            doc_key: Document kind
            status: Canonical document status to mirror
            note: Optional note for the mirror

        Returns:
            ScheduledHandle of the pending push
        """
        return self.scheduler.call_later(0, self.push_now, shipment_id, doc_key, status, note)

    def push_now(
        self,
        shipment_id: str,
        doc_key: DocKey,
        status: DocumentStatus,
        note: Optional[str] = None,
    ) -> bool:
        """
        Push synchronously, swallowing and recording any failure.

        Returns:
            True if the mirror accepted the push
        """
        mirror_type = self.mirror.get_mirror_type()
        try:
            self.mirror.push_status(shipment_id, doc_key, status, note)
        except Exception as e:
            logger.warning(
                f"Authority mirror push failed for shipment {shipment_id} "
                f"{DocKey(doc_key).value}: {e}",
                extra={
                    "shipment_id": shipment_id,
                    "doc_key": DocKey(doc_key).value,
                    "status": DocumentStatus(status).value,
                    "mirror_type": mirror_type,
                },
            )
            mirror_push_total.labels(mirror_type=mirror_type, status="error").inc()
            return False

        mirror_push_total.labels(mirror_type=mirror_type, status="success").inc()
        return True
