"""
In-memory authority mirror for testing and local development.

Records every status push instead of contacting an authority. Can be told
to fail so callers can verify that mirror failures stay isolated.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional

from ...domain.compliance.document_status import DocumentStatus
from ...domain.compliance.forms import DocKey
from ..ports import AuthorityMirrorPort, MirrorError, StatusPush
from ..registry import MirrorRegistry

logger = logging.getLogger(__name__)


class InMemoryAuthorityMirror(AuthorityMirrorPort):
    """
    Mirror that keeps pushes in a list.

    Modes:
        - "success": record the push (default)
        - "failure": raise MirrorError with error_message

    Usage:
        mirror = InMemoryAuthorityMirror()
        mirror.push_status("s_5001", DocKey.PHYTO, DocumentStatus.READY)
        assert mirror.latest_status("s_5001", DocKey.PHYTO) == DocumentStatus.READY

        failing = InMemoryAuthorityMirror(mode="failure")
        # push_status raises MirrorError
    """

    def __init__(self, mode: str = "success", error_message: str = "Authority mirror unavailable"):
        if mode not in ("success", "failure"):
            raise ValueError(f"Invalid mirror mode: {mode}. Must be one of: success, failure")
        self.mode = mode
        self.error_message = error_message
        self._pushes: List[StatusPush] = []
        self._lock = threading.Lock()

    def push_status(
        self,
        shipment_id: str,
        doc_key: DocKey,
        status: DocumentStatus,
        note: Optional[str] = None,
    ) -> None:
        if self.mode == "failure":
            logger.info("InMemoryAuthorityMirror: simulating push failure")
            raise MirrorError(self.error_message)

        push = StatusPush(
            shipment_id=shipment_id,
            doc_key=DocKey(doc_key),
            status=DocumentStatus(status),
            note=note,
            pushed_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._pushes.append(push)

    @property
    def pushes(self) -> List[StatusPush]:
        with self._lock:
            return list(self._pushes)

    def latest_status(self, shipment_id: str, doc_key: DocKey) -> Optional[DocumentStatus]:
        """Most recently mirrored status for a shipment document."""
        for push in reversed(self.pushes):
            if push.shipment_id == shipment_id and push.doc_key == DocKey(doc_key):
                return push.status
        return None

    def get_mirror_type(self) -> str:
        return "MEMORY"


try:
    MirrorRegistry.register("MEMORY", InMemoryAuthorityMirror)
except RuntimeError:
    # Already registered (e.g., module re-import in tests)
    pass
