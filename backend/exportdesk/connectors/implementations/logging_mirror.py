"""
Logging authority mirror - the default adapter until a real portal
integration exists. Each push becomes one structured log line.
"""

import logging
from typing import Optional

from ...domain.compliance.document_status import DocumentStatus
from ...domain.compliance.forms import DocKey
from ..ports import AuthorityMirrorPort
from ..registry import MirrorRegistry

logger = logging.getLogger(__name__)


class LoggingAuthorityMirror(AuthorityMirrorPort):

    def push_status(
        self,
        shipment_id: str,
        doc_key: DocKey,
        status: DocumentStatus,
        note: Optional[str] = None,
    ) -> None:
        logger.info(
            f"Mirrored {DocKey(doc_key).value} status for shipment {shipment_id}: "
            f"{DocumentStatus(status).value}",
            extra={
                "shipment_id": shipment_id,
                "doc_key": DocKey(doc_key).value,
                "status": DocumentStatus(status).value,
                "mirror_type": self.get_mirror_type(),
            },
        )

    def get_mirror_type(self) -> str:
        return "LOG"


try:
    MirrorRegistry.register("LOG", LoggingAuthorityMirror)
except RuntimeError:
    pass
