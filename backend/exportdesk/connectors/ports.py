"""
Port interfaces for the systems the compliance core talks to.

Following hexagonal architecture, the document store depends only on these
Ports, not on concrete implementations (Adapters):

- AuthorityMirrorPort: write-only mirror of document statuses kept by the
  authority integration. Best effort; the core ignores its result.
- ShipmentDirectoryPort: read-only lookup of shipment context owned by the
  shipment registry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.compliance.document_status import DocumentStatus
from ..domain.compliance.forms import DocKey
from ..domain.compliance.models import ComplianceShipment


@dataclass(frozen=True)
class StatusPush:
    """One status push as seen by a mirror adapter."""
    shipment_id: str
    doc_key: DocKey
    status: DocumentStatus
    note: Optional[str] = None
    pushed_at: Optional[datetime] = None


class MirrorError(Exception):
    """
    Raised by mirror adapters when a status push fails.

    The dispatcher catches it, logs it and counts it; it never reaches
    callers of the document store.
    """
    pass


class ShipmentNotFoundError(Exception):
    """Raised when a shipment id is unknown to the directory."""

    def __init__(self, shipment_id: str):
        self.shipment_id = shipment_id
        super().__init__(f"Shipment {shipment_id} not found")


class AuthorityMirrorPort(ABC):
    """
    Abstract interface for the authority status mirror.

    Implementations:
    - InMemoryAuthorityMirror: records pushes for tests and demos
    - LoggingAuthorityMirror: writes pushes to the application log
    - Future: a real state-portal integration
    """

    @abstractmethod
    def push_status(
        self,
        shipment_id: str,
        doc_key: DocKey,
        status: DocumentStatus,
        note: Optional[str] = None,
    ) -> None:
        """
        Mirror a document's canonical status.

        Args:
            shipment_id: Shipment the document belongs to
            doc_key: Document kind
            status: Canonical document status
            note: Optional note attached to the status change

        Raises:
            MirrorError: If the push fails
        """
        pass

    def get_mirror_type(self) -> str:
        """
        Return the mirror type identifier used by MirrorRegistry.

        Defaults to the class name without the AuthorityMirror suffix.
        """
        return self.__class__.__name__.replace("AuthorityMirror", "").upper()


class ShipmentDirectoryPort(ABC):
    """Abstract read-only shipment lookup."""

    @abstractmethod
    def get_shipment(self, shipment_id: str) -> ComplianceShipment:
        """
        Look up a shipment.

        Raises:
            ShipmentNotFoundError: If the shipment is unknown
        """
        pass

    @abstractmethod
    def list_shipments(self) -> list[ComplianceShipment]:
        pass
