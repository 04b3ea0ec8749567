"""In-memory shipment directory adapter."""

from typing import Dict, Iterable

from ..domain.compliance.models import ComplianceShipment
from .ports import ShipmentDirectoryPort, ShipmentNotFoundError


class InMemoryShipmentDirectory(ShipmentDirectoryPort):
    """Shipment lookup backed by a dict, in insertion order."""

    def __init__(self, shipments: Iterable[ComplianceShipment] = ()):
        self._shipments: Dict[str, ComplianceShipment] = {s.id: s for s in shipments}

    def get_shipment(self, shipment_id: str) -> ComplianceShipment:
        try:
            return self._shipments[shipment_id]
        except KeyError:
            raise ShipmentNotFoundError(shipment_id) from None

    def list_shipments(self) -> list[ComplianceShipment]:
        return list(self._shipments.values())
