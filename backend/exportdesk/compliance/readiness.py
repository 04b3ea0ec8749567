"""Portfolio readiness rollups built on the status classifier."""

from typing import Dict, Iterable

from ..domain.compliance.document_status import ReadinessClass, classify_status
from ..domain.compliance.models import ComplianceDocument


def summarize_readiness(documents: Iterable[ComplianceDocument]) -> Dict[str, int]:
    """Count documents per readiness class (every class present, zero included)."""
    counts = {readiness.value: 0 for readiness in ReadinessClass}
    for document in documents:
        counts[classify_status(document.status).value] += 1
    return counts


def shipment_readiness(documents: Iterable[ComplianceDocument], shipment_id: str) -> ReadinessClass:
    """Roll a shipment's documents into a single readiness class.

    blocked if any document is blocked, ready if all are ready, otherwise
    attention. A shipment without documents needs attention.
    """
    classes = [classify_status(doc.status) for doc in documents if doc.shipment_id == shipment_id]
    if not classes:
        return ReadinessClass.ATTENTION
    if ReadinessClass.BLOCKED in classes:
        return ReadinessClass.BLOCKED
    if all(readiness == ReadinessClass.READY for readiness in classes):
        return ReadinessClass.READY
    return ReadinessClass.ATTENTION
