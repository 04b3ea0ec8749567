"""Demo shipments and compliance documents, plus store bootstrap.

The demo portfolio (five shipments, three documents each) lives in
seed_data.json next to this module. Forms are validated against the form
model of each document's kind before the document itself is built.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import Settings, get_settings
from ..connectors.dispatcher import MirrorDispatcher
from ..connectors.ports import AuthorityMirrorPort
from ..connectors.registry import MirrorRegistry
from ..connectors.shipments import InMemoryShipmentDirectory
from ..domain.compliance.forms import form_type_for
from ..domain.compliance.models import ComplianceDocument, ComplianceShipment
from ..workers.scheduler import Scheduler
from .store import DocumentStore

logger = logging.getLogger(__name__)

SEED_DATA_PATH = Path(__file__).parent / "seed_data.json"


@lru_cache()
def _load_raw() -> Dict[str, Any]:
    return json.loads(SEED_DATA_PATH.read_text(encoding="utf-8"))


def build_document(raw: Dict[str, Any]) -> ComplianceDocument:
    """Build a document from a plain dict, validating its form by doc kind."""
    form = form_type_for(raw["doc_key"]).model_validate(raw.get("form", {}))
    return ComplianceDocument.model_validate({**raw, "form": form})


def load_seed_shipments() -> List[ComplianceShipment]:
    return [ComplianceShipment.model_validate(raw) for raw in _load_raw()["shipments"]]


def load_seed_documents() -> List[ComplianceDocument]:
    return [build_document(raw) for raw in _load_raw()["documents"]]


def build_store(
    scheduler: Scheduler,
    mirror: Optional[AuthorityMirrorPort] = None,
    settings: Optional[Settings] = None,
    seed: Optional[bool] = None,
) -> DocumentStore:
    """Wire a DocumentStore with its mirror dispatcher and shipment directory.

    Args:
        scheduler: Scheduler for mirror pushes and simulated portal decisions
        mirror: Authority mirror; resolved from AUTHORITY_MIRROR_TYPE when omitted
        settings: Application settings (defaults to get_settings())
        seed: Load the demo portfolio (defaults to SEED_DEMO_DATA)

    Returns:
        DocumentStore (not yet initialized)
    """
    settings = settings or get_settings()
    if mirror is None:
        # Importing the adapters registers them
        from ..connectors import implementations  # noqa: F401

        mirror = MirrorRegistry.get(settings.AUTHORITY_MIRROR_TYPE)

    seed = settings.SEED_DEMO_DATA if seed is None else seed
    documents = load_seed_documents() if seed else []
    shipments = InMemoryShipmentDirectory(load_seed_shipments() if seed else [])

    logger.info(
        f"Building document store with {len(documents)} documents",
        extra={"mirror_type": mirror.get_mirror_type()},
    )
    return DocumentStore(
        documents,
        dispatcher=MirrorDispatcher(mirror, scheduler),
        scheduler=scheduler,
        shipments=shipments,
        settings=settings,
    )
