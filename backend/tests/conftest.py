"""Pytest fixtures for the compliance document desk.

Provides reusable test fixtures for:
- A deterministic VirtualScheduler (time only moves on advance())
- An in-memory authority mirror that records status pushes
- A DocumentStore loaded with the demo portfolio
- A FastAPI TestClient bound to that store

Usage:
    def test_signing(store, scheduler):
        store.start_submission("doc_phyto_s5005")
        scheduler.advance(5200)
        assert store.get_document("doc_phyto_s5005").status == DocumentStatus.ACTIVE
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

from exportdesk.compliance.seeds import build_document, build_store  # noqa: E402
from exportdesk.compliance.store import DocumentStore  # noqa: E402
from exportdesk.config import Settings  # noqa: E402
from exportdesk.connectors import InMemoryAuthorityMirror, InMemoryShipmentDirectory, MirrorDispatcher  # noqa: E402
from exportdesk.workers.scheduler import VirtualScheduler  # noqa: E402

SCHEDULER_START = datetime(2025, 9, 15, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        LOG_JSON=False,
        AUTHORITY_MIRROR_TYPE="MEMORY",
        SEED_DEMO_DATA=True,
        TRACKING_ID_PREFIX="TRK",
    )


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler(start=SCHEDULER_START)


@pytest.fixture
def mirror() -> InMemoryAuthorityMirror:
    return InMemoryAuthorityMirror()


@pytest.fixture
def store(scheduler, mirror, settings) -> DocumentStore:
    """Store seeded with the demo portfolio (not initialized)."""
    return build_store(scheduler, mirror=mirror, settings=settings, seed=True)


@pytest.fixture
def make_store(scheduler, mirror, settings):
    """Factory for a store holding only the given documents.

    Usage:
        store = make_store([phyto_document("doc_a")])
    """
    def _make(documents, shipments=()):
        return DocumentStore(
            documents,
            dispatcher=MirrorDispatcher(mirror, scheduler),
            scheduler=scheduler,
            shipments=InMemoryShipmentDirectory(shipments),
            settings=settings,
        )
    return _make


COMPLETE_PHYTO_FORM = {
    "exporter_name": "ProList Manufacturing Ltd",
    "consignee_name": "German Trading GmbH",
    "origin_country": "Cameroon",
    "destination_country": "Germany",
    "mode": "AIR",
    "port_of_loading": "Douala International",
    "port_of_discharge": "Frankfurt Main",
    "products": [
        {
            "id": "prod_1",
            "botanical_name": "Coffea canephora",
            "common_name": "Green coffee",
            "quantity_value": "4800",
            "quantity_unit": "kg",
        }
    ],
    "place_of_inspection": "Douala Export Warehouse",
    "inspection_date": "2025-09-16",
}


def _phyto_document(doc_id: str = "doc_test_phyto", **overrides):
    """Build a PHYTO document with a complete form and one ready version."""
    raw = {
        "id": doc_id,
        "doc_key": "PHYTO",
        "shipment_id": "s_9001",
        "shipment_ref": "PL-2025-EX-9001",
        "title": "Phytosanitary Certificate",
        "status": "ready",
        "portal_behavior": "auto-sign",
        "last_updated": "2025-09-15T07:00:00Z",
        "versions": [
            {
                "id": f"ver_{doc_id}_v1",
                "version": 1,
                "label": "Ready",
                "created_at": "2025-09-15T07:00:00Z",
                "created_by": "You",
                "status": "ready",
            }
        ],
        "current_version_id": f"ver_{doc_id}_v1",
        "form": COMPLETE_PHYTO_FORM,
    }
    raw.update(overrides)
    return build_document(raw)


@pytest.fixture
def phyto_document():
    """Factory for standalone PHYTO documents.

    Usage:
        doc = phyto_document("doc_a", status="draft", portal_behavior="manual")
    """
    return _phyto_document


@pytest.fixture
def client(store):
    """TestClient whose app uses the seeded virtual-time store."""
    from exportdesk.main import create_app

    app = create_app(store=store)
    with TestClient(app) as test_client:
        yield test_client
