"""Compliance document desk - store, demo seeds, readiness rollups and API."""

from .readiness import shipment_readiness, summarize_readiness
from .seeds import build_store, load_seed_documents, load_seed_shipments
from .store import DocumentStore

__all__ = [
    "DocumentStore",
    "build_store",
    "load_seed_documents",
    "load_seed_shipments",
    "shipment_readiness",
    "summarize_readiness",
]
