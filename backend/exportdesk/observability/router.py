"""Prometheus scrape endpoint and document-desk health check."""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..compliance.readiness import summarize_readiness

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health")
def health_check(request: Request):
    """Report whether the document store is loaded.

    The body carries the document count, the readiness roll-up, the number
    of simulated portal transitions still pending and the authority mirror
    in use. Responds 503 until the lifespan has initialized the store.
    """
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        logger.warning("Health check before the document store was initialized")
        return JSONResponse(status_code=503, content={"status": "starting", "documents": 0})

    documents = store.list_documents()
    return {
        "status": "healthy",
        "documents": len(documents),
        "readiness": summarize_readiness(documents),
        "pending_submissions": store.simulator.pending_count(),
        "mirror_type": store.dispatcher.mirror.get_mirror_type(),
    }
