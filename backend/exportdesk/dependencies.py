"""Global FastAPI dependencies.

The document store is created once per application (see main.lifespan) and
kept on app.state; endpoints receive it through get_document_store so tests
can swap in a store driven by a VirtualScheduler.
"""

from fastapi import HTTPException, Request, status

from .compliance.store import DocumentStore


def get_document_store(request: Request) -> DocumentStore:
    """Return the application's DocumentStore.

    Raises:
        HTTPException: 503 if the store has not been initialized yet
    """
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document store is not initialized",
        )
    return store
