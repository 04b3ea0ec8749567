"""ExportDesk FastAPI application.

`create_app()` wires the compliance API, request correlation, CORS, error
handlers and the observability endpoints. The document store is bound to
the running event loop in the lifespan, unless a ready-made store is
passed in (tests pass one driven by a VirtualScheduler).

Run locally with:

    uvicorn exportdesk.main:app --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .compliance.router import router as compliance_router
from .compliance.seeds import build_store
from .compliance.store import DocumentStore
from .config import Settings, get_settings
from .observability.logging_config import configure_logging
from .observability.middleware import REQUEST_ID_HEADER, RequestIDMiddleware
from .observability.router import router as observability_router
from .workers.scheduler import AsyncioScheduler

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def jsonable_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Validation errors without the `ctx`/`url` entries, which may not serialize."""
    return [{key: value for key, value in error.items() if key not in ("ctx", "url")} for error in exc.errors()]


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} validation error(s)")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    # Details stay in the log; the client only gets a generic body
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "An unexpected error occurred"},
    )


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """Build the ExportDesk application.

    Args:
        settings: Application settings (defaults to get_settings())
        store: Pre-built document store; when omitted the lifespan builds one
            on an AsyncioScheduler bound to the serving loop

    Returns:
        FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    show_docs = settings.ENVIRONMENT != "production"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        document_store = store
        if document_store is None:
            document_store = build_store(AsyncioScheduler(asyncio.get_running_loop()), settings=settings)
        resumed = document_store.initialize()
        app.state.document_store = document_store
        logger.info(
            f"ExportDesk {__version__} serving {len(document_store.list_documents())} documents "
            f"({settings.ENVIRONMENT}, {resumed} submissions resumed)"
        )
        try:
            yield
        finally:
            # Pending portal timers must not fire into a stopped loop
            for document in document_store.list_documents():
                document_store.simulator.cancel(document.id)
            document_store.scheduler.close()
            logger.info("ExportDesk stopped")

    app = FastAPI(
        title="ExportDesk API",
        description="Trade-compliance documents, state-portal submissions and shipment readiness",
        version=__version__,
        docs_url="/docs" if show_docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if show_docs else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(observability_router)
    app.include_router(compliance_router, prefix=API_PREFIX)

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, Any]:
        return {
            "name": app.title,
            "version": __version__,
            "status": "running",
            "docs": app.docs_url,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "exportdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
