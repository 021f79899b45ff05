"""FastAPI application setup for Vector Lite."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vector_lite.api.dependencies import (
    get_app_settings,
    get_database,
    get_embedding_client,
    get_ingest_pipeline,
    get_queue,
    get_search_engine,
)
from vector_lite.api.routes_admin import router as admin_router
from vector_lite.api.routes_ingest import router as ingest_router
from vector_lite.api.routes_query import router as query_router
from vector_lite.api.routes_queue import router as queue_router
from vector_lite.core.errors import (
    DefaultGroupProtected,
    DocumentNotFound,
    EmbeddingError,
    GroupNotFound,
    ProviderUnauthenticated,
    UnknownProvider,
    VectorLiteError,
)
from vector_lite.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

# First match wins; subclasses precede their bases.
_ERROR_STATUS: tuple[tuple[type[VectorLiteError], int], ...] = (
    (DocumentNotFound, 404),
    (GroupNotFound, 404),
    (DefaultGroupProtected, 409),
    (ProviderUnauthenticated, 401),
    (UnknownProvider, 400),
    (EmbeddingError, 502),
)

app = FastAPI(
    title="Vector Lite",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(ingest_router, prefix="/documents", tags=["documents"])
app.include_router(queue_router, prefix="/queue", tags=["queue"])
app.include_router(query_router, prefix="", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


def status_for(exc: Exception) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


@app.exception_handler(VectorLiteError)
async def domain_error_handler(request: Request, exc: VectorLiteError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": "ValueError"})


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons and release entries stranded by a previous crash."""
    settings = get_app_settings()
    get_database()
    get_embedding_client()
    queue = get_queue()
    get_ingest_pipeline()
    get_search_engine()
    if settings.recover_on_startup:
        queue.recover_stranded()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
