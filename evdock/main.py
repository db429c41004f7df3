from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from evdock.config import settings
from evdock.api.deps import get_record_store
from evdock.api.v1.router import api_router
from evdock.core.exceptions import (
    Forbidden,
    InvalidArgument,
    InvalidOperation,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
    RecordStoreError,
    WorkflowError,
)
from evdock.services.record_store import SQLRecordStore


logger = logging.getLogger(__name__)

# Workflow error -> HTTP status
ERROR_STATUS_CODES = {
    NotFound: 404,
    Forbidden: 403,
    PreconditionFailed: 409,
    InvalidTransition: 409,
    InvalidArgument: 400,
    InvalidOperation: 400,
    RecordStoreError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Select the record store backend
    - Create the records table when the SQL backend is used

    Shutdown:
    - Release the backend connection
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    store = app.dependency_overrides.get(get_record_store, get_record_store)()
    if isinstance(store, SQLRecordStore):
        await store.create_tables()
        logger.info("Records table ready")

    yield

    await store.close()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Vehicle deposit workflow: confirmation, pre-order pipeline and settlement.",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


def status_code_for(exc: WorkflowError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """Return the typed workflow error with its expected-vs-actual details."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "type": type(exc).__name__,
            "details": exc.details,
        },
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with record store validation."""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "record_store": "unknown"
        }
    }

    store = app.dependency_overrides.get(get_record_store, get_record_store)()
    try:
        await store.get(f"{settings.STORE_NAMESPACE}:health")
        health_status["checks"]["record_store"] = "connected"
    except RecordStoreError as e:
        health_status["status"] = "unhealthy"
        health_status["checks"]["record_store"] = f"error: {e.message}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status
