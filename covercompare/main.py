"""
Main FastAPI application for the Cover Compare backend.
Handles CORS, request logging middleware, lifespan events, error mapping and
router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from covercompare.config import settings
from covercompare.database import close_db, init_db
from covercompare.exceptions import (
    AdminConflict,
    AdminNotFound,
    AlreadyEditing,
    ExtractionUnavailable,
    IndexOutOfRange,
    InvalidEnumValue,
    InvalidFieldValue,
    InvariantViolation,
    MalformedImport,
    NotInEditMode,
    PermissionDenied,
    SessionNotFound,
    UnknownField,
)
from covercompare.routers import admins, audit_logs, clients, comparisons, data, health
from covercompare.services.comparison_extractor import ComparisonExtractionService
from covercompare.services.edit_sessions import edit_sessions

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting Cover Compare backend …")
    logger.info("=" * 60)

    # 1 - Database (admins, clients and audit logs always live here)
    try:
        await init_db()
        logger.info("✓ Database connection OK")
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise
    logger.info("✓ Comparison store: %s", settings.DATA_SOURCE)

    # 2 - Ollama (optional; only text import needs it)
    if await ComparisonExtractionService().check_health():
        logger.info("✓ Ollama reachable, extraction model '%s'", settings.OLLAMA_LLM_MODEL)
    else:
        logger.warning(
            "Ollama is not running.  Start it with: ollama serve\n"
            "  Text import will be unavailable; manual editing still works."
        )

    logger.info("=" * 60)
    logger.info("  Cover Compare backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down Cover Compare backend …")
    dropped = len(edit_sessions)
    edit_sessions.clear()
    if dropped:
        logger.info("Dropped %d open drafts", dropped)
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Cover Compare API",
    description=(
        "**Cover Compare** — broker console for side-by-side insurance plan "
        "comparisons.\n\n"
        "Key endpoints:\n"
        "- `POST /api/comparisons/new` — create from the blank template\n"
        "- `POST /api/comparisons/import` — extract a comparison from pasted text\n"
        "- `POST /api/comparisons/{id}/edit` — open a draft\n"
        "- `POST /api/comparisons/{id}/draft/operations` — edit the draft\n"
        "- `POST /api/comparisons/{id}/draft/commit` — save the draft\n"
        "- `GET  /api/data/export` — dump everything as JSON\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    if request.url.path not in ("/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

_ERROR_STATUS = (
    (NotInEditMode, status.HTTP_409_CONFLICT),
    (AlreadyEditing, status.HTTP_409_CONFLICT),
    (AdminConflict, status.HTTP_409_CONFLICT),
    (IndexOutOfRange, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidEnumValue, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidFieldValue, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnknownField, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvariantViolation, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MalformedImport, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (SessionNotFound, status.HTTP_404_NOT_FOUND),
    (AdminNotFound, status.HTTP_404_NOT_FOUND),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (ExtractionUnavailable, status.HTTP_502_BAD_GATEWAY),
)


def _register_error(exc_class, status_code: int) -> None:
    async def handler(request: Request, exc: Exception):
        logger.info(
            "%s on %s %s: %s",
            type(exc).__name__, request.method, request.url.path, exc,
        )
        content = {"detail": str(exc), "error": type(exc).__name__}
        if isinstance(exc, MalformedImport) and exc.path:
            content["path"] = exc.path
        return JSONResponse(status_code=status_code, content=content)

    app.add_exception_handler(exc_class, handler)


for _exc_class, _status_code in _ERROR_STATUS:
    _register_error(_exc_class, _status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,      prefix="/api/health",      tags=["Health"])
app.include_router(comparisons.router, prefix="/api/comparisons", tags=["Comparisons"])
app.include_router(clients.router,     prefix="/api/clients",     tags=["Clients"])
app.include_router(admins.router,      prefix="/api/admins",      tags=["Admins"])
app.include_router(audit_logs.router,  prefix="/api/audit-logs",  tags=["Audit"])
app.include_router(data.router,        prefix="/api/data",        tags=["Data"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "Cover Compare API",
        "version": "0.1.0",
        "description": "Insurance plan comparison console backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "comparisons": "/api/comparisons",
            "clients": "/api/clients",
            "admins": "/api/admins",
            "audit_logs": "/api/audit-logs",
            "data": "/api/data",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "covercompare.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
