"""
Client Intake - Backend API
FastAPI with multiple storage backends: memory, JSON file, SQLite and Google Sheets

Install:
pip install -e .

Run server (from services/api/):
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import time
import uuid
import contextvars
from collections import defaultdict
from typing import Optional

from settings import Settings, get_settings
from core.media_store import drive_configured

VERSION = "1.0"

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)

# ========== Metrics Storage ==========
request_metrics = {
    "total_requests": defaultdict(int),  # by endpoint
    "total_latency": defaultdict(float),  # by endpoint
    "status_codes": defaultdict(int),  # by status code
}

# Every log record carries the current request id ("-" outside a request)
_base_record_factory = logging.getLogRecordFactory()


def _record_with_request_id(*args, **kwargs):
    record = _base_record_factory(*args, **kwargs)
    record.request_id = request_id_var.get() or "-"
    return record


logging.setLogRecordFactory(_record_with_request_id)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# BACKEND CONFIGURATION
# ============================================================================
settings = get_settings()

STORAGE_BACKEND = settings.storage_backend.lower()

logger.info(f"🔧 Storage Backend: {STORAGE_BACKEND.upper()}")

# ============================================================================
# STORAGE ADAPTER INITIALIZATION
# ============================================================================

def create_storage_adapter(cfg: Settings):
    """Build the submission store selected by STORAGE_BACKEND."""
    backend = cfg.storage_backend.lower()

    if backend == "memory":
        from adapters.memory import MemoryAdapter
        return MemoryAdapter()

    if backend == "json":
        from adapters.json import JsonAdapter
        return JsonAdapter(data_dir=cfg.data_dir)

    if backend == "sqlite":
        from adapters.sqlite import SqliteAdapter
        return SqliteAdapter.from_url(cfg.db_url)

    if backend == "sheets":
        from adapters.sheets import SheetsAdapter

        sa_json = cfg.resolved_google_sa_json()
        if not sa_json or not cfg.sheets_spreadsheet_id:
            raise ValueError("Google Sheets requires GOOGLE_SA_JSON and SHEETS_SPREADSHEET_ID")
        logger.info("Initializing Google Sheets adapter...")
        return SheetsAdapter(google_sa_json=sa_json, spreadsheet_id=cfg.sheets_spreadsheet_id)

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


try:
    storage_adapter = create_storage_adapter(settings)
    logger.info(f"✓ {STORAGE_BACKEND} storage initialized")
except Exception as e:
    logger.error(f"✗ Failed to initialize {STORAGE_BACKEND} storage: {e}")
    raise

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Client Intake API",
    description="Client profile intake: submissions, image hosting and operator notification",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.state.storage_adapter = storage_adapter
app.state.storage_backend = STORAGE_BACKEND

# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    started = time.time()

    response = await call_next(request)

    latency = time.time() - started

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({round(latency * 1000, 2)} ms)"
    )

    endpoint = f"{request.method} {request.url.path}"
    request_metrics["total_requests"][endpoint] += 1
    request_metrics["total_latency"][endpoint] += latency
    request_metrics["status_codes"][response.status_code] += 1

    response.headers["X-Request-ID"] = request_id
    return response


ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# ENDPOINTS
# ============================================================================

def _backend_name() -> str:
    return getattr(app.state.storage_adapter, "backend_name", STORAGE_BACKEND)


def _store_error() -> Optional[str]:
    """None when the submission store answers its ping, else the error text."""
    try:
        app.state.storage_adapter.ping()
    except Exception as e:
        return str(e)
    return None


@app.get("/health")
async def health_check():
    """Store reachability plus version."""
    error = _store_error()
    if error:
        logger.error(f"Health check failed: {error}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "backend": _backend_name(), "error": error},
        )
    return {"status": "healthy", "backend": _backend_name(), "version": VERSION}


@app.get("/healthz")
async def healthz():
    """Liveness: 200 whenever the process serves requests."""
    return {"status": "ok", "timestamp": time.time(), "version": VERSION}


@app.get("/readyz")
async def readyz():
    """
    Readiness: 503 until the store answers.

    Image hosting and SMTP are reported but never make the service unready;
    without them uploads return 503 and operator e-mails are skipped.
    """
    error = _store_error()
    body = {
        "backend": _backend_name(),
        "media_host_configured": drive_configured(),
        "smtp_configured": get_settings().smtp_configured(),
        "timestamp": time.time(),
    }
    if error:
        logger.error(f"Readiness check failed: {error}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "error": error, **body},
        )
    return {"status": "ready", **body}


@app.get("/metrics")
async def get_metrics():
    """Request counts, latencies and status codes since startup."""
    avg_latencies = {}
    for endpoint, total_latency in request_metrics["total_latency"].items():
        count = request_metrics["total_requests"][endpoint]
        avg_latencies[endpoint] = round((total_latency / count) * 1000, 2) if count > 0 else 0

    return {
        "timestamp": time.time(),
        "uptime_seconds": round(time.time() - startup_time, 2),
        "backend": _backend_name(),
        "requests": {
            "by_endpoint": dict(request_metrics["total_requests"]),
            "by_status": dict(request_metrics["status_codes"]),
            "total": sum(request_metrics["total_requests"].values()),
        },
        "latency": {
            "by_endpoint_ms": avg_latencies,
        },
    }


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "Client Intake API",
        "version": VERSION,
        "backend": _backend_name(),
        "status": "running",
        "docs": "/docs"
    }


from routers import submissions as submissions_router
app.include_router(submissions_router.router)

from routers import uploads as uploads_router
app.include_router(uploads_router.router)

startup_time = time.time()

@app.on_event("startup")
async def startup_event():
    global startup_time
    startup_time = time.time()
    logger.info("Client Intake API starting up...")
    logger.info(f"Storage Backend: {STORAGE_BACKEND.upper()}")
    if STORAGE_BACKEND == "sqlite":
        logger.info(f"Database: {settings.db_url.split('://')[0]}")
    elif STORAGE_BACKEND == "sheets":
        logger.info(f"Spreadsheet ID: {settings.sheets_spreadsheet_id}")
    if not drive_configured():
        logger.warning("Google Drive token missing; /api/upload-images will return 503")
    if not settings.smtp_configured():
        logger.warning("SMTP not configured; operator e-mails will be skipped")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Client Intake API shutting down...")
    engine = getattr(app.state.storage_adapter, "engine", None)
    if engine is not None:
        engine.dispose()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port)
