"""
FastAPI main application for the Skipped Tests Tracker.

Provides REST API endpoints for recording daily skipped/flaky test counts
and reading their history and trend.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend

from app.config import get_settings
from app.exceptions import PayloadValidationError, PipelineError, StoreError
from app.services.pipeline import create_pipeline
from app.services.summary_store import SummaryStore
from app.tasks.scheduler import get_scheduler_status, start_scheduler, stop_scheduler

APP_VERSION = "1.0.0"

# Configure logging from settings
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format=settings.LOG_FORMAT,
    handlers=[
        logging.StreamHandler(),  # Console output
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.
    Opens the summary store, builds the pipeline and starts the daily fetch.
    """
    # Startup
    logger.info("Starting Skipped Tests Tracker API")
    settings = get_settings()
    logger.info(f"Target repository: {settings.TARGET_REPO}")
    logger.info(f"Auto-fetch enabled: {settings.AUTO_FETCH_ENABLED}")

    store = SummaryStore(settings.DATABASE_URL, echo=settings.DEBUG)
    store.init_schema()
    app.state.store = store
    app.state.pipeline = create_pipeline(settings, store)

    # Initialize caching
    if settings.CACHE_ENABLED:
        FastAPICache.init(InMemoryBackend(), prefix="fastapi-cache")
        logger.info("Cache initialized with in-memory backend")
    else:
        logger.info("Caching disabled")

    # Start background scheduler for the daily fetch
    try:
        start_scheduler(app.state.pipeline, settings)
    except Exception as e:
        logger.error(f"Failed to start background scheduler: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down Skipped Tests Tracker API")

    try:
        stop_scheduler()
    except Exception as e:
        logger.error(f"Error stopping scheduler: {e}", exc_info=True)

    store.close()


# Create FastAPI application
app = FastAPI(
    title="Skipped Tests Tracker API",
    description="""
    Tracks how many tests in the target repository are marked skipped or flaky,
    per branch and per day.

    ## Authentication

    Write endpoints (`/webhook`, `/fetch-now`) require the `X-API-Key` header
    when `API_KEY` is set. Read endpoints are always public.
    """,
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure rate limiting
if settings.RATE_LIMIT_ENABLED:
    rate_limit_string = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[rate_limit_string]
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info(f"Rate limiting enabled: {rate_limit_string}")
else:
    limiter = Limiter(key_func=get_remote_address, enabled=False)
    app.state.limiter = limiter
    logger.info("Rate limiting disabled")

# Configure CORS with specific allowed origins
allowed_origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS else []
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key"],
)

if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(SlowAPIMiddleware)


# Global exception handlers
@app.exception_handler(PayloadValidationError)
async def payload_validation_error_handler(request: Request, exc: PayloadValidationError):
    """Report every invalid webhook field at once."""
    logger.warning(f"Rejected summary payload: {exc.errors}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation failed",
            "details": exc.errors
        }
    )


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Fetch failures may mention checkout paths, so only a generic message is returned."""
    logger.error(f"Fetch failed for branch '{exc.branch}': {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Fetch failed",
            "detail": f"Could not fetch skipped tests for branch '{exc.branch}'"
        }
    )


@app.exception_handler(StoreError)
@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: Exception):
    """Handle summary store and database errors."""
    logger.error(f"Database error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Database error",
            "detail": "An error occurred while accessing the database"
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )


# Health check endpoints
@app.get("/health", tags=["System"])
async def health_check():
    """
    Basic health check endpoint - returns minimal status.

    Returns:
        Status information about the application
    """
    return {
        "status": "healthy",
        "version": APP_VERSION
    }


@app.get("/health/detailed", tags=["System"])
async def detailed_health_check(request: Request):
    """
    Detailed health check endpoint for monitoring systems.

    Checks:
    - Summary store connectivity
    - Daily fetch scheduler status
    - Cache status

    Returns:
        Comprehensive health status
    """
    health_status = {
        "status": "healthy",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {}
    }

    # Check database connectivity
    store = getattr(request.app.state, "store", None)
    try:
        if store is None:
            raise RuntimeError("summary store not initialized")
        with store.session() as db:
            db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": "Database connection failed"
        }
        logger.error(f"Database health check failed: {e}")

    # Check scheduler status
    if settings.AUTO_FETCH_ENABLED:
        scheduler_status = get_scheduler_status()
        is_running = scheduler_status["running"]
        health_status["checks"]["scheduler"] = {
            "status": "healthy" if is_running else "degraded",
            "message": f"Scheduler is {'running' if is_running else 'not running'}",
            "running": is_running,
            "next_run": scheduler_status["next_run"]
        }
        if not is_running and health_status["status"] == "healthy":
            health_status["status"] = "degraded"
    else:
        health_status["checks"]["scheduler"] = {
            "status": "disabled",
            "message": "Auto-fetch disabled in configuration"
        }

    # Check cache status
    if settings.CACHE_ENABLED:
        health_status["checks"]["cache"] = {
            "status": "healthy",
            "message": "Cache is enabled",
            "backend": "in-memory"
        }
    else:
        health_status["checks"]["cache"] = {
            "status": "disabled",
            "message": "Caching disabled in configuration"
        }

    return health_status


@app.get("/health/live", tags=["System"])
async def liveness_probe():
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@app.get("/health/ready", tags=["System"])
async def readiness_probe(request: Request):
    """
    Kubernetes readiness probe endpoint.

    Returns 200 if ready to serve traffic, 503 if not.
    """
    store = getattr(request.app.state, "store", None)
    try:
        if store is None:
            raise RuntimeError("summary store not initialized")
        with store.session() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.error(f"Readiness probe failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "reason": "database unavailable"}
        )


@app.get("/api/v1", tags=["System"])
async def api_root():
    """
    API root endpoint.

    Returns:
        Welcome message with API documentation link
    """
    return {
        "message": "Skipped Tests Tracker API",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": {
            "basic": "/health",
            "detailed": "/health/detailed",
            "liveness": "/health/live",
            "readiness": "/health/ready"
        }
    }


# Import and register routers with API versioning
from app.routers import ingest, summary

# v1 API endpoints (current)
app.include_router(summary.router, prefix="/api/v1", tags=["Summary v1"])
app.include_router(ingest.router, prefix="/api/v1", tags=["Ingest v1"])

# Maintain compatibility with the unversioned /api/* paths
app.include_router(summary.router, prefix="/api", tags=["Summary"], include_in_schema=False)
app.include_router(ingest.router, prefix="/api", tags=["Ingest"], include_in_schema=False)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
