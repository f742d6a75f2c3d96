"""
FastAPI dependencies for the objects created during application startup.

The summary store and the pipeline live on app.state; tests replace them
through app.dependency_overrides.
"""
from fastapi import HTTPException, Request

from app.services.pipeline import SkippedTestsPipeline
from app.services.summary_store import SummaryStore


def get_store(request: Request) -> SummaryStore:
    """Summary store opened by the application lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Summary store is not initialized")
    return store


def get_pipeline(request: Request) -> SkippedTestsPipeline:
    """Fetch pipeline built by the application lifespan."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Fetch pipeline is not initialized")
    return pipeline
