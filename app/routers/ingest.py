"""
Ingest API router.

Write endpoints: the webhook for externally computed summaries and an
on-demand trigger for the fetch-and-record pipeline. Both require the
X-API-Key header when API_KEY is configured.
"""
import logging
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.constants import DEFAULT_BRANCH
from app.dependencies import get_pipeline, get_store
from app.models.schemas import FetchRequest, FetchResponse, WebhookResponse, parse_webhook_payload
from app.services.pipeline import SkippedTestsPipeline
from app.services.summary_store import SummaryStore
from app.utils.auth import verify_api_key
from app.utils.caching import invalidate_summary_cache

logger = logging.getLogger(__name__)
router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=get_settings().RATE_LIMIT_ENABLED)


@router.post("/webhook", response_model=WebhookResponse, dependencies=[Depends(verify_api_key)])
async def receive_summary(
    body: Any = Body(None),
    store: SummaryStore = Depends(get_store)
):
    """
    Store a daily summary computed outside this service.

    Performs the same upsert as the fetch pipeline.

    Args:
        body: JSON object with date, branch, total_tests, skipped_count and optional repo
        store: Summary store

    Returns:
        Confirmation message

    Raises:
        PayloadValidationError: If any field is invalid (HTTP 400 with per-field details)
    """
    payload = parse_webhook_payload(body)

    store.upsert(
        day=payload.day,
        branch=payload.branch,
        total_tests=payload.total_tests,
        skipped_count=payload.skipped_count,
        repo=payload.repo,
    )
    await invalidate_summary_cache()

    logger.info(f"Webhook upserted {payload.date} / {payload.branch}")
    return WebhookResponse(message=f"Upserted {payload.date} / {payload.branch}")


@router.post("/fetch-now", response_model=FetchResponse, dependencies=[Depends(verify_api_key)])
@limiter.limit("5/minute")  # Each run clones or fetches the target repository
async def fetch_now(
    request: Request,
    fetch_request: Optional[FetchRequest] = None,
    pipeline: SkippedTestsPipeline = Depends(get_pipeline)
):
    """
    Run the fetch-and-record pipeline for a branch right away.

    Args:
        request: FastAPI request object (required by the rate limiter)
        fetch_request: Optional body naming the branch (defaults to master)
        pipeline: Fetch pipeline

    Returns:
        The stored date, branch and counts

    Raises:
        PipelineError: If checkout or scan fails (HTTP 500, generic message)
    """
    branch = (fetch_request.branch if fetch_request else None) or DEFAULT_BRANCH

    result = await run_in_threadpool(pipeline.run_fetch, branch)
    await invalidate_summary_cache()

    return FetchResponse(
        date=result.date,
        branch=result.branch,
        totalTests=result.total_tests,
        skippedCount=result.skipped_count,
    )
