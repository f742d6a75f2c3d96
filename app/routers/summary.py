"""
Summary API router.
Provides read endpoints for the skipped-tests time series and trend.
"""
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import get_settings
from app.dependencies import get_store
from app.models.schemas import DailySummarySchema, TrendSummarySchema
from app.services.summary_store import SummaryStore
from app.services.trend_engine import compute_trend
from app.utils.caching import cached_summary_response

router = APIRouter()


@router.get("/timeseries", response_model=List[DailySummarySchema])
@cached_summary_response
async def get_timeseries(
    branch: Optional[str] = Query(None, max_length=255, description="Only this branch"),
    date_from: Optional[date] = Query(None, alias="from", description="Inclusive start date (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, alias="to", description="Inclusive end date (YYYY-MM-DD)"),
    store: SummaryStore = Depends(get_store)
):
    """
    Get stored daily summaries, oldest first.

    Args:
        branch: Optional branch filter
        date_from: Optional inclusive lower bound
        date_to: Optional inclusive upper bound
        store: Summary store

    Returns:
        List of daily summaries ordered by date

    Raises:
        HTTPException: If from is after to
    """
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="'from' must not be after 'to'")

    rows = store.time_series(branch=branch, date_from=date_from, date_to=date_to)
    return [DailySummarySchema.model_validate(row) for row in rows]


@router.get("/branches", response_model=List[str])
@cached_summary_response
async def get_branches(store: SummaryStore = Depends(get_store)):
    """Get every branch with at least one stored summary, sorted by name."""
    return store.distinct_branches()


@router.get("/summary", response_model=TrendSummarySchema)
@cached_summary_response
async def get_summary(
    branch: Optional[str] = Query(None, max_length=255, description="Only this branch"),
    store: SummaryStore = Depends(get_store)
):
    """
    Get today's counts, the 7-day skipped average and the trend label.

    The trend compares the last 7 days with the 7 days before. It is
    reported as flat unless both windows hold at least two days of data.
    """
    trend = compute_trend(store, branch=branch, threshold=get_settings().TREND_THRESHOLD)
    return TrendSummarySchema(**asdict(trend))
