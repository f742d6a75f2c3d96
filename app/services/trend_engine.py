"""
Trend engine for skipped-test history.

Compares the average skipped count of the last 7 days (today included) with
the 7 days before that and labels the change as up, down or flat.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from app.constants import (
    DEFAULT_TREND_THRESHOLD,
    TREND_DOWN,
    TREND_FLAT,
    TREND_MIN_SAMPLE_DAYS,
    TREND_UP,
    TREND_WINDOW_DAYS,
)
from app.services.summary_store import SummaryStore, WindowAverage
from app.utils.helpers import round_half_up, utc_today

logger = logging.getLogger(__name__)


@dataclass
class TrendSummary:
    """Headline numbers for a branch (or for all branches when none is given)."""
    today_skipped: Optional[int]
    today_total: Optional[int]
    avg_7d: Optional[float]
    trend: str


def classify_trend(
    last7: WindowAverage,
    prev7: WindowAverage,
    threshold: float = DEFAULT_TREND_THRESHOLD,
    min_sample_days: int = TREND_MIN_SAMPLE_DAYS,
) -> str:
    """
    Label the change between two window averages.

    Windows with fewer than min_sample_days samples give "flat": there is
    not enough data to call a direction. Otherwise a change larger than
    threshold in either direction is "up"/"down", anything smaller is noise.
    """
    if last7.sample_days < min_sample_days or prev7.sample_days < min_sample_days:
        return TREND_FLAT

    delta = last7.average - prev7.average
    if delta > threshold:
        return TREND_UP
    if delta < -threshold:
        return TREND_DOWN
    return TREND_FLAT


def compute_trend(
    store: SummaryStore,
    branch: Optional[str] = None,
    today: Optional[date] = None,
    threshold: float = DEFAULT_TREND_THRESHOLD,
    min_sample_days: int = TREND_MIN_SAMPLE_DAYS,
) -> TrendSummary:
    """
    Compute today's counts, the 7-day average and the trend label.

    Args:
        store: Summary store to read from
        branch: Restrict to one branch; all branches when None
        today: Reference day, defaults to the current UTC day
        threshold: Minimum change in average counted as up/down
        min_sample_days: Samples each window needs before a trend is reported

    Returns:
        TrendSummary; avg_7d is None when the last 7 days hold no data
    """
    today = today or utc_today()
    window = timedelta(days=TREND_WINDOW_DAYS)

    last7_start = today - timedelta(days=TREND_WINDOW_DAYS - 1)
    prev7_end = last7_start - timedelta(days=1)
    prev7_start = last7_start - window

    today_summary = store.summary_for_date(today, branch)
    last7 = store.average_skipped(last7_start, today, branch)
    prev7 = store.average_skipped(prev7_start, prev7_end, branch)

    trend = classify_trend(last7, prev7, threshold=threshold, min_sample_days=min_sample_days)
    logger.debug(
        f"Trend for {branch or 'all branches'} on {today}: "
        f"last7={last7}, prev7={prev7} -> {trend}"
    )

    return TrendSummary(
        today_skipped=today_summary.skipped_count if today_summary else None,
        today_total=today_summary.total_tests if today_summary else None,
        avg_7d=round_half_up(last7.average) if last7.average is not None else None,
        trend=trend,
    )
