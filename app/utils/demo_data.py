"""
Demo history for local development.

Fills the summary store with a month of plausible-looking data so the
dashboard and the trend have something to show before the first real fetch.
"""
import logging
import math
import random
from datetime import date, timedelta
from typing import Dict, Iterator, Optional, Sequence

from app.services.summary_store import SummaryStore
from app.utils.helpers import utc_today

logger = logging.getLogger(__name__)

DEMO_DAYS = 30
DEMO_BRANCHES = ("master", "develop")
DEMO_BASE_TOTAL = 4500
DEMO_BASE_SKIPPED: Dict[str, int] = {"master": 38, "develop": 45}


def random_walk(base: int, max_delta: int, rng: random.Random) -> Iterator[int]:
    """
    Endless non-negative random walk starting near base.

    Steps are slightly biased upwards, like a test suite that slowly
    accumulates skips.
    """
    value = base
    while True:
        value += math.floor((rng.random() - 0.45) * max_delta + 0.5)
        value = max(0, value)
        yield value


def seed_demo_history(
    store: SummaryStore,
    days: int = DEMO_DAYS,
    branches: Sequence[str] = DEMO_BRANCHES,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Upsert `days` days of history ending today for each branch.

    Returns:
        Number of rows written
    """
    today = today or utc_today()
    rng = rng or random.Random()
    written = 0

    for branch in branches:
        skipped_walk = random_walk(DEMO_BASE_SKIPPED.get(branch, DEMO_BASE_SKIPPED["master"]), 4, rng)
        total_walk = random_walk(DEMO_BASE_TOTAL, 20, rng)

        for offset in range(days - 1, -1, -1):
            store.upsert(
                day=today - timedelta(days=offset),
                branch=branch,
                total_tests=next(total_walk),
                skipped_count=next(skipped_walk),
            )
            written += 1

    logger.info(f"Seeded {days} days x {len(branches)} branches = {written} rows")
    return written
