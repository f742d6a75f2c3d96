"""
Tests for the trend engine.
"""
from datetime import date, timedelta
import pytest

from app.services.summary_store import WindowAverage
from app.services.trend_engine import TrendSummary, classify_trend, compute_trend
from app.utils.helpers import round_half_up

TODAY = date(2024, 3, 15)


def _seed(store, skipped_by_offset, branch="master", total=4500):
    """Store one row per day offset before TODAY (0 = TODAY)."""
    for offset, skipped in skipped_by_offset.items():
        store.upsert(day=TODAY - timedelta(days=offset), branch=branch, total_tests=total, skipped_count=skipped)


class TestClassifyTrend:
    """Tests for classify_trend()."""

    @pytest.mark.parametrize("last7, prev7, expected", [
        (50.0, 48.0, "up"),
        (48.0, 50.0, "down"),
        (50.0, 49.5, "flat"),
        (49.5, 50.0, "flat"),
        (51.0, 50.0, "flat"),  # exactly the threshold is not a change
        (50.0, 50.0, "flat"),
    ])
    def test_threshold(self, last7, prev7, expected):
        """Changes larger than the threshold are up/down; the rest is flat."""
        result = classify_trend(WindowAverage(last7, 7), WindowAverage(prev7, 7), threshold=1.0)
        assert result == expected

    @pytest.mark.parametrize("last7_days, prev7_days", [(1, 7), (7, 1), (0, 7), (7, 0)])
    def test_insufficient_samples_is_flat(self, last7_days, prev7_days):
        """A window with fewer than two samples gives flat, however large the change."""
        last7 = WindowAverage(100.0 if last7_days else None, last7_days)
        prev7 = WindowAverage(1.0 if prev7_days else None, prev7_days)

        assert classify_trend(last7, prev7, threshold=1.0) == "flat"

    def test_custom_threshold(self):
        """The threshold is configurable."""
        assert classify_trend(WindowAverage(50.0, 7), WindowAverage(48.0, 7), threshold=5.0) == "flat"
        assert classify_trend(WindowAverage(50.0, 7), WindowAverage(49.5, 7), threshold=0.25) == "up"


class TestComputeTrend:
    """Tests for compute_trend() over a real store."""

    def test_no_data(self, store):
        """An empty store reports nothing for today and a flat trend."""
        assert compute_trend(store, today=TODAY) == TrendSummary(
            today_skipped=None, today_total=None, avg_7d=None, trend="flat"
        )

    def test_rising(self, store):
        """Last 7 days averaging 50 against 48 before is up."""
        _seed(store, {offset: 50 for offset in range(0, 7)})
        _seed(store, {offset: 48 for offset in range(7, 14)})

        result = compute_trend(store, branch="master", today=TODAY)

        assert result == TrendSummary(today_skipped=50, today_total=4500, avg_7d=50.0, trend="up")

    def test_falling(self, store):
        _seed(store, {offset: 40 for offset in range(0, 7)})
        _seed(store, {offset: 45 for offset in range(7, 14)})

        assert compute_trend(store, today=TODAY).trend == "down"

    def test_small_change_is_flat(self, store):
        """A 0.5 change is below the default threshold."""
        _seed(store, {0: 50, 1: 50})
        _seed(store, {7: 49, 8: 50})

        assert compute_trend(store, today=TODAY).trend == "flat"

    def test_single_day_windows_are_flat(self, store):
        """One sample in either window is insufficient data."""
        _seed(store, {0: 100, 7: 1, 8: 1})

        result = compute_trend(store, today=TODAY)

        assert result.avg_7d == 100.0
        assert result.trend == "flat"

    def test_window_boundaries(self, store):
        """last7 is today-6..today and prev7 is today-13..today-7; older rows are ignored."""
        _seed(store, {0: 10, 6: 20, 7: 0, 13: 0, 14: 1000})

        result = compute_trend(store, today=TODAY)

        assert result.avg_7d == 15.0
        assert result.trend == "up"

    def test_tomorrow_is_ignored(self, store):
        """Rows dated after today are outside both windows."""
        _seed(store, {0: 10, 1: 10, -1: 1000})

        assert compute_trend(store, today=TODAY).avg_7d == 10.0

    def test_average_rounded_to_one_decimal(self, store):
        """avg_7d is rounded half up to one decimal place."""
        _seed(store, {0: 10, 1: 11, 2: 11})

        assert compute_trend(store, today=TODAY).avg_7d == 10.7

    def test_no_row_today(self, store):
        """Today's numbers are None when today has no row, the average still counts."""
        _seed(store, {1: 30, 2: 40})

        result = compute_trend(store, today=TODAY)

        assert result.today_skipped is None
        assert result.today_total is None
        assert result.avg_7d == 35.0

    def test_branch_filter(self, store):
        """Only the requested branch feeds the numbers."""
        _seed(store, {0: 10, 1: 10}, branch="master")
        _seed(store, {0: 90, 1: 90}, branch="develop", total=5000)

        result = compute_trend(store, branch="develop", today=TODAY)

        assert result.today_skipped == 90
        assert result.today_total == 5000
        assert result.avg_7d == 90.0

    def test_all_branches_average(self, store):
        """Without a branch the average spans every branch's rows."""
        _seed(store, {0: 10}, branch="master")
        _seed(store, {0: 20}, branch="develop")

        assert compute_trend(store, today=TODAY).avg_7d == 15.0


class TestRoundHalfUp:
    """Tests for round_half_up()."""

    @pytest.mark.parametrize("value, expected", [
        (2.25, 2.3),
        (2.24, 2.2),
        (10.0, 10.0),
        (0.05, 0.1),
        (38.0 / 3, 12.7),
    ])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected
