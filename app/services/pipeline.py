"""
Fetch-and-record pipeline.

Checks out a branch of the target repository, scans it for skipped/flaky
tests and stores the day's summary. Storing is the last step: a failed
checkout or scan never writes a row.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, Optional

from app.config import Settings
from app.constants import DEFAULT_REPO_IDENTIFIER, TOP_SKIPPED_FILES_REPORTED
from app.exceptions import PipelineError, SnapshotError
from app.services.scanner import ScanResult, SkipScanner
from app.services.snapshotter import RepositorySnapshotter
from app.services.summary_store import SummaryStore
from app.utils.helpers import utc_today

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Values stored by one run_fetch call."""
    date: date
    branch: str
    total_tests: int
    skipped_count: int


@dataclass
class BatchFetchResult:
    """Outcome of fetching several branches; failures map branch -> error message."""
    succeeded: Dict[str, FetchResult] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)


class SkippedTestsPipeline:
    """Composes snapshotter, scanner and summary store into a single run."""

    def __init__(
        self,
        snapshotter: RepositorySnapshotter,
        scanner: SkipScanner,
        store: SummaryStore,
        repo_identifier: str = DEFAULT_REPO_IDENTIFIER,
        today: Callable[[], date] = utc_today,
    ):
        self.snapshotter = snapshotter
        self.scanner = scanner
        self.store = store
        self.repo_identifier = repo_identifier
        self._today = today

    def run_fetch(self, branch: str) -> FetchResult:
        """
        Snapshot branch, count its skipped tests and record today's summary.

        Re-running on the same day overwrites that day's row for the branch.

        Args:
            branch: Branch of the target repository

        Returns:
            FetchResult with the stored values

        Raises:
            PipelineError: If the checkout or the scan fails (nothing is stored)
            StoreError: If the summary cannot be written
        """
        logger.info(f"Fetching skipped test data for {self.snapshotter.repo_slug} @ {branch}")

        try:
            # The working tree must not move between checkout and scan
            with self.snapshotter.checkout_lock(branch):
                checkout_path = self.snapshotter.ensure_branch(branch)
                scan = self.scanner.scan(checkout_path)
        except SnapshotError as e:
            raise PipelineError(f"Snapshot failed for branch {branch!r}: {e}", branch=branch) from e
        except OSError as e:
            raise PipelineError(f"Scan failed for branch {branch!r}: {e}", branch=branch) from e

        day = self._today()
        self._log_report(day, branch, scan)

        row = self.store.upsert(
            day=day,
            branch=branch,
            total_tests=scan.total_tests,
            skipped_count=scan.skipped_count,
            repo=self.repo_identifier,
        )
        logger.info(f"Stored {day} / {branch} in summary store")

        return FetchResult(
            date=row.date,
            branch=row.branch,
            total_tests=row.total_tests,
            skipped_count=row.skipped_count,
        )

    def run_for_branches(self, branches: Iterable[str]) -> BatchFetchResult:
        """
        Run run_fetch for each branch in turn.

        A failing branch is logged and recorded; the remaining branches still run.
        """
        batch = BatchFetchResult()
        for branch in branches:
            try:
                result = self.run_fetch(branch)
            except Exception as e:
                logger.error(f"Failed to fetch {branch}: {e}", exc_info=True)
                batch.failed[branch] = str(e)
                continue

            logger.info(f"{branch}: {result.skipped_count} skipped / {result.total_tests} total")
            batch.succeeded[branch] = result
        return batch

    @staticmethod
    def _log_report(day: date, branch: str, scan: ScanResult, top: Optional[int] = TOP_SKIPPED_FILES_REPORTED) -> None:
        logger.info(
            f"Results for {branch} on {day}: {scan.files_scanned} files scanned, "
            f"{scan.total_tests} tests, {scan.skipped_count} skipped/flaky, "
            f"{len(scan.skipped_files)} files with skips"
        )
        for skipped_file in scan.skipped_files[:top]:
            logger.info(f"  {skipped_file.skip_count}x  {skipped_file.relative_path}")


def create_pipeline(settings: Settings, store: SummaryStore) -> SkippedTestsPipeline:
    """Build a pipeline for the repository and scan rules in settings."""
    snapshotter = RepositorySnapshotter(
        repo_slug=settings.TARGET_REPO,
        checkout_root=settings.CACHE_DIR,
        token=settings.GH_TOKEN,
        git_host=settings.GIT_HOST,
        timeout=settings.GIT_OPERATION_TIMEOUT_SECONDS,
        per_branch_checkouts=settings.CHECKOUT_PER_BRANCH,
    )
    scanner = SkipScanner(
        extensions=settings.scan_extensions,
        excluded_dirs=settings.scan_excluded_dirs,
        max_workers=settings.SCAN_MAX_WORKERS,
    )
    return SkippedTestsPipeline(
        snapshotter=snapshotter,
        scanner=scanner,
        store=store,
        repo_identifier=settings.REPO_IDENTIFIER,
    )
