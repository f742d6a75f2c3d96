"""
Summary store for daily skipped-test counts.

Wraps the daily_skipped_summary table behind an explicitly constructed
object: callers create it, call init_schema() once, pass it to whatever needs
it and close() it on shutdown. At most one row exists per (date, branch);
writes go through a single INSERT ... ON CONFLICT statement so concurrent
writers for the same key cannot create duplicates.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Iterator, List, NamedTuple, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.constants import DEFAULT_REPO_IDENTIFIER
from app.database import create_db_engine, create_session_factory
from app.exceptions import StoreError
from app.models.db_models import Base, DailySkippedSummary, utcnow

logger = logging.getLogger(__name__)

_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class WindowAverage(NamedTuple):
    """Mean skipped count over a date window; average is None when no rows matched."""
    average: Optional[float]
    sample_days: int


class SummaryStore:
    """Time-indexed store of DailySkippedSummary rows keyed by (date, branch)."""

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            database_url: SQLAlchemy URL of the database holding the summaries
            echo: Log SQL statements
            clock: Source of created_at/updated_at timestamps
        """
        self.database_url = database_url
        self.engine = create_db_engine(database_url, echo=echo)
        self._session_factory = create_session_factory(self.engine)
        self._clock = clock

    def init_schema(self) -> None:
        """Create the summary table and its indexes if they don't exist."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize summary schema: {e}") from e
        logger.info("Summary store ready")

    def close(self) -> None:
        """Release all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Session scope with commit on success and rollback on error.

        Database errors are re-raised as StoreError.
        """
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Summary store error: {e}")
            raise StoreError(f"Summary store operation failed: {e}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def upsert(
        self,
        day: date,
        branch: str,
        total_tests: int,
        skipped_count: int,
        repo: Optional[str] = None,
    ) -> DailySkippedSummary:
        """
        Insert the summary for (day, branch) or overwrite the existing one.

        On conflict repo, total_tests, skipped_count and updated_at are
        replaced; created_at keeps its original value.

        Returns:
            The stored row
        """
        now = self._clock()
        values = {
            "date": day,
            "repo": repo or DEFAULT_REPO_IDENTIFIER,
            "branch": branch,
            "total_tests": total_tests,
            "skipped_count": skipped_count,
            "created_at": now,
            "updated_at": now,
        }

        with self.session() as db:
            db.execute(self._upsert_statement(values))
            db.flush()
            row = db.execute(
                select(DailySkippedSummary).where(
                    DailySkippedSummary.date == day,
                    DailySkippedSummary.branch == branch,
                )
            ).scalar_one()

        logger.debug(f"Upserted {day} / {branch}: {skipped_count} skipped of {total_tests}")
        return row

    def _upsert_statement(self, values: dict):
        dialect = self.engine.dialect.name
        table = DailySkippedSummary.__table__

        if dialect == "mysql":
            stmt = mysql.insert(table).values(**values)
            return stmt.on_duplicate_key_update(
                repo=stmt.inserted.repo,
                total_tests=stmt.inserted.total_tests,
                skipped_count=stmt.inserted.skipped_count,
                updated_at=stmt.inserted.updated_at,
            )

        if dialect not in _CONFLICT_INSERTS:
            raise StoreError(f"Upsert is not supported for database dialect '{dialect}'")

        stmt = _CONFLICT_INSERTS[dialect](table).values(**values)
        # On conflict (unique date + branch), refresh counts but keep created_at
        return stmt.on_conflict_do_update(
            index_elements=['date', 'branch'],
            set_={
                'repo': stmt.excluded.repo,
                'total_tests': stmt.excluded.total_tests,
                'skipped_count': stmt.excluded.skipped_count,
                'updated_at': stmt.excluded.updated_at,
            }
        )

    def time_series(
        self,
        branch: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[DailySkippedSummary]:
        """
        Summaries ordered by date ascending.

        Args:
            branch: Only rows for this branch
            date_from: Inclusive lower date bound
            date_to: Inclusive upper date bound
        """
        query = select(DailySkippedSummary)
        if branch:
            query = query.where(DailySkippedSummary.branch == branch)
        if date_from:
            query = query.where(DailySkippedSummary.date >= date_from)
        if date_to:
            query = query.where(DailySkippedSummary.date <= date_to)
        query = query.order_by(DailySkippedSummary.date.asc(), DailySkippedSummary.branch.asc())

        with self.session() as db:
            return list(db.execute(query).scalars().all())

    def distinct_branches(self) -> List[str]:
        """All branches with at least one summary, sorted lexicographically."""
        query = (
            select(DailySkippedSummary.branch)
            .distinct()
            .order_by(DailySkippedSummary.branch)
        )
        with self.session() as db:
            return list(db.execute(query).scalars().all())

    def summary_for_date(
        self, day: date, branch: Optional[str] = None
    ) -> Optional[DailySkippedSummary]:
        """Summary stored for the given day (and branch, if given), or None."""
        query = select(DailySkippedSummary).where(DailySkippedSummary.date == day)
        if branch:
            query = query.where(DailySkippedSummary.branch == branch)
        query = query.order_by(DailySkippedSummary.branch).limit(1)

        with self.session() as db:
            return db.execute(query).scalars().first()

    def average_skipped(
        self, date_from: date, date_to: date, branch: Optional[str] = None
    ) -> WindowAverage:
        """
        Mean skipped_count over rows dated within [date_from, date_to].

        The average is None, not zero, when no rows fall in the window.
        """
        query = select(
            func.avg(DailySkippedSummary.skipped_count),
            func.count(DailySkippedSummary.id),
        ).where(
            DailySkippedSummary.date >= date_from,
            DailySkippedSummary.date <= date_to,
        )
        if branch:
            query = query.where(DailySkippedSummary.branch == branch)

        with self.session() as db:
            average, sample_days = db.execute(query).one()

        if not sample_days:
            return WindowAverage(average=None, sample_days=0)
        return WindowAverage(average=float(average), sample_days=int(sample_days))
