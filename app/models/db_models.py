"""
SQLAlchemy database models for the Skipped Tests Tracker.

A single table holds one skipped/total summary per day per branch.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Date, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base

from app.constants import DEFAULT_REPO_IDENTIFIER

Base = declarative_base()


def utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class DailySkippedSummary(Base):
    """Skipped/flaky and total test counts for one branch on one day."""
    __tablename__ = "daily_skipped_summary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    repo = Column(String(200), nullable=False, default=DEFAULT_REPO_IDENTIFIER)
    branch = Column(String(255), nullable=False)
    total_tests = Column(Integer, nullable=False)
    skipped_count = Column(Integer, nullable=False)  # Not bounded by total_tests
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('date', 'branch', name='uq_daily_skipped_date_branch'),
        Index('idx_date', 'date'),
        Index('idx_branch', 'branch'),
    )

    def __repr__(self):
        return (
            f"<DailySkippedSummary(date='{self.date}', branch='{self.branch}', "
            f"skipped={self.skipped_count}/{self.total_tests})>"
        )
