"""SQLAlchemy models for immutable trend snapshots.

Snapshot rows are written once per run and never updated. A later run with a
greater ``calculation_date`` supersedes earlier rows; readers select the
latest committed run recorded in ``trend_snapshot_run``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from rankshare.db.session import Base
from rankshare.db.time import utcnow


class TrendPeriod(str, Enum):
    """Trailing window a snapshot covers."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class TrendAggregate(str, Enum):
    """The independent aggregates computed by each run."""

    SUBJECT = "subject"
    TAG = "tag"
    ITEM = "item"


def _period_column() -> Mapped[TrendPeriod]:
    return mapped_column(SAEnum(TrendPeriod, native_enum=False, length=16), nullable=False)


class TrendingSubject(Base):
    """Number of published lists per subject within a period."""

    __tablename__ = "trending_subject"
    __table_args__ = (Index("ix_trending_subject_run", "period", "calculation_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period: Mapped[TrendPeriod] = _period_column()
    calculation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False)


class TrendingTag(Base):
    """Number of published lists per tag within a period."""

    __tablename__ = "trending_tag"
    __table_args__ = (Index("ix_trending_tag_run", "period", "calculation_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period: Mapped[TrendPeriod] = _period_column()
    calculation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    tag_name: Mapped[str] = mapped_column(String(100), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False)


class TrendingItemScore(Base):
    """Composite score of one item within one subject."""

    __tablename__ = "trending_item_score"
    __table_args__ = (
        Index("ix_trending_item_score_run", "period", "calculation_date", "subject"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period: Mapped[TrendPeriod] = _period_column()
    calculation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    borda_score: Mapped[int] = mapped_column(Integer, nullable=False)
    average_rank: Mapped[float] = mapped_column(Float, nullable=False)
    occurrences: Mapped[int] = mapped_column(Integer, nullable=False)


class TrendSnapshotRun(Base):
    """Commit marker for one aggregate of one run.

    Written in the same transaction as the aggregate's rows, so its presence
    means the whole batch is visible.
    """

    __tablename__ = "trend_snapshot_run"
    __table_args__ = (
        UniqueConstraint(
            "period",
            "aggregate",
            "calculation_date",
            name="uq_trend_snapshot_run",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period: Mapped[TrendPeriod] = _period_column()
    aggregate: Mapped[TrendAggregate] = mapped_column(
        SAEnum(TrendAggregate, native_enum=False, length=16),
        nullable=False,
    )
    calculation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
