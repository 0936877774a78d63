"""Scheduled trend snapshot job and snapshot reads.

Each run computes three independent aggregates per period (subject counts,
tag counts, item scores) over PUBLISHED ranking lists created within the
period's trailing window. Every aggregate is committed in its own
transaction together with a ``TrendSnapshotRun`` marker, so one failing
aggregate never prevents its siblings from committing.

Snapshot rows are never updated. Readers pick the latest committed run of
the requested aggregate and never mix rows from two runs.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import redis
from redis.exceptions import LockError, RedisError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from rankshare.core.errors import AggregationPartialFailure, TransientStoreError
from rankshare.core.settings import settings
from rankshare.db.time import utcnow
from rankshare.models import (
    ListStatus,
    RankingList,
    TrendAggregate,
    TrendingItemScore,
    TrendingSubject,
    TrendingTag,
    TrendPeriod,
    TrendSnapshotRun,
)
from rankshare.schemas.trend import TrendEntry, TrendResponse
from rankshare.services.trend_scoring import (
    ItemScore,
    ListSnapshot,
    by_average_rank,
    by_borda,
    count_subjects,
    count_tags,
    retained_scores,
    score_items,
    top_per_subject,
)

logger = logging.getLogger(__name__)

_LOCAL_LOCKS: dict[TrendPeriod, threading.Lock] = {
    period: threading.Lock() for period in TrendPeriod
}


@dataclass
class AggregateOutcome:
    """Result of one aggregate within one run."""

    period: TrendPeriod
    aggregate: TrendAggregate
    ok: bool
    row_count: int = 0
    error: str | None = None


@dataclass
class TrendRunReport:
    """Per-aggregate outcomes of a trend run."""

    calculation_date: datetime
    outcomes: list[AggregateOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[AggregateOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        """Raise :class:`AggregationPartialFailure` if any aggregate failed."""
        if self.failures:
            raise AggregationPartialFailure(self)


class PeriodLock:
    """Exclusive lock serializing runs of the same period.

    Uses a Redis lock when ``REDIS_URL`` is configured so that runs on
    different hosts are serialized too; otherwise a process-local lock.
    """

    def __init__(self, redis_url: str | None = None, timeout: int | None = None) -> None:
        self.timeout = timeout or settings.trends_lock_timeout_seconds
        url = redis_url if redis_url is not None else settings.redis_url
        self._redis = redis.Redis.from_url(url) if url else None

    @contextmanager
    def hold(self, period: TrendPeriod) -> Iterator[None]:
        if self._redis is None:
            lock = _LOCAL_LOCKS[period]
            if not lock.acquire(timeout=self.timeout):
                raise TimeoutError(f"Trend lock for {period.value} not acquired")
            try:
                yield
            finally:
                lock.release()
            return

        try:
            with self._redis.lock(
                f"rankshare:trends:{period.value}",
                timeout=self.timeout,
                blocking_timeout=self.timeout,
            ):
                yield
        except LockError as exc:
            raise TimeoutError(f"Trend lock for {period.value} not acquired") from exc


class TrendAggregator:
    """Compute and persist trend snapshots."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        top_n: int | None = None,
        windows: dict[str, int] | None = None,
        lock: PeriodLock | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.top_n = top_n or settings.trends_top_n
        self.windows = windows or settings.trend_windows
        self.lock = lock or PeriodLock()

    def run(
        self,
        periods: Iterable[TrendPeriod] | None = None,
        now: datetime | None = None,
    ) -> TrendRunReport:
        """Run every aggregate for each period and report per-aggregate outcomes.

        Args:
            periods: Periods to compute; defaults to all of them.
            now: Calculation date of the run; defaults to the current UTC time.
        """
        calculation_date = now or utcnow()
        report = TrendRunReport(calculation_date=calculation_date)
        for period in periods or list(TrendPeriod):
            try:
                with self.lock.hold(period):
                    report.outcomes.extend(self.run_period(period, calculation_date))
            except (TimeoutError, RedisError) as exc:
                logger.error("Skipping %s trends run: %s", period.value, exc)
                report.outcomes.extend(
                    AggregateOutcome(period, aggregate, ok=False, error=str(exc))
                    for aggregate in TrendAggregate
                )
        logger.info(
            "Trend run at %s finished: %d aggregates, %d failed",
            calculation_date.isoformat(),
            len(report.outcomes),
            len(report.failures),
        )
        return report

    def run_period(
        self,
        period: TrendPeriod,
        calculation_date: datetime,
    ) -> list[AggregateOutcome]:
        """Compute the three aggregates of one period, each in its own transaction."""
        steps: list[tuple[TrendAggregate, Callable[[Session, list[ListSnapshot]], list]]] = [
            (TrendAggregate.SUBJECT, self._subject_rows),
            (TrendAggregate.TAG, self._tag_rows),
            (TrendAggregate.ITEM, self._item_rows),
        ]
        outcomes = []
        for aggregate, build_rows in steps:
            outcomes.append(
                self._commit_aggregate(period, aggregate, calculation_date, build_rows)
            )
        return outcomes

    def _commit_aggregate(
        self,
        period: TrendPeriod,
        aggregate: TrendAggregate,
        calculation_date: datetime,
        build_rows: Callable[[Session, list[ListSnapshot]], list],
    ) -> AggregateOutcome:
        with self.session_factory() as db:
            try:
                lists = self.load_lists(db, period, calculation_date)
                rows = build_rows(db, lists)
                for row in rows:
                    row.period = period
                    row.calculation_date = calculation_date
                db.add_all(rows)
                db.add(
                    TrendSnapshotRun(
                        period=period,
                        aggregate=aggregate,
                        calculation_date=calculation_date,
                        row_count=len(rows),
                    )
                )
                db.commit()
            except Exception as exc:
                db.rollback()
                logger.error(
                    "Trend aggregate %s/%s failed",
                    period.value,
                    aggregate.value,
                    exc_info=True,
                )
                return AggregateOutcome(period, aggregate, ok=False, error=str(exc))
        logger.info(
            "Committed %d %s/%s trend rows",
            len(rows),
            period.value,
            aggregate.value,
        )
        return AggregateOutcome(period, aggregate, ok=True, row_count=len(rows))

    def load_lists(
        self,
        db: Session,
        period: TrendPeriod,
        calculation_date: datetime,
    ) -> list[ListSnapshot]:
        """Return published lists created within the period's trailing window."""
        start = calculation_date - timedelta(days=self.windows[period.value])
        result = db.execute(
            select(RankingList)
            .options(selectinload(RankingList.items), selectinload(RankingList.tags))
            .where(
                RankingList.status == ListStatus.PUBLISHED,
                RankingList.created_at >= start,
                RankingList.created_at <= calculation_date,
            )
        )
        return [
            ListSnapshot(
                list_id=ranking.id,
                subject=ranking.subject,
                tags=frozenset(tag.name for tag in ranking.tags),
                items=tuple((entry.item_name, entry.rank) for entry in ranking.items),
            )
            for ranking in result.scalars()
        ]

    def _subject_rows(self, db: Session, lists: list[ListSnapshot]) -> list[TrendingSubject]:
        return [
            TrendingSubject(subject=row.key, count=row.count)
            for row in count_subjects(lists)[: self.top_n]
        ]

    def _tag_rows(self, db: Session, lists: list[ListSnapshot]) -> list[TrendingTag]:
        return [
            TrendingTag(tag_name=row.key, count=row.count)
            for row in count_tags(lists)[: self.top_n]
        ]

    def _item_rows(self, db: Session, lists: list[ListSnapshot]) -> list[TrendingItemScore]:
        return [
            TrendingItemScore(
                subject=score.subject,
                item_name=score.item_name,
                borda_score=score.borda_score,
                average_rank=score.average_rank,
                occurrences=score.occurrences,
            )
            for score in retained_scores(score_items(lists), self.top_n)
        ]


def latest_calculation_date(
    db: Session,
    period: TrendPeriod,
    aggregate: TrendAggregate,
) -> datetime | None:
    """Return the calculation date of the latest committed run of an aggregate."""
    return db.execute(
        select(func.max(TrendSnapshotRun.calculation_date)).where(
            TrendSnapshotRun.period == period,
            TrendSnapshotRun.aggregate == aggregate,
        )
    ).scalar_one_or_none()


def read_trend(
    db: Session,
    period: TrendPeriod,
    kind: TrendAggregate,
    *,
    subject: str | None = None,
    score: str = "borda",
    limit: int | None = None,
    top_n: int | None = None,
) -> TrendResponse:
    """Return ranked rows from the latest committed run of one aggregate.

    Args:
        db: Database session.
        period: WEEKLY or MONTHLY.
        kind: Which aggregate to read.
        subject: For item scores, restrict to one subject.
        score: For item scores, ``"borda"`` (descending) or ``"average"`` (ascending).
        limit: Maximum number of entries.
        top_n: Per-subject cap on item scores; defaults to ``TRENDS_TOP_N``.

    Raises:
        TransientStoreError: If the store could not be read.
    """
    try:
        latest = latest_calculation_date(db, period, kind)
        if latest is None:
            return TrendResponse(period=period, kind=kind)
        entries = _read_entries(
            db, period, kind, latest, subject, score, top_n or settings.trends_top_n
        )
    except SQLAlchemyError as exc:
        logger.warning("Trend read failed for %s/%s: %s", period.value, kind.value, exc)
        raise TransientStoreError("Trends temporarily unavailable") from exc

    if limit is not None:
        entries = entries[:limit]
    return TrendResponse(period=period, kind=kind, calculation_date=latest, entries=entries)


def _read_entries(
    db: Session,
    period: TrendPeriod,
    kind: TrendAggregate,
    calculation_date: datetime,
    subject: str | None,
    score: str,
    top_n: int,
) -> list[TrendEntry]:
    if kind == TrendAggregate.SUBJECT:
        subjects = db.execute(
            select(TrendingSubject)
            .where(
                TrendingSubject.period == period,
                TrendingSubject.calculation_date == calculation_date,
            )
            .order_by(TrendingSubject.count.desc(), TrendingSubject.subject.asc())
        ).scalars()
        return [TrendEntry(key=row.subject, metric=row.count) for row in subjects]

    if kind == TrendAggregate.TAG:
        tags = db.execute(
            select(TrendingTag)
            .where(
                TrendingTag.period == period,
                TrendingTag.calculation_date == calculation_date,
            )
            .order_by(TrendingTag.count.desc(), TrendingTag.tag_name.asc())
        ).scalars()
        return [TrendEntry(key=row.tag_name, metric=row.count) for row in tags]

    stmt = select(TrendingItemScore).where(
        TrendingItemScore.period == period,
        TrendingItemScore.calculation_date == calculation_date,
    )
    if subject is not None:
        stmt = stmt.where(TrendingItemScore.subject == subject)
    scores = [
        ItemScore(
            subject=row.subject,
            item_name=row.item_name,
            borda_score=row.borda_score,
            average_rank=row.average_rank,
            occurrences=row.occurrences,
        )
        for row in db.execute(stmt).scalars()
    ]
    if score == "average":
        return [
            TrendEntry(
                key=s.item_name, metric=s.average_rank, subject=s.subject, occurrences=s.occurrences
            )
            for s in top_per_subject(by_average_rank(scores), top_n)
        ]
    return [
        TrendEntry(
            key=s.item_name, metric=s.borda_score, subject=s.subject, occurrences=s.occurrences
        )
        for s in top_per_subject(by_borda(scores), top_n)
    ]
