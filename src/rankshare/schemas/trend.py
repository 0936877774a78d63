"""Trend snapshot schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from rankshare.models.trend import TrendAggregate, TrendPeriod


class TrendEntry(BaseModel):
    """One ranked row of a trend snapshot."""

    key: str
    metric: float
    subject: str | None = None
    occurrences: int | None = None


class TrendResponse(BaseModel):
    """Ranked rows from the latest committed run of one aggregate."""

    period: TrendPeriod
    kind: TrendAggregate
    calculation_date: datetime | None = None
    entries: list[TrendEntry] = Field(default_factory=list)
