"""Error taxonomy shared by the feed and trend subsystems.

API handlers translate these into HTTP responses (see ``rankshare.main``);
services raise them and never return sentinel values that could be confused
with a legitimate empty result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rankshare.services.trend_aggregator import TrendRunReport


class RankshareError(RuntimeError):
    """Base exception for all application-level failures."""


class ValidationError(RankshareError, ValueError):
    """Raised for malformed or out-of-range input."""


class InvalidCursorError(ValidationError):
    """Raised when a pagination cursor does not refer to a known feed item."""


class AuthError(RankshareError):
    """Raised when the caller identity is missing or invalid."""


class NotFoundOrForbidden(RankshareError):
    """Raised when a resource is missing or the caller may not act on it.

    The two cases are deliberately indistinguishable to callers so that the
    existence of other users' resources does not leak.
    """

    def __init__(self, message: str = "Not found or forbidden") -> None:
        super().__init__(message)


class TransientStoreError(RankshareError):
    """Retryable I/O failure against the content store or media storage."""

    retryable = True


class AggregationPartialFailure(RankshareError):
    """Raised when one or more trend aggregates failed within a run.

    Sibling aggregates of the same run are already committed; ``report``
    describes the outcome of each one.
    """

    def __init__(self, report: TrendRunReport) -> None:
        failed = ", ".join(
            f"{outcome.period.value}/{outcome.aggregate.value}" for outcome in report.failures
        )
        super().__init__(f"Trend aggregates failed: {failed}")
        self.report = report
