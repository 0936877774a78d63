"""Background scheduling of trend snapshot runs.

The scheduler is a periodic batch trigger, not a continuously running
computation: every ``TRENDS_INTERVAL_SECONDS`` it runs the aggregator once in
a worker thread and then sleeps.
"""

from __future__ import annotations

import asyncio
import logging

from rankshare.core.settings import settings
from rankshare.services.trend_aggregator import TrendAggregator, TrendRunReport

logger = logging.getLogger(__name__)


class TrendScheduler:
    """Periodically runs the trend aggregator in the background."""

    def __init__(self, aggregator: TrendAggregator, interval_seconds: float | None = None) -> None:
        """Initialize the scheduler.

        Args:
            aggregator: Aggregator executed on every tick.
            interval_seconds: Delay between runs. Defaults to the configured interval.
        """
        self.aggregator = aggregator
        self.interval = max(
            1.0,
            float(interval_seconds or settings.trends_interval_seconds),
        )
        self.last_report: TrendRunReport | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background scheduling loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop; a run already in progress finishes first."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def run_once(self) -> TrendRunReport:
        """Execute one aggregator run without blocking the event loop."""
        report = await asyncio.to_thread(self.aggregator.run)
        self.last_report = report
        for outcome in report.failures:
            logger.error(
                "Trend aggregate %s/%s failed: %s",
                outcome.period.value,
                outcome.aggregate.value,
                outcome.error,
            )
        return report

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except (OSError, ConnectionError, TimeoutError) as e:
                logger.warning("TrendScheduler encountered I/O error: %s", e)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                continue
