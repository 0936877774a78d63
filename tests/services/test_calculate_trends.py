from datetime import UTC, datetime

import pytest

from rankshare.models import TrendAggregate, TrendPeriod
from rankshare.scripts import calculate_trends
from rankshare.services.trend_aggregator import AggregateOutcome, TrendRunReport


def _report(ok: bool) -> TrendRunReport:
    return TrendRunReport(
        calculation_date=datetime(2026, 3, 2, tzinfo=UTC),
        outcomes=[
            AggregateOutcome(TrendPeriod.WEEKLY, TrendAggregate.SUBJECT, ok=ok, error=None if ok else "boom"),
            AggregateOutcome(TrendPeriod.WEEKLY, TrendAggregate.TAG, ok=True),
        ],
    )


@pytest.fixture
def mock_aggregator(mocker):
    aggregator_cls = mocker.patch.object(calculate_trends, "TrendAggregator")
    return aggregator_cls.return_value


def test_successful_run_exits_zero(mock_aggregator, capsys):
    mock_aggregator.run.return_value = _report(ok=True)

    assert calculate_trends.main(["--period", "WEEKLY"]) == 0

    mock_aggregator.run.assert_called_once_with([TrendPeriod.WEEKLY])
    assert "WEEKLY/subject: 0 rows ok" in capsys.readouterr().out


def test_partial_failure_exits_one(mock_aggregator, capsys):
    mock_aggregator.run.return_value = _report(ok=False)

    assert calculate_trends.main([]) == 1

    mock_aggregator.run.assert_called_once_with(None)
    assert "Trend aggregates failed" in capsys.readouterr().err
