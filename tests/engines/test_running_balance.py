"""Tests for RunningBalanceBuilder and AccountBalanceTrajectory."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest

from ledger_engines.opening_balance import OpeningBalanceResolver
from ledger_engines.running_balance import AccountBalanceTrajectory, RunningBalanceBuilder
from ledger_kernel.domain.values import POINT_LABELS


@pytest.fixture
def builder(movements, seeds) -> RunningBalanceBuilder:
    return RunningBalanceBuilder(movements, OpeningBalanceResolver(movements, seeds))


class TestBuild:
    def test_cash_scenario(self, fake_store, builder):
        """Opening 37,011 plus a January movement of 9,711 closes January at 46,722."""
        fake_store.debit("110101", date(2025, 1, 20), 9711)

        trajectory = builder.build(account_code="110101", year=2025)

        assert trajectory.opening == Decimal("37011")
        assert trajectory.point("jan") == Decimal("46722")
        assert trajectory.closing == Decimal("46722")

    def test_thirteen_labelled_points(self, builder):
        trajectory = builder.build(account_code="210201", year=2025)
        assert list(trajectory.as_dict()) == list(POINT_LABELS)
        assert set(trajectory.as_dict().values()) == {Decimal("15234567")}

    def test_raw_values_follow_movements(self, fake_store, builder):
        fake_store.credit("210201", date(2025, 2, 1), "10.25")
        fake_store.debit("210201", date(2025, 4, 1), "0.5")

        raw = builder.build(account_code="210201", year=2025).raw

        assert raw[1] == raw[0]
        assert raw[2] == raw[1] + Decimal("10.25")
        assert raw[4] == raw[3] - Decimal("0.5")

    def test_contra_balance_half_rounds_up(self, fake_store, builder):
        """An impairment provision of -1,250,000.5 shows as -1,250,000."""
        fake_store.credit("111199", date(2025, 3, 1), "0.5")

        trajectory = builder.build(account_code="111199", year=2025)

        assert trajectory.raw[3] == Decimal("-1250000.5")
        assert trajectory.points[3] == Decimal("-1250000")

    def test_rounding_applies_to_running_total(self, fake_store, builder):
        """Two movements of 0.4 show as a step of 1 in the second month."""
        fake_store.debit("110101", date(2025, 1, 1), "0.4")
        fake_store.debit("110101", date(2025, 2, 1), "0.4")

        trajectory = builder.build(account_code="110101", year=2025)

        assert trajectory.point("jan") == Decimal("37011")
        assert trajectory.point("feb") == Decimal("37012")
        assert trajectory.raw[2] == Decimal("37011.8")

    def test_later_year_opens_from_closing(self, fake_store, builder):
        fake_store.debit("110101", date(2025, 1, 20), 9711)
        trajectory = builder.build(account_code="110101", year=2026)
        assert trajectory.opening == Decimal("46722")

    def test_prefetch_with_executor_same_result(self, fake_store, builder):
        fake_store.debit("110101", date(2025, 6, 1), 5)
        with ThreadPoolExecutor(max_workers=3) as pool:
            parallel = builder.build(account_code="110101", year=2025, executor=pool)
        assert parallel == builder.build(account_code="110101", year=2025)

    def test_engine_trace_emitted(self, builder, captured_logs):
        builder.build(account_code="110101", year=2025)
        traces = [r for r in captured_logs() if r["message"] == "LEDGER_ENGINE_TRACE"]
        assert any(t["engine_name"] == "running_balance" for t in traces)


class TestTrajectory:
    def test_wrong_point_count_rejected(self):
        with pytest.raises(ValueError):
            AccountBalanceTrajectory("110101", 2025, (Decimal("1"),), (Decimal("1"),))
