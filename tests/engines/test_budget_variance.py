"""Tests for BudgetVarianceCalculator."""

from decimal import Decimal

import pytest

from ledger_config.loader import parse_formula
from ledger_config.schema import LineDefinition, StatementDefinition, StatementKind
from ledger_config.validator import compile_statement
from ledger_engines.variance import (
    NEGATIVE_INFINITY,
    POSITIVE_INFINITY,
    BudgetVarianceCalculator,
)
from ledger_kernel.domain.accounts import AccountClass, AccountRef
from ledger_kernel.domain.values import DirectionClass
from ledger_kernel.selectors.budget_selector import BudgetFigure, StaticBudgetSource

HIGHER = DirectionClass.FAVORABLE_WHEN_HIGHER
LOWER = DirectionClass.FAVORABLE_WHEN_LOWER


@pytest.fixture
def calculator() -> BudgetVarianceCalculator:
    return BudgetVarianceCalculator()


def _pct(calculator, actual, budget, direction) -> Decimal:
    return calculator.calculate(
        actual=Decimal(actual), budget=Decimal(budget), direction=direction,
    ).variance_percent


class TestFormulas:
    def test_same_pair_opposite_sign_by_direction(self, calculator):
        """1200 against a budget of 1000: +20% for revenue, -20% for cost."""
        assert _pct(calculator, "1200", "1000", HIGHER) == Decimal("20")
        assert _pct(calculator, "1200", "1000", LOWER) == Decimal("-20")

    def test_underspend_is_favorable_for_cost(self, calculator):
        result = calculator.calculate(
            actual=Decimal("800"), budget=Decimal("1000"), direction=LOWER,
        )
        assert result.variance_percent == Decimal("20")
        assert result.is_favorable

    def test_result_rounded_half_up(self, calculator):
        assert _pct(calculator, "1005", "1000", HIGHER) == Decimal("1")  # 0.5 -> 1
        assert _pct(calculator, "1004", "1000", HIGHER) == Decimal("0")

    def test_negative_half_rounds_toward_zero(self, calculator):
        assert _pct(calculator, "1005", "1000", LOWER) == Decimal("0")  # -0.5 -> 0
        assert _pct(calculator, "1006", "1000", LOWER) == Decimal("-1")

    def test_budget_sign_ignored(self, calculator):
        """A contra line budgeted as -1000 is compared with its magnitude."""
        assert _pct(calculator, "1200", "-1000", HIGHER) == Decimal("20")

    def test_on_budget_is_zero_and_favorable(self, calculator):
        result = calculator.calculate(actual=Decimal("5"), budget=Decimal("5"), direction=HIGHER)
        assert result.variance_percent == Decimal("0")
        assert result.is_favorable


class TestZeroBudget:
    def test_zero_over_zero_is_zero(self, calculator):
        assert _pct(calculator, "0", "0", HIGHER) == Decimal("0")
        assert _pct(calculator, "0", "0", LOWER) == Decimal("0")

    def test_positive_actual_against_zero_budget(self, calculator):
        assert _pct(calculator, "100", "0", HIGHER) == POSITIVE_INFINITY
        assert _pct(calculator, "100", "0", LOWER) == NEGATIVE_INFINITY

    def test_negative_actual_against_zero_budget(self, calculator):
        assert _pct(calculator, "-100", "0", HIGHER) == NEGATIVE_INFINITY
        assert _pct(calculator, "-100", "0", LOWER) == POSITIVE_INFINITY

    def test_sentinel_flags(self, calculator):
        result = calculator.calculate(actual=Decimal("1"), budget=Decimal("0"), direction=HIGHER)
        assert result.is_unbounded
        assert result.is_favorable

    def test_missing_budget_has_no_variance(self, calculator):
        assert calculator.variance_percent(Decimal("10"), None, HIGHER) is None


class TestResolveBudgets:
    ACCOUNTS = {
        "410101": AccountRef("410101", "Revenue", AccountClass.REVENUE),
        "510101": AccountRef("510101", "Materials", AccountClass.EXPENSE),
        "420101": AccountRef("420101", "Other income", AccountClass.REVENUE),
    }

    def _statement(self):
        lines = (
            LineDefinition("revenue", "Revenue", accounts=("410101",)),
            LineDefinition("direct_cost", "Direct cost", accounts=("510101",)),
            LineDefinition("other_income", "Other income", accounts=("420101",)),
            LineDefinition("gross_profit", "Gross", formula=parse_formula("revenue - direct_cost")),
            LineDefinition(
                "net_profit", "Net", formula=parse_formula("gross_profit + other_income"),
            ),
        )
        return compile_statement(
            StatementDefinition("pl", StatementKind.SUMMARY, "P&L", lines), self.ACCOUNTS,
        )

    def test_composite_budget_derived_from_formula(self, calculator):
        source = StaticBudgetSource([
            BudgetFigure("revenue", 2026, 3, Decimal("1000")),
            BudgetFigure("direct_cost", 2026, 3, Decimal("600")),
        ])
        budgets = calculator.resolve_budgets(self._statement(), source, 2026, 3)

        assert budgets["gross_profit"].amount == Decimal("400")
        assert budgets["gross_profit"].derived
        assert budgets["net_profit"].amount == Decimal("400")
        assert budgets["other_income"].amount is None

    def test_own_figure_wins_over_derivation(self, calculator):
        source = StaticBudgetSource([
            BudgetFigure("revenue", 2026, 3, Decimal("1000")),
            BudgetFigure("gross_profit", 2026, 3, Decimal("450")),
        ])
        budgets = calculator.resolve_budgets(self._statement(), source, 2026, 3)
        assert budgets["gross_profit"].amount == Decimal("450")
        assert not budgets["gross_profit"].derived

    def test_percentage_figure_never_summed(self, calculator):
        source = StaticBudgetSource([
            BudgetFigure("revenue", 2026, 3, Decimal("1000")),
            BudgetFigure("direct_cost", 2026, 3, Decimal("600")),
            BudgetFigure("gross_profit", 2026, 3, Decimal("40"), is_percentage=True),
            BudgetFigure("other_income", 2026, 3, Decimal("25")),
        ])
        budgets = calculator.resolve_budgets(self._statement(), source, 2026, 3)

        assert budgets["gross_profit"].percentage == Decimal("40")
        assert budgets["gross_profit"].amount == Decimal("400")
        assert budgets["net_profit"].amount == Decimal("425")

    def test_no_budget_anywhere(self, calculator):
        budgets = calculator.resolve_budgets(self._statement(), StaticBudgetSource(), 2026, 3)
        assert all(b.amount is None for b in budgets.values())
