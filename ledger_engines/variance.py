"""
ledger_engines.variance -- Direction-aware budget variance.

Responsibility:
    Compare an actual figure with a budget figure as a whole-number
    percentage, normalized so that a positive result always means
    favorable performance, and resolve the budget behind each line of a
    summary statement.

Formulas (|b| is the budget magnitude):

    favorable-when-higher:  round((actual - |b|) / |b| * 100)
    favorable-when-lower:   round((|b| - actual) / |b| * 100)

Edge cases:
    - budget = 0 and actual = 0 -> 0.
    - budget = 0 and actual != 0 -> Decimal("Infinity") or
      Decimal("-Infinity"). The sign is that of the direction-normalized
      numerator: ``actual`` when higher is favorable, ``-actual`` when lower
      is favorable. A zero budget is never an error.

Budget resolution:
    A line's budget is its own non-percentage figure for the month. A
    composite line without one derives its budget from its formula over
    the children's resolved budgets; children without a budget contribute
    nothing, and a composite none of whose children has a budget has none
    either. Percentage figures are reported but never enter an additive
    rollup.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ledger_config.validator import CompiledStatement
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.values import ZERO, DirectionClass, round_half_up
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.budget_selector import BudgetSource

logger = get_logger("engines.variance")

POSITIVE_INFINITY = Decimal("Infinity")
NEGATIVE_INFINITY = Decimal("-Infinity")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class BudgetVariance:
    """Actual against budget for one line."""

    actual: Decimal
    budget: Decimal
    direction: DirectionClass
    variance_percent: Decimal

    @property
    def is_favorable(self) -> bool:
        """On or better than budget."""
        return self.variance_percent >= 0

    @property
    def is_unbounded(self) -> bool:
        return self.variance_percent.is_infinite()


@dataclass(frozen=True)
class ResolvedBudget:
    """Budget behind one summary line for one month."""

    amount: Decimal | None = None
    percentage: Decimal | None = None
    derived: bool = False


class BudgetVarianceCalculator:
    """
    Pure variance calculator.

    Contract:
        No I/O except budget lookups through the ``BudgetSource`` passed to
        ``resolve_budgets``. Deterministic for identical inputs.
    """

    @traced_engine("variance", "1.0", fingerprint_fields=("actual", "budget", "direction"))
    def calculate(
        self,
        *,
        actual: Decimal,
        budget: Decimal,
        direction: DirectionClass,
    ) -> BudgetVariance:
        magnitude = abs(budget)
        if direction == DirectionClass.FAVORABLE_WHEN_HIGHER:
            numerator = actual - magnitude
        else:
            numerator = magnitude - actual

        if magnitude == ZERO:
            if actual == ZERO:
                percent = ZERO
            else:
                percent = POSITIVE_INFINITY if numerator > 0 else NEGATIVE_INFINITY
                logger.debug(
                    "variance_against_zero_budget",
                    extra={"actual": actual, "direction": direction.value},
                )
        else:
            percent = round_half_up(numerator / magnitude * _HUNDRED)

        return BudgetVariance(
            actual=actual,
            budget=budget,
            direction=direction,
            variance_percent=percent,
        )

    def variance_percent(
        self,
        actual: Decimal,
        budget: Decimal | None,
        direction: DirectionClass,
    ) -> Decimal | None:
        """Variance percentage, or None when the line has no budget."""
        if budget is None:
            return None
        return self.calculate(actual=actual, budget=budget, direction=direction).variance_percent

    def resolve_budgets(
        self,
        statement: CompiledStatement,
        source: BudgetSource,
        year: int,
        month: int,
    ) -> dict[str, ResolvedBudget]:
        """Budget for every line of ``statement`` in one month."""
        resolved: dict[str, ResolvedBudget] = {}
        for name in statement.evaluation_order:
            line = statement.line(name)
            figure = source.budget_figure(name, year, month)
            percentage = figure.amount if figure is not None and figure.is_percentage else None

            if figure is not None and not figure.is_percentage:
                resolved[name] = ResolvedBudget(amount=figure.amount, percentage=None)
                continue

            amount = None
            if line.is_composite:
                parts = [
                    (term.sign, resolved[term.line].amount)
                    for term in line.formula
                    if resolved[term.line].amount is not None
                ]
                if parts:
                    amount = sum((sign * value for sign, value in parts), ZERO)
            resolved[name] = ResolvedBudget(
                amount=amount,
                percentage=percentage,
                derived=amount is not None,
            )

        logger.debug(
            "budgets_resolved",
            extra={
                "statement": statement.name,
                "year": year,
                "month": month,
                "with_budget": sorted(n for n, b in resolved.items() if b.amount is not None),
            },
        )
        return resolved
