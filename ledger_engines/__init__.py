"""
Ledger rollup engines.

Calculators that turn ledger movements into statement lines:

    MonthlyMovementCalculator -> OpeningBalanceResolver -> RunningBalanceBuilder
        -> CategoryAggregator -> StatementRollupEngine -> BudgetVarianceCalculator

Only the movement calculator touches the ledger store; every other engine
is pure over its inputs.
"""

from ledger_engines.aggregation import CategoryAggregator, LineSeries
from ledger_engines.movement import MonthlyMovementCalculator, ReadWarning, signed_movement
from ledger_engines.opening_balance import OpeningBalanceResolver
from ledger_engines.rollup import (
    SUMMARY_PERSPECTIVES,
    ComparisonBasis,
    Perspective,
    StatementRollupEngine,
    SummaryRollup,
    summary_windows,
)
from ledger_engines.running_balance import AccountBalanceTrajectory, RunningBalanceBuilder
from ledger_engines.tracer import traced_engine
from ledger_engines.variance import (
    NEGATIVE_INFINITY,
    POSITIVE_INFINITY,
    BudgetVariance,
    BudgetVarianceCalculator,
    ResolvedBudget,
)

__all__ = [
    "AccountBalanceTrajectory",
    "BudgetVariance",
    "BudgetVarianceCalculator",
    "CategoryAggregator",
    "ComparisonBasis",
    "LineSeries",
    "MonthlyMovementCalculator",
    "NEGATIVE_INFINITY",
    "OpeningBalanceResolver",
    "POSITIVE_INFINITY",
    "Perspective",
    "ReadWarning",
    "ResolvedBudget",
    "RunningBalanceBuilder",
    "SUMMARY_PERSPECTIVES",
    "StatementRollupEngine",
    "SummaryRollup",
    "signed_movement",
    "summary_windows",
    "traced_engine",
]
