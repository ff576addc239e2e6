"""
ledger_engines.rollup -- Statement evaluation over a compiled line graph.

Responsibility:
    Evaluate every line of a compiled statement: leaves through a
    caller-supplied evaluator, composites from their already-evaluated
    children in topological order. Composite values are computed from the
    children's unrounded values and rounded once.

    Two statement kinds:

    * schedule -- each line is a 13-point yearly series (opening + 12
      month ends).
    * summary -- each line is a 3-point series, one point per
      ``Perspective``: Actual (target month), Cumulative (January through
      the target month) and PriorCumulative, whose window depends on the
      ``ComparisonBasis``.

Architecture position:
    Engines -- consumes ``ledger_config.validator.CompiledStatement`` and
    the CategoryAggregator; has no store access of its own.

Failure modes:
    - ValueError if a leaf evaluator returns series of the wrong width.
    - Whatever the leaf evaluator raises propagates.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ledger_config.schema import LineDefinition, StatementKind
from ledger_config.validator import CompiledStatement
from ledger_engines.aggregation import CategoryAggregator, LineSeries
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.values import POINT_LABELS, PeriodWindow, validate_month
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.rollup")


class Perspective(str, Enum):
    """The three figures a summary line reports."""

    ACTUAL = "actual"
    CUMULATIVE = "cumulative"
    PRIOR_CUMULATIVE = "prior_cumulative"


SUMMARY_PERSPECTIVES: tuple[Perspective, ...] = (
    Perspective.ACTUAL,
    Perspective.CUMULATIVE,
    Perspective.PRIOR_CUMULATIVE,
)


class ComparisonBasis(str, Enum):
    """What the PriorCumulative column compares against."""

    # Cumulative as of the previous report: Jan..m-1, or the whole prior
    # year when the target month is January.
    PREVIOUS_MONTH = "previous_month"
    # Same months of the prior year: Jan..m of Y-1.
    PRIOR_YEAR = "prior_year"


def summary_windows(
    year: int,
    month: int,
    basis: ComparisonBasis = ComparisonBasis.PREVIOUS_MONTH,
) -> dict[Perspective, PeriodWindow]:
    """Period window behind each summary perspective."""
    validate_month(year, month)
    if basis == ComparisonBasis.PRIOR_YEAR:
        prior = PeriodWindow.year_to_date(year - 1, month)
    elif month == 1:
        prior = PeriodWindow.year_to_date(year - 1, 12)
    else:
        prior = PeriodWindow.year_to_date(year, month - 1)
    return {
        Perspective.ACTUAL: PeriodWindow.single(year, month),
        Perspective.CUMULATIVE: PeriodWindow.year_to_date(year, month),
        Perspective.PRIOR_CUMULATIVE: prior,
    }


@dataclass(frozen=True)
class SummaryRollup:
    """Evaluated summary statement: the windows used and a series per line."""

    windows: Mapping[Perspective, PeriodWindow]
    lines: Mapping[str, LineSeries]

    def figure(self, line_name: str, perspective: Perspective) -> Decimal:
        return self.lines[line_name].points[SUMMARY_PERSPECTIVES.index(perspective)]


class StatementRollupEngine:
    """
    Evaluates compiled statements in dependency order.

    Contract:
        No I/O of its own; leaf values come from the evaluator passed in.
        Lines are evaluated exactly once each, in
        ``CompiledStatement.evaluation_order``.
    """

    def __init__(self, aggregator: CategoryAggregator | None = None):
        self._aggregator = aggregator or CategoryAggregator()

    def evaluate(
        self,
        statement: CompiledStatement,
        leaf_evaluator: Callable[[LineDefinition], LineSeries],
    ) -> dict[str, LineSeries]:
        """Evaluate every line; result is keyed by line name in evaluation order."""
        values: dict[str, LineSeries] = {}
        for name in statement.evaluation_order:
            line = statement.line(name)
            if line.is_composite:
                values[name] = self._aggregator.combine(
                    name=name,
                    terms=[(term.sign, values[term.line]) for term in line.formula],
                )
            else:
                values[name] = leaf_evaluator(line)
        return values

    @traced_engine("rollup.schedule", "1.0", fingerprint_fields=("year",))
    def schedule(
        self,
        *,
        statement: CompiledStatement,
        year: int,
        leaf_series: Callable[[LineDefinition, int], LineSeries],
    ) -> dict[str, LineSeries]:
        """Evaluate a schedule statement: one 13-point series per line."""
        if statement.kind != StatementKind.SCHEDULE:
            raise ValueError(f"{statement.name} is a {statement.kind.value} statement")

        def leaf(line: LineDefinition) -> LineSeries:
            series = leaf_series(line, year)
            if len(series.raw) != len(POINT_LABELS):
                raise ValueError(
                    f"Leaf {line.name} produced {len(series.raw)} points, "
                    f"expected {len(POINT_LABELS)}"
                )
            return series

        values = self.evaluate(statement, leaf)
        logger.info(
            "schedule_rolled_up",
            extra={"statement": statement.name, "year": year, "line_count": len(values)},
        )
        return values

    @traced_engine("rollup.summary", "1.0", fingerprint_fields=("year", "month", "basis"))
    def summary(
        self,
        *,
        statement: CompiledStatement,
        year: int,
        month: int,
        basis: ComparisonBasis,
        leaf_window: Callable[[LineDefinition, PeriodWindow], Decimal],
    ) -> SummaryRollup:
        """
        Evaluate a summary statement.

        ``leaf_window(line, window)`` returns the unrounded movement of a
        leaf over one period window.
        """
        if statement.kind != StatementKind.SUMMARY:
            raise ValueError(f"{statement.name} is a {statement.kind.value} statement")

        windows = summary_windows(year, month, basis)

        def leaf(line: LineDefinition) -> LineSeries:
            return LineSeries.from_raw(
                line.name,
                [leaf_window(line, windows[p]) for p in SUMMARY_PERSPECTIVES],
            )

        values = self.evaluate(statement, leaf)
        logger.info(
            "summary_rolled_up",
            extra={
                "statement": statement.name,
                "year": year,
                "month": month,
                "basis": basis.value,
                "windows": {p.value: str(w) for p, w in windows.items()},
            },
        )
        return SummaryRollup(windows=windows, lines=values)
