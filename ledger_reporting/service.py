"""
Reporting Service (``ledger_reporting.service``).

Responsibility
--------------
Orchestrates the rollup engines for one report request: fans the ledger
reads out over a bounded thread pool, folds the results sequentially
through the engines, and packages the figures as report DTOs. This is a
**read-only** service.

Architecture position
---------------------
**Modules layer** -- thin glue. ``ReportingService`` is the sole public
entry point for schedules and summaries. Constructor: ledger store +
compiled configuration + budget source + config + clock.

Invariants enforced
-------------------
* One movement memo per request; nothing computed for one request leaks
  into another.
* Reads run concurrently, folds never do: every prefetch completes before
  the first running balance or rollup is computed.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.

Failure modes
-------------
* ``StoreUnavailableError`` -- the store is unreachable, or every read of
  the request failed. No partial report is returned.
* ``StatementNotFoundError`` -- the statement is not configured.
* ``InvalidPeriodError`` -- month outside 1..12 or, for balances, a year
  before the anchor year.
* ``ValueError`` -- a schedule requested as a summary or vice versa.
* Individual failed reads are NOT failures: they are taken as zero and
  reported in ``warnings``.
"""

from __future__ import annotations

import uuid
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal

from ledger_config.schema import LineDefinition, StatementKind
from ledger_config.validator import CompiledConfiguration, CompiledStatement
from ledger_engines.aggregation import CategoryAggregator, LineSeries
from ledger_engines.movement import MonthlyMovementCalculator
from ledger_engines.opening_balance import OpeningBalanceResolver
from ledger_engines.rollup import (
    ComparisonBasis,
    Perspective,
    StatementRollupEngine,
    summary_windows,
)
from ledger_engines.running_balance import AccountBalanceTrajectory, RunningBalanceBuilder
from ledger_engines.variance import BudgetVarianceCalculator
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.values import ZERO, PeriodWindow
from ledger_kernel.exceptions import StoreUnavailableError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.budget_selector import BudgetSource, StaticBudgetSource
from ledger_kernel.selectors.ledger_selector import LedgerStore
from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    ReportMetadata,
    ReportType,
    ScheduleLine,
    ScheduleReport,
    SummaryLine,
    SummaryReport,
)

logger = get_logger("reporting.service")


@dataclass
class _Request:
    """Engines sharing one request-scoped movement memo."""

    movements: MonthlyMovementCalculator
    openings: OpeningBalanceResolver
    balances: RunningBalanceBuilder


class ReportingService:
    """
    Schedule and summary generation over a ledger store.

    Contract
    --------
    * Every public method returns a typed result
      (``AccountBalanceTrajectory``, ``ScheduleReport``, ``SummaryReport``,
      ``SummaryLine``).
    * All methods are **read-only**.

    Guarantees
    ----------
    * No financial logic lives in this class; it delegates to the engines
      in ``ledger_engines``.
    * Clock is injectable for deterministic testing.
    """

    def __init__(
        self,
        store: LedgerStore,
        compiled: CompiledConfiguration,
        budget_source: BudgetSource | None = None,
        config: ReportingConfig | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._compiled = compiled
        self._budgets = budget_source or StaticBudgetSource(compiled.config.budgets)
        self._config = config or ReportingConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._aggregator = CategoryAggregator()
        self._rollup = StatementRollupEngine(self._aggregator)
        self._variance = BudgetVarianceCalculator()

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "max_workers": self._config.max_workers,
                "comparison_basis": self._config.comparison_basis.value,
                "config_checksum": compiled.config.checksum,
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _new_request(self) -> _Request:
        config = self._compiled.config
        movements = MonthlyMovementCalculator(self._store, config.accounts, config.corrections)
        openings = OpeningBalanceResolver(movements, config.seeds)
        return _Request(
            movements=movements,
            openings=openings,
            balances=RunningBalanceBuilder(movements, openings),
        )

    def _executor(self) -> Executor:
        return ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="ledger-read",
        )

    def _metadata(
        self,
        report_type: ReportType,
        report_id: str,
        statement: CompiledStatement,
        year: int,
        month: int | None = None,
        basis: ComparisonBasis | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            report_id=report_id,
            entity_name=self._config.entity_name,
            statement=statement.name,
            title=statement.definition.title,
            year=year,
            month=month,
            generated_at=self._clock.now().isoformat(),
            config_checksum=self._compiled.config.checksum,
            comparison_basis=basis.value if basis is not None else None,
        )

    @staticmethod
    def _raise_if_store_down(request: _Request) -> None:
        movements = request.movements
        if movements.all_reads_failed:
            logger.error(
                "every_ledger_read_failed",
                extra={"failed_reads": movements.reads_failed},
            )
            raise StoreUnavailableError(
                "every ledger read of the request failed",
                failed_reads=movements.reads_failed,
            )

    def _statement(self, name: str, kind: StatementKind) -> CompiledStatement:
        statement = self._compiled.statement(name)
        if statement.kind != kind:
            raise ValueError(
                f"Statement {name} is a {statement.kind.value}, not a {kind.value}"
            )
        return statement

    # =========================================================================
    # Account trajectory
    # =========================================================================

    def account_trajectory(self, account_code: str, year: int) -> AccountBalanceTrajectory:
        """Opening balance and twelve month-end balances of one account."""
        request = self._new_request()
        with LogContext.bind(report_id=str(uuid.uuid4()), account_code=account_code):
            with self._executor() as pool:
                request.openings.precompute([account_code], year, pool)
                trajectory = request.balances.build(
                    account_code=account_code, year=year, executor=pool,
                )
            self._raise_if_store_down(request)
        return trajectory

    # =========================================================================
    # Schedule
    # =========================================================================

    def schedule(self, statement_name: str, year: int) -> ScheduleReport:
        """
        Generate a schedule (balance-sheet style) report for one year.

        Every member account's trajectory is built once and shared by all
        lines that include it.
        """
        statement = self._statement(statement_name, StatementKind.SCHEDULE)
        request = self._new_request()
        report_id = str(uuid.uuid4())

        with LogContext.bind(report_id=report_id, statement=statement.name):
            logger.info(
                "schedule_report_started",
                extra={"year": year, "account_count": len(statement.account_codes)},
            )
            codes = sorted(statement.account_codes)
            with self._executor() as pool:
                request.openings.precompute(codes, year, pool)
                request.movements.prefetch(codes, [year], pool)

            trajectories = {
                code: request.balances.build(account_code=code, year=year)
                for code in codes
            }
            self._raise_if_store_down(request)

            def leaf_series(line: LineDefinition, _year: int) -> LineSeries:
                return self._aggregator.aggregate(
                    name=line.name,
                    members=[trajectories[code] for code in line.accounts],
                )

            values = self._rollup.schedule(
                statement=statement, year=year, leaf_series=leaf_series,
            )

            lines = tuple(
                ScheduleLine(
                    name=line.name,
                    label=line.label,
                    is_composite=line.is_composite,
                    points=values[line.name].points,
                )
                for line in statement.definition.lines
                if self._keep_line(line, values[line.name].points)
            )
            warnings = request.movements.warnings

            logger.info(
                "schedule_report_generated",
                extra={
                    "year": year,
                    "line_count": len(lines),
                    "warning_count": len(warnings),
                },
            )

        return ScheduleReport(
            metadata=self._metadata(ReportType.SCHEDULE, report_id, statement, year),
            lines=lines,
            warnings=warnings,
        )

    def _keep_line(self, line: LineDefinition, points: tuple[Decimal, ...]) -> bool:
        if self._config.include_zero_lines or line.is_composite:
            return True
        return any(point != ZERO for point in points)

    # =========================================================================
    # Summary
    # =========================================================================

    def _leaf_window(
        self,
        request: _Request,
        line: LineDefinition,
        window: PeriodWindow,
    ) -> Decimal:
        movements = request.movements
        if line.pooled:
            return movements.pooled_window_movement(
                line.accounts, window.year, window.months,
                line.account_class, line.auxiliary_filter,
            )
        return sum(
            (
                movements.window_movement(code, window.year, window.months, line.auxiliary_filter)
                for code in line.accounts
            ),
            ZERO,
        )

    @staticmethod
    def _prefetch_summary(
        request: _Request,
        statement: CompiledStatement,
        windows: dict[Perspective, PeriodWindow],
        pool: Executor,
    ) -> None:
        months_by_year: dict[int, set[int]] = {}
        for window in windows.values():
            months_by_year.setdefault(window.year, set()).update(window.months)

        for year, months in sorted(months_by_year.items()):
            for line in statement.leaves:
                if line.pooled:
                    request.movements.prefetch_pooled(
                        line.accounts, [year], pool, sorted(months),
                        account_class=line.account_class,
                        auxiliary_filter=line.auxiliary_filter,
                    )
                else:
                    request.movements.prefetch(
                        line.accounts, [year], pool, sorted(months),
                        auxiliary_filter=line.auxiliary_filter,
                    )

    def summary(
        self,
        statement_name: str,
        year: int,
        month: int,
        basis: ComparisonBasis | None = None,
    ) -> SummaryReport:
        """
        Generate a summary (profit-and-loss style) report for a target month.

        Args:
            statement_name: A configured summary statement.
            year: Target year.
            month: Target month (1-12).
            basis: PriorCumulative comparison basis; defaults to
                ``ReportingConfig.comparison_basis``.
        """
        statement = self._statement(statement_name, StatementKind.SUMMARY)
        basis = basis or self._config.comparison_basis
        windows = summary_windows(year, month, basis)
        request = self._new_request()
        report_id = str(uuid.uuid4())

        with LogContext.bind(report_id=report_id, statement=statement.name):
            logger.info(
                "summary_report_started",
                extra={"year": year, "month": month, "basis": basis.value},
            )
            with self._executor() as pool:
                self._prefetch_summary(request, statement, windows, pool)
            self._raise_if_store_down(request)

            rollup = self._rollup.summary(
                statement=statement,
                year=year,
                month=month,
                basis=basis,
                leaf_window=lambda line, window: self._leaf_window(request, line, window),
            )
            budgets = self._variance.resolve_budgets(statement, self._budgets, year, month)

            lines: list[SummaryLine] = []
            for line in statement.definition.lines:
                actual = rollup.figure(line.name, Perspective.ACTUAL)
                cumulative = rollup.figure(line.name, Perspective.CUMULATIVE)
                prior = rollup.figure(line.name, Perspective.PRIOR_CUMULATIVE)
                if not self._keep_line(line, (actual, cumulative, prior)):
                    continue
                budget = budgets[line.name]
                lines.append(
                    SummaryLine(
                        name=line.name,
                        label=line.label,
                        direction=line.direction,
                        is_composite=line.is_composite,
                        actual=actual,
                        cumulative=cumulative,
                        prior_cumulative=prior,
                        budget=budget.amount,
                        budget_percentage=budget.percentage,
                        budget_derived=budget.derived,
                        variance_percent=self._variance.variance_percent(
                            actual, budget.amount, line.direction,
                        ),
                    )
                )
            warnings = request.movements.warnings

            logger.info(
                "summary_report_generated",
                extra={
                    "year": year,
                    "month": month,
                    "line_count": len(lines),
                    "warning_count": len(warnings),
                },
            )

        return SummaryReport(
            metadata=self._metadata(
                ReportType.SUMMARY, report_id, statement, year, month, basis,
            ),
            windows=tuple((p.value, str(w)) for p, w in rollup.windows.items()),
            lines=tuple(lines),
            warnings=warnings,
        )

    def line_result(
        self,
        statement_name: str,
        line_name: str,
        year: int,
        month: int,
        basis: ComparisonBasis | None = None,
    ) -> SummaryLine:
        """Figures of a single summary line (the whole statement is evaluated)."""
        statement = self._statement(statement_name, StatementKind.SUMMARY)
        statement.line(line_name)
        report = self.summary(statement_name, year, month, basis)
        return report.line(line_name)
