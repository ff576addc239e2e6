"""
Module: ledger_kernel.selectors.budget_selector
Responsibility: Budget figure lookup by (line name, year, month).
Architecture position: Kernel > Selectors.

Two sources satisfy ``BudgetSource``: ``BudgetSelector`` reads the
``budget_figures`` table; ``StaticBudgetSource`` serves figures declared in
configuration.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ledger_kernel.exceptions import StoreUnavailableError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.budget import BudgetFigureRecord
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.budget")


@dataclass(frozen=True)
class BudgetFigure:
    """Budget amount for one reporting line in one month."""

    line_name: str
    year: int
    month: int
    amount: Decimal
    is_percentage: bool = False


@runtime_checkable
class BudgetSource(Protocol):
    """Lookup of budget figures; None when no figure is recorded."""

    def budget_figure(self, line_name: str, year: int, month: int) -> BudgetFigure | None: ...


class StaticBudgetSource:
    """In-memory budget figures, typically loaded from configuration."""

    def __init__(self, figures: Iterable[BudgetFigure] = ()):
        self._figures: Mapping[tuple[str, int, int], BudgetFigure] = {
            (f.line_name, f.year, f.month): f for f in figures
        }

    def budget_figure(self, line_name: str, year: int, month: int) -> BudgetFigure | None:
        return self._figures.get((line_name, year, month))

    def __len__(self) -> int:
        return len(self._figures)


class BudgetSelector(BaseSelector):
    """Reads budget figures from the ``budget_figures`` table."""

    def budget_figure(self, line_name: str, year: int, month: int) -> BudgetFigure | None:
        query = select(BudgetFigureRecord).where(
            BudgetFigureRecord.line_name == line_name,
            BudgetFigureRecord.year == year,
            BudgetFigureRecord.month == month,
        )
        try:
            with self._read_session() as session:
                record = session.execute(query).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error(
                "budget_lookup_failed",
                extra={"line": line_name, "year": year, "month": month},
                exc_info=True,
            )
            raise StoreUnavailableError(str(exc)) from exc

        if record is None:
            return None
        return BudgetFigure(
            line_name=record.line_name,
            year=record.year,
            month=record.month,
            amount=Decimal(record.amount),
            is_percentage=record.is_percentage,
        )
