"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.budget_selector import (
    BudgetFigure,
    BudgetSelector,
    BudgetSource,
    StaticBudgetSource,
)
from ledger_kernel.selectors.ledger_selector import LedgerSelector, LedgerStore

__all__ = [
    "BudgetFigure",
    "BudgetSelector",
    "BudgetSource",
    "StaticBudgetSource",
    "LedgerSelector",
    "LedgerStore",
]
