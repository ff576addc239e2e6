"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.budget import BudgetFigureRecord
from ledger_kernel.models.ledger_entry import EntrySide, LedgerEntry

__all__ = [
    "Account",
    "BudgetFigureRecord",
    "EntrySide",
    "LedgerEntry",
]
