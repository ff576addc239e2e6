"""
Module: ledger_kernel.models.ledger_entry
Responsibility: ORM mapping of the general ledger table the rollup engine
    reads from.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - Locked entries (is_locked = true) never contribute to any sum; the
      filter lives in LedgerSelector, the single read path.
    - The effective amount of an entry is
      COALESCE(local_amount, foreign_amount, 0).

Non-goals:
    - The engine never inserts, updates or deletes entries and does not
      check that debits equal credits.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class EntrySide(str, Enum):
    """Debit-or-credit flag as stored in the ledger."""

    DEBIT = "D"
    CREDIT = "C"


class LedgerEntry(Base):
    """One dated, signed transaction line against an account."""

    __tablename__ = "general_ledger"

    __table_args__ = (
        Index("idx_gl_account_date", "account_number", "transaction_date"),
        Index("idx_gl_locked", "is_locked"),
    )

    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_date: Mapped[date] = mapped_column(nullable=False)
    debit_credit: Mapped[str] = mapped_column(String(1), nullable=False)

    # Amount in the reporting currency; foreign_amount is the fallback for
    # entries keyed only in transaction currency.
    local_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    foreign_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Cost centre / project code used by auxiliary-filtered lines.
    auxiliary_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.account_number} {self.transaction_date} "
            f"{self.debit_credit} {self.local_amount}>"
        )
