"""
Module: ledger_kernel.models.budget
Responsibility: ORM persistence for budget figures per reporting line and
    month.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - One figure per (line_name, year, month) (uq_budget_line_period).
    - is_percentage marks figures that are ratios, not amounts; they are
      never summed into composite budgets.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class BudgetFigureRecord(Base):
    """Budget amount for one reporting line in one month."""

    __tablename__ = "budget_figures"

    __table_args__ = (
        UniqueConstraint("line_name", "year", "month", name="uq_budget_line_period"),
    )

    line_name: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    is_percentage: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<BudgetFigure {self.line_name} {self.year}-{self.month:02d} "
            f"{self.amount}{'%' if self.is_percentage else ''}>"
        )
