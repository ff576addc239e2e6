"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts.
Architecture position: Kernel > Models. May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Account.code is globally unique (uq_account_code).
    - The normal-balance side is derived from account_class, never stored,
      so the two cannot disagree.
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.domain.accounts import (
    AccountClass,
    AccountRef,
    NormalBalance,
    normal_balance_for,
)


class Account(Base):
    """
    Chart of accounts entry.

    Owned by the surrounding CRUD layer; the rollup engine only reads it
    (via ``to_ref()``) to learn each account's class.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_class", "account_class"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_class: Mapped[AccountClass] = mapped_column(String(20), nullable=False)

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(AccountClass(self.account_class))

    def to_ref(self) -> AccountRef:
        return AccountRef(
            code=self.code,
            name=self.name,
            account_class=AccountClass(self.account_class),
        )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name} ({self.account_class})>"
