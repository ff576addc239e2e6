"""
Account classes and normal-balance sides.

Pure value types shared by the ORM models, the configuration schema and
the engines. The normal-balance side is never stored independently: it
is derived from the account class so the two cannot disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AccountClass(str, Enum):
    """Classes of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Side on which an account's balance increases."""

    DEBIT = "debit"
    CREDIT = "credit"


_DEBIT_NORMAL = frozenset({AccountClass.ASSET, AccountClass.EXPENSE})


def normal_balance_for(account_class: AccountClass) -> NormalBalance:
    """Assets and expenses increase on debit; everything else on credit."""
    if account_class in _DEBIT_NORMAL:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


class CorrectionPolicy(str, Enum):
    """Data-quality corrections applied to an account's raw entries."""

    # Amounts were keyed with inconsistent sign under either flag; sum
    # ABS(amount) per side before applying the sign convention.
    ABSOLUTE_AMOUNTS = "absolute_amounts"


@dataclass(frozen=True)
class AccountRef:
    """Immutable reference data for one account."""

    code: str
    name: str
    account_class: AccountClass

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_class)
