"""
Configuration Schema (``ledger_config.schema``).

Frozen dataclasses describing everything the rollup engines consume that
is not a ledger entry: the chart of accounts, the sign-correction table,
the anchor-year seed balances, reporting-line definitions grouped into
statements, and budget figures.

Every object is immutable after construction; mappings are exposed
through ``MappingProxyType``. No I/O happens here -- see
``ledger_config.loader`` for YAML parsing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from ledger_kernel.domain.accounts import AccountClass, AccountRef, CorrectionPolicy
from ledger_kernel.domain.values import ZERO, DirectionClass
from ledger_kernel.selectors.budget_selector import BudgetFigure


class StatementKind(str, Enum):
    """Shape of a statement's lines."""

    SCHEDULE = "schedule"  # 13-point yearly balances (balance sheet)
    SUMMARY = "summary"  # actual / cumulative / prior cumulative (P&L)


@dataclass(frozen=True)
class FormulaTerm:
    """One signed reference inside a composite line formula."""

    sign: int
    line: str

    def __post_init__(self):
        if self.sign not in (1, -1):
            raise ValueError(f"Formula sign must be +1 or -1, got {self.sign}")

    def __str__(self) -> str:
        return f"{'+' if self.sign > 0 else '-'} {self.line}"


@dataclass(frozen=True)
class LineDefinition:
    """
    A named financial-statement row.

    Exactly one of ``accounts`` (leaf) or ``formula`` (composite) is set;
    the validator enforces this.
    """

    name: str
    label: str
    accounts: tuple[str, ...] = ()
    formula: tuple[FormulaTerm, ...] = ()
    direction: DirectionClass = DirectionClass.FAVORABLE_WHEN_HIGHER
    # Pooled leaves fetch all member sums in one store query per month and
    # apply the sign convention of ``account_class`` to the pooled totals.
    pooled: bool = False
    account_class: AccountClass | None = None
    auxiliary_filter: str | None = None

    @property
    def is_composite(self) -> bool:
        return bool(self.formula)

    @property
    def references(self) -> tuple[str, ...]:
        return tuple(term.line for term in self.formula)


@dataclass(frozen=True)
class StatementDefinition:
    """An ordered set of reporting lines presented together."""

    name: str
    kind: StatementKind
    title: str
    lines: tuple[LineDefinition, ...]

    def line(self, name: str) -> LineDefinition | None:
        for candidate in self.lines:
            if candidate.name == name:
                return candidate
        return None


@dataclass(frozen=True)
class AnchorSeedTable:
    """Opening balances supplied directly for the anchor year."""

    anchor_year: int
    balances: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "balances", MappingProxyType(dict(self.balances)))

    def seed(self, account_code: str) -> Decimal | None:
        return self.balances.get(account_code)

    def seed_or_zero(self, account_code: str) -> Decimal:
        return self.balances.get(account_code, ZERO)


@dataclass(frozen=True)
class RollupConfiguration:
    """
    The complete, immutable configuration set.

    Built once by ``ledger_config.get_active_config()`` and shared by every
    report request.
    """

    accounts: Mapping[str, AccountRef]
    corrections: Mapping[str, CorrectionPolicy]
    seeds: AnchorSeedTable
    statements: Mapping[str, StatementDefinition]
    budgets: tuple[BudgetFigure, ...] = ()
    checksum: str = ""

    def __post_init__(self):
        object.__setattr__(self, "accounts", MappingProxyType(dict(self.accounts)))
        object.__setattr__(self, "corrections", MappingProxyType(dict(self.corrections)))
        object.__setattr__(self, "statements", MappingProxyType(dict(self.statements)))

    @property
    def anchor_year(self) -> int:
        return self.seeds.anchor_year
