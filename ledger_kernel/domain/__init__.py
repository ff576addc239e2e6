"""
Pure domain layer.

Value objects and enums with NO dependencies on the ORM, the database or
the clock (except ``SystemClock``). All domain objects are immutable.
"""

from ledger_kernel.domain.accounts import (
    AccountClass,
    AccountRef,
    CorrectionPolicy,
    NormalBalance,
    normal_balance_for,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.values import (
    MONTHS,
    POINT_LABELS,
    ZERO,
    MonthlySums,
    DirectionClass,
    PeriodWindow,
    round_half_up,
    validate_month,
)

__all__ = [
    "AccountClass",
    "AccountRef",
    "CorrectionPolicy",
    "NormalBalance",
    "normal_balance_for",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "MONTHS",
    "POINT_LABELS",
    "ZERO",
    "MonthlySums",
    "DirectionClass",
    "PeriodWindow",
    "round_half_up",
    "validate_month",
]
