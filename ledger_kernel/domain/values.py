"""
Value objects for ledger aggregation.

Pure data with ZERO I/O. All monetary values are ``Decimal`` -- never
``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from enum import Enum

from ledger_kernel.exceptions import InvalidPeriodError

ZERO = Decimal("0")
_HALF = Decimal("0.5")

MONTHS: tuple[int, ...] = tuple(range(1, 13))

# Point labels of a 13-point yearly trajectory: opening + month ends.
POINT_LABELS: tuple[str, ...] = (
    "opening",
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)


class DirectionClass(str, Enum):
    """Whether a line is favorable when actual exceeds budget or falls below it."""

    FAVORABLE_WHEN_HIGHER = "favorable_when_higher"  # revenue, income, profit
    FAVORABLE_WHEN_LOWER = "favorable_when_lower"  # cost, expense


def round_half_up(value: Decimal) -> Decimal:
    """
    Round to the nearest integer, halves toward positive infinity.

    5.50 -> 6, 5.49 -> 5, -100.5 -> -100, -100.51 -> -101.
    """
    return (value + _HALF).to_integral_value(rounding=ROUND_FLOOR)


def validate_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidPeriodError(year, month, "month must be between 1 and 12")


@dataclass(frozen=True)
class MonthlySums:
    """Debit/credit aggregate for an account set in one calendar month."""

    debit_sum: Decimal = ZERO
    credit_sum: Decimal = ZERO
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.count == 0


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive month range ``start_month..end_month`` within one year."""

    year: int
    start_month: int
    end_month: int

    def __post_init__(self):
        validate_month(self.year, self.start_month)
        validate_month(self.year, self.end_month)
        if self.start_month > self.end_month:
            raise InvalidPeriodError(
                self.year, self.start_month,
                f"window starts after it ends (end month {self.end_month})",
            )

    @property
    def months(self) -> tuple[int, ...]:
        return tuple(range(self.start_month, self.end_month + 1))

    @classmethod
    def single(cls, year: int, month: int) -> PeriodWindow:
        return cls(year, month, month)

    @classmethod
    def year_to_date(cls, year: int, month: int) -> PeriodWindow:
        return cls(year, 1, month)

    def __str__(self) -> str:
        return f"{self.year}-{self.start_month:02d}..{self.end_month:02d}"
