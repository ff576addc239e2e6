"""
Report Models (``ledger_reporting.models``).

Responsibility
--------------
Frozen dataclass value objects returned by ``ReportingService``: schedule
reports (13-point balances per line) and summary reports (actual,
cumulative and prior cumulative figures with budget variance per line).

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Every report carries the read warnings collected while computing it, so
  a figure that absorbed a failed read is never silently presented.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ledger_engines.movement import ReadWarning
from ledger_kernel.domain.values import POINT_LABELS, DirectionClass


class ReportType(str, Enum):
    """Types of rollup reports."""

    SCHEDULE = "schedule"
    SUMMARY = "summary"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    report_id: str
    entity_name: str
    statement: str
    title: str
    year: int
    generated_at: str  # ISO format timestamp from injected clock
    config_checksum: str
    month: int | None = None
    comparison_basis: str | None = None


# =========================================================================
# Schedule
# =========================================================================


@dataclass(frozen=True)
class ScheduleLine:
    """One line of a schedule: opening balance plus twelve month ends."""

    name: str
    label: str
    is_composite: bool
    points: tuple[Decimal, ...]

    @property
    def opening(self) -> Decimal:
        return self.points[0]

    @property
    def closing(self) -> Decimal:
        return self.points[-1]

    def as_dict(self) -> dict[str, Decimal]:
        return dict(zip(POINT_LABELS, self.points))


@dataclass(frozen=True)
class ScheduleReport:
    """A balance-sheet style schedule for one year."""

    metadata: ReportMetadata
    lines: tuple[ScheduleLine, ...]
    warnings: tuple[ReadWarning, ...] = ()

    def line(self, name: str) -> ScheduleLine:
        for candidate in self.lines:
            if candidate.name == name:
                return candidate
        raise KeyError(name)


# =========================================================================
# Summary
# =========================================================================


@dataclass(frozen=True)
class SummaryLine:
    """One line of a summary for a target month."""

    name: str
    label: str
    direction: DirectionClass
    is_composite: bool
    actual: Decimal
    cumulative: Decimal
    prior_cumulative: Decimal
    budget: Decimal | None = None
    budget_percentage: Decimal | None = None
    budget_derived: bool = False
    variance_percent: Decimal | None = None

    @property
    def is_favorable(self) -> bool | None:
        """None when the line has no budget."""
        if self.variance_percent is None:
            return None
        return self.variance_percent >= 0


@dataclass(frozen=True)
class SummaryReport:
    """A profit-and-loss style summary for one target month."""

    metadata: ReportMetadata
    # (perspective, window) pairs such as ("cumulative", "2026-01..03")
    windows: tuple[tuple[str, str], ...]
    lines: tuple[SummaryLine, ...]
    warnings: tuple[ReadWarning, ...] = ()

    def line(self, name: str) -> SummaryLine:
        for candidate in self.lines:
            if candidate.name == name:
                return candidate
        raise KeyError(name)
