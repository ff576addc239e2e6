"""
ledger_engines.aggregation -- Category totals over member series.

Responsibility:
    Combine several member series (account trajectories or other line
    series) into one reporting-line series by summing the UNROUNDED member
    values at each time point and rounding the sum once.

Invariants enforced:
    - total[t] = round_half_up(sum(member.raw[t])); member points that were
      rounded for display never feed a total.
    - Contra members (negative balances) need no special handling.
    - All members share one point count.

Failure modes:
    - ValueError when there are no members or point counts differ.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.values import ZERO, round_half_up


class SupportsRaw(Protocol):
    @property
    def raw(self) -> tuple[Decimal, ...]: ...


@dataclass(frozen=True)
class LineSeries:
    """Values of one reporting line: unrounded sums and their rounded points."""

    name: str
    raw: tuple[Decimal, ...]
    points: tuple[Decimal, ...]

    @classmethod
    def from_raw(cls, name: str, raw: Sequence[Decimal]) -> LineSeries:
        values = tuple(raw)
        return cls(name=name, raw=values, points=tuple(round_half_up(v) for v in values))

    def __len__(self) -> int:
        return len(self.points)


class CategoryAggregator:
    """Pure per-point summation with a single rounding step."""

    @staticmethod
    def _width(members: Sequence[SupportsRaw]) -> int:
        if not members:
            raise ValueError("Cannot aggregate an empty member list")
        widths = {len(m.raw) for m in members}
        if len(widths) != 1:
            raise ValueError(f"Members have differing point counts: {sorted(widths)}")
        return widths.pop()

    @traced_engine("aggregation", "1.0", fingerprint_fields=("name",))
    def aggregate(self, *, name: str, members: Sequence[SupportsRaw]) -> LineSeries:
        """Sum members point by point."""
        return self.combine(name=name, terms=[(1, m) for m in members])

    def combine(
        self,
        *,
        name: str,
        terms: Sequence[tuple[int, SupportsRaw]],
    ) -> LineSeries:
        """
        Evaluate a signed formula such as ``revenue - direct_cost``.

        Each term is ``(sign, series)`` with sign +1 or -1.
        """
        width = self._width([series for _, series in terms])
        totals = [ZERO] * width
        for sign, series in terms:
            if sign not in (1, -1):
                raise ValueError(f"Term sign must be +1 or -1, got {sign}")
            for i, value in enumerate(series.raw):
                totals[i] += value if sign > 0 else -value
        return LineSeries.from_raw(name, totals)
