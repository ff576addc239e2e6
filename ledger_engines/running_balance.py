"""
ledger_engines.running_balance -- Thirteen-point yearly balance trajectories.

Responsibility:
    Build an account's opening balance plus its twelve month-end balances
    for one year. Each displayed point is the round-half-up integer of the
    unrounded running value; the unrounded values are kept alongside for
    category aggregation.

Invariants enforced:
    - raw[0] = opening balance; raw[m] = raw[m - 1] + movement(m).
    - point[m] = round_half_up(raw[m]). Rounding is applied to the running
      total at each step, never to the monthly movement, so the difference
      between two consecutive points may differ by one from the movement.
"""

from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from decimal import Decimal

from ledger_engines.movement import MonthlyMovementCalculator
from ledger_engines.opening_balance import OpeningBalanceResolver
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.values import MONTHS, POINT_LABELS, round_half_up


@dataclass(frozen=True)
class AccountBalanceTrajectory:
    """Opening and month-end balances of one account for one year."""

    account_code: str
    year: int
    raw: tuple[Decimal, ...]
    points: tuple[Decimal, ...]

    def __post_init__(self):
        if len(self.raw) != len(POINT_LABELS) or len(self.points) != len(POINT_LABELS):
            raise ValueError(
                f"Trajectory for {self.account_code} {self.year} needs "
                f"{len(POINT_LABELS)} points"
            )

    @property
    def opening(self) -> Decimal:
        return self.points[0]

    @property
    def closing(self) -> Decimal:
        return self.points[-1]

    def point(self, label: str) -> Decimal:
        return self.points[POINT_LABELS.index(label)]

    def as_dict(self) -> dict[str, Decimal]:
        return dict(zip(POINT_LABELS, self.points))


class RunningBalanceBuilder:
    """Folds monthly movements onto an opening balance."""

    def __init__(
        self,
        movements: MonthlyMovementCalculator,
        openings: OpeningBalanceResolver,
    ):
        self._movements = movements
        self._openings = openings

    @traced_engine("running_balance", "1.0", fingerprint_fields=("account_code", "year"))
    def build(
        self,
        *,
        account_code: str,
        year: int,
        executor: Executor | None = None,
    ) -> AccountBalanceTrajectory:
        """
        Trajectory of ``account_code`` through ``year``.

        With an executor the twelve monthly reads are fetched in parallel
        first; the fold itself is always sequential.
        """
        opening = self._openings.opening_balance(account_code, year)
        if executor is not None:
            self._movements.prefetch([account_code], [year], executor)

        raw = [opening]
        for month in MONTHS:
            raw.append(raw[-1] + self._movements.movement(account_code, year, month))

        return AccountBalanceTrajectory(
            account_code=account_code,
            year=year,
            raw=tuple(raw),
            points=tuple(round_half_up(value) for value in raw),
        )
