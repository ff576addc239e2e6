"""
ledger_engines.opening_balance -- Opening balances for any year at or after the anchor.

Responsibility:
    Resolve the balance an account opens a year with. The anchor year opens
    with its seed balance; every later year opens with the rounded closing
    of the year before, where

        closing(A, Y) = round(opening(A, Y) + movement(A, Y, 1..12))

Architecture position:
    Engines -- consumes MonthlyMovementCalculator and the anchor seed
    table; consumed by RunningBalanceBuilder.

Invariants enforced:
    - opening(A, Y) == closing(A, Y - 1) for every Y > anchor.
    - Closings are memoized per (account, year) and resolved by walking
      forward from the latest known closing, so resolving a distant year
      costs one pass per missing year and no recursion.
    - An account without a seed opens the anchor year at zero.

Failure modes:
    - InvalidPeriodError for a year before the anchor year.
    - StoreUnavailableError from the movement calculator propagates.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from concurrent.futures import Executor
from decimal import Decimal

from ledger_config.schema import AnchorSeedTable
from ledger_engines.movement import MonthlyMovementCalculator
from ledger_kernel.domain.values import MONTHS, round_half_up
from ledger_kernel.exceptions import InvalidPeriodError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.opening_balance")


class OpeningBalanceResolver:
    """
    Memoized opening-balance lookup.

    Shares the request lifetime of its movement calculator.
    """

    def __init__(self, movements: MonthlyMovementCalculator, seeds: AnchorSeedTable):
        self._movements = movements
        self._seeds = seeds
        self._closings: dict[tuple[str, int], Decimal] = {}
        self._lock = threading.Lock()

    @property
    def anchor_year(self) -> int:
        return self._seeds.anchor_year

    def _check_year(self, year: int) -> None:
        if year < self.anchor_year:
            raise InvalidPeriodError(
                year, None, f"precedes anchor year {self.anchor_year}",
            )

    def _seed(self, code: str) -> Decimal:
        seed = self._seeds.seed(code)
        if seed is None:
            logger.debug(
                "opening_balance_seed_missing",
                extra={"account_code": code, "anchor_year": self.anchor_year},
            )
            return self._seeds.seed_or_zero(code)
        return seed

    def opening_balance(self, code: str, year: int) -> Decimal:
        """Balance ``code`` opens ``year`` with."""
        self._check_year(year)
        # Validate the account even when only the seed is needed.
        self._movements.account(code)
        if year == self.anchor_year:
            return self._seed(code)
        return self.closing(code, year - 1)

    def closing(self, code: str, year: int) -> Decimal:
        """Rounded December closing of ``code`` in ``year``."""
        self._check_year(year)
        with self._lock:
            cached = self._closings.get((code, year))
            if cached is not None:
                return cached
            start = year
            while start > self.anchor_year and (code, start - 1) not in self._closings:
                start -= 1
            opening = (
                self._closings[(code, start - 1)]
                if start > self.anchor_year
                else None
            )

        if opening is None:
            opening = self._seed(code)

        closing = opening
        for y in range(start, year + 1):
            closing = round_half_up(
                opening + self._movements.window_movement(code, y, MONTHS)
            )
            with self._lock:
                closing = self._closings.setdefault((code, y), closing)
            logger.debug(
                "closing_balance_resolved",
                extra={
                    "account_code": code,
                    "year": y,
                    "opening": opening,
                    "closing": closing,
                },
            )
            opening = closing
        return closing

    def precompute(
        self,
        codes: Iterable[str],
        through_year: int,
        executor: Executor | None = None,
    ) -> None:
        """
        Warm the closing cache so every year up to ``through_year`` opens
        from memory.

        The monthly reads of all intermediate years are prefetched on
        ``executor``; the closings themselves are folded sequentially.
        """
        self._check_year(through_year)
        members = sorted(set(codes))
        years = range(self.anchor_year, through_year)
        if not members or not years:
            return
        self._movements.prefetch(members, years, executor)
        for code in members:
            self.closing(code, through_year - 1)
