"""
ledger_engines.movement -- Monthly net movement per account or account pool.

Responsibility:
    Turn the ledger store's debit/credit sums for one calendar month into a
    signed net movement using the account class's sign convention, with
    the sign-correction table applied in exactly one place.

Architecture position:
    Engines -- the only engine that reads the ledger store. Everything
    downstream (opening balances, running balances, statement lines) is
    built from the movements returned here.

Invariants enforced:
    - Debit-normal classes (asset, expense): debit_sum - credit_sum.
      Credit-normal classes (liability, equity, revenue): credit_sum - debit_sum.
    - Accounts carrying CorrectionPolicy.ABSOLUTE_AMOUNTS are read with
      absolute_amounts=True; every other account uses signed amounts.
    - A month without unlocked entries moves by zero.
    - Each distinct store read is made at most once per calculator, so one
      report request sees one consistent value per (accounts, month).

Failure modes:
    - StoreQueryError on one read is absorbed: the movement is zero, a
      WARNING is logged and a ReadWarning is recorded.
    - StoreUnavailableError propagates and fails the request.
    - UnknownAccountError for a code missing from the chart of accounts.
    - InvalidPeriodError for a month outside 1..12.
"""

from __future__ import annotations

import contextvars
import threading
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.accounts import (
    AccountClass,
    AccountRef,
    CorrectionPolicy,
    NormalBalance,
    normal_balance_for,
)
from ledger_kernel.domain.values import MONTHS, ZERO, MonthlySums, validate_month
from ledger_kernel.exceptions import StoreQueryError, UnknownAccountError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.ledger_selector import LedgerStore

logger = get_logger("engines.movement")


@dataclass(frozen=True)
class ReadWarning:
    """A store read that failed and was taken as zero."""

    account_codes: tuple[str, ...]
    year: int
    month: int
    reason: str


# (sorted codes, year, month, auxiliary filter, absolute amounts)
_ReadKey = tuple[tuple[str, ...], int, int, str | None, bool]


def signed_movement(account_class: AccountClass, sums: MonthlySums) -> Decimal:
    """Apply the class's sign convention to one month of sums."""
    if normal_balance_for(account_class) == NormalBalance.DEBIT:
        return sums.debit_sum - sums.credit_sum
    return sums.credit_sum - sums.debit_sum


class MonthlyMovementCalculator:
    """
    Net monthly movements over a ledger store, memoized per request.

    Create one calculator per report request: the memo holds the store's
    answers for the lifetime of the request and is discarded with it.
    Safe to call from several worker threads at once.
    """

    def __init__(
        self,
        store: LedgerStore,
        accounts: Mapping[str, AccountRef],
        corrections: Mapping[str, CorrectionPolicy] | None = None,
    ):
        self._store = store
        self._accounts = accounts
        self._corrections = corrections or {}
        self._memo: dict[_ReadKey, MonthlySums] = {}
        self._warnings: list[ReadWarning] = []
        self._reads_attempted = 0
        self._reads_failed = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    @property
    def warnings(self) -> tuple[ReadWarning, ...]:
        with self._lock:
            return tuple(self._warnings)

    @property
    def reads_attempted(self) -> int:
        return self._reads_attempted

    @property
    def reads_failed(self) -> int:
        return self._reads_failed

    @property
    def all_reads_failed(self) -> bool:
        """True when at least one read was made and none succeeded."""
        with self._lock:
            return self._reads_attempted > 0 and self._reads_failed == self._reads_attempted

    def account(self, code: str) -> AccountRef:
        try:
            return self._accounts[code]
        except KeyError:
            raise UnknownAccountError(code) from None

    def is_corrected(self, code: str) -> bool:
        return self._corrections.get(code) == CorrectionPolicy.ABSOLUTE_AMOUNTS

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _sums(
        self,
        codes: tuple[str, ...],
        year: int,
        month: int,
        auxiliary_filter: str | None,
        absolute_amounts: bool,
    ) -> MonthlySums:
        key: _ReadKey = (codes, year, month, auxiliary_filter, absolute_amounts)
        with self._lock:
            cached = self._memo.get(key)
            if cached is not None:
                return cached
            self._reads_attempted += 1

        # The read itself runs outside the lock so workers overlap.
        try:
            sums = self._store.monthly_sums(
                frozenset(codes), year, month,
                auxiliary_filter=auxiliary_filter,
                absolute_amounts=absolute_amounts,
            )
        except StoreQueryError as exc:
            warning = ReadWarning(codes, year, month, exc.reason)
            logger.warning(
                "movement_read_failed_as_zero",
                extra={
                    "account_codes": codes,
                    "year": year,
                    "month": month,
                    "reason": exc.reason,
                },
            )
            sums = MonthlySums()
            with self._lock:
                self._reads_failed += 1
                self._warnings.append(warning)
                return self._memo.setdefault(key, sums)

        with self._lock:
            return self._memo.setdefault(key, sums)

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def movement(
        self,
        code: str,
        year: int,
        month: int,
        auxiliary_filter: str | None = None,
    ) -> Decimal:
        """Net movement of one account in one month."""
        validate_month(year, month)
        ref = self.account(code)
        sums = self._sums((code,), year, month, auxiliary_filter, self.is_corrected(code))
        return signed_movement(ref.account_class, sums)

    def pooled_movement(
        self,
        codes: Iterable[str],
        year: int,
        month: int,
        account_class: AccountClass | None = None,
        auxiliary_filter: str | None = None,
    ) -> Decimal:
        """
        Net movement of several accounts read together.

        Uncorrected members share a single store read; members carrying a
        sign correction are split out and read individually with
        ``absolute_amounts=True``. The sign convention of ``account_class``
        (default: the class of the first member) is applied to every read.
        """
        validate_month(year, month)
        members = tuple(sorted(set(codes)))
        if not members:
            return ZERO
        refs = [self.account(code) for code in members]
        cls = account_class or refs[0].account_class

        plain = tuple(code for code in members if not self.is_corrected(code))
        corrected = tuple(code for code in members if self.is_corrected(code))

        total = ZERO
        if plain:
            total += signed_movement(cls, self._sums(plain, year, month, auxiliary_filter, False))
        for code in corrected:
            total += signed_movement(cls, self._sums((code,), year, month, auxiliary_filter, True))
        return total

    def window_movement(
        self,
        code: str,
        year: int,
        months: Iterable[int],
        auxiliary_filter: str | None = None,
    ) -> Decimal:
        """Sum of one account's movements over the listed months."""
        return sum((self.movement(code, year, m, auxiliary_filter) for m in months), ZERO)

    def pooled_window_movement(
        self,
        codes: Iterable[str],
        year: int,
        months: Iterable[int],
        account_class: AccountClass | None = None,
        auxiliary_filter: str | None = None,
    ) -> Decimal:
        members = tuple(codes)
        return sum(
            (
                self.pooled_movement(members, year, m, account_class, auxiliary_filter)
                for m in months
            ),
            ZERO,
        )

    # ------------------------------------------------------------------
    # Concurrent warm-up
    # ------------------------------------------------------------------

    def prefetch(
        self,
        codes: Iterable[str],
        years: Iterable[int],
        executor: Executor | None = None,
        months: Iterable[int] = MONTHS,
        auxiliary_filter: str | None = None,
    ) -> int:
        """
        Warm the memo for every (account, year, month) combination.

        Reads are submitted to ``executor`` when given, otherwise run
        inline. Returns the number of movements requested.
        """
        month_list = tuple(months)
        tasks = [
            (self.movement, (code, year, month, auxiliary_filter))
            for code in sorted(set(codes))
            for year in years
            for month in month_list
        ]
        _run_all(tasks, executor)
        return len(tasks)

    def prefetch_pooled(
        self,
        codes: Iterable[str],
        years: Iterable[int],
        executor: Executor | None = None,
        months: Iterable[int] = MONTHS,
        account_class: AccountClass | None = None,
        auxiliary_filter: str | None = None,
    ) -> int:
        members = tuple(codes)
        month_list = tuple(months)
        tasks = [
            (self.pooled_movement, (members, year, month, account_class, auxiliary_filter))
            for year in years
            for month in month_list
        ]
        _run_all(tasks, executor)
        return len(tasks)


def _run_all(
    tasks: list[tuple[Callable[..., object], tuple]],
    executor: Executor | None,
) -> None:
    """Run tasks inline or on ``executor``; the first exception propagates."""
    if executor is None:
        for fn, args in tasks:
            fn(*args)
        return

    # Each task gets its own context copy so LogContext fields reach the
    # worker threads.
    futures: list[Future] = [
        executor.submit(contextvars.copy_context().run, fn, *args)
        for fn, args in tasks
    ]
    try:
        for future in futures:
            future.result()
    except BaseException:
        for future in futures:
            future.cancel()
        raise
