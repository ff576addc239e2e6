"""
Pytest fixtures for the ledger rollup test suite.

Provides:
- Structured log capture
- An in-memory ledger store for engine and service tests
- A SQLite-backed LedgerSelector for selector tests
- A small chart of accounts, seed table and the default configuration set
- A deterministic clock
"""

import json
import logging
import threading
from collections.abc import Generator
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session, sessionmaker

from ledger_config import get_active_config
from ledger_config.schema import AnchorSeedTable
from ledger_engines.movement import MonthlyMovementCalculator
from ledger_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.accounts import AccountClass, AccountRef, CorrectionPolicy
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.values import MonthlySums
from ledger_kernel.exceptions import StoreQueryError, StoreUnavailableError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models.ledger_entry import EntrySide, LedgerEntry
from ledger_kernel.selectors.ledger_selector import LedgerSelector


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, movements):
            movements.movement("110101", 2026, 1)
            logs = captured_logs()
            assert any(r["message"] == "movement_read_failed_as_zero" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# In-memory ledger store
# =============================================================================


@dataclass(frozen=True)
class FakeEntry:
    account_number: str
    transaction_date: date
    side: EntrySide
    amount: Decimal
    is_locked: bool = False
    auxiliary_code: str | None = None


class FakeLedgerStore:
    """
    In-memory ``LedgerStore``.

    Records every call so tests can assert on read counts, and can be told
    to fail individual (account, year, month) reads or to be unreachable.
    """

    def __init__(self):
        self.entries: list[FakeEntry] = []
        self.calls: list[tuple] = []
        self.failing: set[tuple[str, int, int]] = set()
        self.unavailable = False
        self._lock = threading.Lock()

    def add(
        self,
        code: str,
        on: date,
        side: EntrySide,
        amount,
        *,
        locked: bool = False,
        auxiliary_code: str | None = None,
    ) -> None:
        self.entries.append(
            FakeEntry(code, on, side, Decimal(str(amount)), locked, auxiliary_code)
        )

    def debit(self, code: str, on: date, amount, **kwargs) -> None:
        self.add(code, on, EntrySide.DEBIT, amount, **kwargs)

    def credit(self, code: str, on: date, amount, **kwargs) -> None:
        self.add(code, on, EntrySide.CREDIT, amount, **kwargs)

    def fail(self, code: str, year: int, month: int) -> None:
        self.failing.add((code, year, month))

    def monthly_sums(
        self,
        account_codes: frozenset[str],
        year: int,
        month: int,
        auxiliary_filter: str | None = None,
        absolute_amounts: bool = False,
    ) -> MonthlySums:
        with self._lock:
            self.calls.append(
                (tuple(sorted(account_codes)), year, month, auxiliary_filter, absolute_amounts)
            )
        if self.unavailable:
            raise StoreUnavailableError("connection refused")
        if any((code, year, month) in self.failing for code in account_codes):
            raise StoreQueryError(tuple(sorted(account_codes)), year, month, "statement timeout")

        debit = credit = Decimal("0")
        count = 0
        for e in self.entries:
            if (
                e.account_number not in account_codes
                or e.transaction_date.year != year
                or e.transaction_date.month != month
                or e.is_locked
                or (auxiliary_filter is not None and e.auxiliary_code != auxiliary_filter)
            ):
                continue
            amount = abs(e.amount) if absolute_amounts else e.amount
            if e.side == EntrySide.DEBIT:
                debit += amount
            else:
                credit += amount
            count += 1
        return MonthlySums(debit_sum=debit, credit_sum=credit, count=count)


@pytest.fixture
def fake_store() -> FakeLedgerStore:
    return FakeLedgerStore()


# =============================================================================
# Reference data
# =============================================================================


CASH = "110101"
CREDIT_CARD = "110112"
RECEIVABLES = "111101"
IMPAIRMENT = "111199"
TRADE_PAYABLES = "210201"
ACCRUED_SALARIES = "210301"
CONSTRUCTION_REVENUE = "410101"
CONSULTANCY_REVENUE = "410102"
MATERIALS = "510101"
OFFICE_RENT = "610101"


@pytest.fixture
def accounts() -> dict[str, AccountRef]:
    """Small chart of accounts covering every class the engines treat differently."""
    refs = [
        AccountRef(CASH, "Cash at Bank - Main Account", AccountClass.ASSET),
        AccountRef(CREDIT_CARD, "Credit Card Transactions", AccountClass.ASSET),
        AccountRef(RECEIVABLES, "Trade Receivables", AccountClass.ASSET),
        AccountRef(IMPAIRMENT, "Provision for Impairment", AccountClass.ASSET),
        AccountRef(TRADE_PAYABLES, "Suppliers Trade Payables", AccountClass.LIABILITY),
        AccountRef(ACCRUED_SALARIES, "Accrued Salaries and Wages", AccountClass.LIABILITY),
        AccountRef(CONSTRUCTION_REVENUE, "Construction Revenue", AccountClass.REVENUE),
        AccountRef(CONSULTANCY_REVENUE, "Consultancy Revenue", AccountClass.REVENUE),
        AccountRef(MATERIALS, "Direct Materials", AccountClass.EXPENSE),
        AccountRef(OFFICE_RENT, "Office Rent", AccountClass.EXPENSE),
    ]
    return {ref.code: ref for ref in refs}


@pytest.fixture
def corrections() -> dict[str, CorrectionPolicy]:
    return {CREDIT_CARD: CorrectionPolicy.ABSOLUTE_AMOUNTS}


@pytest.fixture
def seeds() -> AnchorSeedTable:
    return AnchorSeedTable(
        anchor_year=2025,
        balances={
            CASH: Decimal("37011"),
            TRADE_PAYABLES: Decimal("15234567"),
            IMPAIRMENT: Decimal("-1250000"),
        },
    )


@pytest.fixture
def movements(fake_store, accounts, corrections) -> MonthlyMovementCalculator:
    return MonthlyMovementCalculator(fake_store, accounts, corrections)


@pytest.fixture
def default_config():
    """The configuration set shipped with the package."""
    return get_active_config()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


# =============================================================================
# SQLite-backed store
# =============================================================================


@pytest.fixture
def sqlite_session_factory(tmp_path) -> Generator[sessionmaker[Session], None, None]:
    """A file-backed SQLite database with every ledger table created."""
    init_engine_from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def add_ledger_entries(sqlite_session_factory):
    """Insert ``LedgerEntry`` rows: ``add_ledger_entries(LedgerEntry(...), ...)``."""

    def _add(*entries: LedgerEntry) -> None:
        with sqlite_session_factory() as session:
            session.add_all(entries)
            session.commit()

    return _add


@pytest.fixture
def ledger_selector(sqlite_session_factory) -> LedgerSelector:
    return LedgerSelector(sqlite_session_factory)
