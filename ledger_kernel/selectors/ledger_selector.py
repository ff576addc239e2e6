"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: The ledger store read contract consumed by the rollup
    engines -- debit/credit sums and entry counts for a set of accounts in
    one calendar month, excluding locked entries.
Architecture position: Kernel > Selectors. May import from models/ and
    selectors/base.py.

Invariants enforced:
    - Locked entries never contribute (is_locked = false filter).
    - Effective amount is COALESCE(local_amount, foreign_amount, 0);
      with absolute_amounts=True, ABS() of that value is summed instead.
    - No stored balances: every figure is aggregated at query time.

Failure modes:
    - StoreUnavailableError when the database cannot be reached
      (OperationalError / InterfaceError).
    - StoreQueryError for any other driver error on one aggregate read.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable

from sqlalchemy import and_, case, func, select
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from ledger_kernel.domain.values import MonthlySums, validate_month
from ledger_kernel.exceptions import StoreQueryError, StoreUnavailableError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.ledger_entry import EntrySide, LedgerEntry
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")


@runtime_checkable
class LedgerStore(Protocol):
    """
    Read contract the engines need from the ledger.

    Implementors return ``MonthlySums`` over unlocked entries only and may
    raise ``StoreQueryError`` (one read failed) or
    ``StoreUnavailableError`` (store unreachable).
    """

    def monthly_sums(
        self,
        account_codes: frozenset[str],
        year: int,
        month: int,
        auxiliary_filter: str | None = None,
        absolute_amounts: bool = False,
    ) -> MonthlySums: ...


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class LedgerSelector(BaseSelector):
    """
    SQL implementation of ``LedgerStore`` over the ``general_ledger`` table.

    Contract:
        One aggregate SELECT per call; date filtering uses a half-open
        [first-of-month, first-of-next-month) range so the
        (account_number, transaction_date) index applies.
    """

    def monthly_sums(
        self,
        account_codes: frozenset[str],
        year: int,
        month: int,
        auxiliary_filter: str | None = None,
        absolute_amounts: bool = False,
    ) -> MonthlySums:
        """
        Sum debits and credits for the accounts in one month.

        Args:
            account_codes: Accounts to aggregate together.
            year: Calendar year.
            month: Calendar month (1-12).
            auxiliary_filter: Restrict to entries with this auxiliary code.
            absolute_amounts: Sum ABS(amount) on each side.

        Returns:
            MonthlySums; zero sums and count 0 when nothing matches.
        """
        validate_month(year, month)
        codes = tuple(sorted(account_codes))
        if not codes:
            return MonthlySums()

        amount = func.coalesce(
            LedgerEntry.local_amount, LedgerEntry.foreign_amount, Decimal("0"),
        )
        if absolute_amounts:
            amount = func.abs(amount)

        debit_sum = func.sum(
            case((LedgerEntry.debit_credit == EntrySide.DEBIT.value, amount), else_=Decimal("0"))
        ).label("debit_sum")
        credit_sum = func.sum(
            case((LedgerEntry.debit_credit == EntrySide.CREDIT.value, amount), else_=Decimal("0"))
        ).label("credit_sum")

        start, end = _month_bounds(year, month)
        conditions = [
            LedgerEntry.account_number.in_(codes),
            LedgerEntry.transaction_date >= start,
            LedgerEntry.transaction_date < end,
            LedgerEntry.is_locked.is_(False),
        ]
        if auxiliary_filter is not None:
            conditions.append(LedgerEntry.auxiliary_code == auxiliary_filter)

        query = select(
            debit_sum, credit_sum, func.count(LedgerEntry.id).label("entry_count"),
        ).where(and_(*conditions))

        try:
            with self._read_session() as session:
                row = session.execute(query).one()
        except (OperationalError, InterfaceError) as exc:
            logger.error(
                "ledger_store_unreachable",
                extra={"account_codes": codes, "year": year, "month": month},
                exc_info=True,
            )
            raise StoreUnavailableError(str(exc.orig or exc)) from exc
        except SQLAlchemyError as exc:
            raise StoreQueryError(codes, year, month, str(exc)) from exc

        sums = MonthlySums(
            debit_sum=_as_decimal(row.debit_sum),
            credit_sum=_as_decimal(row.credit_sum),
            count=int(row.entry_count or 0),
        )

        if sums.count:
            logger.debug(
                "ledger_monthly_sums",
                extra={
                    "account_codes": codes,
                    "year": year,
                    "month": month,
                    "debit_sum": sums.debit_sum,
                    "credit_sum": sums.credit_sum,
                    "entry_count": sums.count,
                    "absolute_amounts": absolute_amounts,
                },
            )
        return sums
