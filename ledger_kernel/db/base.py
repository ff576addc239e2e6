"""
Module: ledger_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.
Architecture position: Kernel > DB. Lowest-level import target within the
    kernel; MUST NOT import from models/ or selectors/.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(38, 9). NEVER use float for monetary amounts.
    - Integer surrogate keys: rows are identified by an autoincrement id;
      business keys (account code) carry their own unique constraints.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Date, DateTime, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all ledger models.

    Guarantees:
        - Decimal maps to Numeric(38, 9).
        - datetime maps to DateTime(timezone=True).
        - date maps to Date.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
