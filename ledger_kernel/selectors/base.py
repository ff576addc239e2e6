"""
Module: ledger_kernel.selectors.base
Responsibility: Base class for read-only query selectors.
Architecture position: Kernel > Selectors. May import from db/ and models/.
    MUST NOT import from engines, config or reporting.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - One short-lived session per query, taken from the injected factory,
      so a selector instance can be shared by worker threads.
"""

from abc import ABC
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session, sessionmaker


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors receive a session factory from the caller, perform
        read-only queries, and return DTOs (never ORM instances).
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @contextmanager
    def _read_session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()
