"""
Typed exception hierarchy for the ledger rollup kernel.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable, API-safe), and structured attributes
carrying the data that caused it.

    LedgerRollupError (base)
    |
    +-- StoreError
    |   +-- StoreQueryError          per (account, month) read; absorbed as zero
    |   +-- StoreUnavailableError    store unreachable; fails the whole request
    |
    +-- ConfigurationError
    |   +-- ConfigurationCycleError
    |   +-- UnresolvedLineReferenceError
    |   +-- DuplicateLineError
    |   +-- UnknownAccountError
    |   +-- StatementNotFoundError
    |
    +-- PeriodError
        +-- InvalidPeriodError

Missing seed balances and zero budgets are NOT errors: the first resolves
to zero and the second to a variance sentinel.

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Store           | STORE_QUERY_FAILED          | One aggregate read failed
                | STORE_UNAVAILABLE           | Store unreachable / every read failed
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_CYCLE         | Composite line references itself
                | UNRESOLVED_LINE_REFERENCE   | Formula names an undeclared line
                | DUPLICATE_LINE              | Two lines share a name in a statement
                | UNKNOWN_ACCOUNT             | Account code not in chart of accounts
                | STATEMENT_NOT_FOUND         | Requested statement not configured
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_PERIOD              | Month outside 1..12 or year < anchor
"""


class LedgerRollupError(Exception):
    """
    Base exception for all ledger rollup errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "LEDGER_ROLLUP_ERROR"


# Store-related exceptions


class StoreError(LedgerRollupError):
    """Base exception for ledger store read failures."""

    code: str = "STORE_ERROR"


class StoreQueryError(StoreError):
    """A single aggregate read against the ledger store failed."""

    code: str = "STORE_QUERY_FAILED"

    def __init__(
        self,
        account_codes: tuple[str, ...],
        year: int,
        month: int,
        reason: str,
    ):
        self.account_codes = account_codes
        self.year = year
        self.month = month
        self.reason = reason
        super().__init__(
            f"Ledger query failed for {', '.join(account_codes)} "
            f"{year}-{month:02d}: {reason}"
        )


class StoreUnavailableError(StoreError):
    """The ledger store cannot be reached; no partial data is returned."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, reason: str, failed_reads: int = 0):
        self.reason = reason
        self.failed_reads = failed_reads
        super().__init__(f"Ledger store unavailable: {reason}")


# Configuration exceptions


class ConfigurationError(LedgerRollupError):
    """Base exception for invalid rollup configuration."""

    code: str = "CONFIGURATION_ERROR"


class ConfigurationCycleError(ConfigurationError):
    """A composite reporting line transitively references itself."""

    code: str = "CONFIGURATION_CYCLE"

    def __init__(self, statement: str, path: list[str]):
        self.statement = statement
        self.path = path
        super().__init__(
            f"Cycle detected in statement {statement}: {' -> '.join(path)}"
        )


class UnresolvedLineReferenceError(ConfigurationError):
    """A composite formula names a line that is not declared."""

    code: str = "UNRESOLVED_LINE_REFERENCE"

    def __init__(self, statement: str, line_name: str, reference: str):
        self.statement = statement
        self.line_name = line_name
        self.reference = reference
        super().__init__(
            f"Line {line_name} in statement {statement} references "
            f"undeclared line {reference}"
        )


class DuplicateLineError(ConfigurationError):
    """Two reporting lines in one statement share a name."""

    code: str = "DUPLICATE_LINE"

    def __init__(self, statement: str, line_name: str):
        self.statement = statement
        self.line_name = line_name
        super().__init__(f"Duplicate line {line_name} in statement {statement}")


class UnknownAccountError(ConfigurationError):
    """An account code is not in the chart of accounts."""

    code: str = "UNKNOWN_ACCOUNT"

    def __init__(self, account_code: str, referenced_by: str | None = None):
        self.account_code = account_code
        self.referenced_by = referenced_by
        where = f" (referenced by {referenced_by})" if referenced_by else ""
        super().__init__(f"Unknown account: {account_code}{where}")


class StatementNotFoundError(ConfigurationError):
    """The requested statement is not configured."""

    code: str = "STATEMENT_NOT_FOUND"

    def __init__(self, statement: str):
        self.statement = statement
        super().__init__(f"Statement not found: {statement}")


# Period exceptions


class PeriodError(LedgerRollupError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class InvalidPeriodError(PeriodError):
    """Requested year/month cannot be resolved."""

    code: str = "INVALID_PERIOD"

    def __init__(self, year: int, month: int | None, reason: str):
        self.year = year
        self.month = month
        self.reason = reason
        period = f"{year}-{month:02d}" if month is not None else str(year)
        super().__init__(f"Invalid period {period}: {reason}")
