"""
Ledger Kernel

Read-only foundation for ledger balance aggregation:
- Structured logging and typed exceptions
- Account classes and normal-balance conventions
- SQLAlchemy models for accounts, ledger entries and budget figures
- The ledger store read contract (monthly debit/credit sums)
"""

__version__ = "0.1.0"
