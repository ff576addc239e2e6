"""
Reporting Configuration Schema.

Runtime knobs for report generation. Structural configuration (accounts,
lines, seeds, budgets) lives in ``ledger_config``; this holds only what
varies per deployment or per caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from ledger_engines.rollup import ComparisonBasis
from ledger_kernel.logging_config import get_logger

logger = get_logger("reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting service.

    Controls concurrency, the summary comparison basis and presentation.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Upper bound on concurrent ledger reads per request
    max_workers: int = 8

    # What the PriorCumulative column of a summary compares against
    comparison_basis: ComparisonBasis = ComparisonBasis.PREVIOUS_MONTH

    # Whether leaf lines that are zero at every point are reported
    include_zero_lines: bool = True

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if not isinstance(self.comparison_basis, ComparisonBasis):
            self.comparison_basis = ComparisonBasis(self.comparison_basis)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
