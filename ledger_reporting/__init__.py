"""
Ledger Reporting Module (``ledger_reporting``).

Read-only module producing rollup reports from the ledger: schedules
(13-point yearly balances per reporting line) and summaries (actual,
cumulative and prior cumulative figures with budget variance).

Reports are computed on demand from ledger entries; no balance is ever
stored. Report metadata carries the configuration checksum and the
generation timestamp so a report can be reproduced.
"""

from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    ReportMetadata,
    ReportType,
    ScheduleLine,
    ScheduleReport,
    SummaryLine,
    SummaryReport,
)
from ledger_reporting.service import ReportingService

__all__ = [
    "ReportingConfig",
    "ReportMetadata",
    "ReportType",
    "ReportingService",
    "ScheduleLine",
    "ScheduleReport",
    "SummaryLine",
    "SummaryReport",
]
