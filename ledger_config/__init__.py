"""
ledger_config -- single public entrypoint for rollup configuration.

Responsibility:
    Provides the only way to obtain configuration at runtime through
    ``get_active_config()``: the chart of accounts, the sign-correction
    table, anchor-year seed balances, reporting-line definitions and budget
    figures, loaded once from YAML into immutable structures and kept
    separate from the computation that consumes them.

Failure modes:
    - ``FileNotFoundError`` -- the configuration-set directory or one of its
      required fragments is missing.
    - ``ConfigurationError`` subclasses -- structural validation failures
      (unknown accounts, unresolved line references, cycles).

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEDGER_CONFIG_TRACE`` log entry with the configuration checksum, so
    every report can be tied to the exact configuration that produced it.
"""

from __future__ import annotations

from pathlib import Path

from ledger_config.loader import load_configuration_set
from ledger_config.schema import (
    AnchorSeedTable,
    FormulaTerm,
    LineDefinition,
    RollupConfiguration,
    StatementDefinition,
    StatementKind,
)
from ledger_config.validator import (
    CompiledConfiguration,
    CompiledStatement,
    compile_configuration,
    compile_statement,
)
from ledger_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets" / "default"


def get_active_config(config_dir: Path | None = None) -> CompiledConfiguration:
    """Load, validate and compile a configuration set.

    Args:
        config_dir: Directory holding the YAML fragments. Defaults to the
            set shipped with the package.

    Returns:
        A ``CompiledConfiguration`` ready to hand to ``ReportingService``.
    """
    directory = config_dir or _DEFAULT_CONFIG_DIR
    if not directory.is_dir():
        raise FileNotFoundError(f"Configuration set not found: {directory}")

    compiled = compile_configuration(load_configuration_set(directory))
    config = compiled.config

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "config_dir": str(directory),
            "checksum": config.checksum,
            "anchor_year": config.anchor_year,
            "statements": sorted(compiled.statements),
            "account_count": len(config.accounts),
        },
    )
    return compiled


__all__ = [
    "get_active_config",
    "AnchorSeedTable",
    "CompiledConfiguration",
    "CompiledStatement",
    "FormulaTerm",
    "LineDefinition",
    "RollupConfiguration",
    "StatementDefinition",
    "StatementKind",
    "compile_configuration",
    "compile_statement",
]
