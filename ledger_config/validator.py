"""
Configuration Validator and Statement Compiler (``ledger_config.validator``).

Responsibility
--------------
Checks a parsed ``RollupConfiguration`` for structural errors and compiles
every statement into a ``CompiledStatement`` whose lines are in a
dependency-respecting evaluation order.

All checks run when configuration is loaded, never per request: a
composite referencing an undeclared line or forming a cycle is a fatal
configuration error.

Failure modes
-------------
* ``DuplicateLineError`` -- two lines in one statement share a name.
* ``UnknownAccountError`` -- a leaf, seed or correction names an account
  missing from the chart of accounts.
* ``UnresolvedLineReferenceError`` -- a formula names an undeclared line.
* ``ConfigurationCycleError`` -- a composite transitively references itself.
* ``ConfigurationError`` -- malformed line (both or neither of accounts and
  formula; pooled members of mixed class; pooled/filtered schedule lines).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ledger_config.schema import (
    LineDefinition,
    RollupConfiguration,
    StatementDefinition,
    StatementKind,
)
from ledger_kernel.domain.accounts import AccountRef
from ledger_kernel.exceptions import (
    ConfigurationCycleError,
    ConfigurationError,
    DuplicateLineError,
    StatementNotFoundError,
    UnknownAccountError,
    UnresolvedLineReferenceError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("config.validator")


@dataclass(frozen=True)
class CompiledStatement:
    """A validated statement with its evaluation order resolved."""

    definition: StatementDefinition
    evaluation_order: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def kind(self) -> StatementKind:
        return self.definition.kind

    def line(self, name: str) -> LineDefinition:
        found = self.definition.line(name)
        if found is None:
            raise KeyError(name)
        return found

    @property
    def leaves(self) -> tuple[LineDefinition, ...]:
        return tuple(ln for ln in self.definition.lines if not ln.is_composite)

    @property
    def account_codes(self) -> frozenset[str]:
        """Every account referenced by a leaf of this statement."""
        return frozenset(code for ln in self.leaves for code in ln.accounts)


def _check_line_shape(statement: StatementDefinition, line: LineDefinition) -> None:
    if line.accounts and line.formula:
        raise ConfigurationError(
            f"Line {line.name} in {statement.name} declares both accounts and a formula"
        )
    if not line.accounts and not line.formula:
        raise ConfigurationError(
            f"Line {line.name} in {statement.name} declares neither accounts nor a formula"
        )
    if statement.kind == StatementKind.SCHEDULE and (line.pooled or line.auxiliary_filter):
        raise ConfigurationError(
            f"Schedule line {line.name} in {statement.name} cannot be pooled or "
            f"filtered: balances are carried per account"
        )


def _check_accounts(
    statement: StatementDefinition,
    line: LineDefinition,
    accounts: Mapping[str, AccountRef],
) -> None:
    for code in line.accounts:
        if code not in accounts:
            raise UnknownAccountError(code, referenced_by=f"{statement.name}.{line.name}")
    if line.pooled:
        classes = {accounts[code].account_class for code in line.accounts}
        if line.account_class is not None:
            classes.add(line.account_class)
        if len(classes) > 1:
            raise ConfigurationError(
                f"Pooled line {line.name} in {statement.name} mixes account classes "
                f"{sorted(c.value for c in classes)}"
            )


def topological_order(statement: StatementDefinition) -> tuple[str, ...]:
    """
    Order lines so every composite follows the lines it references.

    Declaration order is kept wherever dependencies allow, so leaves stay
    where the statement author put them.

    Raises:
        UnresolvedLineReferenceError: a formula names an undeclared line.
        ConfigurationCycleError: a composite transitively references itself.
    """
    by_name = {ln.name: ln for ln in statement.lines}
    for line in statement.lines:
        for ref in line.references:
            if ref not in by_name:
                raise UnresolvedLineReferenceError(statement.name, line.name, ref)

    order: list[str] = []
    done: set[str] = set()
    in_progress: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in in_progress:
            cycle = in_progress[in_progress.index(name):] + [name]
            raise ConfigurationCycleError(statement.name, cycle)
        in_progress.append(name)
        for ref in by_name[name].references:
            visit(ref)
        in_progress.pop()
        done.add(name)
        order.append(name)

    for line in statement.lines:
        visit(line.name)
    return tuple(order)


def compile_statement(
    statement: StatementDefinition,
    accounts: Mapping[str, AccountRef],
) -> CompiledStatement:
    """Validate one statement and resolve its evaluation order."""
    seen: set[str] = set()
    for line in statement.lines:
        if line.name in seen:
            raise DuplicateLineError(statement.name, line.name)
        seen.add(line.name)
        _check_line_shape(statement, line)
        _check_accounts(statement, line, accounts)

    order = topological_order(statement)
    logger.debug(
        "statement_compiled",
        extra={
            "statement": statement.name,
            "kind": statement.kind.value,
            "line_count": len(order),
            "account_count": len({c for ln in statement.lines for c in ln.accounts}),
        },
    )
    return CompiledStatement(definition=statement, evaluation_order=order)


def validate_configuration(config: RollupConfiguration) -> dict[str, CompiledStatement]:
    """
    Validate the whole configuration set.

    Returns:
        Compiled statements keyed by statement name.
    """
    for code in config.seeds.balances:
        if code not in config.accounts:
            raise UnknownAccountError(code, referenced_by="seeds")
    for code in config.corrections:
        if code not in config.accounts:
            raise UnknownAccountError(code, referenced_by="corrections")

    compiled = {
        name: compile_statement(statement, config.accounts)
        for name, statement in config.statements.items()
    }

    summary_lines = {
        ln.name
        for stmt in config.statements.values()
        if stmt.kind == StatementKind.SUMMARY
        for ln in stmt.lines
    }
    orphans = sorted({f.line_name for f in config.budgets} - summary_lines)
    if orphans:
        logger.warning("budget_lines_not_in_any_summary", extra={"lines": orphans})

    logger.info(
        "configuration_validated",
        extra={
            "statement_count": len(compiled),
            "account_count": len(config.accounts),
            "seed_count": len(config.seeds.balances),
            "correction_count": len(config.corrections),
            "budget_figure_count": len(config.budgets),
        },
    )
    return compiled


@dataclass(frozen=True)
class CompiledConfiguration:
    """A validated configuration set plus its compiled statements."""

    config: RollupConfiguration
    statements: Mapping[str, CompiledStatement]

    def statement(self, name: str) -> CompiledStatement:
        try:
            return self.statements[name]
        except KeyError:
            raise StatementNotFoundError(name) from None


def compile_configuration(config: RollupConfiguration) -> CompiledConfiguration:
    """Validate ``config`` and bundle it with its compiled statements."""
    return CompiledConfiguration(
        config=config,
        statements=MappingProxyType(validate_configuration(config)),
    )
