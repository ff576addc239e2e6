"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads the YAML fragments of a configuration-set directory and parses them
into the frozen dataclasses of ``ledger_config.schema``. Runtime callers go
through ``ledger_config.get_active_config()`` instead of calling this
module directly.

Expected files in a set directory::

    accounts.yaml     chart of accounts + sign-correction table
    seeds.yaml        anchor year + opening balances
    statements.yaml   reporting lines grouped into statements
    budgets.yaml      budget figures (optional)

Failure modes
-------------
* Missing required file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unparseable formula or enum value  -> ``ConfigurationError`` / ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    AnchorSeedTable,
    FormulaTerm,
    LineDefinition,
    RollupConfiguration,
    StatementDefinition,
    StatementKind,
)
from ledger_kernel.domain.accounts import AccountClass, AccountRef, CorrectionPolicy
from ledger_kernel.domain.values import DirectionClass
from ledger_kernel.exceptions import ConfigurationError
from ledger_kernel.selectors.budget_selector import BudgetFigure

_TERM = re.compile(r"\s*([+-])?\s*([A-Za-z_][A-Za-z0-9_]*)\s*")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_amount(value: Any) -> Decimal:
    """Parse a YAML scalar into Decimal without passing through float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse amount from {value!r}")
    return Decimal(str(value))


def parse_formula(text: str) -> tuple[FormulaTerm, ...]:
    """
    Parse ``"revenue - total_direct_cost + other_income"`` into terms.

    The first term may omit its sign (implicit ``+``); every later term must
    carry one.

    Raises:
        ConfigurationError: if the text is not a +/- chain of line names.
    """
    terms: list[FormulaTerm] = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None or match.end() == pos:
            raise ConfigurationError(f"Cannot parse formula {text!r} at position {pos}")
        sign, name = match.groups()
        if sign is None and terms:
            raise ConfigurationError(f"Missing operator before {name!r} in formula {text!r}")
        terms.append(FormulaTerm(sign=-1 if sign == "-" else 1, line=name))
        pos = match.end()
    if not terms:
        raise ConfigurationError("Empty formula")
    return tuple(terms)


def parse_account(data: dict[str, Any]) -> AccountRef:
    return AccountRef(
        code=str(data["code"]),
        name=data.get("name", str(data["code"])),
        account_class=AccountClass(data["class"]),
    )


def parse_line(data: dict[str, Any]) -> LineDefinition:
    """Parse a ``LineDefinition`` from a dict."""
    formula = data.get("formula")
    account_class = data.get("account_class")
    return LineDefinition(
        name=data["name"],
        label=data.get("label", data["name"]),
        accounts=tuple(str(code) for code in data.get("accounts", ())),
        formula=parse_formula(formula) if formula else (),
        direction=DirectionClass(data.get("direction", DirectionClass.FAVORABLE_WHEN_HIGHER.value)),
        pooled=bool(data.get("pooled", False)),
        account_class=AccountClass(account_class) if account_class else None,
        auxiliary_filter=data.get("auxiliary_filter"),
    )


def parse_statement(data: dict[str, Any]) -> StatementDefinition:
    """Parse a ``StatementDefinition`` from a dict."""
    return StatementDefinition(
        name=data["name"],
        kind=StatementKind(data["kind"]),
        title=data.get("title", data["name"]),
        lines=tuple(parse_line(ln) for ln in data["lines"]),
    )


def parse_seeds(data: dict[str, Any]) -> AnchorSeedTable:
    return AnchorSeedTable(
        anchor_year=int(data["anchor_year"]),
        balances={
            str(code): parse_amount(amount)
            for code, amount in (data.get("balances") or {}).items()
        },
    )


def parse_budgets(data: dict[str, Any]) -> tuple[BudgetFigure, ...]:
    """
    Parse budget figures.

    Each entry names a line and year plus either ``month``/``amount`` or a
    ``monthly`` list of twelve amounts.
    """
    figures: list[BudgetFigure] = []
    for entry in data.get("budgets") or ():
        line = entry["line"]
        year = int(entry["year"])
        is_percentage = bool(entry.get("is_percentage", False))
        if "monthly" in entry:
            monthly = entry["monthly"]
            if len(monthly) != 12:
                raise ConfigurationError(
                    f"Budget for {line} {year} lists {len(monthly)} months, expected 12"
                )
            for month, amount in enumerate(monthly, start=1):
                figures.append(
                    BudgetFigure(line, year, month, parse_amount(amount), is_percentage)
                )
        else:
            figures.append(
                BudgetFigure(
                    line, year, int(entry["month"]), parse_amount(entry["amount"]), is_percentage,
                )
            )
    return tuple(figures)


def compute_checksum(fragments: dict[str, dict[str, Any]]) -> str:
    """Deterministic SHA-256 over the raw fragments (sorted keys)."""
    canonical = json.dumps(fragments, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_configuration_set(directory: Path) -> RollupConfiguration:
    """
    Load every fragment of a configuration set into a ``RollupConfiguration``.

    The result is parsed but not yet validated; see
    ``ledger_config.validator.validate_configuration``.
    """
    accounts_data = load_yaml_file(directory / "accounts.yaml")
    seeds_data = load_yaml_file(directory / "seeds.yaml")
    statements_data = load_yaml_file(directory / "statements.yaml")
    budgets_path = directory / "budgets.yaml"
    budgets_data = load_yaml_file(budgets_path) if budgets_path.exists() else {}

    accounts = {
        ref.code: ref
        for ref in (parse_account(a) for a in accounts_data.get("accounts") or ())
    }
    corrections = {
        str(c["account"]): CorrectionPolicy(c["policy"])
        for c in accounts_data.get("corrections") or ()
    }
    statements = {
        stmt.name: stmt
        for stmt in (parse_statement(s) for s in statements_data.get("statements") or ())
    }

    return RollupConfiguration(
        accounts=accounts,
        corrections=corrections,
        seeds=parse_seeds(seeds_data),
        statements=statements,
        budgets=parse_budgets(budgets_data),
        checksum=compute_checksum({
            "accounts": accounts_data,
            "seeds": seeds_data,
            "statements": statements_data,
            "budgets": budgets_data,
        }),
    )
