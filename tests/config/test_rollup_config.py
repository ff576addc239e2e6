"""Tests for configuration loading, validation and statement compilation."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from ledger_config import get_active_config
from ledger_config.loader import load_configuration_set, parse_budgets, parse_formula
from ledger_config.schema import (
    AnchorSeedTable,
    FormulaTerm,
    LineDefinition,
    RollupConfiguration,
    StatementDefinition,
    StatementKind,
)
from ledger_config.validator import compile_configuration, compile_statement
from ledger_kernel.domain.accounts import AccountClass, AccountRef, CorrectionPolicy
from ledger_kernel.domain.values import DirectionClass
from ledger_kernel.exceptions import (
    ConfigurationCycleError,
    ConfigurationError,
    DuplicateLineError,
    StatementNotFoundError,
    UnknownAccountError,
    UnresolvedLineReferenceError,
)

ACCOUNTS = {
    "410101": AccountRef("410101", "Construction Revenue", AccountClass.REVENUE),
    "510101": AccountRef("510101", "Direct Materials", AccountClass.EXPENSE),
    "210201": AccountRef("210201", "Suppliers Trade Payables", AccountClass.LIABILITY),
}


def _leaf(name: str, *codes: str, **kwargs) -> LineDefinition:
    return LineDefinition(name=name, label=name, accounts=codes, **kwargs)


def _composite(name: str, text: str) -> LineDefinition:
    return LineDefinition(name=name, label=name, formula=parse_formula(text))


def _summary(*lines: LineDefinition) -> StatementDefinition:
    return StatementDefinition("pl", StatementKind.SUMMARY, "P&L", lines)


def _write_set(directory: Path, **fragments) -> Path:
    for name, data in fragments.items():
        (directory / f"{name}.yaml").write_text(yaml.safe_dump(data))
    return directory


# ---------------------------------------------------------------------------
# Formula parsing
# ---------------------------------------------------------------------------


class TestParseFormula:
    def test_signed_chain(self):
        terms = parse_formula("operating_profit - borrowing_costs + other_income")
        assert terms == (
            FormulaTerm(1, "operating_profit"),
            FormulaTerm(-1, "borrowing_costs"),
            FormulaTerm(1, "other_income"),
        )

    def test_leading_minus(self):
        assert parse_formula("- contra")[0] == FormulaTerm(-1, "contra")

    def test_missing_operator_rejected(self):
        with pytest.raises(ConfigurationError, match="Missing operator"):
            parse_formula("revenue direct_cost")

    def test_garbage_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_formula("revenue * 2")

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_formula("   ")


# ---------------------------------------------------------------------------
# Statement compilation
# ---------------------------------------------------------------------------


class TestCompileStatement:
    def test_composites_follow_their_children(self):
        statement = _summary(
            _composite("gross_profit", "revenue - direct_cost"),
            _leaf("revenue", "410101"),
            _leaf("direct_cost", "510101"),
        )
        compiled = compile_statement(statement, ACCOUNTS)
        order = compiled.evaluation_order
        assert order.index("revenue") < order.index("gross_profit")
        assert order.index("direct_cost") < order.index("gross_profit")

    def test_declaration_order_kept_for_leaves(self):
        statement = _summary(_leaf("revenue", "410101"), _leaf("direct_cost", "510101"))
        assert compile_statement(statement, ACCOUNTS).evaluation_order == ("revenue", "direct_cost")

    def test_cycle_rejected_with_path(self):
        statement = _summary(
            _leaf("revenue", "410101"),
            _composite("a", "revenue + b"),
            _composite("b", "a - revenue"),
        )
        with pytest.raises(ConfigurationCycleError) as exc_info:
            compile_statement(statement, ACCOUNTS)
        assert exc_info.value.path[0] == exc_info.value.path[-1]
        assert set(exc_info.value.path) == {"a", "b"}

    def test_self_reference_is_a_cycle(self):
        with pytest.raises(ConfigurationCycleError):
            compile_statement(_summary(_composite("a", "a")), ACCOUNTS)

    def test_unresolved_reference_rejected(self):
        statement = _summary(_leaf("revenue", "410101"), _composite("net", "revenue - tax"))
        with pytest.raises(UnresolvedLineReferenceError) as exc_info:
            compile_statement(statement, ACCOUNTS)
        assert exc_info.value.reference == "tax"
        assert exc_info.value.code == "UNRESOLVED_LINE_REFERENCE"

    def test_unknown_account_rejected(self):
        with pytest.raises(UnknownAccountError) as exc_info:
            compile_statement(_summary(_leaf("revenue", "499999")), ACCOUNTS)
        assert exc_info.value.referenced_by == "pl.revenue"

    def test_duplicate_line_rejected(self):
        statement = _summary(_leaf("revenue", "410101"), _leaf("revenue", "410101"))
        with pytest.raises(DuplicateLineError):
            compile_statement(statement, ACCOUNTS)

    def test_line_with_accounts_and_formula_rejected(self):
        line = LineDefinition(
            name="x", label="x", accounts=("410101",), formula=parse_formula("y"),
        )
        with pytest.raises(ConfigurationError, match="both"):
            compile_statement(_summary(line), ACCOUNTS)

    def test_pooled_mixed_classes_rejected(self):
        line = _leaf("mixed", "410101", "510101", pooled=True)
        with pytest.raises(ConfigurationError, match="mixes account classes"):
            compile_statement(_summary(line), ACCOUNTS)

    def test_pooled_schedule_line_rejected(self):
        statement = StatementDefinition(
            "bs", StatementKind.SCHEDULE, "BS", (_leaf("payables", "210201", pooled=True),),
        )
        with pytest.raises(ConfigurationError, match="cannot be pooled"):
            compile_statement(statement, ACCOUNTS)


# ---------------------------------------------------------------------------
# Whole-set validation
# ---------------------------------------------------------------------------


class TestValidateConfiguration:
    def _config(self, **overrides) -> RollupConfiguration:
        values = dict(
            accounts=ACCOUNTS,
            corrections={},
            seeds=AnchorSeedTable(2025, {"210201": Decimal("100")}),
            statements={"pl": _summary(_leaf("revenue", "410101"))},
        )
        values.update(overrides)
        return RollupConfiguration(**values)

    def test_seed_for_unknown_account_rejected(self):
        config = self._config(seeds=AnchorSeedTable(2025, {"999999": Decimal("1")}))
        with pytest.raises(UnknownAccountError):
            compile_configuration(config)

    def test_correction_for_unknown_account_rejected(self):
        config = self._config(corrections={"999999": CorrectionPolicy.ABSOLUTE_AMOUNTS})
        with pytest.raises(UnknownAccountError):
            compile_configuration(config)

    def test_statement_lookup(self):
        compiled = compile_configuration(self._config())
        assert compiled.statement("pl").kind == StatementKind.SUMMARY
        with pytest.raises(StatementNotFoundError):
            compiled.statement("cash_flow")

    def test_configuration_is_immutable(self):
        config = self._config()
        with pytest.raises(TypeError):
            config.accounts["new"] = ACCOUNTS["410101"]


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


class TestLoader:
    def test_loads_minimal_set(self, tmp_path):
        _write_set(
            tmp_path,
            accounts={
                "accounts": [{"code": "410101", "name": "Revenue", "class": "revenue"}],
                "corrections": [{"account": "410101", "policy": "absolute_amounts"}],
            },
            seeds={"anchor_year": 2025, "balances": {"410101": "12.5"}},
            statements={
                "statements": [{
                    "name": "pl",
                    "kind": "summary",
                    "lines": [{"name": "revenue", "accounts": ["410101"]}],
                }],
            },
        )
        config = load_configuration_set(tmp_path)
        assert config.anchor_year == 2025
        assert config.seeds.seed("410101") == Decimal("12.5")
        assert config.corrections["410101"] == CorrectionPolicy.ABSOLUTE_AMOUNTS
        assert config.statements["pl"].lines[0].label == "revenue"
        assert config.budgets == ()

    def test_numeric_account_codes_read_as_strings(self, tmp_path):
        _write_set(
            tmp_path,
            accounts={"accounts": [{"code": 410101, "class": "revenue"}]},
            seeds={"anchor_year": 2025, "balances": {410101: 5}},
            statements={"statements": []},
        )
        config = load_configuration_set(tmp_path)
        assert "410101" in config.accounts
        assert config.seeds.seed("410101") == Decimal("5")

    def test_missing_fragment_raises(self, tmp_path):
        _write_set(tmp_path, accounts={"accounts": []})
        with pytest.raises(FileNotFoundError):
            load_configuration_set(tmp_path)

    def test_monthly_budget_expands_to_twelve_figures(self):
        figures = parse_budgets({
            "budgets": [{"line": "revenue", "year": 2026, "monthly": list(range(1, 13))}],
        })
        assert len(figures) == 12
        assert figures[2].month == 3
        assert figures[2].amount == Decimal("3")

    def test_short_monthly_budget_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_budgets({"budgets": [{"line": "r", "year": 2026, "monthly": [1, 2]}]})

    def test_missing_directory_rejected(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope")


class TestDefaultConfigurationSet:
    """The set shipped with the package must always compile."""

    def test_compiles(self, default_config):
        assert default_config.config.anchor_year == 2025
        assert {"liabilities_schedule", "assets_schedule", "profit_and_loss"} <= set(
            default_config.statements
        )

    def test_trade_payables_seed(self, default_config):
        assert default_config.config.seeds.seed("210201") == Decimal("15234567")

    def test_total_liabilities_evaluated_last(self, default_config):
        order = default_config.statement("liabilities_schedule").evaluation_order
        assert order[-1] == "total_liabilities"

    def test_cost_lines_favorable_when_lower(self, default_config):
        pl = default_config.statement("profit_and_loss")
        assert pl.line("direct_cost").direction == DirectionClass.FAVORABLE_WHEN_LOWER
        assert pl.line("net_profit").direction == DirectionClass.FAVORABLE_WHEN_HIGHER

    def test_checksum_is_stable(self, default_config):
        assert len(default_config.config.checksum) == 64
        assert get_active_config().config.checksum == default_config.config.checksum

    def test_config_trace_logged(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert traces
        assert traces[-1]["anchor_year"] == 2025
