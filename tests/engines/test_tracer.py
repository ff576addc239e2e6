"""Tests for the engine tracer."""

from decimal import Decimal

from ledger_engines.tracer import compute_input_fingerprint, traced_engine


class TestFingerprint:
    def test_deterministic(self):
        kwargs = {"account_code": "210201", "year": 2026}
        assert compute_input_fingerprint(("account_code", "year"), kwargs) == (
            compute_input_fingerprint(("account_code", "year"), dict(kwargs))
        )

    def test_decimal_scale_does_not_matter(self):
        a = compute_input_fingerprint(("amount",), {"amount": Decimal("100")})
        b = compute_input_fingerprint(("amount",), {"amount": Decimal("100.00")})
        assert a == b

    def test_sets_order_independent(self):
        a = compute_input_fingerprint(("codes",), {"codes": frozenset({"1", "2"})})
        b = compute_input_fingerprint(("codes",), {"codes": frozenset({"2", "1"})})
        assert a == b

    def test_missing_field_recorded_as_null(self):
        assert len(compute_input_fingerprint(("absent",), {})) == 16


class TestTracedEngine:
    def test_trace_record(self, captured_logs):
        @traced_engine("demo", "2.1", fingerprint_fields=("x",))
        def double(*, x):
            return x * 2

        assert double(x=4) == 8

        trace = [r for r in captured_logs() if r["message"] == "LEDGER_ENGINE_TRACE"][-1]
        assert trace["engine_name"] == "demo"
        assert trace["engine_version"] == "2.1"
        assert trace["input_fingerprint"] == compute_input_fingerprint(("x",), {"x": 4})
        assert trace["duration_ms"] >= 0
