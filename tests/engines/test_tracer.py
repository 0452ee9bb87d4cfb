"""
Tests for the engine invocation tracer.

Covers:
- Deterministic input fingerprints
- Positional and keyword calls fingerprint identically
- CONTRACT_ENGINE_TRACE record contents
- Exceptions propagate without a trace record
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from contract_engines.tracer import (
    _canonicalize,
    compute_input_fingerprint,
    traced_engine,
)
from contract_kernel.domain.terms import ContractType
from contract_kernel.domain.values import Money


@dataclass(frozen=True)
class _Sample:
    amount: Money
    when: date


class _Calculator:
    @traced_engine("sample_engine", "2.1", fingerprint_fields=("amount", "rate"))
    def run(self, amount, rate=Decimal("5")):
        return amount * rate

    @traced_engine("failing_engine", "1.0")
    def fail(self):
        raise ValueError("boom")


class TestCanonicalize:
    """Tests for stable value rendering."""

    def test_money(self):
        assert _canonicalize(Money.of("10.50", "NGN")) == "10.50:NGN"

    def test_enum_uses_value(self):
        assert _canonicalize(ContractType.COST_PLUS) == "murabaha"

    def test_mapping_keys_sorted(self):
        assert _canonicalize({"b": 1, "a": 2}) == _canonicalize({"a": 2, "b": 1})

    def test_dataclass_fields(self):
        value = _Sample(Money.of("1", "NGN"), date(2024, 1, 1))
        assert _canonicalize(value) == "_Sample(amount=1:NGN,when=2024-01-01)"

    def test_none(self):
        assert _canonicalize(None) == "null"


class TestFingerprint:
    """Tests for compute_input_fingerprint."""

    def test_deterministic_sixteen_hex(self):
        args = {"amount": Money.of("100", "NGN")}
        first = compute_input_fingerprint(("amount",), args)
        assert first == compute_input_fingerprint(("amount",), args)
        assert len(first) == 16
        int(first, 16)

    def test_differs_by_input(self):
        a = compute_input_fingerprint(("amount",), {"amount": Money.of("100", "NGN")})
        b = compute_input_fingerprint(("amount",), {"amount": Money.of("101", "NGN")})
        assert a != b

    def test_only_selected_fields(self):
        a = compute_input_fingerprint(("amount",), {"amount": 1, "other": 1})
        b = compute_input_fingerprint(("amount",), {"amount": 1, "other": 2})
        assert a == b


class TestTracedEngine:
    """Tests for the decorator."""

    def setup_method(self):
        self.calculator = _Calculator()

    def test_result_unchanged(self):
        assert self.calculator.run(Money.of("2", "NGN")) == Money.of("10", "NGN")

    def test_trace_record(self, captured_logs):
        self.calculator.run(Money.of("2", "NGN"))
        trace = [r for r in captured_logs() if r["message"] == "CONTRACT_ENGINE_TRACE"][-1]
        assert trace["trace_type"] == "CONTRACT_ENGINE_TRACE"
        assert trace["engine_name"] == "sample_engine"
        assert trace["engine_version"] == "2.1"
        assert trace["function"] == "_Calculator.run"
        assert trace["duration_ms"] >= 0

    def test_positional_and_keyword_calls_match(self, captured_logs):
        amount = Money.of("2", "NGN")
        self.calculator.run(amount, Decimal("5"))
        self.calculator.run(amount=amount)
        traces = [r for r in captured_logs() if r["message"] == "CONTRACT_ENGINE_TRACE"]
        assert traces[-1]["input_fingerprint"] == traces[-2]["input_fingerprint"]

    def test_exception_propagates_without_trace(self, captured_logs):
        with pytest.raises(ValueError, match="boom"):
            self.calculator.fail()
        assert not any(r.get("engine_name") == "failing_engine" for r in captured_logs())

    def test_wraps_preserves_name(self):
        assert _Calculator.run.__name__ == "run"
