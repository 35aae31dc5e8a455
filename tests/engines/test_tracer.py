"""Tests for the engine tracer (valuation_engines/tracer.py)."""

import pytest

from tests.conftest import parse_logs
from valuation_engines.tracer import compute_input_fingerprint, traced_engine
from valuation_kernel.domain.values import RateRegime


class TestInputFingerprint:
    """Deterministic SHA-256 fingerprints of selected inputs."""

    def test_deterministic(self):
        args = {"base_asset": "dai", "amount": 10**18, "quote_asset": "usdc"}
        fields = ("base_asset", "amount", "quote_asset")
        assert compute_input_fingerprint(fields, args) == compute_input_fingerprint(fields, dict(args))

    def test_sixteen_hex_chars(self):
        fp = compute_input_fingerprint(("amount",), {"amount": 1})
        assert len(fp) == 16
        int(fp, 16)

    def test_only_selected_fields(self):
        fields = ("base_asset",)
        a = compute_input_fingerprint(fields, {"base_asset": "dai", "amount": 1})
        b = compute_input_fingerprint(fields, {"base_asset": "dai", "amount": 2})
        assert a == b

    def test_changes_with_input(self):
        fields = ("amount",)
        assert compute_input_fingerprint(fields, {"amount": 1}) != compute_input_fingerprint(
            fields, {"amount": 2}
        )

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(("x",), {"x": None})

    def test_enum_and_sequences(self):
        fields = ("regime", "assets")
        a = compute_input_fingerprint(fields, {"regime": RateRegime.LIVE, "assets": ["a", "b"]})
        b = compute_input_fingerprint(fields, {"regime": "live", "assets": ("a", "b")})
        assert a == b

    def test_dict_key_order_irrelevant(self):
        fields = ("m",)
        a = compute_input_fingerprint(fields, {"m": {"x": 1, "y": 2}})
        b = compute_input_fingerprint(fields, {"m": {"y": 2, "x": 1}})
        assert a == b


class _Engine:
    @traced_engine("demo", "2.1", fingerprint_fields=("asset", "amount"))
    def value(self, asset, amount, scale=1):
        if amount < 0:
            raise ValueError("negative")
        return amount * scale


class TestTracedEngine:
    """The decorator logs one VALUATION_ENGINE_TRACE per call."""

    def setup_method(self):
        self.engine = _Engine()

    def _traces(self, stream):
        return [r for r in parse_logs(stream) if r["message"] == "VALUATION_ENGINE_TRACE"]

    def test_returns_result_unchanged(self, log_stream):
        assert self.engine.value("dai", 5, scale=3) == 15

    def test_trace_fields(self, log_stream):
        self.engine.value("dai", 5)

        traces = self._traces(log_stream)
        assert len(traces) == 1
        trace = traces[0]
        assert trace["trace_type"] == "VALUATION_ENGINE_TRACE"
        assert trace["engine_name"] == "demo"
        assert trace["engine_version"] == "2.1"
        assert trace["function"] == "_Engine.value"
        assert trace["outcome"] == "ok"
        assert trace["duration_ms"] >= 0
        assert trace["logger"] == "valuation_kernel.engines.tracer"

    def test_positional_and_keyword_fingerprints_match(self, log_stream):
        self.engine.value("dai", 5)
        self.engine.value(asset="dai", amount=5)

        first, second = self._traces(log_stream)
        assert first["input_fingerprint"] == second["input_fingerprint"]
        assert first["input_fingerprint"] == compute_input_fingerprint(
            ("asset", "amount"), {"asset": "dai", "amount": 5}
        )

    def test_exception_propagates_and_is_traced(self, log_stream):
        with pytest.raises(ValueError, match="negative"):
            self.engine.value("dai", -1)

        traces = self._traces(log_stream)
        assert len(traces) == 1
        assert traces[0]["outcome"] == "error"

    def test_wraps_preserves_name(self):
        assert _Engine.value.__name__ == "value"
