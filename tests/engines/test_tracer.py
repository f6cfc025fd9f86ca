"""
Tests for the engine tracer: SHIFTPAY_ENGINE_TRACE records and input
fingerprints.
"""

from shiftpay_engines.payroll import compute_payroll
from shiftpay_engines.tracer import compute_input_fingerprint, traced_engine
from tests.factories import BERLIN


def traces(captured_logs):
    return [r for r in captured_logs() if r["message"] == "SHIFTPAY_ENGINE_TRACE"]


class TestTracedEngine:

    def test_trace_is_emitted(self, captured_logs):
        @traced_engine("sample", "2.1", fingerprint_fields=("a",))
        def add(a, b):
            return a + b

        assert add(1, b=2) == 3

        (record,) = traces(captured_logs)
        assert record["engine_name"] == "sample"
        assert record["engine_version"] == "2.1"
        assert record["function"].endswith("add")
        assert record["input_fingerprint"] == compute_input_fingerprint(("a",), {"a": 1})
        assert record["duration_ms"] >= 0

    def test_no_fingerprint_fields(self, captured_logs):
        @traced_engine("sample", "1.0")
        def noop():
            return None

        noop()

        (record,) = traces(captured_logs)
        assert record["input_fingerprint"] == ""

    def test_payroll_is_traced(self, captured_logs):
        compute_payroll(2025, 2, [], [], [], tz=BERLIN)

        (record,) = traces(captured_logs)
        assert record["engine_name"] == "payroll"
        assert record["input_fingerprint"] == compute_input_fingerprint(
            ("year", "month_index"), {"year": 2025, "month_index": 2}
        )


class TestFingerprint:

    def test_dict_order_does_not_matter(self):
        first = compute_input_fingerprint(("d",), {"d": {"b": 1, "a": 2}})
        second = compute_input_fingerprint(("d",), {"d": {"a": 2, "b": 1}})

        assert first == second
        assert len(first) == 16

    def test_sequence_order_matters(self):
        assert compute_input_fingerprint(("s",), {"s": [1, 2]}) != compute_input_fingerprint(
            ("s",), {"s": [2, 1]}
        )

    def test_missing_argument_is_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(("x",), {"x": None})
