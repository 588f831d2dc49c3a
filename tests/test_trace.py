"""
Tests for EvaluationTrace, TraceCollector and TraceSummary.

Run with: pytest tests/test_trace.py -v
"""

import pytest

from osm_conditional.conditions.base import ConditionState
from osm_conditional.conditions.trace import (
    PERMISSIVE,
    RESTRICTIVE,
    EvaluationTrace,
    TagEntry,
    TraceCollector,
    TraceSummary
)


# =============================================================================
# TRACE TESTS
# =============================================================================

class TestEvaluationTrace:
    """Tests for a single inspector trace."""

    def test_record_and_result(self):
        trace = EvaluationTrace(way_id=42, polarity=RESTRICTIVE)
        trace.record("vehicle:conditional", "no @ (Jun-Aug)", ConditionState.NO_MATCH, elapsed_ms=0.5)
        trace.record("access:conditional", "no @ (Oct-May)", ConditionState.MATCH, elapsed_ms=0.25)
        trace.set_result(True, matched_tag="access:conditional")

        assert trace.tags_checked == 2
        assert trace.invalid_count == 0
        assert trace.total_elapsed_ms == pytest.approx(0.75)
        assert trace.result is True
        assert trace.end_time is not None

    def test_to_dict(self):
        trace = EvaluationTrace(way_id=1)
        trace.record("access:conditional", "foo", ConditionState.INVALID, reason="unknown")
        trace.set_result(False)

        data = trace.to_dict()
        assert data["way_id"] == 1
        assert data["polarity"] == PERMISSIVE
        assert data["result"] is False
        assert data["invalid_count"] == 1
        assert data["entries"][0] == {
            "tag": "access:conditional",
            "value": "foo",
            "state": "invalid",
            "reason": "unknown",
            "elapsed_ms": 0.0,
        }

    def test_compact_string(self):
        trace = EvaluationTrace(way_id=42, polarity=PERMISSIVE)
        trace.record("access:conditional", "yes @ (Oct-May)", ConditionState.MATCH)
        trace.set_result(True, matched_tag="access:conditional")

        text = trace.to_compact_string()
        assert text.splitlines()[0] == "[WAY] 42 permissive -> True via access:conditional"
        assert "access:conditional='yes @ (Oct-May)': MATCH" in text

    def test_compact_string_skipped(self):
        trace = EvaluationTrace(way_id=3)
        trace.set_result(False, skipped=True)
        assert trace.to_compact_string() == "[WAY] 3 permissive -> False (skipped)"

    def test_entry_compact_string_with_reason(self):
        entry = TagEntry("access:conditional", "x", ConditionState.INVALID, reason="bad")
        assert entry.to_compact_string() == "  access:conditional='x': INVALID (bad)"

    def test_repr(self):
        assert "way=5" in repr(EvaluationTrace(way_id=5))


# =============================================================================
# COLLECTOR TESTS
# =============================================================================

class TestTraceCollector:
    """Tests for trace aggregation."""

    @pytest.fixture
    def collector(self):
        collector = TraceCollector()

        matched = collector.create_trace(1, PERMISSIVE)
        matched.record("access:conditional", "yes", ConditionState.MATCH)
        matched.set_result(True, matched_tag="access:conditional")

        invalid = collector.create_trace(2, RESTRICTIVE)
        invalid.record("access:conditional", "no @ x", ConditionState.INVALID, reason="r")
        invalid.set_result(False)

        skipped = collector.create_trace(3, RESTRICTIVE)
        skipped.set_result(False, skipped=True)

        return collector

    def test_len_and_iter(self, collector):
        assert len(collector) == 3
        assert [t.way_id for t in collector] == [1, 2, 3]

    def test_filter_by_polarity(self, collector):
        assert [t.way_id for t in collector.get_traces_by_polarity(RESTRICTIVE)] == [2, 3]

    def test_summary(self, collector):
        summary = collector.get_summary()
        assert isinstance(summary, TraceSummary)
        assert summary.total_traces == 3
        assert summary.by_polarity == {PERMISSIVE: 1, RESTRICTIVE: 2}
        assert summary.matches == 1
        assert summary.skipped == 1
        assert summary.total_tags_checked == 2
        assert summary.invalid_values == 1
        assert summary.matched_tags == {"access:conditional": 1}
        assert summary.to_dict()["total_traces"] == 3

    def test_add_and_clear(self, collector):
        collector.add_trace(EvaluationTrace(way_id=4))
        assert len(collector.get_traces()) == 4
        collector.clear()
        assert len(collector) == 0

    def test_inspector_fills_collector(self, inspector, make_way):
        collector = TraceCollector()
        ways = [
            make_way({"access:conditional": "no @ (Oct-May)"}),
            make_way({"access:conditional": "no @ (Jun-Aug)"}),
        ]
        for way in ways:
            trace = collector.create_trace(way.id, RESTRICTIVE)
            inspector.is_permitted_way_conditionally_restricted(way, trace=trace)

        summary = collector.get_summary()
        assert summary.matches == 1
        assert summary.total_tags_checked == 2
