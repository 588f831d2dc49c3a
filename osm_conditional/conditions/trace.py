"""
Evaluation Trace and Trace Collector for conditional tag inspection.

This module provides observability into inspection of conditional tags,
answering "why was this way treated as passable / restricted" when
debugging an import or reviewing OSM data quality.
"""

from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime

from osm_conditional.conditions.base import ConditionState


PERMISSIVE = "permissive"
RESTRICTIVE = "restrictive"


@dataclass
class TagEntry:
    """
    Record of a single conditional tag check.

    Attributes:
        tag_key: Conditional key that was checked, e.g. "access:conditional"
        value: Raw tag value
        state: Outcome of the rule-set
        reason: Why the value was rejected (INVALID) or skipped
        elapsed_ms: Time taken to check the value in milliseconds
    """
    tag_key: str
    value: str
    state: ConditionState
    reason: str = ""
    elapsed_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "tag": self.tag_key,
            "value": self.value,
            "state": self.state.value,
            "reason": self.reason,
            "elapsed_ms": round(self.elapsed_ms, 3)
        }

    def to_compact_string(self) -> str:
        """Convert to compact string representation."""
        line = f"  {self.tag_key}={self.value!r}: {self.state.value.upper()}"
        if self.reason:
            line += f" ({self.reason})"
        return line


@dataclass
class EvaluationTrace:
    """
    Trace of one inspector call for one way.

    Attributes:
        way_id: Identifier of the inspected way
        polarity: "permissive" or "restrictive"
        entries: Checked tags in order
        result: Final answer of the inspector
        matched_tag: Conditional key that produced the match (if any)
        skipped: True if the way was skipped without checking any tag
        start_time: When evaluation started
        end_time: When evaluation completed
    """
    way_id: Any
    polarity: str = PERMISSIVE
    entries: List[TagEntry] = field(default_factory=list)
    result: Optional[bool] = None
    matched_tag: Optional[str] = None
    skipped: bool = False
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    def record(
        self,
        tag_key: str,
        value: str,
        state: ConditionState,
        reason: str = "",
        elapsed_ms: float = 0.0
    ) -> None:
        """Record one conditional tag check."""
        self.entries.append(TagEntry(
            tag_key=tag_key,
            value=value,
            state=state,
            reason=reason,
            elapsed_ms=elapsed_ms
        ))

    def set_result(
        self,
        result: bool,
        matched_tag: Optional[str] = None,
        skipped: bool = False
    ) -> None:
        """
        Set the final answer of the inspector.

        Args:
            result: Value returned to the caller
            matched_tag: Conditional key that matched (if any)
            skipped: Whether the way was skipped by the tag count check
        """
        self.result = result
        self.matched_tag = matched_tag
        self.skipped = skipped
        self.end_time = datetime.now()

    @property
    def tags_checked(self) -> int:
        """Number of conditional values handed to a rule-set."""
        return len(self.entries)

    @property
    def invalid_count(self) -> int:
        """Number of values no rule understood."""
        return sum(1 for e in self.entries if e.state is ConditionState.INVALID)

    @property
    def total_elapsed_ms(self) -> float:
        return sum(e.elapsed_ms for e in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert trace to dictionary representation.

        Suitable for JSON serialization and storage.
        """
        return {
            "way_id": self.way_id,
            "polarity": self.polarity,
            "result": self.result,
            "matched_tag": self.matched_tag,
            "skipped": self.skipped,
            "tags_checked": self.tags_checked,
            "invalid_count": self.invalid_count,
            "total_elapsed_ms": round(self.total_elapsed_ms, 3),
            "entries": [e.to_dict() for e in self.entries],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None
        }

    def to_compact_string(self) -> str:
        """
        Convert to compact string for import reports.

        Format:
        [WAY] 42 permissive -> True via access:conditional
          access:conditional='yes @ (Oct-May)': MATCH
        """
        result_str = "N/A" if self.result is None else str(self.result)
        header = f"[WAY] {self.way_id} {self.polarity} -> {result_str}"
        if self.matched_tag:
            header += f" via {self.matched_tag}"
        elif self.skipped:
            header += " (skipped)"

        lines = [header]
        for entry in self.entries:
            lines.append(entry.to_compact_string())

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"EvaluationTrace(way={self.way_id!r}, "
            f"polarity={self.polarity}, "
            f"result={self.result!r}, "
            f"checked={self.tags_checked})"
        )


@dataclass
class TraceSummary:
    """
    Summary statistics for a collection of traces.

    Attributes:
        total_traces: Total number of traces
        by_polarity: Count by polarity
        matches: Number of traces that returned True
        skipped: Number of ways skipped by the tag count check
        total_tags_checked: Total conditional values checked
        invalid_values: Total values no rule understood
        total_elapsed_ms: Total time spent on checks
        matched_tags: Count by matching conditional key
    """
    total_traces: int = 0
    by_polarity: Dict[str, int] = field(default_factory=dict)
    matches: int = 0
    skipped: int = 0
    total_tags_checked: int = 0
    invalid_values: int = 0
    total_elapsed_ms: float = 0.0
    matched_tags: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "total_traces": self.total_traces,
            "by_polarity": self.by_polarity,
            "matches": self.matches,
            "skipped": self.skipped,
            "total_tags_checked": self.total_tags_checked,
            "invalid_values": self.invalid_values,
            "total_elapsed_ms": round(self.total_elapsed_ms, 3),
            "matched_tags": self.matched_tags
        }


class TraceCollector:
    """
    Collector for evaluation traces across an import.

    Not thread-safe: use one collector per worker and merge the summaries.

    Example:
        collector = TraceCollector()

        trace = collector.create_trace(way.id, "permissive")
        inspector.is_restricted_way_conditionally_permitted(way, trace=trace)

        summary = collector.get_summary()
    """

    def __init__(self):
        self._traces: List[EvaluationTrace] = []
        self._created_at = datetime.now()

    def create_trace(self, way_id: Any, polarity: str = PERMISSIVE) -> EvaluationTrace:
        """
        Create a new trace and add it to the collection.

        Args:
            way_id: Identifier of the way about to be inspected
            polarity: "permissive" or "restrictive"

        Returns:
            New EvaluationTrace instance
        """
        trace = EvaluationTrace(way_id=way_id, polarity=polarity)
        self._traces.append(trace)
        return trace

    def add_trace(self, trace: EvaluationTrace) -> None:
        """Add an existing trace to the collection."""
        self._traces.append(trace)

    def get_traces(self) -> List[EvaluationTrace]:
        """Get all collected traces."""
        return list(self._traces)

    def get_traces_by_polarity(self, polarity: str) -> List[EvaluationTrace]:
        """Get traces filtered by polarity."""
        return [t for t in self._traces if t.polarity == polarity]

    def get_summary(self) -> TraceSummary:
        """
        Get summary statistics for all traces.

        Returns:
            TraceSummary with aggregated statistics
        """
        summary = TraceSummary(total_traces=len(self._traces))

        for trace in self._traces:
            summary.by_polarity[trace.polarity] = (
                summary.by_polarity.get(trace.polarity, 0) + 1
            )

            if trace.result:
                summary.matches += 1
            if trace.skipped:
                summary.skipped += 1

            summary.total_tags_checked += trace.tags_checked
            summary.invalid_values += trace.invalid_count
            summary.total_elapsed_ms += trace.total_elapsed_ms

            if trace.matched_tag:
                summary.matched_tags[trace.matched_tag] = (
                    summary.matched_tags.get(trace.matched_tag, 0) + 1
                )

        return summary

    def clear(self) -> None:
        """Clear all collected traces."""
        self._traces.clear()

    def __len__(self) -> int:
        return len(self._traces)

    def __iter__(self):
        return iter(self._traces)

    def __repr__(self) -> str:
        return f"TraceCollector(traces={len(self._traces)})"
