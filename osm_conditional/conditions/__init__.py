"""
Conditional access tags - evaluation engine.

Main components:
- TaggedFeature: Protocol for features handed to the inspector
- ReaderWay: Concrete feature for import code and tests
- ConditionState / ConditionResult: Tri-state outcome of one value
- ConditionalValueParser: Base class for condition parsers
- DateRangeParser, NumberParser: Built-in value parsers
- ConditionalRuleSet: Vocabulary plus value parsers for one polarity
- ConditionEvaluator: Inspector deciding per way, both polarities
- EvaluationTrace, TraceCollector: Debugging of inspector decisions
"""

from osm_conditional.conditions.base import (
    TaggedFeature,
    ReaderWay,
    ConditionState,
    ConditionResult,
    is_tagged_feature
)
from osm_conditional.conditions.date_range import (
    DateRange,
    ParsedCalendar,
    ParseType,
    parse_calendar
)
from osm_conditional.conditions.value_parsers import (
    ConditionalParseError,
    ConditionalValueParser,
    DateRangeParser,
    NumberParser
)
from osm_conditional.conditions.rule_set import ConditionalRuleSet
from osm_conditional.conditions.evaluator import (
    CONDITIONAL_SUFFIX,
    ConditionalTagInspector,
    ConditionEvaluator,
    should_log_failure
)
from osm_conditional.conditions.trace import (
    PERMISSIVE,
    RESTRICTIVE,
    EvaluationTrace,
    TagEntry,
    TraceCollector,
    TraceSummary
)


__all__ = [
    # Base
    "TaggedFeature",
    "ReaderWay",
    "ConditionState",
    "ConditionResult",
    "is_tagged_feature",
    # Dates
    "DateRange",
    "ParsedCalendar",
    "ParseType",
    "parse_calendar",
    # Value parsers
    "ConditionalParseError",
    "ConditionalValueParser",
    "DateRangeParser",
    "NumberParser",
    # Rule-set and inspector
    "ConditionalRuleSet",
    "CONDITIONAL_SUFFIX",
    "ConditionalTagInspector",
    "ConditionEvaluator",
    "should_log_failure",
    # Trace
    "PERMISSIVE",
    "RESTRICTIVE",
    "EvaluationTrace",
    "TagEntry",
    "TraceCollector",
    "TraceSummary",
]
