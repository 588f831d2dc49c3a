"""
Inspector for conditional access tags of OSM ways.

Decides whether a way that is restricted by default becomes passable
(or an open way becomes restricted) because of its ":conditional" tags,
e.g. "access:conditional=no @ (Oct-May)".

Values nothing understood are never fatal: they count as "no match" for
their tag and can optionally be logged.
"""

import time
from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from osm_conditional.conditions.base import ConditionResult, ConditionState, TaggedFeature
from osm_conditional.conditions.rule_set import ConditionalRuleSet
from osm_conditional.conditions.trace import EvaluationTrace
from osm_conditional.conditions.value_parsers import ConditionalValueParser, DateRangeParser
from osm_conditional.logger import get_logger
from osm_conditional.settings import DotDict, get_settings

logger = get_logger(__name__)

CONDITIONAL_SUFFIX = ":conditional"


def should_log_failure(value: str) -> bool:
    """
    Filter for diagnostics about unparseable values.

    Values containing ":" are most likely times of day ("Mo-Fr 07:00-19:00").
    Time precise restrictions are not supported by the date and number
    parsers, so these are known failures and not reported. Malformed values
    that happen to contain a colon are not reported either.
    """
    return ":" not in value


@runtime_checkable
class ConditionalTagInspector(Protocol):
    """Protocol for anything that can answer conditional access questions."""

    def is_restricted_way_conditionally_permitted(self, way: TaggedFeature) -> bool:
        ...

    def is_permitted_way_conditionally_restricted(self, way: TaggedFeature) -> bool:
        ...


def _as_tuple(name: str, items: Iterable[str]) -> Tuple[str, ...]:
    if items is None or isinstance(items, str):
        raise TypeError(f"{name} must be a collection of strings")
    return tuple(items)


class ConditionEvaluator:
    """
    Inspects the conditional tags of a way.

    Built once at configuration time and then only read, so one instance
    can serve many ways and threads.

    Example:
        inspector = ConditionEvaluator.from_date(
            date(2014, 12, 1),
            tags_to_check=["vehicle", "access"],
            restrictive_values={"no", "private"},
            permissive_values={"yes", "permissive"},
        )
        way = ReaderWay(1, {"highway": "road", "access:conditional": "no @ (Oct-May)"})
        inspector.is_permitted_way_conditionally_restricted(way)  # True
    """

    def __init__(
        self,
        value_parsers: Sequence[ConditionalValueParser],
        tags_to_check: Iterable[str],
        restrictive_values: Iterable[str],
        permissive_values: Iterable[str],
        enabled_logs: bool = False,
        log_unsupported_features: bool = False
    ):
        """
        Initialize the inspector.

        Args:
            value_parsers: Parsers for the condition part, in evaluation order
            tags_to_check: Base keys, e.g. ["vehicle", "access"]
            restrictive_values: Values meaning "not allowed"
            permissive_values: Values meaning "allowed"
            enabled_logs: Warn about conditional values that cannot be parsed
            log_unsupported_features: Let the rule-sets warn about unsupported
                constructs (debugging only)

        Raises:
            TypeError: If a collection is None or a bare string, or a parser
                is not a ConditionalValueParser
        """
        parsers = _as_tuple("value_parsers", value_parsers)
        base_tags = _as_tuple("tags_to_check", tags_to_check)

        self.tags_to_check: Tuple[str, ...] = tuple(
            tag + CONDITIONAL_SUFFIX for tag in base_tags
        )
        self.enabled_logs = enabled_logs

        self.permit_rules = ConditionalRuleSet(
            _as_tuple("permissive_values", permissive_values),
            log_unsupported=log_unsupported_features,
            value_parsers=parsers
        )
        self.restrictive_rules = ConditionalRuleSet(
            _as_tuple("restrictive_values", restrictive_values),
            log_unsupported=log_unsupported_features,
            value_parsers=parsers
        )

    @classmethod
    def from_date(
        cls,
        evaluation_date: Union[date, datetime],
        tags_to_check: Iterable[str],
        restrictive_values: Iterable[str],
        permissive_values: Iterable[str],
        enabled_logs: bool = False
    ) -> "ConditionEvaluator":
        """Create an inspector with a single DateRangeParser for the given date."""
        return cls(
            [DateRangeParser(evaluation_date)],
            tags_to_check,
            restrictive_values,
            permissive_values,
            enabled_logs
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[DotDict] = None,
        evaluation_date: Optional[Union[date, datetime]] = None,
        value_parsers: Optional[Sequence[ConditionalValueParser]] = None
    ) -> "ConditionEvaluator":
        """
        Create an inspector from the conditional_access settings.

        Args:
            settings: Settings to read, defaults to the global settings
            evaluation_date: Date for the default DateRangeParser (today if None)
            value_parsers: Explicit parsers, replacing the default DateRangeParser
        """
        settings = settings if settings is not None else get_settings()
        access = settings.get("conditional_access") or {}

        if value_parsers is None:
            value_parsers = [DateRangeParser(evaluation_date or date.today())]

        inspector = cls(
            value_parsers,
            access.get("tags_to_check"),
            access.get("restrictive_values"),
            access.get("permissive_values"),
            enabled_logs=bool(access.get("enable_logs", False)),
            log_unsupported_features=bool(access.get("log_unsupported_features", False))
        )
        logger.debug(
            "Conditional tag inspector created",
            tags=list(inspector.tags_to_check),
            parsers=len(value_parsers)
        )
        return inspector

    def is_restricted_way_conditionally_permitted(
        self,
        way: TaggedFeature,
        trace: Optional[EvaluationTrace] = None
    ) -> bool:
        """True if a way restricted by default is passable under its conditions."""
        return self.applies(way, True, trace)

    def is_permitted_way_conditionally_restricted(
        self,
        way: TaggedFeature,
        trace: Optional[EvaluationTrace] = None
    ) -> bool:
        """True if a way open by default is restricted under its conditions."""
        return self.applies(way, False, trace)

    def applies(
        self,
        way: TaggedFeature,
        check_permissive_values: bool,
        trace: Optional[EvaluationTrace] = None
    ) -> bool:
        """
        Check the conditional tags of a way for one polarity.

        The first matching tag wins. Values that cannot be parsed count as
        no match for their tag.

        Args:
            way: Way to inspect
            check_permissive_values: True for the permissive rule-set,
                False for the restrictive one
            trace: Optional trace for debugging

        Returns:
            True if any conditional tag matches
        """
        # minor speed up when only the highway tag is present
        if way.tag_count() < 2:
            if trace is not None:
                trace.set_result(False, skipped=True)
            return False

        rules = self.permit_rules if check_permissive_values else self.restrictive_rules

        for tag_to_check in self.tags_to_check:
            value = way.get_tag(tag_to_check)
            if not value:
                continue

            start_time = time.perf_counter()
            result = self._check(rules, value)
            elapsed_ms = (time.perf_counter() - start_time) * 1000

            if trace is not None:
                trace.record(tag_to_check, value, result.state, result.reason, elapsed_ms)

            if result.state is ConditionState.MATCH:
                if trace is not None:
                    trace.set_result(True, matched_tag=tag_to_check)
                return True

            if result.state is ConditionState.INVALID:
                self._report_failure(way, tag_to_check, value, result.reason)

        if trace is not None:
            trace.set_result(False)
        return False

    def _check(self, rules: ConditionalRuleSet, value: str) -> ConditionResult:
        try:
            return rules.check_condition(value)
        except Exception as e:
            return ConditionResult.invalid(str(e))

    def _report_failure(self, way: TaggedFeature, tag: str, value: str, reason: str) -> None:
        if not self.enabled_logs or not should_log_failure(str(value)):
            return
        logger.warning(
            "Could not parse conditional value",
            way_id=way.id,
            tag=tag,
            value=value,
            reason=reason
        )

    def __repr__(self) -> str:
        return (
            f"ConditionEvaluator(tags={list(self.tags_to_check)!r}, "
            f"parsers={len(self.permit_rules)}, "
            f"enabled_logs={self.enabled_logs})"
        )
