"""
Value parsers for the condition part of OSM conditional tags.

A conditional tag value has the form "<value> @ <condition>". The rule-set
checks <value> against its vocabulary and hands <condition> to a list of
value parsers. Each parser says whether it understands the condition
(accepts) and, if so, whether it holds for its evaluation context
(evaluate).

Parsers hold their evaluation context (a date, a vehicle weight, ...) from
construction on and are never modified afterwards, so one parser instance
can be shared by several rule-sets and threads.
"""

import operator
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Callable, Dict, Optional, Tuple, Union

from osm_conditional.conditions.base import ConditionResult
from osm_conditional.conditions.date_range import DateRange, parse_calendar


class ConditionalParseError(ValueError):
    """Raised when a condition cannot be parsed by a value parser."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        message = f"Could not parse condition {expression!r}: {reason}"
        super().__init__(message)


class ConditionalValueParser(ABC):
    """
    Base class for condition parsers.

    Subclasses implement accepts() and evaluate(). evaluate() is only
    called for expressions the parser accepts.
    """

    @abstractmethod
    def accepts(self, expression: str) -> bool:
        """Return True if this parser understands the expression."""

    @abstractmethod
    def evaluate(self, expression: str) -> bool:
        """Return True if the expression holds for the evaluation context."""

    def check_condition(self, expression: str) -> ConditionResult:
        """
        Check an expression in one step.

        Returns:
            MATCH or NO_MATCH if the expression is accepted, INVALID otherwise
        """
        if not self.accepts(expression):
            return ConditionResult.invalid(
                f"{type(self).__name__} does not accept {expression!r}"
            )
        if self.evaluate(expression):
            return ConditionResult.match()
        return ConditionResult.no_match()


class DateRangeParser(ConditionalValueParser):
    """
    Evaluates date-range conditions against a fixed date.

    Example:
        parser = DateRangeParser(date(2014, 12, 1))
        parser.evaluate("Oct-May")      # True
        parser.evaluate("Mo-Fr")        # True, 2014-12-01 is a Monday
        parser.accepts("22:00-06:00")   # False, times are not supported
    """

    def __init__(self, evaluation_date: Union[date, datetime]):
        if isinstance(evaluation_date, datetime):
            evaluation_date = evaluation_date.date()
        if not isinstance(evaluation_date, date):
            raise TypeError(
                f"evaluation_date must be a date, got {type(evaluation_date).__name__}"
            )
        self.evaluation_date = evaluation_date

    def parse_range(self, expression: str) -> DateRange:
        """
        Parse a date range or a single date point.

        A hyphen may separate the two ends or belong to an ISO date, so
        every hyphen is tried as the separator until both sides parse.

        Raises:
            ConditionalParseError: If no reading of the text is a valid range
        """
        if expression is None:
            raise ConditionalParseError("", "empty condition")
        text = expression.strip()
        if not text:
            raise ConditionalParseError(expression, "empty condition")

        last_error = None
        try:
            point = parse_calendar(text)
            return DateRange(point, point)
        except ValueError as e:
            last_error = e

        for index, char in enumerate(text):
            if char != "-":
                continue
            try:
                start = parse_calendar(text[:index])
                end = parse_calendar(text[index + 1:])
                return DateRange(start, end)
            except ValueError as e:
                last_error = e

        raise ConditionalParseError(expression, str(last_error))

    def accepts(self, expression: str) -> bool:
        try:
            self.parse_range(expression)
        except ConditionalParseError:
            return False
        return True

    def evaluate(self, expression: str) -> bool:
        return self.parse_range(expression).is_in_range(self.evaluation_date)

    def check_condition(self, expression: str) -> ConditionResult:
        # Parse once instead of accepts() + evaluate()
        try:
            date_range = self.parse_range(expression)
        except ConditionalParseError as e:
            return ConditionResult.invalid(e.reason)
        if date_range.is_in_range(self.evaluation_date):
            return ConditionResult.match()
        return ConditionResult.no_match()

    def __repr__(self) -> str:
        return f"DateRangeParser({self.evaluation_date.isoformat()})"


_COMPARISONS: Dict[str, Callable[[float, float], bool]] = {
    "<=": operator.le,
    ">=": operator.ge,
    "<": operator.lt,
    ">": operator.gt,
    "=": operator.eq,
}

_NUMBER_CONDITION = re.compile(
    r"^([A-Za-z_][\w:]*)\s*(<=|>=|<|>|=)\s*(-?\d+(?:\.\d+)?)$"
)


class NumberParser(ConditionalValueParser):
    """
    Evaluates numeric comparisons for one key, e.g. "weight>3.5".

    The configured value is the left-hand side: with NumberParser("weight", 7.5),
    "weight>3.5" holds and "weight<3.5" does not. Expressions for other keys
    are not accepted.
    """

    def __init__(self, key: str, value: float):
        if not key:
            raise ValueError("key must not be empty")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"value must be a number, got {type(value).__name__}")
        self.key = key
        self.value = value

    def _parse(self, expression: str) -> Optional[Tuple[str, float]]:
        if expression is None:
            return None
        m = _NUMBER_CONDITION.match(expression.strip())
        if not m or m.group(1) != self.key:
            return None
        return m.group(2), float(m.group(3))

    def accepts(self, expression: str) -> bool:
        return self._parse(expression) is not None

    def evaluate(self, expression: str) -> bool:
        parsed = self._parse(expression)
        if parsed is None:
            raise ConditionalParseError(expression, f"not a comparison on '{self.key}'")
        op, number = parsed
        return _COMPARISONS[op](self.value, number)

    def __repr__(self) -> str:
        return f"NumberParser({self.key!r}, {self.value!r})"
