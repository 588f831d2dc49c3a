"""
Conditional rule-set for one polarity.

A rule-set knows the keyword vocabulary of one direction of evaluation
(values meaning "allowed" for the permissive rule-set, values meaning
"not allowed" for the restrictive one) and an ordered list of value
parsers that evaluate the condition after the "@".

Formats supported:
- Bare keyword: "yes"
- Keyword with condition: "no @ (Oct-May)", "delivery @ Mo-Fr"

Multiple conditions separated by ";" are not supported and never match.
"""

from typing import Iterable, Tuple

from osm_conditional.conditions.base import ConditionResult
from osm_conditional.conditions.value_parsers import ConditionalValueParser
from osm_conditional.logger import get_logger

logger = get_logger(__name__)


class ConditionalRuleSet:
    """
    Evaluates conditional values for one polarity.

    The vocabulary is fixed at construction. Value parsers are registered
    during setup with add_value_parser() and only read afterwards.

    Example:
        rules = ConditionalRuleSet({"no", "private"})
        rules.add_value_parser(DateRangeParser(date(2014, 12, 1)))

        rules.check_condition("no @ (Oct-May)")   # MATCH
        rules.check_condition("no @ (Jun-Aug)")   # NO_MATCH
        rules.check_condition("no @ (sometimes)") # INVALID
    """

    def __init__(
        self,
        values: Iterable[str],
        log_unsupported: bool = False,
        value_parsers: Iterable[ConditionalValueParser] = ()
    ):
        """
        Initialize a rule-set.

        Args:
            values: Keywords this rule-set matches (e.g. {"yes", "permissive"})
            log_unsupported: Warn about unsupported constructs like ";"
            value_parsers: Initial value parsers, in evaluation order

        Raises:
            TypeError: If values is None or a bare string
        """
        if values is None or isinstance(values, str):
            raise TypeError("values must be a collection of strings")
        self.values = frozenset(values)
        self.log_unsupported = log_unsupported
        self._value_parsers = []
        for parser in value_parsers:
            self.add_value_parser(parser)

    def add_value_parser(self, parser: ConditionalValueParser) -> None:
        """
        Register a value parser after the ones already registered.

        Raises:
            TypeError: If parser is not a ConditionalValueParser
        """
        if not isinstance(parser, ConditionalValueParser):
            raise TypeError(
                f"expected ConditionalValueParser, got {type(parser).__name__}"
            )
        self._value_parsers.append(parser)

    @property
    def value_parsers(self) -> Tuple[ConditionalValueParser, ...]:
        return tuple(self._value_parsers)

    def check_condition(self, expression: str) -> ConditionResult:
        """
        Check a conditional tag value.

        Args:
            expression: Raw tag value, e.g. "no @ (Oct-May)"

        Returns:
            MATCH if the keyword belongs to this rule-set and its condition
            holds, NO_MATCH if it is understood but does not apply, INVALID
            if nothing understood it
        """
        if not expression or not expression.strip():
            return ConditionResult.no_match()

        if ";" in expression:
            if self.log_unsupported:
                logger.warning(
                    "Multiple conditions are not supported",
                    value=expression
                )
            return ConditionResult.no_match("multiple conditions are not supported")

        parts = expression.split("@")
        if len(parts) == 1:
            if expression.strip() in self.values:
                return ConditionResult.match()
            return ConditionResult.invalid(
                f"unknown value {expression.strip()!r} without condition"
            )

        if len(parts) != 2:
            return ConditionResult.invalid(f"could not split condition {expression!r}")

        value = parts[0].strip()
        if value not in self.values:
            return ConditionResult.no_match()

        condition = parts[1].replace("(", " ").replace(")", " ").strip()
        if not condition:
            return ConditionResult.invalid(f"empty condition in {expression!r}")

        return self._check_value_parsers(condition)

    def _check_value_parsers(self, condition: str) -> ConditionResult:
        """Ask each parser in order, the first one that accepts decides."""
        for parser in self._value_parsers:
            try:
                result = parser.check_condition(condition)
            except Exception as e:
                return ConditionResult.invalid(
                    f"{type(parser).__name__} failed on {condition!r}: {e}"
                )
            if result.is_valid:
                return result

        return ConditionResult.invalid(f"no value parser accepts {condition!r}")

    def matches(self, expression: str) -> bool:
        """Boolean shortcut for check_condition(); INVALID counts as no match."""
        return self.check_condition(expression).matched

    def __len__(self) -> int:
        """Return number of registered value parsers."""
        return len(self._value_parsers)

    def __repr__(self) -> str:
        return (
            f"ConditionalRuleSet(values={sorted(self.values)!r}, "
            f"parsers={len(self._value_parsers)})"
        )
