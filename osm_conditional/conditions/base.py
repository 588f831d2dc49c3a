"""
Base types for conditional tag evaluation.

This module defines the TaggedFeature protocol that map features handed
to the inspector must implement, a concrete ReaderWay used by import code
and tests, and the tri-state result of checking a single conditional value.
"""

from typing import Protocol, Dict, Any, Optional, runtime_checkable
from dataclasses import dataclass, field
from enum import Enum


@runtime_checkable
class TaggedFeature(Protocol):
    """
    Protocol for map features carrying OSM tags.

    The inspector only reads from a feature, it never modifies one.

    Attributes:
        id: OSM identifier of the feature
    """

    @property
    def id(self) -> int:
        """OSM identifier."""
        ...

    def get_tag(self, key: str) -> Optional[str]:
        """Tag value for key, or None if the tag is missing."""
        ...

    def tag_count(self) -> int:
        """Number of tags on the feature."""
        ...


@dataclass
class ReaderWay:
    """
    Simple concrete TaggedFeature for an OSM way.

    Every tag counts towards tag_count(), including the base restriction
    key (for example "access") next to its ":conditional" variant.

    Example:
        way = ReaderWay(1, {"highway": "track", "access:conditional": "yes @ (Oct-May)"})
        way.get_tag("access:conditional")
    """
    id: int
    tags: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate tag mapping after initialization."""
        if self.tags is None:
            raise TypeError("tags must be a mapping, got None")

    def get_tag(self, key: str) -> Optional[str]:
        return self.tags.get(key)

    def has_tag(self, key: str) -> bool:
        return key in self.tags

    def set_tag(self, key: str, value: str) -> None:
        self.tags[key] = value

    def tag_count(self) -> int:
        return len(self.tags)


def is_tagged_feature(obj: Any) -> bool:
    """
    Check if an object implements the TaggedFeature protocol.

    Args:
        obj: Object to check

    Returns:
        True if object implements TaggedFeature, False otherwise
    """
    return isinstance(obj, TaggedFeature)


class ConditionState(str, Enum):
    """
    Outcome of checking one conditional value.

    - MATCH: the value applies to the evaluation context
    - NO_MATCH: the value is understood and does not apply
    - INVALID: no rule understood the value
    """
    MATCH = "match"
    NO_MATCH = "no_match"
    INVALID = "invalid"


@dataclass(frozen=True)
class ConditionResult:
    """
    Result of checking a conditional value.

    Attributes:
        state: Tri-state outcome
        reason: Why the value was rejected or skipped (empty for plain results)
    """
    state: ConditionState
    reason: str = ""

    @property
    def matched(self) -> bool:
        return self.state is ConditionState.MATCH

    @property
    def is_valid(self) -> bool:
        return self.state is not ConditionState.INVALID

    @classmethod
    def match(cls) -> "ConditionResult":
        return _MATCH

    @classmethod
    def no_match(cls, reason: str = "") -> "ConditionResult":
        if not reason:
            return _NO_MATCH
        return cls(ConditionState.NO_MATCH, reason)

    @classmethod
    def invalid(cls, reason: str) -> "ConditionResult":
        return cls(ConditionState.INVALID, reason)

    def __bool__(self) -> bool:
        return self.matched


_MATCH = ConditionResult(ConditionState.MATCH)
_NO_MATCH = ConditionResult(ConditionState.NO_MATCH)
