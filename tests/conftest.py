"""
Shared pytest fixtures for osm-conditional tests.

Provides fixtures for:
- Evaluation dates and value parsers
- Inspectors with the default OSM vocabularies
- Way factory
- Temporary settings files
- Logger cleanup
"""

import pytest
from datetime import date
from pathlib import Path
from typing import Any, Dict
import logging
import yaml
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from osm_conditional.conditions import (
    ConditionalValueParser,
    ConditionEvaluator,
    DateRangeParser,
    ReaderWay
)
from osm_conditional.logger import ROOT_LOGGER_NAME, logger as package_logger


TAGS_TO_CHECK = ["vehicle", "access"]
RESTRICTIVE_VALUES = {"no", "private", "agricultural", "forestry", "delivery"}
PERMISSIVE_VALUES = {"yes", "permissive", "designated"}


# =============================================================================
# Parser Fixtures
# =============================================================================

class RecordingParser(ConditionalValueParser):
    """Accepts everything and records every call."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls = []

    def accepts(self, expression: str) -> bool:
        self.calls.append(("accepts", expression))
        return True

    def evaluate(self, expression: str) -> bool:
        self.calls.append(("evaluate", expression))
        return self.result


class FailingParser(ConditionalValueParser):
    """Raises on every call, like a buggy third-party parser."""

    def accepts(self, expression: str) -> bool:
        raise RuntimeError("boom")

    def evaluate(self, expression: str) -> bool:
        raise RuntimeError("boom")


@pytest.fixture
def winter_date():
    """Monday, 1 December 2014."""
    return date(2014, 12, 1)


@pytest.fixture
def summer_date():
    """Tuesday, 1 July 2014."""
    return date(2014, 7, 1)


@pytest.fixture
def date_parser(winter_date):
    return DateRangeParser(winter_date)


@pytest.fixture
def recording_parser():
    return RecordingParser()


@pytest.fixture
def recording_parser_factory():
    """Factory for recording parsers with a fixed evaluation result."""
    def _create(result: bool = True) -> RecordingParser:
        return RecordingParser(result)
    return _create


@pytest.fixture
def failing_parser():
    return FailingParser()


# =============================================================================
# Inspector Fixtures
# =============================================================================

@pytest.fixture
def inspector_factory():
    """Factory for inspectors with the default vocabularies."""
    def _create(evaluation_date: date = date(2014, 12, 1), enabled_logs: bool = False,
                value_parsers=None):
        if value_parsers is not None:
            return ConditionEvaluator(
                value_parsers,
                TAGS_TO_CHECK,
                RESTRICTIVE_VALUES,
                PERMISSIVE_VALUES,
                enabled_logs=enabled_logs
            )
        return ConditionEvaluator.from_date(
            evaluation_date,
            TAGS_TO_CHECK,
            RESTRICTIVE_VALUES,
            PERMISSIVE_VALUES,
            enabled_logs=enabled_logs
        )
    return _create


@pytest.fixture
def inspector(inspector_factory, winter_date):
    return inspector_factory(winter_date)


@pytest.fixture
def logging_inspector(inspector_factory, winter_date):
    return inspector_factory(winter_date, enabled_logs=True)


@pytest.fixture
def make_way():
    """Create a way with a highway tag plus the given tags."""
    counter = {"next_id": 1}

    def _create(tags: Dict[str, str] = None, way_id: int = None, highway: bool = True) -> ReaderWay:
        all_tags = {"highway": "primary"} if highway else {}
        all_tags.update(tags or {})
        if way_id is None:
            way_id = counter["next_id"]
            counter["next_id"] += 1
        return ReaderWay(way_id, all_tags)
    return _create


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def settings_file(tmp_path):
    """Write a settings.yaml with the given content and return its path."""
    def _create(content: Dict[str, Any]) -> Path:
        path = tmp_path / "settings.yaml"
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(content, f, allow_unicode=True)
        return path
    return _create


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_logging():
    """Restore package logger state and structured context after each test."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    root.propagate = propagate
    package_logger.clear_context()
