"""
Structured logging for osm-conditional.

JSON lines for production imports, readable output for development.
Extra keyword arguments become structured fields.

Usage:
    from osm_conditional.logger import get_logger

    logger = get_logger(__name__)
    logger.set_context(source="planet-latest.osm.pbf")
    logger.warning("Could not parse conditional value", way_id=42, tag="access:conditional")
    logger.metric("ways_checked", 1000)
"""

import logging
import json
import os
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from osm_conditional.settings import settings


ROOT_LOGGER_NAME = "osm_conditional"

# Context-local extra fields, isolated between threads of a parallel import
_extra_context_var: ContextVar[Optional[Dict[str, Any]]] = ContextVar('extra_context', default=None)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stream handler to the package root logger.

    Libraries embedding the engine usually configure logging themselves;
    this is for standalone use and scripts.

    Args:
        level: Log level name, defaults to logging.level from settings

    Returns:
        The configured package root logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level_name = level or settings.get_nested("logging.level", "INFO")
    log_level = getattr(logging, str(level_name).upper(), logging.INFO)
    root.setLevel(log_level)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(log_level)

        if os.environ.get("LOG_FORMAT", "readable") == "json":
            # JSON format for production
            formatter = logging.Formatter("%(message)s")
        else:
            # Readable format for development
            formatter = logging.Formatter(
                "[%(asctime)s] %(levelname)s %(name)s - %(message)s",
                datefmt="%H:%M:%S"
            )

        handler.setFormatter(formatter)
        root.addHandler(handler)

        # Avoid duplicate output through the root logger
        root.propagate = False

    return root


class StructuredLogger:
    """
    Structured logger with JSON support.

    Features:
    - JSON format for production (LOG_FORMAT=json)
    - Readable format for development (default)
    - Context-local extra fields added to every record
    - metric() and event() helpers for import statistics
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    @property
    def _extra_context(self) -> Dict[str, Any]:
        """Context-local extra fields"""
        ctx = _extra_context_var.get()
        if ctx is None:
            ctx = {}
            _extra_context_var.set(ctx)
        return ctx

    def set_context(self, **kwargs: Any) -> None:
        """Set extra context (context-local)"""
        ctx = dict(self._extra_context)
        ctx.update(kwargs)
        _extra_context_var.set(ctx)

    def clear_context(self) -> None:
        """Clear extra context"""
        _extra_context_var.set({})

    def _format_structured(self, level: str, message: str, **kwargs: Any) -> Dict[str, Any]:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "logger": self.name,
            "message": message,
        }

        if self._extra_context:
            log_entry.update(self._extra_context)

        if kwargs:
            log_entry.update(kwargs)

        return log_entry

    def _should_use_json(self) -> bool:
        return os.environ.get("LOG_FORMAT", "readable") == "json"

    def _format_readable(self, message: str, **kwargs: Any) -> str:
        fields = dict(self._extra_context)
        fields.update(kwargs)
        if not fields:
            return message
        extras = ", ".join(f"{k}={v}" for k, v in fields.items())
        return f"{message} [{extras}]"

    def _log(self, level: str, message: str, log_method, **kwargs: Any) -> None:
        """Common logging path"""
        if self._should_use_json():
            structured = self._format_structured(level, message, **kwargs)
            log_method(json.dumps(structured, ensure_ascii=False, default=str))
        else:
            log_method(self._format_readable(message, **kwargs))

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message"""
        self._log("DEBUG", message, self.logger.debug, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message"""
        self._log("INFO", message, self.logger.info, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message"""
        self._log("WARNING", message, self.logger.warning, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message"""
        self._log("ERROR", message, self.logger.error, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback"""
        if self._should_use_json():
            import traceback
            kwargs["traceback"] = traceback.format_exc()
            structured = self._format_structured("ERROR", message, **kwargs)
            self.logger.error(json.dumps(structured, ensure_ascii=False, default=str))
        else:
            self.logger.exception(self._format_readable(message, **kwargs))

    def metric(self, name: str, value: Any, **kwargs: Any) -> None:
        """
        Structured metric for import statistics.

        Example:
            logger.metric("conditional_ways_permitted", 12, polarity="permissive")
        """
        self._log("METRIC", name, self.logger.info, value=value, **kwargs)

    def event(self, event_type: str, **kwargs: Any) -> None:
        """
        Log a named event.

        Example:
            logger.event("inspector_created", tags=["access:conditional"])
        """
        self._log("EVENT", event_type, self.logger.info, **kwargs)


def get_logger(name: str = ROOT_LOGGER_NAME) -> StructuredLogger:
    """Create a StructuredLogger, usually with the module's __name__."""
    return StructuredLogger(name)


# Package-level logger instance
logger = StructuredLogger(ROOT_LOGGER_NAME)
