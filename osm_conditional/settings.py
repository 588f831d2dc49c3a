"""
Settings loader for settings.yaml

Usage:
    from osm_conditional.settings import settings

    tags = settings.conditional_access.tags_to_check
    level = settings.get_nested("logging.level")
"""

import os
import yaml
from pathlib import Path
from typing import List, Any


# Default settings file, overridable via OSM_CONDITIONAL_SETTINGS
SETTINGS_FILE = Path(__file__).parent / "settings.yaml"
SETTINGS_ENV_VAR = "OSM_CONDITIONAL_SETTINGS"

# Used for every key missing from the YAML file
DEFAULTS = {
    "conditional_access": {
        "tags_to_check": ["vehicle", "access"],
        "restrictive_values": [
            "private", "agricultural", "forestry", "no",
            "restricted", "delivery", "military", "emergency",
        ],
        "permissive_values": ["yes", "permissive", "designated"],
        # enabling by default makes noise but could improve OSM data
        "enable_logs": False,
        # debugging only, far too verbose for a full import
        "log_unsupported_features": False,
    },
    "logging": {
        "level": "INFO",
    },
}


class DotDict(dict):
    """Dict with attribute access: d.key instead of d['key']"""

    def __getattr__(self, key: str) -> Any:
        try:
            value = self[key]
            if isinstance(value, dict):
                return DotDict(value)
            return value
        except KeyError:
            raise AttributeError(f"Setting '{key}' not found")

    def __setattr__(self, key: str, value: Any) -> None:
        self[key] = value

    def get_nested(self, path: str, default: Any = None) -> Any:
        """Get a value by dotted path: 'conditional_access.enable_logs'"""
        keys = path.split('.')
        value = self
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge of dicts (override wins over base)"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _default_settings_file() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override)
    return SETTINGS_FILE


def load_settings(filepath: Path = None) -> DotDict:
    """
    Load settings from a YAML file.

    Priority:
    1. Values from the YAML file (highest)
    2. DEFAULTS

    Args:
        filepath: Path to the settings file (defaults to settings.yaml,
            or the file named by OSM_CONDITIONAL_SETTINGS)

    Returns:
        DotDict with settings
    """
    filepath = Path(filepath) if filepath else _default_settings_file()

    # Start from defaults
    config = _deep_merge({}, DEFAULTS)

    if filepath.exists():
        with open(filepath, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        config = _deep_merge(config, yaml_config)
    else:
        print(f"[settings] Settings file not found: {filepath}")
        print("[settings] Using default values")

    return DotDict(config)


def validate_settings(settings: DotDict) -> List[str]:
    """
    Validate settings.

    Returns:
        List of errors (empty if everything is OK)
    """
    errors = []

    access = settings.get("conditional_access") or {}

    for name in ["tags_to_check", "restrictive_values", "permissive_values"]:
        value = access.get(name)
        if value is None:
            errors.append(f"conditional_access.{name} is not set")
        elif isinstance(value, str) or not isinstance(value, (list, tuple, set)):
            errors.append(f"conditional_access.{name} must be a list")
        elif not all(isinstance(item, str) and item for item in value):
            errors.append(f"conditional_access.{name} must contain non-empty strings")

    restrictive = set(access.get("restrictive_values") or [])
    permissive = set(access.get("permissive_values") or [])
    overlap = restrictive & permissive
    if overlap:
        errors.append(
            "conditional_access values are both restrictive and permissive: "
            + ", ".join(sorted(overlap))
        )

    for name in ["enable_logs", "log_unsupported_features"]:
        if not isinstance(access.get(name, False), bool):
            errors.append(f"conditional_access.{name} must be true or false")

    level = settings.get_nested("logging.level", "INFO")
    if not isinstance(level, str) or level.upper() not in {
        "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
    }:
        errors.append(f"logging.level has unknown value: {level!r}")

    return errors


# Global settings instance (lazy)
_settings = None


def get_settings() -> DotDict:
    """Get the global settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = load_settings()
        errors = validate_settings(_settings)
        if errors:
            print("[settings] Settings errors:")
            for err in errors:
                print(f"  - {err}")
    return _settings


def reload_settings() -> DotDict:
    """Reload settings from file"""
    global _settings
    _settings = None
    return get_settings()


# For convenient import: from osm_conditional.settings import settings
settings = get_settings()
