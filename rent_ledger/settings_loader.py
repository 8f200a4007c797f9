#!/usr/bin/env python3
"""
Settings Loader Module

This module loads the ledger settings and merges them over the built-in
defaults:
1. Built-in defaults (DEFAULT_SETTINGS)
2. Settings file (path argument, or RENT_LEDGER_SETTINGS_PATH for the command)

The merged settings tune due-date risk classification and listing limits.
The computation functions accept a settings dictionary and fall back to the
defaults when none is given.
"""

import os
import json
import logging
from copy import deepcopy
from typing import Dict, Any, Optional

from rent_ledger.errors import ConfigurationError, SettingsError
from rent_ledger.utils.helpers import load_json

# Configure logging
logger = logging.getLogger(__name__)

# Constants
SETTINGS_PATH_ENV = 'RENT_LEDGER_SETTINGS_PATH'

DEFAULT_SETTINGS: Dict[str, Any] = {
    "risk": {
        # Overdue by more than this many days is High risk
        "high_risk_overdue_days": 7,
        # Due within this many days is at least Medium risk
        "due_soon_days": 5
    },
    # Maximum number of upcoming due items to return (None = all)
    "upcoming_limit": None
}


def deep_merge(dict1: Dict[str, Any], dict2: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with dict2 values overriding dict1 values when both exist.

    Args:
        dict1: Base dictionary
        dict2: Dictionary to merge on top of dict1

    Returns:
        New dictionary with merged values
    """
    result = deepcopy(dict1)

    for key, value in dict2.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            result[key] = deep_merge(result[key], value)
        elif value is not None and value != "":
            # Only override if the value is not empty/None
            result[key] = deepcopy(value)

    return result


def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Check that the risk thresholds and limits are usable.

    Raises:
        ConfigurationError: If a threshold is not a non-negative integer
    """
    risk = settings.get("risk", {})
    for key in ("high_risk_overdue_days", "due_soon_days"):
        value = risk.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ConfigurationError(f"risk.{key} must be a non-negative integer, got {value!r}")

    limit = settings.get("upcoming_limit")
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 0):
        raise ConfigurationError(f"upcoming_limit must be a non-negative integer or null, got {limit!r}")

    return settings


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Main function to load settings for the ledger.

    Args:
        path: Optional path to a JSON settings file

    Returns:
        Defaults merged with the file contents, or the defaults alone when no
        file is given

    Raises:
        SettingsError: If the given file is missing or not valid JSON
        ConfigurationError: If the merged settings are invalid
    """
    if not path:
        logger.debug("No settings file given, using defaults")
        return deepcopy(DEFAULT_SETTINGS)

    try:
        file_settings = load_json(path)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        raise SettingsError(f"Could not load settings from {path}: {e}") from e

    if not isinstance(file_settings, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")

    merged_settings = validate_settings(deep_merge(DEFAULT_SETTINGS, file_settings))
    logger.info(f"Loaded settings from {path}")
    logger.debug(f"Merged settings: {merged_settings}")

    return merged_settings


def settings_path_from_env() -> Optional[str]:
    """Get the settings file path from the environment, if set."""
    return os.environ.get(SETTINGS_PATH_ENV) or None


def resolve_settings(settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge caller-supplied settings over the defaults without touching disk."""
    if not settings:
        return DEFAULT_SETTINGS
    return validate_settings(deep_merge(DEFAULT_SETTINGS, settings))
