#!/usr/bin/env python3
"""
Exceptions raised by the rent ledger.

Malformed records never raise; these cover caller mistakes only.
"""


class LedgerError(Exception):
    """Base class for rent ledger errors."""


class ConfigurationError(LedgerError, ValueError):
    """Raised when a computation is requested with unusable parameters."""


class SettingsError(LedgerError):
    """Raised when an explicitly requested settings file cannot be loaded."""
