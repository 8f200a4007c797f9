#!/usr/bin/env python3
"""
Tests for the settings_loader module.

These tests validate loading settings files and merging them over the defaults.
"""

import os
import unittest
import json
import tempfile
import shutil

# Add the parent directory to the path so we can import the module
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rent_ledger.errors import ConfigurationError, SettingsError
from rent_ledger.settings_loader import (
    DEFAULT_SETTINGS,
    deep_merge,
    load_settings,
    resolve_settings,
)


class TestSettingsLoader(unittest.TestCase):
    """Test cases for the settings_loader module."""

    def setUp(self):
        """Set up test fixtures."""
        # Create a temporary directory for test files
        self.test_dir = tempfile.mkdtemp()
        self.settings_path = os.path.join(self.test_dir, 'ledger_settings.json')

        with open(self.settings_path, 'w') as f:
            json.dump({
                "risk": {
                    "due_soon_days": 3  # Override default
                },
                "upcoming_limit": 5
            }, f)

    def tearDown(self):
        """Tear down test fixtures."""
        # Remove the temporary directory and its contents
        shutil.rmtree(self.test_dir)

    def test_deep_merge(self):
        """Test the deep_merge function."""
        dict1 = {
            "a": 1,
            "b": {
                "c": 2,
                "d": 3
            }
        }

        dict2 = {
            "b": {
                "c": 4,  # Override
                "e": 5   # New nested key
            },
            "f": 6,      # New top-level key
            "a": ""      # Empty values do not override
        }

        merged = deep_merge(dict1, dict2)

        self.assertEqual(merged["a"], 1)
        self.assertEqual(merged["b"]["c"], 4)
        self.assertEqual(merged["b"]["d"], 3)
        self.assertEqual(merged["b"]["e"], 5)
        self.assertEqual(merged["f"], 6)
        self.assertEqual(dict1["b"]["c"], 2)  # Inputs untouched

    def test_load_defaults_without_path(self):
        """Test that no path gives the defaults."""
        settings = load_settings()

        self.assertEqual(settings, DEFAULT_SETTINGS)
        self.assertIsNot(settings, DEFAULT_SETTINGS)

    def test_load_settings_file(self):
        """Test loading a settings file over the defaults."""
        settings = load_settings(self.settings_path)

        self.assertEqual(settings["risk"]["due_soon_days"], 3)
        self.assertEqual(settings["risk"]["high_risk_overdue_days"], 7)  # From defaults
        self.assertEqual(settings["upcoming_limit"], 5)

    def test_missing_settings_file(self):
        """Test that an explicitly requested missing file is an error."""
        with self.assertRaises(SettingsError):
            load_settings(os.path.join(self.test_dir, 'missing.json'))

    def test_invalid_json_settings_file(self):
        """Test that a malformed file is an error."""
        bad_path = os.path.join(self.test_dir, 'bad.json')
        with open(bad_path, 'w') as f:
            f.write("{not json")

        with self.assertRaises(SettingsError):
            load_settings(bad_path)

    def test_invalid_threshold(self):
        """Test that a negative threshold is rejected."""
        with open(self.settings_path, 'w') as f:
            json.dump({"risk": {"high_risk_overdue_days": -1}}, f)

        with self.assertRaises(ConfigurationError):
            load_settings(self.settings_path)

    def test_resolve_settings(self):
        """Test merging in-memory settings."""
        self.assertIs(resolve_settings(None), DEFAULT_SETTINGS)

        settings = resolve_settings({"risk": {"due_soon_days": 10}})
        self.assertEqual(settings["risk"]["due_soon_days"], 10)
        self.assertEqual(settings["risk"]["high_risk_overdue_days"], 7)

        with self.assertRaises(ConfigurationError):
            resolve_settings({"upcoming_limit": "ten"})


if __name__ == '__main__':
    unittest.main()
