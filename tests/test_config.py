#!/usr/bin/env python3
"""
test_config.py

Unit tests for env-driven settings.
"""

import os
import unittest
import sys
from pathlib import Path
from unittest import mock

# Add code directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "code"))

from dashboard_core.config import load_settings
from dashboard_core.errors import ConfigError


class TestLoadSettings(unittest.TestCase):

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_source_is_required(self):
        with self.assertRaises(ConfigError):
            load_settings()
        # ConfigError is also a ValueError
        with self.assertRaises(ValueError):
            load_settings()

    @mock.patch.dict(os.environ, {"DASHBOARD_SOURCE": "data/tx.csv"}, clear=True)
    def test_defaults(self):
        s = load_settings()
        self.assertEqual(s.source, "data/tx.csv")
        self.assertEqual(s.host, "127.0.0.1")
        self.assertEqual(s.port, 8050)
        self.assertEqual(s.fetch_timeout, 20.0)
        self.assertEqual(s.search_debounce_ms, 300)
        self.assertAlmostEqual(s.search_debounce_seconds, 0.3)
        self.assertEqual(s.log_level, "INFO")

    @mock.patch.dict(os.environ, {
        "DASHBOARD_SOURCE": "https://example.com/api",
        "DASH_HOST": "0.0.0.0",
        "DASH_PORT": "9000",
        "DASHBOARD_FETCH_TIMEOUT": "2.5",
        "DASHBOARD_SEARCH_DEBOUNCE_MS": "500",
        "DASHBOARD_LOG_LEVEL": "DEBUG",
    }, clear=True)
    def test_overrides(self):
        s = load_settings()
        self.assertEqual((s.host, s.port, s.fetch_timeout), ("0.0.0.0", 9000, 2.5))
        self.assertEqual(s.search_debounce_ms, 500)
        self.assertEqual(s.log_level, "DEBUG")

    @mock.patch.dict(os.environ, {"DASHBOARD_SOURCE": "x.json", "DASH_PORT": "eighty"}, clear=True)
    def test_invalid_number(self):
        with self.assertRaises(ConfigError):
            load_settings()

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_explicit_source_argument(self):
        self.assertEqual(load_settings("rows.json").source, "rows.json")


if __name__ == "__main__":
    unittest.main(verbosity=2)
