#!/usr/bin/env python3
"""
test_source.py

Unit tests for fetching and unwrapping the transaction source.

Tests:
- The three accepted response shapes
- Descriptive errors for everything else
- Local JSON/CSV files
- HTTP fetch (urlopen patched)
"""

import json
import unittest
import shutil
import sys
import tempfile
import urllib.error
from pathlib import Path
from unittest import mock

import pandas as pd

# Add code directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "code"))

from dashboard_core.errors import DashboardError, SourceError
from dashboard_core.source import fetch_rows, load_store, unwrap_payload

ROWS = [
    {"Fecha": "01/02/2024", "Descripcion": "Bakery", "Categoria": "Food", "Gastos": "3,40", "Mes Ano": "2024-02"},
    {"Fecha": "02/02/2024", "Descripcion": "Salary", "Categoria": "Income", "Ingresos": "1500", "Mes Ano": "2024-02"},
]


def _urlopen_returning(body: bytes):
    cm = mock.MagicMock()
    cm.__enter__.return_value.read.return_value = body
    return cm


class TestUnwrapPayload(unittest.TestCase):

    def test_envelope(self):
        self.assertEqual(unwrap_payload({"success": True, "data": ROWS}), ROWS)

    def test_bare_array(self):
        self.assertEqual(unwrap_payload(ROWS), ROWS)

    def test_data_wrapper(self):
        self.assertEqual(unwrap_payload({"data": ROWS}), ROWS)

    def test_envelope_failure_uses_message(self):
        with self.assertRaises(SourceError) as cm:
            unwrap_payload({"success": False, "message": "Sheet not found"})
        self.assertIn("Sheet not found", str(cm.exception))

    def test_envelope_without_array(self):
        with self.assertRaises(SourceError):
            unwrap_payload({"success": True, "data": {"rows": []}})

    def test_unknown_shapes(self):
        for payload in [{"rows": ROWS}, "hello", 42, None, {"data": "x"}]:
            with self.subTest(payload=payload):
                with self.assertRaises(SourceError) as cm:
                    unwrap_payload(payload)
                self.assertIn("Unrecognized response shape", str(cm.exception))

    def test_non_object_rows_rejected(self):
        with self.assertRaises(SourceError):
            unwrap_payload([ROWS[0], ["not", "a", "row"]])

    def test_source_error_is_dashboard_error(self):
        self.assertTrue(issubclass(SourceError, DashboardError))


class TestFileSources(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_json_file(self):
        path = Path(self.test_dir) / "tx.json"
        path.write_text(json.dumps({"success": True, "data": ROWS}), encoding="utf-8")
        self.assertEqual(fetch_rows(str(path)), ROWS)

    def test_csv_file_keeps_amount_text(self):
        path = Path(self.test_dir) / "tx.csv"
        pd.DataFrame(ROWS).to_csv(path, index=False)
        rows = fetch_rows(str(path))
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["Gastos"], "3,40")
        self.assertEqual(rows[1]["Gastos"], "")

    def test_missing_file(self):
        with self.assertRaises(SourceError):
            fetch_rows(str(Path(self.test_dir) / "missing.json"))

    def test_invalid_json_file(self):
        path = Path(self.test_dir) / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(SourceError):
            fetch_rows(str(path))

    def test_placeholder_source(self):
        for source in ["", "   ", "URL_DE_TU_API_AQUÍ"]:
            with self.subTest(source=source):
                with self.assertRaises(SourceError):
                    fetch_rows(source)

    def test_load_store(self):
        path = Path(self.test_dir) / "tx.json"
        path.write_text(json.dumps(ROWS), encoding="utf-8")
        store = load_store(str(path))
        self.assertEqual(len(store), 2)
        self.assertEqual(store.month_options(), ["2024-02"])


class TestHttpSource(unittest.TestCase):

    URL = "https://script.example.com/macros/s/abc/exec"

    @mock.patch("dashboard_core.source.urllib.request.urlopen")
    def test_fetch_envelope(self, urlopen):
        urlopen.return_value = _urlopen_returning(json.dumps({"success": True, "data": ROWS}).encode("utf-8"))
        self.assertEqual(fetch_rows(self.URL, timeout=5), ROWS)
        _, kwargs = urlopen.call_args
        self.assertEqual(kwargs["timeout"], 5)

    @mock.patch("dashboard_core.source.urllib.request.urlopen")
    def test_unreachable(self, urlopen):
        urlopen.side_effect = urllib.error.URLError("connection refused")
        with self.assertRaises(SourceError) as cm:
            fetch_rows(self.URL)
        self.assertIn("unreachable", str(cm.exception))

    @mock.patch("dashboard_core.source.urllib.request.urlopen")
    def test_http_error(self, urlopen):
        urlopen.side_effect = urllib.error.HTTPError(self.URL, 500, "Server Error", None, None)
        with self.assertRaises(SourceError) as cm:
            fetch_rows(self.URL)
        self.assertIn("500", str(cm.exception))

    @mock.patch("dashboard_core.source.urllib.request.urlopen")
    def test_invalid_json_body(self, urlopen):
        urlopen.return_value = _urlopen_returning(b"<html>login</html>")
        with self.assertRaises(SourceError):
            fetch_rows(self.URL)


if __name__ == "__main__":
    unittest.main(verbosity=2)
