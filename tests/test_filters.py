#!/usr/bin/env python3
"""
test_filters.py

Unit tests for the filter predicate engine.
"""

import unittest
import sys
from pathlib import Path

# Add code directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "code"))

from dashboard_core.filters import ALL, FilterState, category_mask, filter_records
from dashboard_core.records import normalize_rows


def sample_records():
    return normalize_rows([
        {"Descripcion": "Supermarket", "Categoria": "Groceries", "Gastos": "10,50", "Mes Ano": "2024-01"},
        {"Descripcion": "Salary", "Categoria": "Income", "Ingresos": "2000", "Mes Ano": "2024-01"},
        {"Descripcion": "Landlord", "Categoria": "Rent", "Gastos": "800", "Mes Ano": "2024-02"},
        {"Descripcion": "Mystery (cash)", "Gastos": "5", "Mes Ano": "2024-02"},
        {"Descripcion": "No month", "Categoria": "Groceries", "Gastos": "3"},
    ])


class TestFilterRecords(unittest.TestCase):

    def setUp(self):
        self.records = sample_records()

    def test_no_filters_returns_everything(self):
        out = filter_records(self.records, FilterState())
        self.assertEqual(len(out), len(self.records))

    def test_month_clause(self):
        out = filter_records(self.records, FilterState(month="2024-02"))
        self.assertEqual(list(out["Description"]), ["Landlord", "Mystery (cash)"])

    def test_category_clause(self):
        out = filter_records(self.records, FilterState(category="Groceries"))
        self.assertEqual(list(out["Description"]), ["Supermarket", "No month"])

    def test_missing_category_never_matches_concrete_value(self):
        self.assertFalse(category_mask(self.records, "").any())
        out = filter_records(self.records, FilterState(category="Rent"))
        self.assertEqual(list(out["Description"]), ["Landlord"])

    def test_uncategorized_bucket_selects_blank_categories(self):
        out = filter_records(self.records, FilterState(category="Uncategorized"))
        self.assertEqual(list(out["Description"]), ["Mystery (cash)"])

    def test_search_is_case_insensitive_across_fields(self):
        cases = {
            "SUPER": ["Supermarket"],
            "groc": ["Supermarket", "No month"],
            "2024-02": ["Landlord", "Mystery (cash)"],
            "10,50": ["Supermarket"],
            "2000": ["Salary"],
        }
        for needle, expected in cases.items():
            with self.subTest(search=needle):
                out = filter_records(self.records, FilterState(search=needle))
                self.assertEqual(list(out["Description"]), expected)

    def test_search_is_plain_substring(self):
        out = filter_records(self.records, FilterState(search="(cash"))
        self.assertEqual(list(out["Description"]), ["Mystery (cash)"])

    def test_blank_search_is_no_constraint(self):
        out = filter_records(self.records, FilterState(search="   "))
        self.assertEqual(len(out), len(self.records))

    def test_clauses_are_anded(self):
        out = filter_records(self.records, FilterState(month="2024-01", category="Groceries", search="market"))
        self.assertEqual(list(out["Description"]), ["Supermarket"])
        out = filter_records(self.records, FilterState(month="2024-02", category="Groceries"))
        self.assertTrue(out.empty)

    def test_apply_month_false_drops_only_month_clause(self):
        state = FilterState(month="2024-01", category="Groceries")
        out = filter_records(self.records, state, apply_month=False)
        self.assertEqual(list(out["Description"]), ["Supermarket", "No month"])

    def test_does_not_mutate_input(self):
        before = self.records.copy()
        filter_records(self.records, FilterState(month="2024-01", search="x"))
        self.assertTrue(before.equals(self.records))


class TestFilterState(unittest.TestCase):

    def test_defaults(self):
        state = FilterState.from_dict(None)
        self.assertEqual(state, FilterState(month=ALL, category=ALL, search=""))
        self.assertTrue(state.is_unfiltered)

    def test_round_trip(self):
        state = FilterState(month="2024-01", category="Rent", search="x")
        self.assertEqual(FilterState.from_dict(state.to_dict()), state)
        self.assertFalse(state.is_unfiltered)

    def test_blank_axis_values_mean_all(self):
        state = FilterState.from_dict({"month": "", "category": None, "search": None})
        self.assertEqual(state.month, ALL)
        self.assertEqual(state.category, ALL)
        self.assertEqual(state.search, "")


if __name__ == "__main__":
    unittest.main(verbosity=2)
