"""
filters.py

Filter Predicate Engine.

A record passes when it passes all three clauses:
- month:    month == "all" or MonthKey == month
- category: category == "all" or Category == category (blank never matches a
            concrete value; "Uncategorized" selects the blank bucket)
- search:   search == "" or Search_Text contains search (case-insensitive, plain substring)

Pure functions over the record table; nothing here raises on odd data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

import pandas as pd

from .records import UNCATEGORIZED

ALL = "all"


@dataclass
class FilterState:
    """Active Filter State: the explicit month/category/search values in force."""

    month: str = ALL
    category: str = ALL
    search: str = ""

    @property
    def is_unfiltered(self) -> bool:
        return self.month == ALL and self.category == ALL and not normalize_search(self.search)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FilterState":
        data = data or {}
        return cls(
            month=_axis_value(data.get("month")),
            category=_axis_value(data.get("category")),
            search=str(data.get("search") or ""),
        )


def _axis_value(value: object) -> str:
    if value is None:
        return ALL
    s = str(value)
    return s if s else ALL


def normalize_search(search: Optional[str]) -> str:
    return (search or "").strip().lower()


def month_mask(records: pd.DataFrame, month: str) -> pd.Series:
    if month == ALL:
        return pd.Series(True, index=records.index)
    return records["MonthKey"].eq(month) & records["MonthKey"].ne("")


def category_mask(records: pd.DataFrame, category: str) -> pd.Series:
    if category == ALL:
        return pd.Series(True, index=records.index)
    if category == UNCATEGORIZED:
        # the aggregation bucket: blank categories plus any literal "Uncategorized"
        return records["Category"].isin(["", UNCATEGORIZED])
    return records["Category"].eq(category) & records["Category"].ne("")


def search_mask(records: pd.DataFrame, search: Optional[str]) -> pd.Series:
    needle = normalize_search(search)
    if not needle:
        return pd.Series(True, index=records.index)
    return records["Search_Text"].str.contains(needle, regex=False)


def combined_mask(records: pd.DataFrame, state: FilterState, *, apply_month: bool = True) -> pd.Series:
    """AND of the three clauses; ``apply_month=False`` drops the month clause only."""
    mask = category_mask(records, state.category) & search_mask(records, state.search)
    if apply_month:
        mask &= month_mask(records, state.month)
    return mask


def filter_records(records: pd.DataFrame, state: FilterState, *, apply_month: bool = True) -> pd.DataFrame:
    """Rows of ``records`` passing ``state``, in their original order."""
    if records.empty:
        return records
    return records[combined_mask(records, state, apply_month=apply_month)]
