"""
records.py

Record Store: turns raw source rows into the canonical transaction table.

Canonical columns
-----------------
- Date (datetime64, NaT when missing/unparseable)
- Description, Category, MonthKey (str, "" when missing)
- Income, Expense (float, 0.0 when missing/unparseable)
- Income_Text, Expense_Text (str, amount as spelled in the source)
- Search_Text (str, lower-case haystack used by the search clause)

The table is built once at load time and never mutated afterwards.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List

import numpy as np
import pandas as pd

from .logging_setup import get_logger

logger = get_logger("dashboard_core.records")

UNCATEGORIZED = "Uncategorized"
NO_DESCRIPTION = "No description"

RECORD_COLUMNS = [
    "Date", "Description", "Category", "Income", "Expense", "MonthKey",
    "Income_Text", "Expense_Text", "Search_Text",
]

# lower-cased source header -> canonical column
_COLUMN_ALIASES = {
    "date": "Date",
    "fecha": "Date",
    "description": "Description",
    "descripcion": "Description",
    "descripción": "Description",
    "category": "Category",
    "categoria": "Category",
    "categoría": "Category",
    "income": "Income",
    "ingresos": "Income",
    "expense": "Expense",
    "expenses": "Expense",
    "gastos": "Expense",
    "monthkey": "MonthKey",
    "month_key": "MonthKey",
    "month": "MonthKey",
    "yearmonth": "MonthKey",
    "mes ano": "MonthKey",
    "mes año": "MonthKey",
    "mes_ano": "MonthKey",
}

_CURRENCY_RE = re.compile(r"[$€£¥\s ]")


def parse_amount(value: object) -> float:
    """
    Parse a spreadsheet amount into a float; anything unusable becomes 0.0.

    "10,50" -> 10.5, "1.234,56" -> 1234.56, "1,234.56" -> 1234.56,
    "(12)" -> -12.0, "" / None / "n/a" -> 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        f = float(value)
        return f if math.isfinite(f) else 0.0

    s = str(value).strip()
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    s = _CURRENCY_RE.sub("", s)

    if "," in s and "." in s:
        # right-most separator is the decimal one
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif s.count(",") == 1:
        s = s.replace(",", ".")
    elif s.count(",") > 1:
        s = s.replace(",", "")

    try:
        f = float(s)
    except ValueError:
        return 0.0
    if not math.isfinite(f):
        return 0.0
    return -f if negative else f


def _clean_text(series: pd.Series) -> pd.Series:
    def _one(v: object) -> str:
        if v is None:
            return ""
        if isinstance(v, float) and math.isnan(v):
            return ""
        return str(v).strip()

    return series.map(_one).astype(str)


# ISO dates (with or without a time part) are unambiguous; only the rest is read day-first
_ISO_DATE_RE = r"^\d{4}-\d{2}-\d{2}(?:$|[T ])"


def _parse_dates(series: pd.Series) -> pd.Series:
    text = _clean_text(series)
    text = text.mask(text.eq(""))
    iso = text.str.match(_ISO_DATE_RE, na=False)

    iso_dt = pd.to_datetime(text.where(iso), errors="coerce", format="ISO8601", utc=True)
    local_dt = pd.to_datetime(text.where(~iso), errors="coerce", dayfirst=True, format="mixed", utc=True)
    return iso_dt.where(iso, local_dt).dt.tz_localize(None)


def _canonical_frame(rows: List[dict]) -> pd.DataFrame:
    raw = pd.DataFrame(rows)
    out = pd.DataFrame(index=raw.index)

    # Several source headers may alias one canonical column; first non-blank wins.
    for col in raw.columns:
        canonical = _COLUMN_ALIASES.get(str(col).strip().lower())
        if canonical is None:
            continue
        values = raw[col]
        if canonical not in out.columns:
            out[canonical] = values
        else:
            blank = _clean_text(out[canonical]).eq("")
            out.loc[blank, canonical] = values[blank]
    return out


def normalize_rows(rows: Iterable[dict]) -> pd.DataFrame:
    """Build the canonical record table from raw source rows."""
    src = _canonical_frame(list(rows))
    empty = pd.Series([None] * len(src), index=src.index, dtype=object)

    df = pd.DataFrame(index=src.index)
    df["Date"] = _parse_dates(src["Date"] if "Date" in src.columns else empty)
    df["Description"] = _clean_text(src.get("Description", empty))
    df["Category"] = _clean_text(src.get("Category", empty))
    df["Income_Text"] = _clean_text(src.get("Income", empty))
    df["Expense_Text"] = _clean_text(src.get("Expense", empty))
    df["Income"] = src.get("Income", empty).map(parse_amount).astype(float)
    df["Expense"] = src.get("Expense", empty).map(parse_amount).astype(float)

    if "MonthKey" in src.columns:
        df["MonthKey"] = _clean_text(src["MonthKey"])
    else:
        df["MonthKey"] = df["Date"].dt.strftime("%Y-%m").fillna("").astype(str)

    df["Search_Text"] = (
        df["Description"] + " "
        + df["Category"] + " "
        + df["MonthKey"] + " "
        + df["Income_Text"] + " "
        + df["Expense_Text"]
    ).str.lower()

    return df[RECORD_COLUMNS].reset_index(drop=True)


class RecordStore:
    """Immutable full dataset, loaded once per dashboard session."""

    def __init__(self, records: pd.DataFrame):
        missing = [c for c in RECORD_COLUMNS if c not in records.columns]
        if missing:
            raise ValueError(f"Record table missing columns: {missing}")
        self._records = records[RECORD_COLUMNS].reset_index(drop=True)

    @classmethod
    def from_rows(cls, rows: Iterable[dict]) -> "RecordStore":
        store = cls(normalize_rows(rows))
        logger.debug("Normalized %d records", len(store))
        return store

    def quality(self) -> dict:
        """Counts of rows that fell back to defaults; shown as a banner, never fatal."""
        df = self._records
        unparsed = 0
        for amount, text in (("Income", "Income_Text"), ("Expense", "Expense_Text")):
            unparsed += int((df[text].ne("") & df[amount].eq(0.0) & ~df[text].str.match(r"^[\s(]*[$€£¥]?\s*0*[.,]?0*\)?$")).sum())
        return {
            "rows": int(len(df)),
            "date_parse_nulls": int(df["Date"].isna().sum()),
            "month_key_blank": int(df["MonthKey"].eq("").sum()),
            "category_blank": int(df["Category"].eq("").sum()),
            "amount_parse_zeroed": unparsed,
        }

    @property
    def records(self) -> pd.DataFrame:
        """The full table. Callers must treat it as read-only."""
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def month_options(self) -> List[str]:
        return sorted(x for x in self._records["MonthKey"].unique() if x)

    def category_options(self) -> List[str]:
        return sorted(x for x in self._records["Category"].unique() if x)
