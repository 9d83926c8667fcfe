"""
export.py

Export views over the filtered record list. Input records are never modified.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from .aggregates import category_ranking

EXPORT_COLUMNS = ["Date", "Description", "Category", "Income", "Expense"]


def export_frame(records: pd.DataFrame) -> pd.DataFrame:
    """Filtered records in source order; amounts keep their source spelling."""
    out = pd.DataFrame(index=records.index)
    out["Date"] = records["Date"].dt.strftime("%Y-%m-%d").fillna("")
    out["Description"] = records["Description"]
    out["Category"] = records["Category"]
    out["Income"] = records["Income_Text"]
    out["Expense"] = records["Expense_Text"]
    return out[EXPORT_COLUMNS].reset_index(drop=True)


def to_csv_text(records: pd.DataFrame) -> str:
    if records.empty:
        return ""
    return export_frame(records).to_csv(index=False)


def save_csv(records: pd.DataFrame, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    export_frame(records).to_csv(path, index=False)
    return path


def category_summary(records: pd.DataFrame) -> pd.DataFrame:
    """Full expense ranking with each category's share of the filtered expense total."""
    ranking = category_ranking(records)
    out = pd.DataFrame(
        {
            "Category": [c.category for c in ranking],
            "Total_Expense": [c.total_expense for c in ranking],
        }
    )
    total = float(records["Expense"].sum()) if not records.empty else 0.0
    if total > 0:
        out["Percentage"] = (out["Total_Expense"] / total * 100).round(1)
    else:
        out["Percentage"] = pd.Series(0.0, index=out.index)
    return out
