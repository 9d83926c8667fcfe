"""
aggregates.py

Aggregation Engine: reduces a record subset into the three chart shapes.

- MonthlySummary:        income/expense per MonthKey, ascending by key
- CategoryDistribution:  top 9 categories by expense + one "Others" bucket
- TopExpenses:           first 5 of the same ranking (not of the capped list)

Distribution and top-N are cut from one ranking computed once per run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd

from .filters import ALL, FilterState, filter_records
from .records import UNCATEGORIZED

OTHERS = "Others"
DISTRIBUTION_LIMIT = 9
TOP_N = 5


@dataclass(frozen=True)
class MonthTotal:
    month_key: str
    income: float
    expense: float


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total_expense: float


@dataclass(frozen=True)
class Aggregates:
    monthly: List[MonthTotal] = field(default_factory=list)
    distribution: List[CategoryTotal] = field(default_factory=list)
    top_expenses: List[CategoryTotal] = field(default_factory=list)
    ranking: List[CategoryTotal] = field(default_factory=list)

    @property
    def month_labels(self) -> List[str]:
        return [m.month_key for m in self.monthly]

    @property
    def distribution_labels(self) -> List[str]:
        return [c.category for c in self.distribution]

    @property
    def top_labels(self) -> List[str]:
        return [c.category for c in self.top_expenses]

    @property
    def bucket_index(self) -> Optional[int]:
        """Index of the synthetic remainder slice in ``distribution``, if any."""
        return DISTRIBUTION_LIMIT if len(self.distribution) > DISTRIBUTION_LIMIT else None


def monthly_summary(records: pd.DataFrame) -> List[MonthTotal]:
    """Sum income and expense per MonthKey; rows without a key are skipped."""
    d = records[records["MonthKey"].ne("")]
    if d.empty:
        return []
    g = d.groupby("MonthKey", sort=True)[["Income", "Expense"]].sum().reset_index()
    return [
        MonthTotal(month_key=str(r.MonthKey), income=float(r.Income), expense=float(r.Expense))
        for r in g.itertuples(index=False)
    ]


def category_ranking(records: pd.DataFrame) -> List[CategoryTotal]:
    """
    Expense per category, descending, positive totals only.
    Ties keep the order in which categories first appear.
    """
    if records.empty:
        return []
    cats = records["Category"].where(records["Category"].ne(""), UNCATEGORIZED)
    sums = records["Expense"].groupby(cats, sort=False).sum()
    sums = sums[sums > 0].sort_values(ascending=False, kind="stable")
    return [CategoryTotal(category=str(k), total_expense=float(v)) for k, v in sums.items()]


def bucket_label(ranking: Sequence[CategoryTotal]) -> str:
    """Label of the synthetic remainder slice; never equal to a real category."""
    names = {c.category for c in ranking}
    label = OTHERS
    while label in names:
        label += " *"
    return label


def cap_distribution(ranking: Sequence[CategoryTotal], limit: int = DISTRIBUTION_LIMIT) -> List[CategoryTotal]:
    head = list(ranking[:limit])
    remainder = sum(c.total_expense for c in ranking[limit:])
    if remainder != 0:
        head.append(CategoryTotal(category=bucket_label(ranking), total_expense=float(remainder)))
    return head


def top_expenses(ranking: Sequence[CategoryTotal], n: int = TOP_N) -> List[CategoryTotal]:
    return list(ranking[:n])


def build_aggregates(full: pd.DataFrame, filtered: pd.DataFrame, state: FilterState) -> Aggregates:
    """Compute every chart aggregate for one pipeline run."""
    if state.month == ALL:
        monthly_source = filtered
    else:
        # Context rule: with a month selected the monthly chart keeps every
        # month visible. Only the month clause is dropped; category and
        # search still apply.
        monthly_source = filter_records(full, state, apply_month=False)

    ranking = category_ranking(filtered)
    return Aggregates(
        monthly=monthly_summary(monthly_source),
        distribution=cap_distribution(ranking),
        top_expenses=top_expenses(ranking),
        ranking=ranking,
    )
