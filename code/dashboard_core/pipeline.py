"""
pipeline.py

Pipeline Coordinator.

Owns the Active Filter State and the Selection State for one dashboard
session and turns every input event into one consistent Snapshot:

    event -> mutate state -> filter -> aggregate (context rule) -> totals -> emit

Recomputes are serialized by a lock, so a debounced search firing on a timer
thread can never interleave with a click or dropdown handler.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import pandas as pd

from .aggregates import Aggregates, build_aggregates
from .debounce import DEFAULT_DELAY_SECONDS, SearchDebouncer
from .filters import ALL, FilterState, filter_records
from .logging_setup import get_logger
from .records import RecordStore
from .selection import CATEGORY, MONTH, SelectionState

logger = get_logger("dashboard_core.pipeline")


@dataclass(frozen=True)
class Totals:
    income: float
    expenses: float
    count: int

    @property
    def net(self) -> float:
        return self.income - self.expenses


@dataclass(frozen=True)
class Snapshot:
    """Everything the renderers need from one pipeline run."""

    records: pd.DataFrame
    aggregates: Aggregates
    totals: Totals
    filters: FilterState
    selection: SelectionState


def compute_totals(records: pd.DataFrame) -> Totals:
    return Totals(
        income=float(records["Income"].sum()),
        expenses=float(records["Expense"].sum()),
        count=int(len(records)),
    )


def records_for_table(records: pd.DataFrame) -> pd.DataFrame:
    """Records ordered by date; unknown dates go last, ties keep source order."""
    return records.sort_values("Date", kind="stable", na_position="last")


class PipelineCoordinator:
    def __init__(
        self,
        store: RecordStore,
        filters: Optional[FilterState] = None,
        selection: Optional[SelectionState] = None,
    ):
        self._store = store
        self._filters = filters or FilterState()
        self._selection = selection or SelectionState()
        self._listeners: List[Callable[[Snapshot], None]] = []
        self._lock = threading.RLock()
        self._last: Optional[Snapshot] = None

    # ---------- state access ----------

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def last_snapshot(self) -> Optional[Snapshot]:
        return self._last

    def month_options(self) -> List[str]:
        return self._store.month_options()

    def category_options(self) -> List[str]:
        return self._store.category_options()

    def subscribe(self, listener: Callable[[Snapshot], None]) -> None:
        self._listeners.append(listener)

    # ---------- pipeline ----------

    def recompute(self) -> Snapshot:
        with self._lock:
            full = self._store.records
            filtered = filter_records(full, self._filters)
            snapshot = Snapshot(
                records=filtered,
                aggregates=build_aggregates(full, filtered, self._filters),
                totals=compute_totals(filtered),
                filters=copy.copy(self._filters),
                selection=copy.copy(self._selection),
            )
            self._last = snapshot
            logger.debug(
                "Recomputed: month=%s category=%s search=%r -> %d of %d records",
                self._filters.month, self._filters.category, self._filters.search,
                len(filtered), len(full),
            )
            for listener in self._listeners:
                listener(snapshot)
            return snapshot

    # ---------- input events ----------

    def set_month(self, month: Optional[str]) -> Snapshot:
        """Month dropdown changed."""
        with self._lock:
            self._filters.month = month or ALL
            self._selection.set_from_filter(MONTH, self._filters.month)
            return self.recompute()

    def set_category(self, category: Optional[str]) -> Snapshot:
        """Category dropdown changed."""
        with self._lock:
            self._filters.category = category or ALL
            self._selection.set_from_filter(CATEGORY, self._filters.category)
            return self.recompute()

    def set_search(self, text: Optional[str]) -> Snapshot:
        with self._lock:
            self._filters.search = text or ""
            return self.recompute()

    def click(self, axis: str, index: int, labels: Sequence[str], bucket_index: Optional[int] = None) -> None:
        """Chart element ``index`` clicked; ``labels`` are that chart's labels right now."""
        with self._lock:
            if not self._selection.click(axis, index, labels, bucket_index):
                logger.debug("Ignored click on %s axis at index %r", axis, index)
                return
            self._selection.project(self._filters, axis)
            self.recompute()

    def clear_filters(self) -> Snapshot:
        """Reset both selections and both axis filters, then recompute once."""
        with self._lock:
            self._selection.clear()
            self._selection.project(self._filters)
            return self.recompute()

    def search_debouncer(self, delay: float = DEFAULT_DELAY_SECONDS, **kwargs) -> SearchDebouncer:
        """Debouncer whose completed timers feed set_search."""
        return SearchDebouncer(self.set_search, delay=delay, **kwargs)
