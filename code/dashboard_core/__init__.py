"""
Filter/aggregation engine behind the transaction dashboard.
"""

from .aggregates import Aggregates, CategoryTotal, MonthTotal, OTHERS, build_aggregates
from .errors import ConfigError, DashboardError, SourceError
from .filters import ALL, FilterState, filter_records
from .pipeline import PipelineCoordinator, Snapshot, Totals
from .records import RecordStore, parse_amount
from .selection import CATEGORY, MONTH, SelectionState
from .source import fetch_rows, load_store

__all__ = [
    "ALL",
    "Aggregates",
    "CATEGORY",
    "CategoryTotal",
    "ConfigError",
    "DashboardError",
    "FilterState",
    "MONTH",
    "MonthTotal",
    "OTHERS",
    "PipelineCoordinator",
    "RecordStore",
    "SelectionState",
    "Snapshot",
    "SourceError",
    "Totals",
    "build_aggregates",
    "fetch_rows",
    "filter_records",
    "load_store",
    "parse_amount",
]
