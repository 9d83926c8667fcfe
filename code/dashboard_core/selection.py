"""
selection.py

Selection State machine for chart-driven filtering.

Two independent single-slot selections:
- MONTH axis     <- monthly comparison chart
- CATEGORY axis  <- expense distribution chart and top expenses chart (shared)

Clicking the element that is already selected clears the slot; clicking any
other element replaces it. Each slot projects into the FilterState field of
the same axis ("all" when empty).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .filters import ALL, FilterState

MONTH = "month"
CATEGORY = "category"
AXES = (MONTH, CATEGORY)


@dataclass
class SelectionState:
    selected_month: Optional[str] = None
    selected_category: Optional[str] = None

    def get(self, axis: str) -> Optional[str]:
        _check_axis(axis)
        return self.selected_month if axis == MONTH else self.selected_category

    def set(self, axis: str, value: Optional[str]) -> None:
        _check_axis(axis)
        if axis == MONTH:
            self.selected_month = value
        else:
            self.selected_category = value

    def toggle(self, axis: str, value: str) -> Optional[str]:
        """Select ``value`` on ``axis``, or clear it if it is already selected."""
        new_value = None if self.get(axis) == value else value
        self.set(axis, new_value)
        return new_value

    def click(self, axis: str, index: int, labels: Sequence[str], bucket_index: Optional[int] = None) -> bool:
        """
        Apply a click on element ``index`` of a chart whose labels are ``labels``.

        ``bucket_index`` marks the synthetic "Others" slice of the distribution
        chart. Returns False (and changes nothing) when the index does not
        resolve to a selectable label: out of range, blank, or that slice.
        """
        _check_axis(axis)
        if index is None or not 0 <= int(index) < len(labels):
            return False
        if bucket_index is not None and int(index) == int(bucket_index):
            return False
        value = labels[int(index)]
        if not value:
            return False
        self.toggle(axis, str(value))
        return True

    def set_from_filter(self, axis: str, filter_value: Optional[str]) -> None:
        """Mirror a dropdown choice into the slot ("all" clears it)."""
        self.set(axis, None if filter_value in (None, "", ALL) else filter_value)

    def clear(self) -> None:
        self.selected_month = None
        self.selected_category = None

    def project(self, state: FilterState, axis: Optional[str] = None) -> None:
        """Write one slot (or both when ``axis`` is None) into ``state``."""
        if axis in (None, MONTH):
            state.month = self.selected_month or ALL
        if axis in (None, CATEGORY):
            state.category = self.selected_category or ALL

    def to_dict(self) -> dict:
        return {"selected_month": self.selected_month, "selected_category": self.selected_category}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SelectionState":
        data = data or {}
        return cls(
            selected_month=data.get("selected_month") or None,
            selected_category=data.get("selected_category") or None,
        )


def _check_axis(axis: str) -> None:
    if axis not in AXES:
        raise ValueError(f"Unknown chart axis: {axis!r} (expected one of {AXES})")
