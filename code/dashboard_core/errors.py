"""
errors.py

Exception types raised by the dashboard engine.

Only the load path raises. Filtering and aggregation are total over their
inputs: bad numbers become 0.0, missing keys fall into default buckets.
"""


class DashboardError(Exception):
    """Base class for dashboard failures."""
    pass


class SourceError(DashboardError):
    """Raised when the transaction source is unreachable or returns an unknown shape."""
    pass


class ConfigError(DashboardError, ValueError):
    """Raised when a required setting is missing or invalid."""
    pass
