# pharma_analytics/errors.py
"""
Exception hierarchy for the KPI engine.

- ValidationError: malformed or missing request input. Raised at the
  request boundary, never silently defaulted.
- StoreQueryError: any failure reaching the external data store.
  Propagated immediately, no retry at this layer.
"""


class PharmaAnalyticsError(Exception):
    """Base class for KPI engine errors"""
    pass


class ValidationError(PharmaAnalyticsError, ValueError):
    """Request payload failed validation"""
    pass


class StoreQueryError(PharmaAnalyticsError):
    """Query against the data store failed"""

    def __init__(self, query_name: str, original: Exception = None):
        self.query_name = query_name
        self.original = original
        message = f"Store query '{query_name}' failed"
        if original is not None:
            message += f": {original}"
        super().__init__(message)
