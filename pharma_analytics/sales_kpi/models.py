# pharma_analytics/sales_kpi/models.py
"""
Request and result types for the Sales KPI engine.

All types are frozen dataclasses: a KpiRequest is immutable once
normalized and metrics objects are built once per request.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, Optional, Tuple

from .constants import METRIC_FIELDS


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def to_dict(self) -> Dict[str, str]:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}


@dataclass(frozen=True)
class KpiRequest:
    """Canonical KPI request. Optional filters are None when absent."""

    date_range: DateRange
    comparison_date_range: Optional[DateRange] = None
    product_codes: Optional[Tuple[str, ...]] = None
    laboratory_codes: Optional[Tuple[str, ...]] = None
    category_codes: Optional[Tuple[str, ...]] = None
    pharmacy_ids: Optional[Tuple[str, ...]] = None

    @property
    def combined_codes(self) -> Tuple[str, ...]:
        """Product, laboratory and category codes unioned (order kept, no duplicates)."""
        codes = (
            (self.product_codes or ())
            + (self.laboratory_codes or ())
            + (self.category_codes or ())
        )
        return tuple(dict.fromkeys(codes))

    @property
    def has_code_filter(self) -> bool:
        return len(self.combined_codes) > 0

    @property
    def has_pharmacy_filter(self) -> bool:
        return bool(self.pharmacy_ids)

    def for_period(self, date_range: DateRange) -> 'KpiRequest':
        """Same filters over another date range, without a comparison range."""
        return replace(self, date_range=date_range, comparison_date_range=None)


@dataclass(frozen=True)
class SelectionMetrics:
    quantity: float = 0.0
    revenue: float = 0.0
    margin: float = 0.0
    reference_count: int = 0


@dataclass(frozen=True)
class GlobalMetrics:
    """Date range + pharmacy scope without code filter (market-share denominator)."""
    quantity: float = 0.0
    revenue: float = 0.0
    margin: float = 0.0
    reference_count: int = 0


@dataclass(frozen=True)
class ParetoResult:
    reference_count: int = 0
    threshold: float = 0.8


@dataclass(frozen=True)
class KpiMetrics:
    """
    Externally visible KPI result for one period.

    `comparison` holds the metrics of the comparison period (without meta),
    `query_time_ms` and `cached` are set by the service once the request
    completes.
    """

    quantity_sold: float = 0.0
    revenue_ttc: float = 0.0
    market_share_revenue_pct: float = 0.0
    market_share_margin_pct: float = 0.0
    selection_reference_count: int = 0
    pareto_reference_count: int = 0
    margin_amount: float = 0.0
    margin_rate_pct: float = 0.0
    used_materialized_view: bool = False
    comparison: Optional['KpiMetrics'] = None
    query_time_ms: Optional[float] = None
    cached: bool = False

    @classmethod
    def zero(cls, used_materialized_view: bool) -> 'KpiMetrics':
        """All-zero shape for an empty but valid result set."""
        return cls(used_materialized_view=used_materialized_view)

    def with_comparison(self, comparison: Optional['KpiMetrics']) -> 'KpiMetrics':
        return replace(self, comparison=comparison)

    def with_meta(self, query_time_ms: float, cached: bool = False) -> 'KpiMetrics':
        return replace(self, query_time_ms=query_time_ms, cached=cached)

    def metric_values(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for attr, wire in METRIC_FIELDS.items()}

    def to_dict(self, include_meta: bool = True) -> Dict[str, Any]:
        """Serialize to the wire shape (French keys)."""
        payload = self.metric_values()

        if not include_meta:
            return payload

        if self.comparison is not None:
            payload['comparison'] = self.comparison.to_dict(include_meta=False)
        payload['queryTime'] = self.query_time_ms if self.query_time_ms is not None else 0
        payload['cached'] = self.cached
        payload['usedMaterializedView'] = self.used_materialized_view
        return payload
