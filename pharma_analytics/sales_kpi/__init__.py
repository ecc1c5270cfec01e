# pharma_analytics/sales_kpi/__init__.py
"""
Sales KPI Module

KPI aggregation and query routing for pharmacy sales.

Components:
- validators: request normalization (KpiRequest)
- router: rollup vs raw-fact eligibility
- queries: SQL access (rollup, per-product sales, global totals)
- metrics: pandas calculations (selection, Pareto-80, guarded ratios)
- calculator: per-period rollup reader / raw-fact aggregator
- comparison: concurrent primary + comparison period evaluation
- service: end-to-end pipeline and transport boundary

Usage:
    from pharma_analytics.sales_kpi import SalesKpiService, handle_kpi_request

    body, status = handle_kpi_request({
        'dateRange': {'start': '2024-01-01', 'end': '2024-01-31'},
        'pharmacyIds': ['ph-1'],
    })
"""

from .models import (
    DateRange,
    KpiRequest,
    SelectionMetrics,
    GlobalMetrics,
    ParetoResult,
    KpiMetrics,
)
from .validators import normalize_kpi_request, normalize_hierarchy_request, parse_date
from .router import RouteDecision, decide_route, last_day_of_month
from .queries import SalesKpiQueries
from .metrics import SalesKpiMetrics, safe_pct
from .calculator import SalesKpiCalculator
from .comparison import ComparisonEvaluator, PeriodEvaluation
from .service import SalesKpiService, handle_kpi_request

from .constants import (
    ROLLUP_START_DATE,
    PARETO_THRESHOLD,
    METRIC_FIELDS,
)

__all__ = [
    # Models
    'DateRange',
    'KpiRequest',
    'SelectionMetrics',
    'GlobalMetrics',
    'ParetoResult',
    'KpiMetrics',

    # Pipeline
    'normalize_kpi_request',
    'normalize_hierarchy_request',
    'parse_date',
    'RouteDecision',
    'decide_route',
    'last_day_of_month',
    'SalesKpiQueries',
    'SalesKpiMetrics',
    'safe_pct',
    'SalesKpiCalculator',
    'ComparisonEvaluator',
    'PeriodEvaluation',
    'SalesKpiService',
    'handle_kpi_request',

    # Constants
    'ROLLUP_START_DATE',
    'PARETO_THRESHOLD',
    'METRIC_FIELDS',
]

__version__ = '1.0.0'
