# pharma_analytics/sales_kpi/service.py
"""
Sales KPI service: the request pipeline end to end.

    payload -> normalize_kpi_request -> ComparisonEvaluator
            -> (Router -> rollup | raw facts) x (primary, comparison)
            -> KpiMetrics (+ queryTime, cached)

handle_kpi_request() is the transport-facing boundary: it never raises and
returns (body, status) with an {error} body on failure.
"""

import logging
import time
from typing import Any, Dict, Tuple

from ..config import config
from ..errors import StoreQueryError, ValidationError
from .calculator import SalesKpiCalculator
from .comparison import ComparisonEvaluator
from .constants import COMPARISON_MAX_WORKERS, PARETO_THRESHOLD, ROLLUP_START_DATE
from .models import KpiMetrics
from .queries import SalesKpiQueries
from .validators import normalize_kpi_request, parse_date

logger = logging.getLogger(__name__)


class SalesKpiService:
    """
    Usage:
        service = SalesKpiService.from_config()
        metrics = service.get_kpis(payload)
        body = metrics.to_dict()
    """

    def __init__(self, evaluator: ComparisonEvaluator = None):
        self.evaluator = evaluator or ComparisonEvaluator()

    @classmethod
    def from_config(cls, queries: SalesKpiQueries = None) -> 'SalesKpiService':
        """Build the service from app settings (rollup start, Pareto threshold, workers)."""
        earliest = parse_date(config.get_app_setting("ROLLUP_START_DATE")) or ROLLUP_START_DATE
        calculator = SalesKpiCalculator(
            queries=queries,
            earliest_rollup_month=earliest,
            pareto_threshold=config.get_app_setting("PARETO_THRESHOLD", PARETO_THRESHOLD),
        )
        evaluator = ComparisonEvaluator(
            calculator,
            max_workers=config.get_app_setting("COMPARISON_MAX_WORKERS", COMPARISON_MAX_WORKERS),
        )
        return cls(evaluator)

    def get_kpis(self, payload: Any) -> KpiMetrics:
        """
        Validate payload and compute KPI metrics (with comparison if requested).

        Raises:
            ValidationError: invalid payload
            StoreQueryError: store failure (no retry)
        """
        start_time = time.perf_counter()

        request = normalize_kpi_request(payload)
        metrics = self.evaluator.evaluate(request)

        query_time_ms = round((time.perf_counter() - start_time) * 1000, 1)
        metrics = metrics.with_meta(query_time_ms=query_time_ms, cached=False)

        logger.info(
            f"✅ Sales KPI calculation completed: ca_ttc={metrics.revenue_ttc:,.2f}, "
            f"queryTime={query_time_ms}ms, comparison={metrics.comparison is not None}, "
            f"usedMV={metrics.used_materialized_view}"
        )
        return metrics


def handle_kpi_request(
    payload: Any,
    service: SalesKpiService = None
) -> Tuple[Dict[str, Any], int]:
    """
    Transport boundary for the KPI endpoint.

    Returns:
        (response body, HTTP status)
    """
    service = service or SalesKpiService.from_config()

    try:
        metrics = service.get_kpis(payload)
        return metrics.to_dict(), 200
    except ValidationError as e:
        logger.warning(f"❌ Invalid KPI request: {e}")
        return {'error': str(e)}, 400
    except StoreQueryError as e:
        logger.error(f"❌ Sales KPI calculation failed: {e}")
        return {'error': 'Internal server error'}, 500
    except Exception as e:
        logger.exception(f"❌ Unexpected error in KPI request: {e}")
        return {'error': 'Internal server error'}, 500
