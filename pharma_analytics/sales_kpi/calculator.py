# pharma_analytics/sales_kpi/calculator.py
"""
Per-period KPI calculator with rollup / raw-fact routing.

- read_rollup():  Precomputed Aggregate Reader (mv_sales_kpi_monthly)
- compute_raw():  Raw Fact Aggregator (selection + global + Pareto-80)
- calculate():    Router + one of the above for a single date range

No retry: a StoreQueryError from the queries layer propagates as is.
An optional cancel event is checked before each store round trip; once it
is set the period stops with CancelledError. A query already sent to the
store is not interrupted.
"""

import logging
import threading
import time
from concurrent.futures import CancelledError
from datetime import date
from typing import Optional, Sequence

from .constants import PARETO_THRESHOLD, ROLLUP_START_DATE
from .metrics import SalesKpiMetrics
from .models import DateRange, KpiMetrics, KpiRequest
from .queries import SalesKpiQueries
from .router import decide_route

logger = logging.getLogger(__name__)


def check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    """Raise CancelledError when the owning request has been cancelled."""
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"🛑 KPI period cancelled before {stage}")
        raise CancelledError(stage)


class SalesKpiCalculator:
    """
    Calculate KPI metrics for one period.

    Usage:
        calc = SalesKpiCalculator(SalesKpiQueries())
        metrics = calc.calculate(request)
    """

    def __init__(
        self,
        queries: SalesKpiQueries = None,
        earliest_rollup_month: date = ROLLUP_START_DATE,
        pareto_threshold: float = PARETO_THRESHOLD
    ):
        self.queries = queries or SalesKpiQueries()
        self.earliest_rollup_month = earliest_rollup_month
        self.pareto_threshold = pareto_threshold

    def calculate(
        self,
        request: KpiRequest,
        cancel_event: threading.Event = None
    ) -> KpiMetrics:
        """Route and compute metrics for request.date_range (comparison ignored)."""
        decision = decide_route(
            request.date_range,
            request.has_code_filter,
            self.earliest_rollup_month
        )

        if decision.use_aggregate:
            return self.read_rollup(request.date_range, request.pharmacy_ids, cancel_event)

        return self.compute_raw(
            request.date_range,
            request.pharmacy_ids,
            request.combined_codes,
            cancel_event
        )

    # =========================================================================
    # FAST PATH
    # =========================================================================

    def read_rollup(
        self,
        date_range: DateRange,
        pharmacy_ids: Optional[Sequence[str]] = None,
        cancel_event: threading.Event = None
    ) -> KpiMetrics:
        """Precomputed Aggregate Reader. Pareto count is not computed here (0)."""
        start_time = time.perf_counter()

        check_cancelled(cancel_event, "rollup_totals")
        rollup_df = self.queries.get_rollup_totals(date_range, pharmacy_ids)
        metrics = SalesKpiMetrics.from_rollup(rollup_df)

        logger.info(
            f"🚀 Rollup path {date_range.start} → {date_range.end}: "
            f"ca_ttc={metrics.revenue_ttc:,.2f} "
            f"({(time.perf_counter() - start_time) * 1000:.0f}ms)"
        )
        return metrics

    # =========================================================================
    # RAW FACT PATH
    # =========================================================================

    def compute_raw(
        self,
        date_range: DateRange,
        pharmacy_ids: Optional[Sequence[str]] = None,
        codes: Optional[Sequence[str]] = None,
        cancel_event: threading.Event = None
    ) -> KpiMetrics:
        """Raw Fact Aggregator: selection, global denominator and Pareto-80."""
        start_time = time.perf_counter()

        check_cancelled(cancel_event, "product_sales")
        product_df = self.queries.get_product_sales(date_range, pharmacy_ids, codes)
        check_cancelled(cancel_event, "global_totals")
        global_df = self.queries.get_global_totals(date_range, pharmacy_ids)

        metrics = SalesKpiMetrics(product_df, global_df).calculate_kpis(self.pareto_threshold)

        logger.info(
            f"🔍 Raw path {date_range.start} → {date_range.end}: "
            f"{metrics.selection_reference_count} refs, "
            f"pareto={metrics.pareto_reference_count}, "
            f"share={metrics.market_share_revenue_pct:.2f}% "
            f"({(time.perf_counter() - start_time) * 1000:.0f}ms)"
        )
        return metrics
