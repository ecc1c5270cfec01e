# pharma_analytics/sales_kpi/comparison.py
"""
Comparison Period Evaluator.

Runs the primary period and the optional comparison period through the
same Router + (rollup | raw facts) pipeline, with the same pharmacy and
code filters. The two evaluations are independent and run concurrently.

Cancellation:
- PeriodEvaluation.cancel() cancels both periods (outer request aborted):
  pending futures are dropped and running periods see the shared cancel
  event and stop before their next store round trip (a query already
  sent is not interrupted)
- cancelling one future leaves the other untouched
- a failure in either period cancels the other and propagates: there are
  no partial results

Deltas / percentage changes are not computed here.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .calculator import SalesKpiCalculator
from .constants import COMPARISON_MAX_WORKERS
from .models import KpiMetrics, KpiRequest

logger = logging.getLogger(__name__)


class PeriodEvaluation:
    """Handle on the concurrently running primary / comparison evaluations."""

    def __init__(
        self,
        primary: Future,
        comparison: Optional[Future] = None,
        cancel_event: threading.Event = None
    ):
        self.primary = primary
        self.comparison = comparison
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> bool:
        """
        Cancel both periods.

        Returns True if neither future had started; running periods stop at
        their next round trip.
        """
        self.cancel_event.set()
        cancelled = self.primary.cancel()
        if self.comparison is not None:
            cancelled = self.comparison.cancel() and cancelled
        return cancelled

    def result(self) -> KpiMetrics:
        """Wait for both periods and nest the comparison under the primary result."""
        try:
            primary = self.primary.result()
            comparison = self.comparison.result() if self.comparison is not None else None
        except BaseException:
            self.cancel()
            raise

        return primary.with_comparison(comparison)


class ComparisonEvaluator:
    """
    Evaluate a KPI request and its optional comparison period.

    Usage:
        evaluator = ComparisonEvaluator(SalesKpiCalculator())
        metrics = evaluator.evaluate(request)
    """

    def __init__(
        self,
        calculator: SalesKpiCalculator = None,
        max_workers: int = COMPARISON_MAX_WORKERS
    ):
        self.calculator = calculator or SalesKpiCalculator()
        self.max_workers = max(1, max_workers)

    def submit(self, request: KpiRequest) -> PeriodEvaluation:
        """Start both evaluations and return immediately."""
        cancel_event = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="kpi-period"
        )
        try:
            primary = executor.submit(
                self.calculator.calculate,
                request.for_period(request.date_range),
                cancel_event
            )

            comparison = None
            if request.comparison_date_range is not None:
                logger.info(
                    f"📊 Comparison period {request.comparison_date_range.start} → "
                    f"{request.comparison_date_range.end}"
                )
                comparison = executor.submit(
                    self.calculator.calculate,
                    request.for_period(request.comparison_date_range),
                    cancel_event
                )
        finally:
            # Submitted work keeps running; the pool just stops accepting more
            executor.shutdown(wait=False)

        return PeriodEvaluation(primary, comparison, cancel_event)

    def evaluate(self, request: KpiRequest) -> KpiMetrics:
        return self.submit(request).result()
