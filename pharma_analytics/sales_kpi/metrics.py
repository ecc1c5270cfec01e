# pharma_analytics/sales_kpi/metrics.py
"""
KPI Calculations for Sales KPIs

Handles all metric calculations on loaded DataFrames:
- Selection metrics (quantity, revenue, margin, distinct references)
- Global metrics (market-share denominator)
- Pareto-80 concentration (smallest top-revenue prefix reaching 80%)
- Guarded ratios (market share, margin rate)
- Rollup row conversion (fast path)

Every ratio returns 0 when its denominator is not strictly positive:
never NaN or Infinity.
"""

import logging
from typing import Any

import numpy as np
import pandas as pd

from .constants import PARETO_THRESHOLD, PARETO_TOLERANCE
from .models import GlobalMetrics, KpiMetrics, ParetoResult, SelectionMetrics

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = ['product_code', 'quantity', 'revenue', 'margin']


def to_number(value: Any) -> float:
    """Coerce a store value (Decimal, None, NaN) to float, 0 when missing."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if np.isnan(number) or np.isinf(number):
        return 0.0
    return number


def safe_pct(numerator: Any, denominator: Any) -> float:
    """numerator / denominator * 100, or 0 when the denominator is not > 0."""
    den = to_number(denominator)
    if den <= 0:
        return 0.0
    return to_number(numerator) / den * 100


class SalesKpiMetrics:
    """
    KPI calculations for the raw-fact path.

    Usage:
        metrics = SalesKpiMetrics(product_sales_df, global_totals_df)
        kpis = metrics.calculate_kpis()
    """

    def __init__(
        self,
        product_sales_df: pd.DataFrame,
        global_totals_df: pd.DataFrame = None
    ):
        """
        Args:
            product_sales_df: Per-product selection rows
                (product_code, quantity, revenue, margin)
            global_totals_df: One-row global totals
                (quantity, revenue, margin, reference_count)
        """
        self.product_df = self._preprocess(product_sales_df)
        self.global_df = global_totals_df if global_totals_df is not None else pd.DataFrame()

    @staticmethod
    def _preprocess(df: pd.DataFrame) -> pd.DataFrame:
        if df is None or df.empty:
            return pd.DataFrame(columns=PRODUCT_COLUMNS)

        df = df.copy()
        for col in ['quantity', 'revenue', 'margin']:
            df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0).astype(float)
        return df

    # =========================================================================
    # SELECTION / GLOBAL
    # =========================================================================

    def calculate_selection_metrics(self) -> SelectionMetrics:
        df = self.product_df

        if df.empty:
            return SelectionMetrics()

        return SelectionMetrics(
            quantity=float(df['quantity'].sum()),
            revenue=float(df['revenue'].sum()),
            margin=float(df['margin'].sum()),
            reference_count=int(df['product_code'].nunique()),
        )

    def calculate_global_metrics(self) -> GlobalMetrics:
        if self.global_df.empty:
            return GlobalMetrics()

        row = self.global_df.iloc[0]
        return GlobalMetrics(
            quantity=to_number(row.get('quantity')),
            revenue=to_number(row.get('revenue')),
            margin=to_number(row.get('margin')),
            reference_count=int(to_number(row.get('reference_count'))),
        )

    # =========================================================================
    # PARETO ANALYSIS
    # =========================================================================

    def calculate_pareto(self, threshold: float = PARETO_THRESHOLD) -> ParetoResult:
        """
        Count the top-revenue products needed to reach `threshold` of revenue.

        Products with non-positive revenue are not ranked. Ranking is revenue
        descending, then product code ascending.
        """
        df = self.product_df

        if df.empty:
            return ParetoResult(reference_count=0, threshold=threshold)

        ranked = df[df['product_code'].notna() & (df['revenue'] > 0)]
        if ranked.empty:
            return ParetoResult(reference_count=0, threshold=threshold)

        ranked = (
            ranked.groupby('product_code', as_index=False)['revenue'].sum()
            .sort_values(['revenue', 'product_code'], ascending=[False, True], kind='mergesort')
        )

        cumulative = ranked['revenue'].cumsum().to_numpy()
        target = cumulative[-1] * threshold

        reached = (cumulative >= target) | np.isclose(
            cumulative, target, rtol=PARETO_TOLERANCE, atol=0.0
        )
        count = int(np.argmax(reached)) + 1

        return ParetoResult(reference_count=count, threshold=threshold)

    # =========================================================================
    # KPI ASSEMBLY
    # =========================================================================

    def calculate_kpis(self, threshold: float = PARETO_THRESHOLD) -> KpiMetrics:
        selection = self.calculate_selection_metrics()
        global_metrics = self.calculate_global_metrics()
        pareto = self.calculate_pareto(threshold)

        return self.build_kpi_metrics(selection, global_metrics, pareto)

    @staticmethod
    def build_kpi_metrics(
        selection: SelectionMetrics,
        global_metrics: GlobalMetrics,
        pareto: ParetoResult
    ) -> KpiMetrics:
        """Derive ratios from selection and global metrics."""
        share_revenue = safe_pct(selection.revenue, global_metrics.revenue)
        share_margin = safe_pct(selection.margin, global_metrics.margin)

        # Not clamped: > 100 means selection and global diverged
        if share_revenue > 100 or share_margin > 100:
            logger.warning(
                f"⚠️ Market share above 100% (revenue={share_revenue:.2f}, "
                f"margin={share_margin:.2f}): selection and global queries disagree"
            )

        return KpiMetrics(
            quantity_sold=selection.quantity,
            revenue_ttc=selection.revenue,
            market_share_revenue_pct=share_revenue,
            market_share_margin_pct=share_margin,
            selection_reference_count=selection.reference_count,
            pareto_reference_count=pareto.reference_count,
            margin_amount=selection.margin,
            margin_rate_pct=safe_pct(selection.margin, selection.revenue),
            used_materialized_view=False,
        )

    # =========================================================================
    # ROLLUP CONVERSION
    # =========================================================================

    @staticmethod
    def from_rollup(rollup_df: pd.DataFrame) -> KpiMetrics:
        """
        Convert summed rollup totals to KpiMetrics.

        The rollup has no product grain: market shares are 100 by
        construction and the Pareto count is not computed (0).
        """
        if rollup_df is None or rollup_df.empty:
            return KpiMetrics.zero(used_materialized_view=True)

        row = rollup_df.iloc[0]
        if to_number(row.get('row_count')) == 0:
            return KpiMetrics.zero(used_materialized_view=True)

        revenue = to_number(row.get('ca_ttc'))
        margin = to_number(row.get('montant_marge'))

        return KpiMetrics(
            quantity_sold=to_number(row.get('quantite_vendue')),
            revenue_ttc=revenue,
            market_share_revenue_pct=100.0,
            market_share_margin_pct=100.0,
            selection_reference_count=int(to_number(row.get('nb_references_selection'))),
            pareto_reference_count=0,
            margin_amount=margin,
            margin_rate_pct=safe_pct(margin, revenue),
            used_materialized_view=True,
        )
