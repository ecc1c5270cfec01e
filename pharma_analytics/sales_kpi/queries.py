# pharma_analytics/sales_kpi/queries.py
"""
SQL Queries and Data Loading for Sales KPIs

Handles all store interactions for the KPI engine:
- Monthly rollup totals from mv_sales_kpi_monthly (fast path)
- Per-product sales of the filtered selection (raw facts)
- Global totals over date range + pharmacy scope (market-share denominator)

Sale facts join data_sales -> data_inventorysnapshot -> data_internalproduct.
Facts whose weighted average cost is not strictly positive are excluded
from every margin-bearing query.

The queries are separate round trips and are not wrapped in one snapshot:
concurrent writes between them can make compound metrics (market share)
use slightly different data.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
from sqlalchemy.engine import Engine

from ..db import get_db_engine, read_frame
from .constants import (
    SALES_TABLE,
    SNAPSHOT_TABLE,
    INTERNAL_PRODUCT_TABLE,
    ROLLUP_TABLE,
)
from .models import DateRange

logger = logging.getLogger(__name__)

# Shared fact join; margin uses the tax-exclusive price
FACT_FROM = f"""
    FROM {SALES_TABLE} s
    JOIN {SNAPSHOT_TABLE} ins ON s.product_id = ins.id
    JOIN {INTERNAL_PRODUCT_TABLE} ip ON ins.product_id = ip.id
"""

REVENUE_EXPR = "s.quantity * ins.price_with_tax"
MARGIN_EXPR = (
    "s.quantity * ((ins.price_with_tax / (1 + COALESCE(ip.tva_rate, 0) / 100.0))"
    " - ins.weighted_average_price)"
)


def month_start(day) -> str:
    return day.replace(day=1).isoformat()


def build_fact_filters(
    date_range: DateRange,
    pharmacy_ids: Optional[Sequence[str]] = None,
    codes: Optional[Sequence[str]] = None
) -> Tuple[str, Dict, List[str]]:
    """
    Build the WHERE clause shared by raw-fact queries.

    Returns:
        Tuple of (where_sql, params, expanding_param_names)
    """
    where = """
        WHERE s.date >= :start_date AND s.date <= :end_date
          AND ins.weighted_average_price > 0
    """
    params = {
        'start_date': date_range.start.isoformat(),
        'end_date': date_range.end.isoformat(),
    }
    expanding = []

    if codes:
        where += " AND ip.code_13_ref_id IN :codes"
        params['codes'] = list(codes)
        expanding.append('codes')

    if pharmacy_ids:
        where += " AND ip.pharmacy_id IN :pharmacy_ids"
        params['pharmacy_ids'] = list(pharmacy_ids)
        expanding.append('pharmacy_ids')

    return where, params, expanding


class SalesKpiQueries:
    """
    Data loading class for sales KPIs.

    Usage:
        queries = SalesKpiQueries()
        products_df = queries.get_product_sales(date_range, pharmacy_ids, codes)
        global_df = queries.get_global_totals(date_range, pharmacy_ids)
    """

    def __init__(self, engine: Engine = None):
        """
        Args:
            engine: Optional engine; defaults to the shared singleton
        """
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    # =========================================================================
    # ROLLUP (FAST PATH)
    # =========================================================================

    def get_rollup_totals(
        self,
        date_range: DateRange,
        pharmacy_ids: Optional[Sequence[str]] = None
    ) -> pd.DataFrame:
        """
        Sum rollup rows for the months covered by date_range.

        Returns:
            One-row DataFrame: row_count, quantite_vendue, ca_ttc,
            montant_marge, nb_references_selection
        """
        query = f"""
            SELECT
                COUNT(*) AS row_count,
                SUM(quantite_vendue) AS quantite_vendue,
                SUM(ca_ttc) AS ca_ttc,
                SUM(montant_marge) AS montant_marge,
                SUM(nb_references_selection) AS nb_references_selection
            FROM {ROLLUP_TABLE}
            WHERE periode >= :start_month
              AND periode <= :end_month
        """
        params = {
            'start_month': month_start(date_range.start),
            'end_month': month_start(date_range.end),
        }
        expanding = []

        if pharmacy_ids:
            query += " AND pharmacy_id IN :pharmacy_ids"
            params['pharmacy_ids'] = list(pharmacy_ids)
            expanding.append('pharmacy_ids')

        return self._execute_query(query, params, "rollup_totals", expanding)

    # =========================================================================
    # RAW FACTS (FLEXIBLE PATH)
    # =========================================================================

    def get_product_sales(
        self,
        date_range: DateRange,
        pharmacy_ids: Optional[Sequence[str]] = None,
        codes: Optional[Sequence[str]] = None
    ) -> pd.DataFrame:
        """
        Per-product totals over the full filter set (selection).

        Returns:
            DataFrame: product_code, quantity, revenue, margin
        """
        where, params, expanding = build_fact_filters(date_range, pharmacy_ids, codes)

        query = f"""
            SELECT
                ip.code_13_ref_id AS product_code,
                SUM(s.quantity) AS quantity,
                SUM({REVENUE_EXPR}) AS revenue,
                SUM({MARGIN_EXPR}) AS margin
            {FACT_FROM}
            {where}
            GROUP BY ip.code_13_ref_id
        """

        return self._execute_query(query, params, "product_sales", expanding)

    def get_global_totals(
        self,
        date_range: DateRange,
        pharmacy_ids: Optional[Sequence[str]] = None
    ) -> pd.DataFrame:
        """
        Totals over date range + pharmacy scope, no code filter.

        Returns:
            One-row DataFrame: quantity, revenue, margin, reference_count
        """
        where, params, expanding = build_fact_filters(date_range, pharmacy_ids)

        query = f"""
            SELECT
                SUM(s.quantity) AS quantity,
                SUM({REVENUE_EXPR}) AS revenue,
                SUM({MARGIN_EXPR}) AS margin,
                COUNT(DISTINCT ip.code_13_ref_id) AS reference_count
            {FACT_FROM}
            {where}
        """

        return self._execute_query(query, params, "global_totals", expanding)

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _execute_query(
        self,
        query: str,
        params: dict,
        query_name: str = "query",
        expanding: Sequence[str] = ()
    ) -> pd.DataFrame:
        """Execute SQL query and return DataFrame. Raises StoreQueryError."""
        return read_frame(self.engine, query, params, query_name, expanding)
