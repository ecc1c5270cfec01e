# pharma_analytics/dimension_analysis/queries.py
"""
SQL Queries for Dimension Analysis

One query for every dimension table: raw sale facts grouped by
(dimension key, pharmacy), with the same date / cost / code / pharmacy
filters as the KPI raw-fact path.
"""

import logging

import pandas as pd
from sqlalchemy.engine import Engine

from ..db import get_db_engine, read_frame
from ..errors import ValidationError
from ..sales_kpi.constants import GLOBAL_PRODUCT_TABLE
from ..sales_kpi.models import KpiRequest
from ..sales_kpi.queries import FACT_FROM, MARGIN_EXPR, REVENUE_EXPR, build_fact_filters
from .constants import DIMENSIONS

logger = logging.getLogger(__name__)


class DimensionQueries:
    """
    Usage:
        queries = DimensionQueries()
        df = queries.get_dimension_sales(request, 'laboratory')
    """

    def __init__(self, engine: Engine = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    def get_dimension_sales(self, request: KpiRequest, dimension: str) -> pd.DataFrame:
        """
        Per (dimension_key, pharmacy_id) totals over the whole group.

        request.pharmacy_ids are "my" pharmacies, not a scope: every
        pharmacy is loaded so group totals and ranks cover the full group.

        Returns:
            DataFrame: dimension_key, pharmacy_id, quantity, revenue, margin
        """
        if dimension not in DIMENSIONS:
            raise ValidationError(
                f"Unknown dimension '{dimension}' (expected one of {sorted(DIMENSIONS)})"
            )

        key_expr = DIMENSIONS[dimension]
        where, params, expanding = build_fact_filters(
            request.date_range,
            None,
            request.combined_codes
        )

        query = f"""
            SELECT
                {key_expr} AS dimension_key,
                ip.pharmacy_id AS pharmacy_id,
                SUM(s.quantity) AS quantity,
                SUM({REVENUE_EXPR}) AS revenue,
                SUM({MARGIN_EXPR}) AS margin
            {FACT_FROM}
            LEFT JOIN {GLOBAL_PRODUCT_TABLE} gp ON gp.code_13_ref = ip.code_13_ref_id
            {where}
              AND {key_expr} IS NOT NULL
            GROUP BY {key_expr}, ip.pharmacy_id
        """

        return read_frame(self.engine, query, params, f"dimension_sales_{dimension}", expanding)
