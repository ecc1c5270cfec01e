# pharma_analytics/category_analysis/queries.py
"""
SQL Queries for Category Analysis

Loads the child buckets of one drill-down level: for path = [] the level-0
segments, for path = ['A'] the level-1 segments under 'A', and so on.
Reads mv_product_stats_monthly joined with the global product catalogue.

value = tax-inclusive sales, count = distinct products (EAN13).
"""

import logging
from typing import Sequence

import pandas as pd
from sqlalchemy.engine import Engine

from ..db import get_db_engine, read_frame
from ..errors import ValidationError
from ..sales_kpi.models import KpiRequest
from ..sales_kpi.queries import month_start
from .constants import (
    GLOBAL_PRODUCT_TABLE,
    INVALID_SEGMENT_LABELS,
    MAX_DEPTH,
    PRODUCT_ROLLUP_TABLE,
    SEGMENT_COLUMN_TEMPLATE,
)

logger = logging.getLogger(__name__)


class CategoryQueries:
    """
    Usage:
        queries = CategoryQueries()
        nodes_df = queries.get_child_nodes(request, ['Médicaments'])
    """

    def __init__(self, engine: Engine = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    def get_child_nodes(
        self,
        request: KpiRequest,
        path: Sequence[str]
    ) -> pd.DataFrame:
        """
        Child buckets of the level identified by path.

        Args:
            request: Normalized KPI request (date range + filters)
            path: Breadcrumb labels, at most MAX_DEPTH long

        Returns:
            DataFrame: name, value, count (unsorted)
        """
        level = len(path)
        if level > MAX_DEPTH:
            raise ValidationError(f"Path depth {level} exceeds maximum of {MAX_DEPTH}")

        segment_col = SEGMENT_COLUMN_TEMPLATE.format(level=level)

        query = f"""
            SELECT
                {segment_col} AS name,
                SUM(mv.ttc_sold) AS value,
                COUNT(DISTINCT mv.ean13) AS count
            FROM {PRODUCT_ROLLUP_TABLE} mv
            JOIN {GLOBAL_PRODUCT_TABLE} gp ON gp.code_13_ref = mv.ean13
            WHERE mv.month >= :start_month
              AND mv.month <= :end_date
              AND {segment_col} IS NOT NULL
              AND {segment_col} NOT IN :invalid_labels
        """
        params = {
            'start_month': month_start(request.date_range.start),
            'end_date': request.date_range.end.isoformat(),
            'invalid_labels': list(INVALID_SEGMENT_LABELS),
        }
        expanding = ['invalid_labels']

        if request.has_pharmacy_filter:
            query += " AND mv.pharmacy_id IN :pharmacy_ids"
            params['pharmacy_ids'] = list(request.pharmacy_ids)
            expanding.append('pharmacy_ids')

        if request.has_code_filter:
            query += " AND mv.ean13 IN :codes"
            params['codes'] = list(request.combined_codes)
            expanding.append('codes')

        for idx, label in enumerate(path):
            param_name = f"segment_l{idx}"
            query += f" AND {SEGMENT_COLUMN_TEMPLATE.format(level=idx)} = :{param_name}"
            params[param_name] = label

        query += f" GROUP BY {segment_col}"

        return read_frame(self.engine, query, params, f"category_nodes_l{level}", expanding)
