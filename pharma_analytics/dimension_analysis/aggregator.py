# pharma_analytics/dimension_analysis/aggregator.py
"""
Parametrized dimension aggregator: "my pharmacy vs group average, ranked".

One implementation for the laboratory / product / pharmacy tables. The
compared pharmacies are always passed in explicitly. Ranks are computed
once over the full filtered set, so they do not change with sorting or
paging of the displayed table.
"""

import logging
from typing import Any, Dict, Iterable, List, Sequence

import pandas as pd

from ..config import config
from ..errors import ValidationError
from ..sales_kpi.models import KpiRequest
from ..sorting import DEFAULT_PAGE_SIZE, Page, sort_and_paginate
from .constants import DEFAULT_RANK_BASIS, DIMENSIONS, METRICS, RANK_BASES
from .queries import DimensionQueries

logger = logging.getLogger(__name__)


def _guarded_pct(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    return (numerator / denominator * 100).where(denominator > 0, 0.0)


class DimensionAggregator:
    """
    Usage:
        aggregator = DimensionAggregator('laboratory', rank_basis='margin')
        table = aggregator.aggregate(sales_df, my_pharmacy_ids=['ph-1'])
        page = aggregator.paginate(table, sort_by='my_revenue', descending=True)

        # or straight from a request (pharmacyIds = my pharmacies)
        table = aggregator.aggregate_request(request)
    """

    def __init__(self, dimension: str, rank_basis: str = DEFAULT_RANK_BASIS):
        if dimension not in DIMENSIONS:
            raise ValidationError(
                f"Unknown dimension '{dimension}' (expected one of {sorted(DIMENSIONS)})"
            )
        if rank_basis not in RANK_BASES:
            raise ValidationError(
                f"Unknown rank basis '{rank_basis}' (expected one of {RANK_BASES})"
            )
        self.dimension = dimension
        self.rank_basis = rank_basis

    def _empty_result(self) -> pd.DataFrame:
        columns = ['dimension_key']
        for metric in METRICS:
            columns += [f'my_{metric}', f'group_total_{metric}', f'group_avg_{metric}']
        columns += [
            'my_margin_rate_pct', 'group_margin_rate_pct',
            'my_market_share_pct', 'my_rank', 'group_rank',
        ]
        return pd.DataFrame(columns=columns)

    def aggregate(
        self,
        sales_df: pd.DataFrame,
        my_pharmacy_ids: Iterable[str] = ()
    ) -> pd.DataFrame:
        """
        Build the comparison table.

        Args:
            sales_df: dimension_key, pharmacy_id, quantity, revenue, margin
            my_pharmacy_ids: Pharmacies whose figures are "mine"

        Returns:
            One row per dimension member, ordered by my_rank then key
        """
        if sales_df is None or sales_df.empty:
            return self._empty_result()

        df = sales_df.copy()
        for metric in METRICS:
            df[metric] = pd.to_numeric(df[metric], errors='coerce').fillna(0).astype(float)

        pharmacy_count = max(int(df['pharmacy_id'].nunique()), 1)
        my_ids = list(my_pharmacy_ids or [])

        group = df.groupby('dimension_key')[METRICS].sum()
        mine = df[df['pharmacy_id'].isin(my_ids)].groupby('dimension_key')[METRICS].sum()

        result = pd.DataFrame(index=group.index)
        for metric in METRICS:
            result[f'my_{metric}'] = mine[metric].reindex(group.index).fillna(0.0)
            result[f'group_total_{metric}'] = group[metric]
            result[f'group_avg_{metric}'] = group[metric] / pharmacy_count

        result['my_margin_rate_pct'] = _guarded_pct(result['my_margin'], result['my_revenue'])
        result['group_margin_rate_pct'] = _guarded_pct(
            result['group_total_margin'], result['group_total_revenue']
        )

        my_total_revenue = result['my_revenue'].sum()
        result['my_market_share_pct'] = (
            result['my_revenue'] / my_total_revenue * 100 if my_total_revenue > 0 else 0.0
        )

        result['my_rank'] = (
            result[f'my_{self.rank_basis}'].rank(ascending=False, method='min').astype(int)
        )
        result['group_rank'] = (
            result[f'group_total_{self.rank_basis}'].rank(ascending=False, method='min').astype(int)
        )

        result = (
            result.reset_index()
            .sort_values(['my_rank', 'dimension_key'], kind='mergesort')
            .reset_index(drop=True)
        )

        logger.info(
            f"📋 {self.dimension} table: {len(result)} members, "
            f"{pharmacy_count} pharmacies, rank_basis={self.rank_basis}"
        )
        return result

    def aggregate_request(
        self,
        request: KpiRequest,
        queries: DimensionQueries = None
    ) -> pd.DataFrame:
        """Load the whole group for request and compare request.pharmacy_ids against it."""
        queries = queries or DimensionQueries()
        sales_df = queries.get_dimension_sales(request, self.dimension)
        return self.aggregate(sales_df, my_pharmacy_ids=request.pharmacy_ids or ())

    def paginate(
        self,
        table: pd.DataFrame,
        sort_by: str = None,
        descending: bool = True,
        page: int = 1,
        page_size: int = None
    ) -> Page[Dict[str, Any]]:
        """Sort + page the aggregated table (ranks are kept as computed)."""
        if sort_by is not None and sort_by not in table.columns:
            raise ValidationError(f"Unknown sort column '{sort_by}'")

        page_size = page_size or config.get_app_setting("DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)

        records: List[Dict[str, Any]] = table.to_dict('records')
        key = (lambda row: row[sort_by]) if sort_by else None
        return sort_and_paginate(records, key=key, descending=descending, page=page, page_size=page_size)
