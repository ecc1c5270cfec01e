# pharma_analytics/dimension_analysis/__init__.py
"""
Dimension Analysis Module

"My pharmacy vs group" tables for any dimension (product, laboratory,
pharmacy) with ranks computed once over the full filtered set.

Usage:
    from pharma_analytics.dimension_analysis import DimensionAggregator, DimensionQueries

    df = DimensionQueries().get_dimension_sales(request, 'laboratory')
    table = DimensionAggregator('laboratory').aggregate(df, my_pharmacy_ids=['ph-1'])
"""

from .aggregator import DimensionAggregator
from .queries import DimensionQueries
from .constants import DIMENSIONS, METRICS, RANK_BASES

__all__ = [
    'DimensionAggregator',
    'DimensionQueries',
    'DIMENSIONS',
    'METRICS',
    'RANK_BASES',
]
