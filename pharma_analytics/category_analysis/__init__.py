# pharma_analytics/category_analysis/__init__.py
"""
Category Analysis Module

Hierarchical drill-down over product segments with top-N + Others
compaction.

Components:
- hierarchy: compact_top_n(), HierarchyNode, DrillDownState
- queries: child buckets of one drill-down level
- analysis: CategoryAnalysis (queries + compaction)

Usage:
    from pharma_analytics.category_analysis import CategoryAnalysis, DrillDownState

    state = DrillDownState().drill_in("Médicaments")
    nodes = CategoryAnalysis().get_state_level(request, state)
"""

from .analysis import CategoryAnalysis, frame_to_nodes
from .hierarchy import (
    DrillDownState,
    HierarchyNode,
    compact_top_n,
    is_others_name,
    others_label,
)
from .queries import CategoryQueries
from .constants import TOP_N, MAX_DEPTH

__all__ = [
    'CategoryAnalysis',
    'CategoryQueries',
    'DrillDownState',
    'HierarchyNode',
    'compact_top_n',
    'frame_to_nodes',
    'is_others_name',
    'others_label',
    'TOP_N',
    'MAX_DEPTH',
]
