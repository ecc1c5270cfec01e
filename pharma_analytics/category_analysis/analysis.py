# pharma_analytics/category_analysis/analysis.py
"""
Category drill-down: child buckets for a breadcrumb path, compacted to
top-N + Others.
"""

import logging
from typing import Any, Dict, List, Sequence

import pandas as pd

from ..config import config
from ..sales_kpi.metrics import to_number
from ..sales_kpi.models import KpiRequest
from ..sales_kpi.validators import normalize_hierarchy_request, normalize_kpi_request, normalize_path
from .constants import TOP_N
from .hierarchy import DrillDownState, HierarchyNode, compact_top_n
from .queries import CategoryQueries

logger = logging.getLogger(__name__)


def frame_to_nodes(df: pd.DataFrame) -> List[HierarchyNode]:
    """Convert a (name, value, count) DataFrame to HierarchyNode list."""
    if df is None or df.empty:
        return []

    return [
        HierarchyNode(
            name=str(row['name']),
            value=to_number(row['value']),
            count=int(to_number(row['count'])),
        )
        for _, row in df.iterrows()
    ]


class CategoryAnalysis:
    """
    Usage:
        analysis = CategoryAnalysis()
        nodes = analysis.get_level(request, path=['Médicaments'], show_others=False)
    """

    def __init__(self, queries: CategoryQueries = None, top_n: int = None):
        self.queries = queries or CategoryQueries()
        self.top_n = top_n or config.get_app_setting("HIERARCHY_TOP_N", TOP_N)

    def get_level(
        self,
        request: Any,
        path: Sequence[str] = (),
        show_others: bool = False
    ) -> List[HierarchyNode]:
        """
        Compacted child buckets under path.

        Args:
            request: KpiRequest or raw request payload
            path: Breadcrumb labels (validated, at most 5)
            show_others: Return the Others tail instead of top N + Others
        """
        request = normalize_kpi_request(request)
        labels = normalize_path(list(path))

        nodes = frame_to_nodes(self.queries.get_child_nodes(request, labels))
        result = compact_top_n(nodes, show_others=show_others, top_n=self.top_n)

        logger.info(
            f"🌳 Category level {len(labels)} {labels}: {len(nodes)} nodes → "
            f"{len(result)} shown (show_others={show_others})"
        )
        return result

    def get_state_level(self, request: KpiRequest, state: DrillDownState) -> List[HierarchyNode]:
        return self.get_level(request, state.path, state.show_others)

    def handle_request(self, payload: Any, show_others: bool = False) -> List[Dict[str, Any]]:
        """{request, path} payload -> list of node dicts."""
        request, path = normalize_hierarchy_request(payload)
        return [node.to_dict() for node in self.get_level(request, path, show_others)]
