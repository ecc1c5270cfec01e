# pharma_analytics/category_analysis/hierarchy.py
"""
Hierarchical Top-N Aggregator and drill-down state.

compact_top_n() turns an unsorted list of sibling buckets into a bounded
display set:
- <= N nodes:                 every node, ranked 1..len
- > N, show_others=False:     top N + one "Others (k)" node (rank N+1)
- > N, show_others=True:      the tail only, ranked N+1, N+2, ...

Percentages are always computed against the total of ALL input nodes, so a
node shows the same share on the Top-N screen and the Others screen.
Values are never rounded: sum(value) of the output equals sum(value) of the
input (top N + Others), and sum(percentage) is ~100.

DrillDownState is the breadcrumb stack: drill in (push), jump back
(truncate) or reset. Any path change leaves the Others view.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .constants import MAX_DEPTH, OTHERS_PREFIX, TOP_N

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HierarchyNode:
    name: str
    value: float
    count: int = 0
    percentage: Optional[float] = None
    rank: Optional[int] = None

    @property
    def is_others(self) -> bool:
        return is_others_name(self.name)

    def to_dict(self) -> Dict[str, Any]:
        payload = {'name': self.name, 'value': self.value, 'count': self.count}
        if self.percentage is not None:
            payload['percentage'] = self.percentage
        if self.rank is not None:
            payload['rank'] = self.rank
        return payload


def is_others_name(name: str) -> bool:
    return isinstance(name, str) and name.startswith(f"{OTHERS_PREFIX} (")


def others_label(remainder_count: int) -> str:
    return f"{OTHERS_PREFIX} ({remainder_count})"


def _percentage(value: float, total: float) -> float:
    return value / total * 100 if total else 0.0


def compact_top_n(
    nodes: Iterable[HierarchyNode],
    show_others: bool = False,
    top_n: int = TOP_N
) -> List[HierarchyNode]:
    """
    Compress sibling nodes into top-N (+ Others) or the Others tail.

    Args:
        nodes: Child buckets of the current level, any order
        show_others: True to return the tail (rank > N) instead
        top_n: Number of buckets shown individually

    Returns:
        Ranked list of HierarchyNode with percentages
    """
    # Stable: ties keep name order so ranks do not flicker between requests
    ordered = sorted(nodes, key=lambda node: (-node.value, node.name))
    total = sum(node.value for node in ordered)

    def ranked(items: List[HierarchyNode], first_rank: int) -> List[HierarchyNode]:
        return [
            replace(node, rank=first_rank + idx, percentage=_percentage(node.value, total))
            for idx, node in enumerate(items)
        ]

    if len(ordered) <= top_n:
        return ranked(ordered, 1)

    top, tail = ordered[:top_n], ordered[top_n:]

    if show_others:
        return ranked(tail, top_n + 1)

    others_value = sum(node.value for node in tail)
    others = HierarchyNode(
        name=others_label(len(tail)),
        value=others_value,
        count=sum(node.count for node in tail),
        percentage=_percentage(others_value, total),
        rank=top_n + 1,
    )
    return ranked(top, 1) + [others]


@dataclass(frozen=True)
class DrillDownState:
    """
    Breadcrumb path plus the Others toggle.

    Usage:
        state = DrillDownState()
        state = state.drill_in("Médicaments")
        state = state.select("Others (5)")     # open the tail
        state = state.jump_to(-1)              # back to root
    """

    path: Tuple[str, ...] = ()
    show_others: bool = False

    @property
    def depth(self) -> int:
        return len(self.path)

    def drill_in(self, label: str) -> 'DrillDownState':
        """Push one level. Ignored once the path is MAX_DEPTH deep."""
        if self.depth >= MAX_DEPTH:
            logger.debug(f"Drill-down ignored at max depth {MAX_DEPTH}: {label}")
            return self
        return DrillDownState(path=self.path + (label,), show_others=False)

    def jump_to(self, index: int) -> 'DrillDownState':
        """Truncate the path to path[:index + 1]; -1 returns to the root."""
        if index < 0:
            return self.reset()
        return DrillDownState(path=self.path[:index + 1], show_others=False)

    def reset(self) -> 'DrillDownState':
        return DrillDownState()

    def close_others(self) -> 'DrillDownState':
        return replace(self, show_others=False)

    def select(self, node_name: str) -> 'DrillDownState':
        """Handle a click on a node: Others opens the tail, anything else drills in."""
        if not node_name:
            return self
        if is_others_name(node_name):
            return replace(self, show_others=True)
        return self.drill_in(node_name)
