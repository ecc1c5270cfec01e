# tests/test_hierarchy.py
import pytest

from pharma_analytics.category_analysis.hierarchy import (
    DrillDownState,
    HierarchyNode,
    compact_top_n,
    is_others_name,
    others_label,
)

TOP_VALUES = [130, 120, 110, 100, 90, 80, 70, 60, 50, 40]
TAIL_VALUES = [35, 35, 30, 25, 25]


@pytest.fixture
def fifteen_nodes():
    values = TOP_VALUES + TAIL_VALUES
    nodes = [
        HierarchyNode(name=f"Segment {idx:02d}", value=float(value), count=idx + 1)
        for idx, value in enumerate(values)
    ]
    # any input order
    return list(reversed(nodes))


class TestTopN:

    def test_top_ten_plus_others(self, fifteen_nodes):
        result = compact_top_n(fifteen_nodes)

        assert len(result) == 11
        assert [node.rank for node in result] == list(range(1, 12))
        assert [node.value for node in result[:10]] == [float(v) for v in TOP_VALUES]

        others = result[-1]
        assert others.name == "Others (5)"
        assert others.is_others
        assert others.value == 150.0
        assert others.rank == 11
        assert others.percentage == pytest.approx(15.0)
        assert others.count == sum(range(11, 16))

    def test_values_and_percentages_add_up(self, fifteen_nodes):
        result = compact_top_n(fifteen_nodes)

        assert sum(node.value for node in result) == sum(node.value for node in fifteen_nodes)
        assert sum(node.percentage for node in result) == pytest.approx(100.0)

    def test_others_tail(self, fifteen_nodes):
        tail = compact_top_n(fifteen_nodes, show_others=True)

        assert [node.rank for node in tail] == [11, 12, 13, 14, 15]
        assert [node.value for node in tail] == [35.0, 35.0, 30.0, 25.0, 25.0]
        # percentage against the full level total (1000), not the tail total
        assert [node.percentage for node in tail] == pytest.approx([3.5, 3.5, 3.0, 2.5, 2.5])
        assert not any(node.is_others for node in tail)

    def test_ties_ordered_by_name(self, fifteen_nodes):
        tail = compact_top_n(fifteen_nodes, show_others=True)
        assert [node.name for node in tail[:2]] == ["Segment 10", "Segment 11"]

    def test_at_most_n_nodes_all_shown(self):
        nodes = [HierarchyNode(name=f"S{idx}", value=float(idx)) for idx in range(1, 11)]

        result = compact_top_n(nodes)

        assert len(result) == 10
        assert not any(node.is_others for node in result)
        assert result[0].name == "S10"
        assert result[0].rank == 1
        assert sum(node.percentage for node in result) == pytest.approx(100.0)

    def test_show_others_without_overflow_returns_all(self):
        nodes = [HierarchyNode(name="A", value=3.0), HierarchyNode(name="B", value=1.0)]

        result = compact_top_n(nodes, show_others=True)

        assert [node.name for node in result] == ["A", "B"]
        assert [node.percentage for node in result] == [75.0, 25.0]

    def test_custom_top_n(self):
        nodes = [HierarchyNode(name=f"S{idx}", value=float(idx)) for idx in range(1, 6)]

        result = compact_top_n(nodes, top_n=3)

        assert [node.name for node in result] == ["S5", "S4", "S3", "Others (2)"]
        assert result[-1].value == 3.0

    def test_zero_total(self):
        nodes = [HierarchyNode(name=f"S{idx}", value=0.0) for idx in range(12)]

        result = compact_top_n(nodes)

        assert all(node.percentage == 0.0 for node in result)
        assert result[-1].name == "Others (2)"

    def test_empty_level(self):
        assert compact_top_n([]) == []

    def test_node_to_dict(self):
        node = HierarchyNode(name="A", value=10.0, count=2, percentage=50.0, rank=1)
        assert node.to_dict() == {'name': "A", 'value': 10.0, 'count': 2, 'percentage': 50.0, 'rank': 1}
        assert HierarchyNode(name="A", value=1.0).to_dict() == {'name': "A", 'value': 1.0, 'count': 0}


class TestOthersLabel:

    def test_label(self):
        assert others_label(7) == "Others (7)"
        assert is_others_name("Others (7)")

    @pytest.mark.parametrize("name", ["Others", "Other products", "Antalgiques", None])
    def test_regular_names(self, name):
        assert not is_others_name(name)


class TestDrillDownState:

    def test_drill_in_and_jump_back(self):
        state = DrillDownState().drill_in("A").drill_in("B").drill_in("C")
        assert state.path == ("A", "B", "C")
        assert state.depth == 3

        assert state.jump_to(0).path == ("A",)
        assert state.jump_to(1).path == ("A", "B")
        assert state.jump_to(-1) == DrillDownState()

    def test_depth_limit(self):
        state = DrillDownState()
        for label in ["l0", "l1", "l2", "l3", "l4"]:
            state = state.drill_in(label)

        assert state.depth == 5
        assert state.drill_in("l5") is state

    def test_selecting_others_opens_tail(self):
        state = DrillDownState(path=("A",)).select("Others (4)")
        assert state.show_others is True
        assert state.path == ("A",)

        assert state.close_others().show_others is False

    def test_path_change_leaves_others_view(self):
        state = DrillDownState(path=("A",), show_others=True)

        assert state.select("B").show_others is False
        assert state.select("B").path == ("A", "B")
        assert state.jump_to(0).show_others is False
        assert state.reset().show_others is False

    def test_empty_selection_ignored(self):
        state = DrillDownState(path=("A",))
        assert state.select("") is state
