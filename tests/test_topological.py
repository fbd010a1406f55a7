"""
pytest suite for topological scheduling (Kahn variants, exhaustive
orderings) and the networkx-backed DAG validator.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from learnpath import topological
from learnpath.dag_validator import compute_metrics, find_cycle, to_digraph, validate_dag
from learnpath.topic_graph import TopicGraph
from learnpath.topological import CycleDetectedError


# =========================================================================
# Helpers
# =========================================================================


def _graph(topics, edges=()):
    graph = TopicGraph()
    for topic_id, data in topics.items():
        graph.add_vertex(topic_id, data)
    for source, target in edges:
        graph.add_edge(source, target)
    return graph


def _respects_prerequisites(graph, order):
    position = {v: i for i, v in enumerate(order)}
    return all(position[u] < position[v] for u, v in graph.edges())


@pytest.fixture()
def merge():
    """A and B are both prerequisites of C; C precedes D."""
    return _graph({}, [("A", "C"), ("B", "C"), ("C", "D")])


@pytest.fixture()
def cyclic():
    return _graph({}, [("root", "x"), ("x", "y"), ("y", "x")])


GRAPHS = {
    "empty": ({}, []),
    "chain": ({}, [("a", "b"), ("b", "c")]),
    "diamond": ({}, [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")]),
    "duplicate_edges": ({}, [("a", "b"), ("a", "b")]),
    "two_cycle": ({}, [("a", "b"), ("b", "a")]),
    "self_loop": ({"free": {}}, [("a", "a")]),
    "tail_cycle": ({}, [("a", "b"), ("b", "c"), ("c", "b")]),
}


# =========================================================================
# Test: Kahn FIFO
# =========================================================================


class TestSort:

    def test_fifo_order(self, merge):
        assert topological.sort(merge) == ["A", "B", "C", "D"]

    def test_permutation_respecting_prerequisites(self, merge):
        order = topological.sort(merge)
        assert sorted(order) == sorted(merge.get_vertices())
        assert _respects_prerequisites(merge, order)

    def test_cycle_raises(self, cyclic):
        with pytest.raises(CycleDetectedError) as exc_info:
            topological.sort(cyclic)
        err = exc_info.value
        assert err.ordered == ["root"]
        assert set(err.cycle) == {("x", "y"), ("y", "x")}
        assert "cycle" in str(err)

    def test_duplicate_edges_do_not_delay(self):
        graph = _graph({}, [("A", "B"), ("A", "B"), ("B", "C")])
        assert topological.sort(graph) == ["A", "B", "C"]

    def test_empty_graph(self):
        assert topological.sort(TopicGraph()) == []

    @pytest.mark.parametrize("name", sorted(GRAPHS))
    def test_cycle_checks_agree(self, name):
        """has_cycle, networkx validation and sort failure must agree."""
        graph = _graph(*GRAPHS[name])
        cyclic = graph.has_cycle()
        assert cyclic is (not validate_dag(graph))
        assert cyclic is bool(find_cycle(graph))
        if cyclic:
            with pytest.raises(CycleDetectedError):
                topological.sort(graph)
            with pytest.raises(CycleDetectedError):
                topological.sort_with_priority(graph)
            assert topological.get_all_orderings(graph) == []
        else:
            assert _respects_prerequisites(graph, topological.sort(graph))


# =========================================================================
# Test: Priority variants
# =========================================================================


class TestSortWithPriority:

    def test_easiest_root_first(self):
        graph = _graph({"X": {"difficulty": 3}, "Y": {"difficulty": 1}, "Z": {"difficulty": 2}})
        assert topological.sort_with_priority(graph) == ["Y", "Z", "X"]

    def test_new_frontier_entries_are_ranked(self):
        graph = _graph(
            {
                "A": {"difficulty": 1},
                "B": {"difficulty": 3},
                "C": {"difficulty": 2},
                "D": {"difficulty": 2.5},
            },
            [("A", "B"), ("A", "C")],
        )
        assert topological.sort_with_priority(graph) == ["A", "C", "D", "B"]

    def test_ties_keep_arrival_order(self):
        graph = _graph({"p": {"difficulty": 2}, "q": {"difficulty": 2}, "r": {"difficulty": 2}})
        assert topological.sort_with_priority(graph) == ["p", "q", "r"]

    def test_respects_prerequisites_over_difficulty(self):
        graph = _graph({"hard": {"difficulty": 5}, "easy": {"difficulty": 1}}, [("hard", "easy")])
        assert topological.sort_with_priority(graph) == ["hard", "easy"]


class TestPersonalizedSort:

    def test_personal_priority(self):
        graph = _graph({"t": {"difficulty": 4, "mastery": 0.25}})
        assert topological.personal_priority(graph.get_topic("t")) == pytest.approx(3.0)

    def test_lowest_priority_value_first(self):
        graph = _graph({"C": {"difficulty": 2}, "D": {"difficulty": 2, "mastery": 0.5}})
        assert topological.personalized_sort(graph) == ["D", "C"]

    def test_completed_topics_and_their_dependents_left_out(self):
        graph = _graph(
            {"A": {"mastery": 0.9}, "C": {"difficulty": 2}},
            [("A", "B")],
        )
        assert topological.personalized_sort(graph) == ["C"]

    def test_does_not_raise_on_cycle(self, cyclic):
        assert topological.personalized_sort(cyclic) == ["root"]


# =========================================================================
# Test: Enumeration
# =========================================================================


class TestAllOrderings:

    def test_two_roots(self):
        graph = _graph({}, [("A", "C"), ("B", "C")])
        assert topological.get_all_orderings(graph) == [["A", "B", "C"], ["B", "A", "C"]]

    def test_independent_topics(self):
        graph = _graph({"a": {}, "b": {}, "c": {}})
        orderings = topological.get_all_orderings(graph)
        assert len(orderings) == 6
        assert len({tuple(o) for o in orderings}) == 6

    def test_every_ordering_is_valid(self, merge):
        for order in topological.get_all_orderings(merge):
            assert _respects_prerequisites(merge, order)

    def test_sequence_follows_insertion_position(self):
        graph = _graph({"a": {}, "b": {}, "c": {}})
        assert topological.get_all_orderings(graph) == [
            ["a", "b", "c"], ["a", "c", "b"],
            ["b", "a", "c"], ["b", "c", "a"],
            ["c", "a", "b"], ["c", "b", "a"],
        ]

    def test_max_orderings(self):
        graph = _graph({"a": {}, "b": {}, "c": {}})
        assert topological.get_all_orderings(graph, max_orderings=2) == [
            ["a", "b", "c"], ["a", "c", "b"],
        ]

    def test_state_restored(self, merge):
        topological.get_all_orderings(merge)
        assert merge.get_in_degree("C") == 2
        assert topological.sort(merge) == ["A", "B", "C", "D"]

    def test_empty_graph(self):
        assert topological.get_all_orderings(TopicGraph()) == [[]]


# =========================================================================
# Test: DAG validator
# =========================================================================


class TestDagValidator:

    def test_to_digraph_keeps_parallel_edges_and_attributes(self):
        graph = _graph({"a": {"difficulty": 3}}, [("a", "b"), ("a", "b")])
        G = to_digraph(graph)
        assert G.number_of_edges() == 2
        assert G.nodes["a"]["difficulty"] == 3
        assert G.nodes["b"]["completed"] is False

    def test_find_cycle_empty_for_dag(self, merge):
        assert find_cycle(merge) == []

    def test_metrics(self):
        graph = _graph({"lonely": {}}, [("a", "b"), ("b", "c")])
        metrics = compute_metrics(graph)
        assert metrics == {
            "total_topics": 4,
            "total_edges": 2,
            "avg_out_degree": 0.5,
            "max_depth": 2,
            "isolated_nodes_count": 1,
        }

    def test_metrics_cyclic_depth_zero(self, cyclic):
        assert compute_metrics(cyclic)["max_depth"] == 0
