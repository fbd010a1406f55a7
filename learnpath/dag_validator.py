"""
DAG validation: cycle extraction, acyclicity check, and graph metrics.

Converts a ``TopicGraph`` to a ``networkx.MultiDiGraph`` (parallel
prerequisite edges are preserved) and relies on networkx for the
structural checks that back error reporting and the CLI report.
"""

import logging
from typing import Any, Dict, List, Tuple

import networkx as nx

from learnpath.topic_graph import TopicGraph

logger = logging.getLogger(__name__)


def to_digraph(graph: TopicGraph) -> nx.MultiDiGraph:
    """Build a networkx view of *graph* with topic fields as node attributes."""
    G = nx.MultiDiGraph()
    for vertex in graph.get_vertices():
        topic = graph.get_topic(vertex)
        G.add_node(
            vertex,
            name=topic.name,
            difficulty=topic.difficulty,
            mastery=topic.mastery,
            completed=topic.completed,
        )
    G.add_edges_from(graph.edges())
    return G


# =========================================================================
# Cycles
# =========================================================================


def find_cycle(graph: TopicGraph) -> List[Tuple[str, str]]:
    """Return one cycle as a list of ``(from, to)`` edges, or ``[]``."""
    G = to_digraph(graph)
    try:
        cycle = nx.find_cycle(G, orientation="original")
    except nx.NetworkXNoCycle:
        return []
    # MultiDiGraph cycles are (u, v, key, direction)
    edges = [(u, v) for u, v, *_ in cycle]
    logger.debug("Found cycle: %s", " -> ".join(u for u, _ in edges))
    return edges


def validate_dag(graph: TopicGraph) -> bool:
    """Verify that *graph* is acyclic (topological sort succeeds)."""
    G = to_digraph(graph)
    try:
        list(nx.topological_sort(G))
        return True
    except nx.NetworkXUnfeasible:
        return False


# =========================================================================
# Metrics
# =========================================================================


def compute_metrics(graph: TopicGraph) -> Dict[str, Any]:
    """Compute structural summary metrics.

    Returns dict with: total_topics, total_edges, avg_out_degree,
    max_depth, isolated_nodes_count.
    """
    G = to_digraph(graph)
    total_topics = G.number_of_nodes()
    total_edges = G.number_of_edges()

    avg_out = total_edges / total_topics if total_topics > 0 else 0.0

    # Max depth (longest prerequisite chain, in edges)
    if total_edges > 0 and nx.is_directed_acyclic_graph(G):
        max_depth = nx.dag_longest_path_length(G)
    else:
        max_depth = 0

    return {
        "total_topics": total_topics,
        "total_edges": total_edges,
        "avg_out_degree": round(avg_out, 4),
        "max_depth": max_depth,
        "isolated_nodes_count": nx.number_of_isolates(G),
    }
