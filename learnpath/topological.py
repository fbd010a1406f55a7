"""
Learning orders via Kahn's algorithm.

All variants share one in-degree state machine and differ only in how
the frontier of zero in-degree topics is ordered:

- ``sort``                — FIFO queue (classic Kahn).
- ``sort_with_priority``  — easiest topic first (ascending difficulty).
- ``personalized_sort``   — ascending ``(1 - mastery) * difficulty``,
  completed topics are never enqueued.

Ties always fall back to the order topics became available.  The strict
variants raise ``CycleDetectedError`` when not every topic can be
ordered; the personalized variant returns whatever it reached.

``get_all_orderings`` enumerates every valid order by backtracking and is
exponential; use it only for small graphs.
"""

import heapq
import itertools
import logging
from typing import Callable, Dict, List, Optional, Tuple

from learnpath.dag_validator import find_cycle
from learnpath.models import Topic
from learnpath.topic_graph import TopicGraph

logger = logging.getLogger(__name__)


class CycleDetectedError(Exception):
    """Raised when a topological order cannot cover every topic.

    Attributes:
        ordered: Topics that were ordered before the algorithm got stuck.
        cycle: One offending cycle as ``(from, to)`` edges.
    """

    def __init__(
        self,
        message: str = "Graph contains a cycle - not a valid DAG",
        ordered: Optional[List[str]] = None,
        cycle: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        self.ordered = ordered or []
        self.cycle = cycle or []
        super().__init__(message)


# =========================================================================
# Kahn state machine
# =========================================================================


def _kahn(
    graph: TopicGraph,
    priority: Optional[Callable[[Topic], float]] = None,
    skip_completed: bool = False,
) -> List[str]:
    """Run Kahn's algorithm with an optional frontier priority.

    Without *priority* the frontier is a FIFO queue.  With it, the
    frontier pops the lowest ``(priority, arrival)`` first.
    """
    arrival = itertools.count()
    frontier: List[Tuple[float, int, str]] = []
    in_degree: Dict[str, int] = {}

    def _push(vertex: str) -> None:
        topic = graph.get_topic(vertex)
        if skip_completed and topic.completed:
            return
        key = priority(topic) if priority is not None else 0.0
        heapq.heappush(frontier, (key, next(arrival), vertex))

    for vertex in graph.get_vertices():
        in_degree[vertex] = graph.get_in_degree(vertex)
        if in_degree[vertex] == 0:
            _push(vertex)

    result: List[str] = []
    while frontier:
        _, _, current = heapq.heappop(frontier)
        result.append(current)

        # One decrement per adjacency entry, so duplicate edges balance out
        for neighbor in graph.get_neighbors(current):
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                _push(neighbor)

    return result


def _require_complete(graph: TopicGraph, result: List[str]) -> List[str]:
    if len(result) != len(graph):
        cycle = find_cycle(graph)
        logger.error(
            "Topological sort stopped after %d/%d topics; cycle: %s",
            len(result), len(graph),
            " -> ".join(f"{u}->{v}" for u, v in cycle) or "?",
        )
        raise CycleDetectedError(ordered=result, cycle=cycle)
    return result


# =========================================================================
# Variants
# =========================================================================


def sort(graph: TopicGraph) -> List[str]:
    """Classic Kahn ordering of every topic.

    Raises:
        CycleDetectedError: if the graph contains a cycle.
    """
    return _require_complete(graph, _kahn(graph))


def sort_with_priority(graph: TopicGraph) -> List[str]:
    """Kahn ordering that takes the easiest available topic first.

    Raises:
        CycleDetectedError: if the graph contains a cycle.
    """
    return _require_complete(graph, _kahn(graph, priority=lambda t: t.difficulty))


def personal_priority(topic: Topic) -> float:
    """``(1 - mastery) * difficulty``; lower values are scheduled first."""
    return (1 - topic.mastery) * topic.difficulty


def personalized_sort(graph: TopicGraph) -> List[str]:
    """Order of the incomplete topics, ranked by ``personal_priority``.

    Completed topics are never enqueued, so they are left out and do not
    release their dependents.  The result may therefore be partial; this
    variant never raises.
    """
    result = _kahn(graph, priority=personal_priority, skip_completed=True)
    logger.debug("Personalized order covers %d/%d topics.", len(result), len(graph))
    return result


# =========================================================================
# Enumeration
# =========================================================================


def get_all_orderings(
    graph: TopicGraph,
    max_orderings: Optional[int] = None,
) -> List[List[str]]:
    """Every valid topological order, found by backtracking.

    At every step the zero in-degree candidates are tried in vertex
    insertion order, so the orders come out lexicographic by insertion
    position.  A restored candidate keeps its original position rather
    than moving behind the others; the set of orderings is the same either
    way, only their sequence differs.  *max_orderings* stops the
    enumeration once that many orders are collected.  A cyclic graph
    yields no orderings.
    """
    vertices = graph.get_vertices()
    in_degree = {v: graph.get_in_degree(v) for v in vertices}
    remaining = set(vertices)
    current: List[str] = []
    orderings: List[List[str]] = []

    def _backtrack() -> None:
        if max_orderings is not None and len(orderings) >= max_orderings:
            return
        if not remaining:
            orderings.append(list(current))
            return

        available = [v for v in vertices if v in remaining and in_degree[v] == 0]
        for vertex in available:
            current.append(vertex)
            remaining.discard(vertex)
            neighbors = graph.get_neighbors(vertex)
            for neighbor in neighbors:
                in_degree[neighbor] -= 1

            _backtrack()

            for neighbor in neighbors:
                in_degree[neighbor] += 1
            remaining.add(vertex)
            current.pop()

    _backtrack()
    return orderings
