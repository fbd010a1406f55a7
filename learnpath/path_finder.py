"""
A* search for the cheapest learning path between two topics.

Costs and the heuristic are derived from topic difficulty and mastery:

- moving *to* a topic costs ``difficulty + 2 * (1 - mastery)`` of that
  topic, independent of where the move starts;
- the estimate from ``current`` to ``goal`` is
  ``|difficulty(goal) - difficulty(current)| + 2 * (1 - mastery(current))``.

The heuristic is domain-specific and not proven admissible, so the
returned path is the lowest *estimated* cost path.

Also provides the derived queries built on top of the search: the
remaining (incomplete) part of a path with a time estimate, and a
bounded enumeration of alternative paths.
"""

import heapq
import itertools
import logging
import math
from typing import Dict, Iterator, List, Optional, Set, Tuple

from learnpath.config import DEFAULT_CONFIG, ScoringConfig
from learnpath.models import AlternativePath, OptimalPath, PathResult
from learnpath.topic_graph import TopicGraph

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =========================================================================
# Cost model
# =========================================================================


def heuristic(graph: TopicGraph, current: str, goal: str) -> float:
    """Estimated remaining cost from *current* to *goal*."""
    current_topic = graph.get_topic(current)
    goal_topic = graph.get_topic(goal)
    difficulty_diff = abs(goal_topic.difficulty - current_topic.difficulty)
    mastery_gap = 1 - current_topic.mastery
    return difficulty_diff + mastery_gap * 2


def edge_cost(graph: TopicGraph, source: str, target: str) -> float:
    """Cost of learning *target* next; *source* does not affect it."""
    topic = graph.get_topic(target)
    return topic.difficulty + (1 - topic.mastery) * 2


# =========================================================================
# A*
# =========================================================================


def find_path(graph: TopicGraph, start: str, goal: str) -> Optional[PathResult]:
    """Lowest estimated-cost path from *start* to *goal*.

    Returns ``None`` when *goal* is unreachable or either endpoint is not
    in the graph.
    """
    if start not in graph or goal not in graph:
        logger.debug("find_path: unknown endpoint (%r, %r).", start, goal)
        return None

    # (f_score, insertion order, vertex); the counter keeps equal f-scores FIFO
    counter = itertools.count()
    frontier: List[Tuple[float, int, str]] = []
    came_from: Dict[str, str] = {}
    g_score: Dict[str, float] = {start: 0.0}

    heapq.heappush(frontier, (heuristic(graph, start, goal), next(counter), start))

    while frontier:
        _, _, current = heapq.heappop(frontier)

        if current == goal:
            return _reconstruct_path(came_from, current, g_score[current])

        for neighbor in graph.get_neighbors(current):
            tentative = g_score[current] + edge_cost(graph, current, neighbor)
            if tentative < g_score.get(neighbor, math.inf):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                f_score = tentative + heuristic(graph, neighbor, goal)
                # Superseded entries stay in the heap (lazy deletion)
                heapq.heappush(frontier, (f_score, next(counter), neighbor))

    logger.debug("No path from %r to %r.", start, goal)
    return None


def _reconstruct_path(came_from: Dict[str, str], current: str, cost: float) -> PathResult:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return PathResult(path=path, cost=cost, length=len(path))


# =========================================================================
# Derived queries
# =========================================================================


def find_optimal_path(
    graph: TopicGraph,
    current_topic: str,
    goal_topic: str,
    config: Optional[ScoringConfig] = None,
) -> Optional[OptimalPath]:
    """A* path restricted to the topics that still need learning."""
    result = find_path(graph, current_topic, goal_topic)
    if result is None:
        return None

    remaining = [v for v in result.path if not graph.get_topic(v).completed]
    return OptimalPath(
        path=remaining,
        estimated_time=estimate_time(graph, remaining, config=config),
        difficulty=calculate_path_difficulty(graph, remaining),
    )


def estimate_time(
    graph: TopicGraph,
    path: List[str],
    config: Optional[ScoringConfig] = None,
) -> int:
    """Minutes needed for *path*: ``base * difficulty * (1 - mastery)`` each."""
    cfg = config or DEFAULT_CONFIG
    total = 0.0
    for vertex in path:
        topic = graph.get_topic(vertex)
        if topic is None:
            continue
        total += cfg.base_minutes * topic.difficulty * (1 - topic.mastery)
    return _round_half_up(total)


def calculate_path_difficulty(graph: TopicGraph, path: List[str]) -> float:
    """Average difficulty of the topics on *path* (0 for an empty path)."""
    topics = [graph.get_topic(v) for v in path]
    topics = [t for t in topics if t is not None]
    if not topics:
        return 0.0
    return sum(t.difficulty for t in topics) / len(topics)


def find_alternative_paths(
    graph: TopicGraph,
    start: str,
    goal: str,
    max_paths: int = 3,
) -> List[AlternativePath]:
    """Enumerate simple start→goal paths and return the cheapest few.

    This is an exhaustive depth-first enumeration, not A*: it is
    exponential in the worst case and meant for small graphs.  Expansion
    stops once *max_paths* paths have been collected, so the result is the
    cheapest among the paths found first, not necessarily the global
    cheapest.
    """
    if start not in graph or goal not in graph:
        return []

    found: List[AlternativePath] = []
    visited: Set[str] = set()
    path: List[str] = []
    # (vertex, neighbor iterator, cost so far); explicit stack instead of recursion
    stack: List[Tuple[str, Iterator[str], float]] = []

    def _enter(vertex: str, cost: float) -> bool:
        """Extend the walk to *vertex*; ``True`` if it needs expanding."""
        path.append(vertex)
        if vertex == goal:
            found.append(AlternativePath(path=list(path), cost=cost))
        elif len(found) < max_paths:
            visited.add(vertex)
            stack.append((vertex, iter(graph.get_neighbors(vertex)), cost))
            return True
        path.pop()
        return False

    _enter(start, 0.0)

    while stack:
        current, neighbors, cost = stack[-1]
        for neighbor in neighbors:
            if neighbor not in visited:
                if _enter(neighbor, cost + edge_cost(graph, current, neighbor)):
                    break
        else:
            stack.pop()
            visited.discard(current)
            path.pop()

    found.sort(key=lambda p: p.cost)
    logger.debug(
        "Alternative paths %r -> %r: %d found.", start, goal, len(found),
    )
    return found[:max_paths]
