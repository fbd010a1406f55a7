"""
Prerequisite graph of topics.

``TopicGraph`` owns the topic records and the directed prerequisite edges
(``from -> to`` means *from* must be learned before *to*).  Every other
component of the recommender queries it; only ``add_vertex``,
``add_edge`` and ``update_mastery`` mutate it.

Duplicate edges are accepted as-is and counted twice in the in-degree.
Cycles are allowed at insertion time; use ``has_cycle()`` to check.
"""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple

from learnpath.models import DEFAULT_DIFFICULTY, GraphStats, Topic

logger = logging.getLogger(__name__)

_KNOWN_FIELDS = frozenset({"id", "name", "difficulty", "mastery", "completed"})


class TopicGraph:
    """Directed graph of topics keyed by caller-supplied string ids."""

    def __init__(self) -> None:
        self._adjacency: Dict[str, List[str]] = {}
        self._in_degree: Dict[str, int] = {}
        self._topics: Dict[str, Topic] = {}

    def __len__(self) -> int:
        return len(self._adjacency)

    def __contains__(self, vertex: object) -> bool:
        return vertex in self._adjacency

    def __repr__(self) -> str:
        return f"TopicGraph(topics={len(self)}, edges={self.edge_count})"

    # =====================================================================
    # Construction
    # =====================================================================

    def add_vertex(self, vertex: str, data: Optional[Mapping[str, Any]] = None) -> Topic:
        """Register *vertex* unless it already exists.

        Supplied fields are merged over the defaults.  ``completed`` is
        always derived from mastery, so a supplied value is ignored; keys
        the record does not know are kept in ``Topic.extras``.
        """
        existing = self._topics.get(vertex)
        if existing is not None:
            return existing

        data = dict(data or {})
        topic = Topic(
            id=vertex,
            name=data.get("name") or vertex,
            difficulty=data.get("difficulty") or DEFAULT_DIFFICULTY,
            mastery=data.get("mastery") or 0.0,
            extras={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )
        self._adjacency[vertex] = []
        self._in_degree[vertex] = 0
        self._topics[vertex] = topic
        return topic

    def add_edge(self, source: str, target: str) -> None:
        """Record that *source* is a prerequisite of *target*."""
        if source not in self._adjacency:
            self.add_vertex(source)
        if target not in self._adjacency:
            self.add_vertex(target)

        if target in self._adjacency[source]:
            logger.debug("Duplicate edge %s -> %s kept.", source, target)
        self._adjacency[source].append(target)
        self._in_degree[target] += 1

    # =====================================================================
    # Queries
    # =====================================================================

    def get_vertices(self) -> List[str]:
        return list(self._adjacency)

    def edges(self) -> Iterator[Tuple[str, str]]:
        """Yield every ``(from, to)`` pair, duplicates included."""
        for source, targets in self._adjacency.items():
            for target in targets:
                yield source, target

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._adjacency.values())

    def get_neighbors(self, vertex: str) -> List[str]:
        """Topics that list *vertex* as a prerequisite."""
        return list(self._adjacency.get(vertex, ()))

    def get_prerequisites(self, vertex: str) -> List[str]:
        """Topics that *vertex* depends on (reverse adjacency scan)."""
        return [
            node for node, targets in self._adjacency.items()
            if vertex in targets
        ]

    def get_in_degree(self, vertex: str) -> int:
        return self._in_degree.get(vertex, 0)

    def get_topic(self, vertex: str) -> Optional[Topic]:
        return self._topics.get(vertex)

    def is_ready(self, vertex: str) -> bool:
        """``True`` when every prerequisite of *vertex* is completed."""
        for prereq in self.get_prerequisites(vertex):
            topic = self._topics.get(prereq)
            if topic is None or not topic.completed:
                return False
        return True

    def get_ready_topics(self) -> List[str]:
        """Incomplete topics whose prerequisites are all completed."""
        return [
            vertex for vertex, topic in self._topics.items()
            if not topic.completed and self.is_ready(vertex)
        ]

    # =====================================================================
    # Mutation
    # =====================================================================

    def update_mastery(self, vertex: str, mastery: float) -> None:
        """Set the mastery of *vertex*; completion follows the threshold."""
        topic = self._topics.get(vertex)
        if topic is None:
            logger.debug("update_mastery: unknown topic %r ignored.", vertex)
            return
        topic.mastery = mastery

    # =====================================================================
    # Structure
    # =====================================================================

    def has_cycle(self) -> bool:
        """Depth-first search for a back-edge into the recursion stack.

        Uses an explicit stack of neighbor iterators instead of Python
        recursion so long prerequisite chains cannot hit the recursion
        limit.
        """
        visited: Set[str] = set()
        on_stack: Set[str] = set()

        for root in self._adjacency:
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            stack = [(root, iter(self._adjacency[root]))]

            while stack:
                vertex, neighbors = stack[-1]
                advanced = False
                for neighbor in neighbors:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        on_stack.add(neighbor)
                        stack.append((neighbor, iter(self._adjacency[neighbor])))
                        advanced = True
                        break
                    if neighbor in on_stack:
                        logger.debug("Back-edge %s -> %s closes a cycle.", vertex, neighbor)
                        return True
                if not advanced:
                    on_stack.discard(vertex)
                    stack.pop()

        return False

    def clone(self) -> "TopicGraph":
        """Deep copy; mutating the clone never touches this graph."""
        copy = TopicGraph()
        copy._topics = {
            vertex: topic.model_copy(deep=True)
            for vertex, topic in self._topics.items()
        }
        copy._adjacency = {
            vertex: list(targets) for vertex, targets in self._adjacency.items()
        }
        copy._in_degree = dict(self._in_degree)
        return copy

    def get_stats(self) -> GraphStats:
        topics = list(self._topics.values())
        total = len(topics)
        total_mastery = sum(t.mastery for t in topics)
        return GraphStats(
            total_topics=total,
            completed_topics=sum(1 for t in topics if t.completed),
            average_mastery=total_mastery / total if total > 0 else 0.0,
            ready_topics=len(self.get_ready_topics()),
        )
