"""
Greedy topic selection.

Scores topics that are ready to be learned and picks the best ones
without any global lookahead.  The priority of a topic blends three
factors (weights from ``ScoringConfig``):

- mastery gap ``1 - mastery`` (weak topics first),
- importance: how many topics depend on it, directly or transitively,
  normalised to [0, 1],
- difficulty factor ``(5 - difficulty) / 5`` (easier topics first; not
  clamped, so difficulties above 5 give a negative factor).

All functions are read-only over the graph passed in, except
``get_greedy_learning_sequence`` which simulates progress on a clone.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Set

from learnpath.config import DEFAULT_CONFIG, ScoringConfig
from learnpath.models import StrategySuggestion, TimeAllocation
from learnpath.topic_graph import TopicGraph

logger = logging.getLogger(__name__)


# =========================================================================
# Scoring
# =========================================================================


def calculate_priority(
    graph: TopicGraph,
    topic_id: str,
    config: Optional[ScoringConfig] = None,
) -> float:
    """Weighted priority of *topic_id*; higher means learn sooner."""
    cfg = config or DEFAULT_CONFIG
    topic = graph.get_topic(topic_id)
    if topic is None:
        return 0.0

    mastery_gap = 1 - topic.mastery
    importance = calculate_importance(graph, topic_id, config=cfg)
    difficulty = difficulty_factor(topic.difficulty, config=cfg)

    return (
        mastery_gap * cfg.mastery_weight
        + importance * cfg.importance_weight
        + difficulty * cfg.difficulty_weight
    )


def calculate_importance(
    graph: TopicGraph,
    topic_id: str,
    config: Optional[ScoringConfig] = None,
) -> float:
    """Dependent count normalised to [0, 1]."""
    cfg = config or DEFAULT_CONFIG
    dependents = count_dependents(graph, topic_id, config=cfg)
    return min(dependents / cfg.max_dependents, 1.0)


def difficulty_factor(difficulty: float, config: Optional[ScoringConfig] = None) -> float:
    cfg = config or DEFAULT_CONFIG
    return (cfg.max_difficulty - difficulty) / cfg.max_difficulty


def count_dependents(
    graph: TopicGraph,
    topic_id: str,
    config: Optional[ScoringConfig] = None,
) -> float:
    """Weighted number of topics that build on *topic_id*.

    Each direct dependent counts 1 and adds its own count scaled by
    ``indirect_decay`` (0.5 by default).  Shared descendants are counted
    once per route, as in a plain recursive sum; results are memoised per
    call so diamond-shaped graphs stay linear.

    A dependent already on the current descent path (only possible in a
    cyclic graph) is counted but not descended into.  The traversal is a
    post-order walk over an explicit stack, so long chains cannot hit the
    recursion limit.
    """
    cfg = config or DEFAULT_CONFIG
    decay = cfg.indirect_decay
    memo: Dict[str, float] = {}
    on_path: Set[str] = {topic_id}
    # Frames are [vertex, neighbor iterator, running count]
    stack: List[list] = [[topic_id, iter(graph.get_neighbors(topic_id)), 0.0]]

    while stack:
        frame = stack[-1]
        descended = False
        for neighbor in frame[1]:
            frame[2] += 1
            if neighbor in on_path:
                logger.warning(
                    "Cycle through %r while counting dependents; not descending.",
                    neighbor,
                )
                continue
            if neighbor in memo:
                frame[2] += memo[neighbor] * decay
                continue
            on_path.add(neighbor)
            stack.append([neighbor, iter(graph.get_neighbors(neighbor)), 0.0])
            descended = True
            break
        if descended:
            continue

        vertex, _, count = stack.pop()
        on_path.discard(vertex)
        memo[vertex] = count
        if stack:
            stack[-1][2] += count * decay

    return memo[topic_id]


# =========================================================================
# Selection
# =========================================================================


def select_next_topic(graph: TopicGraph, config: Optional[ScoringConfig] = None) -> Optional[str]:
    """Highest-priority ready topic; the first one seen wins ties."""
    best_topic: Optional[str] = None
    highest = -math.inf

    for topic_id in graph.get_ready_topics():
        priority = calculate_priority(graph, topic_id, config=config)
        if priority > highest:
            highest = priority
            best_topic = topic_id

    return best_topic


def select_next_topics(
    graph: TopicGraph,
    count: int = 3,
    config: Optional[ScoringConfig] = None,
) -> List[str]:
    """Top *count* ready topics for parallel study, by priority."""
    scored = [
        (topic_id, calculate_priority(graph, topic_id, config=config))
        for topic_id in graph.get_ready_topics()
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [topic_id for topic_id, _ in scored[:count]]


def get_greedy_learning_sequence(
    graph: TopicGraph,
    config: Optional[ScoringConfig] = None,
) -> List[str]:
    """Order obtained by repeatedly learning the best ready topic.

    Progress is simulated on a clone (each chosen topic is set to full
    mastery), so *graph* is left untouched.  Topics that can never become
    ready are omitted.
    """
    simulated = graph.clone()
    sequence: List[str] = []

    while True:
        next_topic = select_next_topic(simulated, config=config)
        if next_topic is None:
            break
        sequence.append(next_topic)
        simulated.update_mastery(next_topic, 1.0)

    logger.debug("Greedy sequence covers %d/%d topics.", len(sequence), len(graph))
    return sequence


def select_topics_for_review(
    graph: TopicGraph,
    count: int = 3,
    config: Optional[ScoringConfig] = None,
) -> List[str]:
    """Completed topics with room for improvement, most urgent first."""
    cfg = config or DEFAULT_CONFIG
    candidates = []
    for topic_id in graph.get_vertices():
        topic = graph.get_topic(topic_id)
        if topic.completed and topic.mastery < cfg.review_mastery_ceiling:
            urgency = (1 - topic.mastery) + calculate_importance(graph, topic_id, config=cfg)
            candidates.append((topic_id, urgency))

    candidates.sort(key=lambda item: item[1], reverse=True)
    return [topic_id for topic_id, _ in candidates[:count]]


# =========================================================================
# Path optimisation
# =========================================================================


def can_learn_next(graph: TopicGraph, topic_id: str, already_learned: Iterable[str]) -> bool:
    """Prerequisites of *topic_id* are completed or in *already_learned*."""
    learned = set(already_learned)
    for prereq in graph.get_prerequisites(topic_id):
        if prereq in learned:
            continue
        topic = graph.get_topic(prereq)
        if topic is None or not topic.completed:
            return False
    return True


def optimize_path(
    graph: TopicGraph,
    current_path: Iterable[str],
    config: Optional[ScoringConfig] = None,
) -> List[str]:
    """Reorder *current_path* so prerequisites come first, best topics early.

    Stops early and returns the placed prefix when no remaining topic can
    be placed (e.g. a prerequisite is neither completed nor in the path).
    """
    optimized: List[str] = []
    remaining = dict.fromkeys(current_path)

    while remaining:
        best_topic: Optional[str] = None
        best_score = -math.inf

        for topic_id in remaining:
            if can_learn_next(graph, topic_id, optimized):
                score = calculate_priority(graph, topic_id, config=config)
                if score > best_score:
                    best_score = score
                    best_topic = topic_id

        if best_topic is None:
            # Scores that never compare greater (NaN) still leave a placeable topic
            for topic_id in remaining:
                if can_learn_next(graph, topic_id, optimized):
                    best_topic = topic_id
                    break

        if best_topic is None:
            logger.debug(
                "optimize_path: %d topic(s) left unplaced: %s",
                len(remaining), ", ".join(remaining),
            )
            break

        optimized.append(best_topic)
        del remaining[best_topic]

    return optimized


# =========================================================================
# Planning helpers
# =========================================================================


def get_study_time_allocation(
    graph: TopicGraph,
    available_minutes: float,
    config: Optional[ScoringConfig] = None,
) -> List[TimeAllocation]:
    """Split *available_minutes* across ready topics by priority share."""
    priorities = [
        (topic_id, calculate_priority(graph, topic_id, config=config))
        for topic_id in graph.get_ready_topics()
    ]
    total_priority = sum(p for _, p in priorities)

    allocation: List[TimeAllocation] = []
    for topic_id, priority in priorities:
        if total_priority != 0:
            minutes = int(math.floor(priority / total_priority * available_minutes + 0.5))
        else:
            minutes = 0
        allocation.append(TimeAllocation(
            topic_id=topic_id,
            topic_name=graph.get_topic(topic_id).name,
            minutes=minutes,
            priority=round(priority, 2),
        ))

    allocation.sort(key=lambda a: a.priority, reverse=True)
    return allocation


_STRATEGIES = {
    "foundational": (
        "Focus on mastering basics before advancing",
        "Spend more time on fundamental topics",
    ),
    "parallel": (
        "Multiple topics available - learn in parallel",
        "Study 2-3 topics simultaneously",
    ),
    "advanced": (
        "Focus on advanced topics and review",
        "Challenge yourself with difficult topics",
    ),
    "balanced": (
        "Maintain steady progress",
        "Continue current learning pace",
    ),
}


def suggest_strategy(graph: TopicGraph) -> StrategySuggestion:
    """Pick a study strategy from aggregate progress.

    Checked in order: average mastery < 0.5 → foundational; more than
    five ready topics → parallel; over 70% completed → advanced;
    otherwise balanced.
    """
    stats = graph.get_stats()

    if stats.average_mastery < 0.5:
        strategy = "foundational"
    elif stats.ready_topics > 5:
        strategy = "parallel"
    elif stats.completed_topics / stats.total_topics > 0.7:
        strategy = "advanced"
    else:
        strategy = "balanced"

    message, recommendation = _STRATEGIES[strategy]
    return StrategySuggestion(strategy=strategy, message=message, recommendation=recommendation)
