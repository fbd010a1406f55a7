"""
CLI: learning-path recommendations for a topic graph.

Usage::

    python -m learnpath.recommend \\
        --graph ./data/curriculum.json \\
        --start intro --goal dp \\
        --budget 90 --count 3

Loads a graph document, runs every recommender query and writes a JSON
report to stdout (or ``--out``).  Orderings that require an acyclic
graph are skipped, with the offending cycle reported, when the graph
contains a cycle.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from pydantic import ValidationError

from learnpath import greedy_selector, path_finder, topological
from learnpath.config import DEFAULT_CONFIG, ScoringConfig, load_config, save_config
from learnpath.dag_validator import compute_metrics, find_cycle
from learnpath.loader import load_graph
from learnpath.topic_graph import TopicGraph
from learnpath.utils import setup_logging, timed

logger = logging.getLogger(__name__)


# =========================================================================
# Report
# =========================================================================


def build_report(
    graph: TopicGraph,
    start: Optional[str] = None,
    goal: Optional[str] = None,
    budget: Optional[float] = None,
    count: int = 3,
    max_paths: int = 3,
    all_orderings: bool = False,
    config: Optional[ScoringConfig] = None,
) -> Dict[str, Any]:
    """Run the recommender queries and collect their results as plain data."""
    cfg = config or DEFAULT_CONFIG
    report: Dict[str, Any] = {}

    with timed("Graph analysis"):
        report["stats"] = graph.get_stats().model_dump()
        report["metrics"] = compute_metrics(graph)
        report["has_cycle"] = graph.has_cycle()

    with timed("Greedy selection"):
        report["next_topic"] = greedy_selector.select_next_topic(graph, config=cfg)
        report["next_topics"] = greedy_selector.select_next_topics(graph, count=count, config=cfg)
        report["review"] = greedy_selector.select_topics_for_review(graph, count=count, config=cfg)
        report["strategy"] = greedy_selector.suggest_strategy(graph).model_dump()
        report["greedy_sequence"] = greedy_selector.get_greedy_learning_sequence(graph, config=cfg)
        if budget is not None:
            report["time_allocation"] = [
                a.model_dump()
                for a in greedy_selector.get_study_time_allocation(graph, budget, config=cfg)
            ]

    with timed("Topological ordering"):
        report["personalized_order"] = topological.personalized_sort(graph)
        if report["has_cycle"]:
            report["cycle"] = [list(edge) for edge in find_cycle(graph)]
            logger.warning("Graph has a cycle; strict orderings skipped.")
        else:
            report["learning_order"] = topological.sort(graph)
            report["easiest_first_order"] = topological.sort_with_priority(graph)
            if all_orderings:
                report["all_orderings"] = topological.get_all_orderings(graph)

    if start is not None and goal is not None:
        with timed("Path search"):
            found = path_finder.find_path(graph, start, goal)
            optimal = path_finder.find_optimal_path(graph, start, goal, config=cfg)
            alternatives = path_finder.find_alternative_paths(
                graph, start, goal, max_paths=max_paths,
            )
            report["path"] = found.model_dump() if found else None
            report["optimal_path"] = optimal.model_dump() if optimal else None
            report["alternative_paths"] = [p.model_dump() for p in alternatives]
            if found is None:
                logger.info("No path from %s to %s.", start, goal)

    return report


# =========================================================================
# CLI
# =========================================================================


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="python -m learnpath.recommend",
        description="Recommend what to study next from a topic graph.",
    )
    parser.add_argument("--graph", required=True, help="Graph document (JSON).")
    parser.add_argument("--start", default=None, help="Start topic for path search.")
    parser.add_argument("--goal", default=None, help="Goal topic for path search.")
    parser.add_argument("--budget", type=float, default=None,
                        help="Study minutes to allocate across ready topics.")
    parser.add_argument("--count", type=int, default=3)
    parser.add_argument("--max-paths", type=int, default=3)
    parser.add_argument("--all-orderings", action="store_true",
                        help="Enumerate every valid order (small graphs only).")
    parser.add_argument("--config", type=str, default=None,
                        help="Scoring config JSON to apply.")
    parser.add_argument("--save-config", type=str, default=None,
                        help="Write the effective scoring config to JSON and exit.")
    parser.add_argument("--out", type=str, default=None,
                        help="Write the report here instead of stdout.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """CLI entry-point."""
    setup_logging()
    args = _parse_args(argv)

    try:
        config = load_config(args.config) if args.config else ScoringConfig()
    except (OSError, ValueError) as exc:
        logger.error("Could not load config %s: %s", args.config, exc)
        return 1

    if args.save_config:
        save_config(config, args.save_config)
        return 0

    try:
        with timed("Load graph"):
            graph = load_graph(args.graph)
    except FileNotFoundError:
        logger.error("Graph file not found: %s", args.graph)
        return 1
    except (ValidationError, ValueError) as exc:
        logger.error("Invalid graph document %s: %s", args.graph, exc)
        return 1

    report = build_report(
        graph,
        start=args.start,
        goal=args.goal,
        budget=args.budget,
        count=args.count,
        max_paths=args.max_paths,
        all_orderings=args.all_orderings,
        config=config,
    )

    payload = json.dumps(report, indent=2)
    if args.out:
        os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
        with open(args.out, "w", encoding="utf-8") as fh:
            fh.write(payload)
        logger.info("📄 Report → %s", args.out)
    else:
        print(payload)

    logger.info(
        "✅ Recommendation complete — topics=%d, ready=%d, next=%s, strategy=%s",
        report["stats"]["total_topics"],
        report["stats"]["ready_topics"],
        report["next_topic"],
        report["strategy"]["strategy"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
