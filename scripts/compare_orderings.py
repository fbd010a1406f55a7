import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from learnpath import greedy_selector, topological
from learnpath.dag_validator import compute_metrics, find_cycle
from learnpath.loader import load_graph

GRAPH_PATH = os.path.join(os.path.dirname(__file__), "..", "tests", "sample_curriculum.json")


def compare(path=GRAPH_PATH):
    if not os.path.exists(path):
        print(f"Error: {path} not found.")
        return

    graph = load_graph(path)
    metrics = compute_metrics(graph)

    print("-" * 40)
    print("LEARNING ORDER COMPARISON")
    print("-" * 40)
    print(f"Topics:    {metrics['total_topics']}")
    print(f"Edges:     {metrics['total_edges']}")
    print(f"Max depth: {metrics['max_depth']}")

    if graph.has_cycle():
        cycle = find_cycle(graph)
        print("\nGraph has a cycle: " + " -> ".join(u for u, _ in cycle))
        print("-" * 40)
        return

    rows = [
        ("kahn", topological.sort(graph)),
        ("easiest", topological.sort_with_priority(graph)),
        ("personal", topological.personalized_sort(graph)),
        ("greedy", greedy_selector.get_greedy_learning_sequence(graph)),
    ]
    print()
    for label, order in rows:
        print(f"  {label:<9} {' > '.join(order) or '(nothing left)'}")
    print("-" * 40)


if __name__ == "__main__":
    compare(sys.argv[1] if len(sys.argv) > 1 else GRAPH_PATH)
