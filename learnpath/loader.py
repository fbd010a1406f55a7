"""
Build a ``TopicGraph`` from a JSON graph document.

Document shape::

    {
      "topics": [
        {"id": "sorting", "name": "Sorting", "difficulty": 2,
         "mastery": 0.4, "prerequisites": ["intro"]},
        ...
      ],
      "edges": [["intro", "recursion"], ...]
    }

Topic fields other than ``id``, ``name``, ``difficulty``, ``mastery`` and
``prerequisites`` are kept in ``Topic.extras``.  Edges may name topics
that are not listed; they are created with default data.
"""

import json
import logging
from typing import Any, Dict, Union

from learnpath.models import GraphDocument
from learnpath.topic_graph import TopicGraph

logger = logging.getLogger(__name__)


def build_graph(document: Union[GraphDocument, Dict[str, Any]]) -> TopicGraph:
    """Create a graph from a parsed document (dict or ``GraphDocument``)."""
    if not isinstance(document, GraphDocument):
        document = GraphDocument.model_validate(document)

    graph = TopicGraph()
    for spec in document.topics:
        data = spec.model_dump(exclude={"id", "prerequisites"}, exclude_none=True)
        graph.add_vertex(spec.id, data)

    for spec in document.topics:
        for prereq in spec.prerequisites:
            graph.add_edge(prereq, spec.id)
    for source, target in document.edges:
        graph.add_edge(source, target)

    logger.info(
        "Built graph: %d topics, %d edges.", len(graph), graph.edge_count,
    )
    return graph


def load_graph(path: str) -> TopicGraph:
    """Read and validate a graph document from *path*.

    Raises:
        FileNotFoundError: if *path* does not exist.
        pydantic.ValidationError: if the document is malformed.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    return build_graph(raw)
