"""
Pydantic models for the Learning Path Recommender.

Graph records: topics (vertices) and aggregate graph statistics.
Query results: A* paths, optimal remaining paths, alternative paths,
study-time allocations and strategy suggestions.
Input documents: the JSON graph document accepted by the loader.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

# Mastery at or above this value marks a topic as completed.
COMPLETION_THRESHOLD = 0.7

DEFAULT_DIFFICULTY = 1.0


# =========================================================================
# Graph records
# =========================================================================

StrategyName = Literal["foundational", "parallel", "advanced", "balanced"]


class Topic(BaseModel):
    """A single learnable topic (vertex of the prerequisite graph)."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    name: str
    difficulty: float = Field(default=DEFAULT_DIFFICULTY, gt=0)
    mastery: float = Field(default=0.0, ge=0.0, le=1.0)
    extras: Dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        return self.mastery >= COMPLETION_THRESHOLD


class GraphStats(BaseModel):
    """Read-only summary returned by ``TopicGraph.get_stats``."""

    total_topics: int = 0
    completed_topics: int = 0
    average_mastery: float = 0.0
    ready_topics: int = 0


# =========================================================================
# Query results
# =========================================================================


class PathResult(BaseModel):
    """Result of an A* search between two topics."""

    path: List[str]
    cost: float
    length: int


class OptimalPath(BaseModel):
    """A* path filtered down to the topics that still need learning."""

    path: List[str]
    estimated_time: int
    difficulty: float


class AlternativePath(BaseModel):
    path: List[str]
    cost: float


class TimeAllocation(BaseModel):
    """Minutes of a study budget assigned to one ready topic."""

    topic_id: str
    topic_name: str
    minutes: int
    priority: float


class StrategySuggestion(BaseModel):
    strategy: StrategyName
    message: str
    recommendation: str


# =========================================================================
# Input documents
# =========================================================================


class TopicSpec(BaseModel):
    """One entry of the ``topics`` list in a graph document.

    Unknown keys are kept and end up in ``Topic.extras``.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    difficulty: Optional[float] = None
    mastery: Optional[float] = None
    prerequisites: List[str] = Field(default_factory=list)


class GraphDocument(BaseModel):
    """Plain-data description of a whole prerequisite graph."""

    topics: List[TopicSpec] = Field(default_factory=list)
    edges: List[Tuple[str, str]] = Field(default_factory=list)
