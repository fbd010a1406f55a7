"""
Scoring configuration for the greedy selector and time estimates.

Defaults reproduce the recommender's standard weights.  A config can be
saved to / loaded from JSON so alternative weightings can be compared
from the CLI (``--save-config`` / ``--config``).
"""

import json
import logging
import os

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ScoringConfig(BaseModel):
    """Weights and constants used when scoring topics."""

    mastery_weight: float = 0.5
    importance_weight: float = 0.3
    difficulty_weight: float = 0.2
    max_difficulty: float = Field(default=5.0, gt=0)
    max_dependents: float = Field(default=10.0, gt=0)
    indirect_decay: float = 0.5
    review_mastery_ceiling: float = 0.9
    base_minutes: float = 30.0


DEFAULT_CONFIG = ScoringConfig()


def load_config(path: str) -> ScoringConfig:
    """Read a ``ScoringConfig`` from a JSON file; missing keys keep defaults."""
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    config = ScoringConfig.model_validate(raw)
    logger.info("Loaded scoring config from %s.", path)
    return config


def save_config(config: ScoringConfig, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config.model_dump(), fh, indent=2)
    logger.info("Config saved → %s", path)
