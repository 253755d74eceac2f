"""Application settings."""

import os
from typing import Optional
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Topic tracker configuration settings."""

    # Taxonomy source (defaults to data/topic_taxonomy.yaml)
    taxonomy_path: Optional[str] = None

    # Persistence
    db_path: Optional[str] = None  # None keeps contexts in memory only

    # Inference
    min_score: float = 1.0  # At least one signal must match
    continuity_bonus: float = 0.5
    saturation_score: float = 3.0  # Score that maps to confidence 1.0

    # Confidence tracking
    boost_amount: float = Field(0.4, gt=0.0, le=1.0)
    retention_threshold: float = Field(0.05, ge=0.0, lt=1.0)
    decay_half_life_seconds: float = Field(300.0, gt=0.0)

    # Response snapshot
    response_top_n: int = 3
    response_recent_transitions: int = 5

    # Bookkeeping limits
    max_transitions: int = 50
    max_entities: int = 30
    recent_message_limit: int = 10
    session_timeout_seconds: int = 30 * 60  # 30 minutes

    # Lifecycle policy: sweep every stored context when a new conversation starts
    purge_all_on_new_conversation: bool = True

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load paths from environment if not provided
        if data.get("db_path") is None:
            data["db_path"] = os.environ.get("TOPIC_TRACKER_DB_PATH")

        if data.get("taxonomy_path") is None:
            data["taxonomy_path"] = os.environ.get("TOPIC_TRACKER_TAXONOMY_PATH")

        super().__init__(**data)
