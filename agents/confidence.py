"""Confidence tracking with time decay and re-mention boosts."""

import math
from datetime import datetime
from typing import Callable

from schemas.topics import ConversationContext, Topic, TopicDecision

DecayFunction = Callable[[float], float]


def exponential_decay(half_life_seconds: float) -> DecayFunction:
    """Decay factor halving every half_life_seconds; never reaches zero."""
    if half_life_seconds <= 0:
        raise ValueError("half_life_seconds must be positive")

    def decay(elapsed_seconds: float) -> float:
        if elapsed_seconds <= 0:
            return 1.0
        return math.pow(0.5, elapsed_seconds / half_life_seconds)

    return decay


def linear_decay(window_seconds: float) -> DecayFunction:
    """Decay factor falling linearly to zero over window_seconds."""
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")

    def decay(elapsed_seconds: float) -> float:
        if elapsed_seconds <= 0:
            return 1.0
        return max(0.0, 1.0 - elapsed_seconds / window_seconds)

    return decay


class ConfidenceTracker:
    """Maintains per-topic confidence for a conversation."""

    def __init__(
        self,
        decay: DecayFunction,
        boost_amount: float = 0.4,
        retention_threshold: float = 0.05,
    ):
        """
        Initialize tracker.

        Args:
            decay: Maps seconds since last discussion to a factor in [0, 1]
            boost_amount: Confidence added when a topic is decided
            retention_threshold: Topics at or below this confidence are dropped
        """
        self.decay = decay
        self.boost_amount = boost_amount
        self.retention_threshold = retention_threshold

    def decayed_confidence(self, topic: Topic, now: datetime) -> float:
        """Confidence of a topic at the given time."""
        elapsed = (now - topic.last_discussed).total_seconds()
        factor = min(1.0, max(0.0, self.decay(elapsed)))
        return topic.peak_confidence * factor

    def apply_decision(
        self,
        context: ConversationContext,
        decision: TopicDecision,
        now: datetime
    ) -> dict[str, Topic]:
        """
        Compute the updated active topic set.

        Args:
            context: Context before this message (not mutated)
            decision: Inference decision
            now: Current time

        Returns:
            New mapping of topic id to Topic
        """
        boosted_id = None if decision.retained else decision.topic_id
        updated: dict[str, Topic] = {}

        for topic_id, topic in context.topics.items():
            if topic_id == boosted_id:
                continue
            confidence = self.decayed_confidence(topic, now)
            if confidence > self.retention_threshold:
                updated[topic_id] = topic.model_copy(update={"confidence": confidence})

        if boosted_id is not None:
            existing = context.topics.get(boosted_id)
            current = self.decayed_confidence(existing, now) if existing else 0.0
            confidence = min(1.0, current + self.boost_amount)
            updated[boosted_id] = Topic(
                topic_id=boosted_id,
                confidence=confidence,
                peak_confidence=confidence,
                last_discussed=now,
                mention_count=(existing.mention_count if existing else 0) + 1,
            )

        return updated
