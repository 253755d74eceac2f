"""Topic Inference Agent: scores taxonomy topics against a message."""

import logging
from typing import Callable, Optional

from agents.taxonomy import TopicTaxonomy
from schemas.topics import ConversationContext, TopicDecision

logger = logging.getLogger(__name__)


class TopicInferenceAgent:
    """Decides the current topic for a message."""

    def __init__(
        self,
        taxonomy: TopicTaxonomy,
        is_explicit_switch: Optional[Callable[[str], bool]] = None,
        min_score: float = 1.0,
        continuity_bonus: float = 0.5,
        saturation_score: float = 3.0,
    ):
        """
        Initialize inference agent.

        Args:
            taxonomy: Topic taxonomy
            is_explicit_switch: Predicate disabling the continuity bonus for explicit switches
            min_score: Minimum score a topic needs to be decided
            continuity_bonus: Bonus for the previous current topic
            saturation_score: Score that maps to confidence 1.0
        """
        self.taxonomy = taxonomy
        self.is_explicit_switch = is_explicit_switch
        self.min_score = min_score
        self.continuity_bonus = continuity_bonus
        self.saturation_score = saturation_score

    def infer_topic(self, message: str, previous_context: ConversationContext) -> TopicDecision:
        """
        Infer the current topic for a message.

        Args:
            message: Raw message text
            previous_context: Context before this message

        Returns:
            TopicDecision; retained=True when the previous topic is kept
        """
        previous_topic = previous_context.current_topic

        if not message or not message.strip():
            return self._retain(previous_context)

        message_lower = message.lower()

        # Score topics
        scores: dict[str, float] = {}
        matched: dict[str, list[str]] = {}
        for topic_id in self.taxonomy.priority:
            signals = self.taxonomy.match_signals(topic_id, message_lower)
            matched[topic_id] = signals
            scores[topic_id] = float(len(signals))

        explicit = self._explicit(message)
        if previous_topic in scores and not explicit:
            scores[previous_topic] += self.continuity_bonus

        best_score = max(scores.values())
        if best_score < self.min_score:
            logger.debug(f"No topic cleared threshold (best={best_score})")
            return self._retain(previous_context, scores)

        tied = [topic_id for topic_id, score in scores.items() if score == best_score]
        if explicit:
            # An explicit switch moves away from the current topic when it can
            candidates = [topic_id for topic_id in tied if topic_id != previous_topic] or tied
            winner = min(candidates, key=self.taxonomy.priority_index)
        elif previous_topic in tied:
            winner = previous_topic
        else:
            winner = min(tied, key=self.taxonomy.priority_index)

        confidence = min(1.0, best_score / self.saturation_score)
        logger.debug(f"Inferred topic {winner} (score={best_score}, signals={matched[winner]})")

        return TopicDecision(
            topic_id=winner,
            confidence=confidence,
            matched_signals=matched[winner],
            scores=scores,
        )

    def _explicit(self, message: str) -> bool:
        return bool(self.is_explicit_switch and self.is_explicit_switch(message))

    def _retain(
        self,
        previous_context: ConversationContext,
        scores: Optional[dict[str, float]] = None
    ) -> TopicDecision:
        """Decision that keeps the previous current topic."""
        previous_topic = previous_context.current_topic
        previous = previous_context.topics.get(previous_topic) if previous_topic else None
        return TopicDecision(
            topic_id=previous_topic,
            confidence=previous.confidence if previous else 0.0,
            retained=True,
            scores=scores or {},
        )
