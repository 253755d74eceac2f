"""Transition detection between consecutive current topics."""

from datetime import datetime
from typing import Callable, Optional

from agents.taxonomy import compile_markers
from schemas.topics import TopicDecision, Transition


class ExplicitSwitchDetector:
    """Detects phrasal markers of a deliberate subject change."""

    def __init__(self, markers: list[str]):
        """
        Initialize detector.

        Args:
            markers: Regex patterns (matched case-insensitively)

        Raises:
            ValueError: If a marker is not a valid regular expression
        """
        self.patterns = compile_markers(markers)

    def __call__(self, text: str) -> bool:
        return self.is_explicit_switch(text)

    def is_explicit_switch(self, text: str) -> bool:
        """Whether the text announces a change of subject."""
        if not text:
            return False
        return any(pattern.search(text) for pattern in self.patterns)


class TransitionDetector:
    """Compares previous and newly decided topics."""

    def __init__(self, is_explicit_switch: Callable[[str], bool]):
        """
        Initialize transition detector.

        Args:
            is_explicit_switch: Predicate tagging a message as an explicit switch
        """
        self.is_explicit_switch = is_explicit_switch

    def detect_transition(
        self,
        previous_topic: Optional[str],
        decision: TopicDecision,
        message: str,
        previous_confidence: float = 0.0,
        now: Optional[datetime] = None,
        is_user: bool = True,
    ) -> Optional[Transition]:
        """
        Build a transition record if the decision changes the current topic.

        Args:
            previous_topic: Current topic before this message
            decision: Inference decision for this message
            message: Message text
            previous_confidence: Confidence the previous topic held before this message
            now: Transition timestamp
            is_user: Only user messages can be explicit switches

        Returns:
            Transition, or None when there is no change or no baseline yet
        """
        if previous_topic is None or decision.retained or decision.topic_id is None:
            return None
        if decision.topic_id == previous_topic:
            return None

        return Transition(
            from_topic=previous_topic,
            to_topic=decision.topic_id,
            timestamp=now or datetime.now(),
            is_explicit=is_user and self.is_explicit_switch(message),
            confidence_delta=decision.confidence - previous_confidence,
        )
