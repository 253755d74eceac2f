"""Tests for Transition Detector."""

from datetime import datetime

import pytest
from agents.taxonomy import TopicTaxonomy
from agents.transition import ExplicitSwitchDetector, TransitionDetector
from schemas.topics import TopicDecision, Transition

NOW = datetime(2024, 9, 1, 12, 0, 0)


class TestExplicitSwitchDetector:
    """Test explicit subject change markers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.detector = ExplicitSwitchDetector(TopicTaxonomy.load().explicit_markers)

    def test_explicit_markers(self):
        """Test phrasal markers are recognised."""
        messages = [
            "Let's switch to talking about housing",
            "Let's talk about scholarships",
            "let us discuss the dorms",
            "Can we change the subject?",
            "Moving on to careers",
            "As for the library, is it open late?",
            "دعنا نتحدث عن السكن",
            "ماذا عن الرسوم؟",
        ]

        for message in messages:
            assert self.detector.is_explicit_switch(message), message

    def test_drift_is_not_explicit(self):
        """Test plain questions are not explicit switches."""
        messages = [
            "What about tuition fees?",
            "What are the admission requirements?",
            "Is there a gym on campus?",
            "",
        ]

        for message in messages:
            assert not self.detector.is_explicit_switch(message), message

    def test_callable(self):
        """Test the detector can be used directly as a predicate."""
        assert self.detector("switch to housing") is True


class TestTransitionDetector:
    """Test transition records."""

    def setup_method(self):
        """Set up test fixtures."""
        self.detector = TransitionDetector(ExplicitSwitchDetector(["switch to"]))

    def test_no_transition_without_baseline(self):
        """Test the first topic of a conversation is not a transition."""
        decision = TopicDecision(topic_id="admission", confidence=0.6)
        assert self.detector.detect_transition(None, decision, "admission?", now=NOW) is None

    def test_no_transition_on_same_topic(self):
        """Test re-deciding the current topic is not a transition."""
        decision = TopicDecision(topic_id="admission", confidence=0.6)
        assert self.detector.detect_transition("admission", decision, "apply", now=NOW) is None

    def test_no_transition_on_retained_decision(self):
        """Test retained decisions never produce transitions."""
        decision = TopicDecision(topic_id=None, retained=True)
        assert self.detector.detect_transition("admission", decision, "ok", now=NOW) is None

    def test_implicit_transition(self):
        """Test drift without a marker is implicit."""
        decision = TopicDecision(topic_id="financial", confidence=0.6)
        transition = self.detector.detect_transition(
            "admission", decision, "What about fees?", previous_confidence=0.4, now=NOW
        )

        assert transition.from_topic == "admission"
        assert transition.to_topic == "financial"
        assert transition.is_explicit is False
        assert transition.confidence_delta == pytest.approx(0.2)
        assert transition.timestamp == NOW

    def test_explicit_transition(self):
        """Test a marker makes the transition explicit."""
        decision = TopicDecision(topic_id="housing", confidence=0.3)
        transition = self.detector.detect_transition(
            "financial", decision, "switch to housing", previous_confidence=0.8, now=NOW
        )

        assert transition.is_explicit is True
        assert transition.confidence_delta == pytest.approx(-0.5)

    def test_assistant_cannot_switch_explicitly(self):
        """Test only user messages are tagged explicit."""
        decision = TopicDecision(topic_id="housing", confidence=0.3)
        transition = self.detector.detect_transition(
            "financial", decision, "switch to housing", now=NOW, is_user=False
        )

        assert transition.is_explicit is False

    def test_transition_requires_distinct_topics(self):
        """Test a transition to the same topic cannot be built."""
        with pytest.raises(ValueError):
            Transition(from_topic="admission", to_topic="admission")
