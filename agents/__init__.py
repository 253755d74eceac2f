"""Topic tracking agents for the conversation context pipeline."""

from .taxonomy import TopicTaxonomy, TopicDefinition
from .topic_inference import TopicInferenceAgent
from .confidence import ConfidenceTracker, exponential_decay, linear_decay
from .transition import TransitionDetector, ExplicitSwitchDetector
from .entity_extractor import EntityExtractor

__all__ = [
    "TopicTaxonomy",
    "TopicDefinition",
    "TopicInferenceAgent",
    "ConfidenceTracker",
    "exponential_decay",
    "linear_decay",
    "TransitionDetector",
    "ExplicitSwitchDetector",
    "EntityExtractor",
]
