"""Pydantic schemas for the conversation topic tracker."""

from .context import ConversationStatus, LifecycleState
from .topics import (
    MessageRole,
    Topic,
    Transition,
    TopicDecision,
    MessageSummary,
    ContextMetadata,
    ConversationContext,
    RankedTopic,
    ResponseContext,
)

__all__ = [
    "ConversationStatus",
    "LifecycleState",
    "MessageRole",
    "Topic",
    "Transition",
    "TopicDecision",
    "MessageSummary",
    "ContextMetadata",
    "ConversationContext",
    "RankedTopic",
    "ResponseContext",
]
