"""Topic tracking schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessageRole(str, Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


class Topic(BaseModel):
    """A tracked topic in the active set."""
    topic_id: str
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    peak_confidence: float = Field(0.0, ge=0.0, le=1.0, description="Confidence at last_discussed")
    last_discussed: datetime = Field(default_factory=datetime.now)
    mention_count: int = 0


class Transition(BaseModel):
    """A recorded switch from one current topic to another."""
    model_config = ConfigDict(frozen=True)

    from_topic: str
    to_topic: str
    timestamp: datetime = Field(default_factory=datetime.now)
    is_explicit: bool = False
    confidence_delta: float = 0.0

    @model_validator(mode="after")
    def _check_distinct_topics(self) -> "Transition":
        if self.from_topic == self.to_topic:
            raise ValueError("Transition must change topic")
        return self


class TopicDecision(BaseModel):
    """Output of topic inference for a single message."""
    topic_id: Optional[str] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    matched_signals: list[str] = Field(default_factory=list)
    retained: bool = False  # True when the previous topic was kept for lack of evidence
    scores: dict[str, float] = Field(default_factory=dict)


class MessageSummary(BaseModel):
    """Short record of a message kept for response shaping."""
    role: MessageRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ContextMetadata(BaseModel):
    """Message-derived metadata refreshed on every update."""
    language: str = "en"
    entities: list[str] = Field(default_factory=list)
    numbers: dict[str, float] = Field(default_factory=dict)
    recent_messages: list[MessageSummary] = Field(default_factory=list)
    message_count: int = 0
    user_message_count: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
    last_interaction: datetime = Field(default_factory=datetime.now)


class ConversationContext(BaseModel):
    """Complete topic state for one conversation."""
    conversation_id: str
    current_topic: Optional[str] = None
    topics: dict[str, Topic] = Field(default_factory=dict)
    transitions: list[Transition] = Field(default_factory=list)
    metadata: ContextMetadata = Field(default_factory=ContextMetadata)

    def is_empty(self) -> bool:
        """Whether no topic state has been recorded."""
        return self.current_topic is None and not self.topics and not self.transitions


class RankedTopic(BaseModel):
    """Active topic entry in a response snapshot."""
    model_config = ConfigDict(frozen=True)

    topic_id: str
    confidence: float


class ResponseContext(BaseModel):
    """Read-only projection handed to the response generator."""
    model_config = ConfigDict(frozen=True)

    conversation_id: str
    current_topic: Optional[str] = None
    active_topics: tuple[RankedTopic, ...] = ()
    recent_transitions: tuple[Transition, ...] = ()
    language: str = "en"
    entities: tuple[str, ...] = ()
    numbers: dict[str, float] = Field(default_factory=dict)
    degraded: bool = False
