"""Conversation lifecycle schemas."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class ConversationStatus(str, Enum):
    """Lifecycle status of the active conversation slot."""
    NO_CONVERSATION = "no_conversation"
    ACTIVE = "active"


class LifecycleState(BaseModel):
    """Observable lifecycle state for dependent consumers."""
    status: ConversationStatus = ConversationStatus.NO_CONVERSATION
    conversation_id: Optional[str] = Field(None, description="Active conversation identifier")
    is_ready: bool = Field(False, description="Context has finished (re)loading for the active id")
