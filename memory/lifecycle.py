"""Conversation lifecycle: identifier rotation, readiness and purging."""

import logging
import uuid
from typing import Callable, Optional

from config.settings import Settings
from schemas.context import ConversationStatus, LifecycleState
from schemas.topics import ConversationContext
from .context_store import ContextStore

logger = logging.getLogger(__name__)


def generate_conversation_id() -> str:
    """Mint an opaque conversation identifier."""
    return uuid.uuid4().hex


class ConversationLifecycleManager:
    """
    Owns the single active conversation identifier.

    Switching ids leaves the context not ready until ensure_ready() has
    materialised it; consumers should check state.is_ready first.
    """

    def __init__(
        self,
        context_store: ContextStore,
        id_generator: Optional[Callable[[], str]] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize lifecycle manager.

        Args:
            context_store: Store holding all conversation contexts
            id_generator: Produces new conversation identifiers
            settings: Lifecycle policy settings
        """
        self.context_store = context_store
        self.id_generator = id_generator or generate_conversation_id
        self.settings = settings or context_store.settings
        self._state = LifecycleState()

    @property
    def state(self) -> LifecycleState:
        """Snapshot of the lifecycle state."""
        return self._state.model_copy()

    @property
    def conversation_id(self) -> Optional[str]:
        return self._state.conversation_id

    @property
    def is_ready(self) -> bool:
        return self._state.is_ready

    def boot(self) -> str:
        """
        Process start: always begin a fresh conversation.

        Returns:
            New conversation ID
        """
        logger.info("Starting with a fresh conversation")
        return self.start_new_conversation()

    def start_new_conversation(self) -> str:
        """
        Purge stored context and bind a newly minted conversation id.

        Returns:
            New conversation ID
        """
        if self.settings.purge_all_on_new_conversation:
            self.context_store.purge_all()
        elif self._state.conversation_id:
            self.context_store.reset_context(self._state.conversation_id, full_reset=True)

        conversation_id = self.id_generator()
        self._state = LifecycleState(
            status=ConversationStatus.ACTIVE,
            conversation_id=conversation_id,
            is_ready=False,
        )
        logger.info(f"New conversation started: {conversation_id}")
        return conversation_id

    def load_conversation(self, conversation_id: str):
        """
        Bind an existing conversation id without purging other conversations.

        Args:
            conversation_id: Conversation ID to resume
        """
        if not conversation_id:
            raise ValueError("conversation_id must be non-empty")

        self._state = LifecycleState(
            status=ConversationStatus.ACTIVE,
            conversation_id=conversation_id,
            is_ready=False,
        )
        logger.info(f"Loading conversation: {conversation_id}")

    def ensure_ready(self) -> ConversationContext:
        """
        Finish loading the active conversation's context.

        Returns:
            Context of the active conversation

        Raises:
            RuntimeError: If no conversation is active
        """
        if self._state.status != ConversationStatus.ACTIVE or not self._state.conversation_id:
            raise RuntimeError("No active conversation")

        context = self.context_store.get_or_create_context(self._state.conversation_id)
        if not self._state.is_ready:
            self._state = self._state.model_copy(update={"is_ready": True})
            logger.debug(f"Context ready for {self._state.conversation_id}")
        return context

    def current_context(self) -> ConversationContext:
        """Context of the active conversation, loading it if needed."""
        return self.ensure_ready()

    def purge_stale(self) -> list[str]:
        """Remove idle contexts; the active one is marked not ready if purged."""
        purged = self.context_store.purge_stale()
        if self._state.conversation_id in purged:
            self._state = self._state.model_copy(update={"is_ready": False})
        return purged
