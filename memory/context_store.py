"""Per-conversation topic context store."""

import logging
from datetime import datetime
from typing import Callable, Optional

from agents.confidence import ConfidenceTracker, DecayFunction, exponential_decay
from agents.entity_extractor import EntityExtractor
from agents.taxonomy import TopicTaxonomy
from agents.topic_inference import TopicInferenceAgent
from agents.transition import ExplicitSwitchDetector, TransitionDetector
from config.settings import Settings
from schemas.topics import (
    ConversationContext,
    MessageRole,
    MessageSummary,
    RankedTopic,
    ResponseContext,
    Transition,
)
from .kv_store import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)

CONTEXT_KEY_PREFIX = "context_"
SUMMARY_MAX_CHARS = 120


class ContextStore:
    """
    Keeps topic state per conversation id on top of a key-value store.

    Persistence failures never reach the caller: the store switches to an
    in-memory cache for the rest of the session and reports itself degraded.
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        taxonomy: Optional[TopicTaxonomy] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        decay: Optional[DecayFunction] = None,
        is_explicit_switch: Optional[Callable[[str], bool]] = None,
        on_degraded: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize context store.

        Args:
            kv_store: Persistence backend shared by all conversations
            taxonomy: Topic taxonomy (loaded from settings.taxonomy_path if omitted)
            settings: Tracker settings
            clock: Returns the current time
            decay: Confidence decay curve (exponential by default)
            is_explicit_switch: Override for explicit switch detection
            on_degraded: Called once with the reason when persistence fails
        """
        self.settings = settings or Settings()
        self.kv_store = kv_store
        self.taxonomy = taxonomy or TopicTaxonomy.load(self.settings.taxonomy_path)
        self.clock = clock or datetime.now
        self.on_degraded = on_degraded

        self.is_explicit_switch = is_explicit_switch or ExplicitSwitchDetector(
            self.taxonomy.explicit_markers
        )
        self.inference = TopicInferenceAgent(
            taxonomy=self.taxonomy,
            is_explicit_switch=self.is_explicit_switch,
            min_score=self.settings.min_score,
            continuity_bonus=self.settings.continuity_bonus,
            saturation_score=self.settings.saturation_score,
        )
        self.tracker = ConfidenceTracker(
            decay=decay or exponential_decay(self.settings.decay_half_life_seconds),
            boost_amount=self.settings.boost_amount,
            retention_threshold=self.settings.retention_threshold,
        )
        self.transition_detector = TransitionDetector(self.is_explicit_switch)
        self.extractor = EntityExtractor()

        # Filled only once persistence has failed; the only source of truth then
        self._cache: dict[str, ConversationContext] = {}
        self.degraded = False
        self.degradation_reason: Optional[str] = None

    # Operations

    def get_or_create_context(self, conversation_id: str) -> ConversationContext:
        """
        Fetch the context for a conversation, creating an empty one if needed.

        Args:
            conversation_id: Conversation ID

        Returns:
            A copy of the stored ConversationContext (never None)
        """
        context = self._load(conversation_id)
        if context is None:
            logger.info(f"Creating new context for {conversation_id}")
            context = self._new_context(conversation_id)
            self._save(context)
        return context.model_copy(deep=True)

    def update_context(
        self,
        message: str,
        is_user: bool,
        conversation_id: str
    ) -> ConversationContext:
        """
        Run inference, confidence tracking and transition detection for a message.

        Args:
            message: Message text
            is_user: True for user messages, False for assistant messages
            conversation_id: Conversation ID

        Returns:
            Updated ConversationContext
        """
        context = self.get_or_create_context(conversation_id)

        if not message or not message.strip():
            logger.debug(f"Empty message for {conversation_id}, context unchanged")
            return context

        now = self.clock()
        role = MessageRole.USER if is_user else MessageRole.ASSISTANT
        self._update_metadata(context, message, role, now)

        if is_user or self.taxonomy.score_assistant_messages:
            self._apply_topic_pipeline(context, message, is_user, now)

        self._save(context)
        return context.model_copy(deep=True)

    def reset_context(self, conversation_id: str, full_reset: bool = True):
        """
        Reset the context of a conversation.

        Args:
            conversation_id: Conversation ID
            full_reset: Erase everything (True) or only the active topic state (False)
        """
        if full_reset:
            self._cache.pop(conversation_id, None)
            self._remove_key(self._key(conversation_id))
            logger.info(f"Context erased for {conversation_id}")
            return

        context = self.get_or_create_context(conversation_id)
        context.topics = {}
        context.current_topic = None
        self._save(context)
        logger.info(f"Topic state cleared for {conversation_id}, transitions kept")

    def get_context_for_response(self, conversation_id: str) -> ResponseContext:
        """
        Build the read-only snapshot for the response generator.

        Args:
            conversation_id: Conversation ID

        Returns:
            ResponseContext with ranked topics and recent transitions
        """
        context = self.get_or_create_context(conversation_id)

        ranked = sorted(
            context.topics.values(),
            key=lambda topic: (-topic.confidence, self._priority(topic.topic_id))
        )
        top_n = self.settings.response_top_n
        recent_k = self.settings.response_recent_transitions

        return ResponseContext(
            conversation_id=conversation_id,
            current_topic=context.current_topic,
            active_topics=tuple(
                RankedTopic(topic_id=topic.topic_id, confidence=topic.confidence)
                for topic in ranked[:top_n]
            ),
            recent_transitions=tuple(context.transitions[-recent_k:]) if recent_k > 0 else (),
            language=context.metadata.language,
            entities=tuple(context.metadata.entities),
            numbers=dict(context.metadata.numbers),
            degraded=self.degraded,
        )

    def format_context_for_prompt(self, conversation_id: str) -> str:
        """
        Get the response snapshot as a text block for a system prompt.

        Args:
            conversation_id: Conversation ID

        Returns:
            Formatted context string, empty if nothing is known yet
        """
        snapshot = self.get_context_for_response(conversation_id)

        if not snapshot.current_topic and not snapshot.numbers and not snapshot.recent_transitions:
            return ""

        parts = ["=== Conversation Context ==="]
        if snapshot.current_topic:
            parts.append(f"Current topic: {self.taxonomy.label(snapshot.current_topic)}")
        if snapshot.active_topics:
            ranked = ", ".join(
                f"{self.taxonomy.label(t.topic_id)} ({t.confidence:.2f})"
                for t in snapshot.active_topics
            )
            parts.append(f"Active topics: {ranked}")
        for transition in snapshot.recent_transitions:
            kind = "explicit" if transition.is_explicit else "implicit"
            parts.append(f"Switched from {transition.from_topic} to {transition.to_topic} ({kind})")
        if snapshot.numbers:
            parts.append("Extracted values:")
            for key, value in snapshot.numbers.items():
                parts.append(f"- {key}: {value:g}")
        parts.append("=== End Conversation Context ===")

        return "\n".join(parts)

    def list_conversations(self) -> list[str]:
        """Conversation ids with stored context."""
        return [key[len(CONTEXT_KEY_PREFIX):] for key in self._context_keys()]

    def purge_all(self) -> int:
        """
        Remove every stored context under the context namespace.

        Returns:
            Number of contexts removed
        """
        keys = set(self._context_keys()) | {self._key(cid) for cid in self._cache}
        for key in keys:
            self._remove_key(key)
        self._cache.clear()
        logger.info(f"Purged {len(keys)} stored contexts")
        return len(keys)

    def purge_stale(self, now: Optional[datetime] = None) -> list[str]:
        """
        Remove contexts idle for longer than the session timeout.

        Args:
            now: Reference time (defaults to the store clock)

        Returns:
            Purged conversation ids
        """
        now = now or self.clock()
        purged = []
        for conversation_id in self.list_conversations():
            context = self._load(conversation_id)
            if context is None:
                continue
            idle = (now - context.metadata.last_interaction).total_seconds()
            if idle > self.settings.session_timeout_seconds:
                self.reset_context(conversation_id, full_reset=True)
                purged.append(conversation_id)

        if purged:
            logger.info(f"Purged {len(purged)} stale contexts")
        return purged

    # Pipeline

    def _apply_topic_pipeline(
        self,
        context: ConversationContext,
        message: str,
        is_user: bool,
        now: datetime
    ):
        """Infer, track confidence, detect transition and merge into context."""
        previous_topic = context.current_topic
        previous_confidence = 0.0
        if previous_topic in context.topics:
            previous_confidence = self.tracker.decayed_confidence(context.topics[previous_topic], now)

        decision = self.inference.infer_topic(message, context)
        topics = self.tracker.apply_decision(context, decision, now)
        transition = self.transition_detector.detect_transition(
            previous_topic,
            decision,
            message,
            previous_confidence=previous_confidence,
            now=now,
            is_user=is_user,
        )

        context.topics = topics
        if not decision.retained and decision.topic_id is not None:
            context.current_topic = decision.topic_id
        if transition is not None:
            self._append_transition(context, transition)
            logger.info(
                f"Topic transition in {context.conversation_id}: "
                f"{transition.from_topic} -> {transition.to_topic} "
                f"({'explicit' if transition.is_explicit else 'implicit'})"
            )

    def _append_transition(self, context: ConversationContext, transition: Transition):
        """Append keeping timestamp order and the configured history bound."""
        if context.transitions and transition.timestamp < context.transitions[-1].timestamp:
            transition = transition.model_copy(update={"timestamp": context.transitions[-1].timestamp})
        context.transitions.append(transition)

        overflow = len(context.transitions) - self.settings.max_transitions
        if overflow > 0:
            del context.transitions[:overflow]

    def _update_metadata(
        self,
        context: ConversationContext,
        message: str,
        role: MessageRole,
        now: datetime
    ):
        """Refresh message-derived metadata."""
        metadata = context.metadata
        metadata.language = self.extractor.detect_language(message)

        for entity in self.extractor.extract_entities(message):
            if entity in metadata.entities:
                metadata.entities.remove(entity)
            metadata.entities.append(entity)
        if len(metadata.entities) > self.settings.max_entities:
            metadata.entities = metadata.entities[-self.settings.max_entities:]

        metadata.numbers.update(self.extractor.extract_numbers(message))

        text = message.strip()
        if len(text) > SUMMARY_MAX_CHARS:
            text = text[:SUMMARY_MAX_CHARS - 3] + "..."
        metadata.recent_messages.append(MessageSummary(role=role, text=text, timestamp=now))
        limit = self.settings.recent_message_limit
        if len(metadata.recent_messages) > limit:
            metadata.recent_messages = metadata.recent_messages[-limit:]

        metadata.message_count += 1
        if role == MessageRole.USER:
            metadata.user_message_count += 1
        metadata.last_interaction = now

    # Persistence

    def _key(self, conversation_id: str) -> str:
        return f"{CONTEXT_KEY_PREFIX}{conversation_id}"

    def _priority(self, topic_id: str) -> int:
        if topic_id in self.taxonomy:
            return self.taxonomy.priority_index(topic_id)
        return len(self.taxonomy.priority)

    def _new_context(self, conversation_id: str) -> ConversationContext:
        now = self.clock()
        context = ConversationContext(conversation_id=conversation_id)
        context.metadata.created_at = now
        context.metadata.last_interaction = now
        return context

    def _load(self, conversation_id: str) -> Optional[ConversationContext]:
        """Read and deserialize a context; corrupt entries count as absent."""
        if self.degraded:
            return self._cache.get(conversation_id)

        try:
            raw = self.kv_store.get(self._key(conversation_id))
        except PersistenceError as e:
            self._degrade(str(e))
            return self._cache.get(conversation_id)

        if raw is None:
            return None

        try:
            context = ConversationContext.model_validate_json(raw)
        except ValueError as e:
            logger.warning(f"Discarding corrupt context for {conversation_id}: {e}")
            return None

        if context.conversation_id != conversation_id:
            logger.warning(f"Discarding context stored under {conversation_id} for {context.conversation_id}")
            return None

        return context

    def _save(self, context: ConversationContext):
        if not self.degraded:
            try:
                self.kv_store.set(self._key(context.conversation_id), context.model_dump_json().encode("utf-8"))
                return
            except PersistenceError as e:
                self._degrade(str(e))

        self._cache[context.conversation_id] = context.model_copy(deep=True)

    def _remove_key(self, key: str):
        if self.degraded:
            return
        try:
            self.kv_store.remove(key)
        except PersistenceError as e:
            self._degrade(str(e))

    def _context_keys(self) -> list[str]:
        if self.degraded:
            return [self._key(cid) for cid in self._cache]
        try:
            keys = self.kv_store.list_keys()
        except PersistenceError as e:
            self._degrade(str(e))
            return [self._key(cid) for cid in self._cache]
        return [key for key in keys if key.startswith(CONTEXT_KEY_PREFIX)]

    def _degrade(self, reason: str):
        """Switch to in-memory operation for the rest of the session."""
        if self.degraded:
            return
        self.degraded = True
        self.degradation_reason = reason
        logger.warning(f"Context persistence unavailable, continuing in memory: {reason}")
        if self.on_degraded:
            self.on_degraded(reason)
