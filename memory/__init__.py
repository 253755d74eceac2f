"""Memory system for conversation topic context persistence."""

from .kv_store import KeyValueStore, InMemoryKeyValueStore, PersistenceError
from .sqlite_store import SQLiteKeyValueStore
from .context_store import ContextStore
from .lifecycle import ConversationLifecycleManager, generate_conversation_id

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "PersistenceError",
    "SQLiteKeyValueStore",
    "ContextStore",
    "ConversationLifecycleManager",
    "generate_conversation_id",
]
