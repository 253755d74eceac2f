#!/usr/bin/env python3
"""Conversation Topic Tracker CLI."""

import argparse
import logging
import sys
from config.settings import Settings
from agents.taxonomy import TopicTaxonomy
from memory.kv_store import InMemoryKeyValueStore, PersistenceError
from memory.sqlite_store import SQLiteKeyValueStore
from memory.context_store import ContextStore
from memory.lifecycle import ConversationLifecycleManager

ASSISTANT_PREFIX = "bot:"


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Conversation Topic Tracker - follow what a chat is about, message by message"
    )
    parser.add_argument(
        "--message",
        "-m",
        action="append",
        required=True,
        help=f"Message to feed, repeatable (prefix with '{ASSISTANT_PREFIX}' for assistant messages)"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="SQLite file for persisted contexts (in memory if omitted)"
    )
    parser.add_argument(
        "--taxonomy",
        type=str,
        help="Path to topic taxonomy YAML"
    )
    parser.add_argument(
        "--conversation-id",
        type=str,
        help="Resume this conversation instead of starting a fresh one"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    settings = Settings(
        db_path=args.db_path,
        taxonomy_path=args.taxonomy,
        verbose=args.verbose,
    )

    try:
        taxonomy = TopicTaxonomy.load(settings.taxonomy_path)
    except (OSError, ValueError) as e:
        print(f"Error loading taxonomy: {e}", file=sys.stderr)
        sys.exit(1)

    # Fall back to memory when the database cannot be opened
    kv_store = InMemoryKeyValueStore()
    if settings.db_path:
        try:
            kv_store = SQLiteKeyValueStore(settings.db_path)
        except PersistenceError as e:
            print(f"Warning: {e}; contexts will not be persisted", file=sys.stderr)

    store = ContextStore(kv_store, taxonomy=taxonomy, settings=settings)
    lifecycle = ConversationLifecycleManager(store)

    if args.conversation_id:
        lifecycle.load_conversation(args.conversation_id)
    else:
        lifecycle.boot()
    lifecycle.ensure_ready()
    conversation_id = lifecycle.conversation_id

    for message in args.message:
        is_user = not message.startswith(ASSISTANT_PREFIX)
        text = message if is_user else message[len(ASSISTANT_PREFIX):].strip()
        context = store.update_context(text, is_user, conversation_id)
        if args.verbose:
            print(f"[{'user' if is_user else 'assistant'}] {text} -> {context.current_topic}")

    snapshot = store.get_context_for_response(conversation_id)
    print("\n" + "="*60)
    print("RESPONSE CONTEXT")
    print("="*60 + "\n")
    print(snapshot.model_dump_json(indent=2))
    prompt_block = store.format_context_for_prompt(conversation_id)
    if prompt_block:
        print("\n" + prompt_block)
    print("\n")


if __name__ == "__main__":
    main()
