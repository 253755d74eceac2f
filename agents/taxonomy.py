"""Fixed topic taxonomy with keyword signals and priority order."""

import logging
import re
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY_PATH = Path(__file__).parent.parent / "data" / "topic_taxonomy.yaml"

ARABIC_CHARS = re.compile(r"[\u0600-\u06FF]")

# Optional conjunction (و/ف) then preposition (ب/ك/ل, or لل before a dropped alif)
ARABIC_PROCLITICS = r"(?:[وف]?(?:[بك]|لل?)?)"


def signal_regex(signal: str) -> str:
    """Regex matching a signal at a word start, allowing attached Arabic proclitics."""
    signal = signal.lower()
    if ARABIC_CHARS.search(signal):
        return r"\b" + ARABIC_PROCLITICS + re.escape(signal)
    return r"\b" + re.escape(signal)


def compile_markers(markers: list[str]) -> list[re.Pattern]:
    """
    Compile explicit-switch markers case-insensitively.

    Raises:
        ValueError: If a marker is not a valid regular expression
    """
    patterns = []
    for marker in markers:
        try:
            patterns.append(re.compile(marker, re.IGNORECASE))
        except re.error as e:
            raise ValueError(f"Invalid explicit marker {marker!r}: {e}") from e
    return patterns


class TopicDefinition(BaseModel):
    """A taxonomy topic and the phrases that signal it."""
    topic_id: str
    label: str
    signals: list[str] = Field(default_factory=list)


class TopicTaxonomy:
    """
    Static topic vocabulary.

    Topic declaration order is the priority order used to break ties.
    """

    def __init__(
        self,
        topics: list[TopicDefinition],
        explicit_markers: Optional[list[str]] = None,
        score_assistant_messages: bool = False,
    ):
        """
        Initialize taxonomy.

        Args:
            topics: Topic definitions in priority order
            explicit_markers: Regex patterns marking a deliberate subject change
            score_assistant_messages: Whether assistant messages are scored too

        Raises:
            ValueError: If topics are missing, duplicated or have no signals,
                or a marker is not a valid regular expression
        """
        if not topics:
            raise ValueError("Taxonomy must define at least one topic")

        self.topics: dict[str, TopicDefinition] = {}
        for topic in topics:
            if topic.topic_id in self.topics:
                raise ValueError(f"Duplicate topic id: {topic.topic_id}")
            if not topic.signals:
                raise ValueError(f"Topic {topic.topic_id} has no signals")
            self.topics[topic.topic_id] = topic

        self.priority: list[str] = [t.topic_id for t in topics]
        self.explicit_markers = list(explicit_markers or [])
        compile_markers(self.explicit_markers)
        self.score_assistant_messages = score_assistant_messages

        # Compile signal patterns: match at a word start, case-insensitive
        self._signal_patterns: dict[str, list[tuple[str, re.Pattern]]] = {
            topic_id: [
                (signal, re.compile(signal_regex(signal), re.IGNORECASE))
                for signal in definition.signals
            ]
            for topic_id, definition in self.topics.items()
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TopicTaxonomy":
        """Build a taxonomy from a mapping shaped like the YAML file."""
        topics_data = data.get("topics") or {}
        if not isinstance(topics_data, dict):
            raise ValueError("'topics' must be a mapping of topic id to definition")

        topics = []
        for topic_id, definition in topics_data.items():
            definition = definition or {}
            topics.append(TopicDefinition(
                topic_id=topic_id,
                label=definition.get("label", topic_id),
                signals=[str(s).strip().lower() for s in definition.get("signals", []) if str(s).strip()]
            ))

        return cls(
            topics=topics,
            explicit_markers=data.get("explicit_markers", []),
            score_assistant_messages=bool(data.get("score_assistant_messages", False)),
        )

    @classmethod
    def load(cls, path: Optional[str] = None) -> "TopicTaxonomy":
        """
        Load taxonomy from YAML.

        Args:
            path: Path to taxonomy YAML (defaults to data/topic_taxonomy.yaml)

        Returns:
            Loaded TopicTaxonomy

        Raises:
            ValueError: If the file is not valid YAML or defines an invalid taxonomy
        """
        path = Path(path) if path else DEFAULT_TAXONOMY_PATH
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid taxonomy file {path}: {e}") from e

        taxonomy = cls.from_dict(data)
        logger.info(f"Loaded taxonomy with {len(taxonomy.priority)} topics from {path}")
        return taxonomy

    def match_signals(self, topic_id: str, text: str) -> list[str]:
        """Return the distinct signals of a topic found in text."""
        return [
            signal for signal, pattern in self._signal_patterns[topic_id]
            if pattern.search(text)
        ]

    def priority_index(self, topic_id: str) -> int:
        """Position of a topic in the priority order."""
        return self.priority.index(topic_id)

    def label(self, topic_id: str) -> str:
        """Human readable label for a topic."""
        definition = self.topics.get(topic_id)
        return definition.label if definition else topic_id

    def __contains__(self, topic_id: str) -> bool:
        return topic_id in self.topics
