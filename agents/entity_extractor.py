"""Regex extraction of entities, named numbers and language from messages."""

import re

ARABIC_CHAR = re.compile(r"[\u0600-\u06FF]")
LATIN_CHAR = re.compile(r"[a-zA-Z]")


class EntityExtractor:
    """Extracts message-derived metadata."""

    def __init__(self):
        """Initialize extraction patterns."""
        self.entity_patterns = {
            "dates": r"\b\d{1,2}[-/]\d{1,2}[-/]\d{2,4}\b",
            "emails": r"\b[\w.-]+@[\w.-]+\.\w+\b",
            "urls": r"https?://[^\s]+",
            "numbers": r"(?<![\w/.-])\d+(?:\.\d+)?(?![\w/-])",
            "proper_nouns": r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b",
        }
        self.number_patterns = {
            "fee": r"(\d+(?:\.\d+)?)\s*(?:NIS|₪|shekels?)",
            "average": r"(\d+(?:\.\d+)?)\s*%",
            "credits": r"(\d+)\s*credit\s*hours?",
            "courses": r"(\d+)\s*courses?",
            "duration": r"(\d+)\s*years?",
        }
        # Sentence-initial words that are capitalised but carry no entity
        self.stopwords = {
            "What", "How", "When", "Where", "Why", "Who", "Which", "Is", "Are",
            "Can", "Do", "Does", "The", "A", "An", "I", "Let", "Tell", "Please",
        }

    def extract_entities(self, message: str) -> list[str]:
        """Extract entity strings in order of appearance, de-duplicated."""
        entities = []
        for entity_type, pattern in self.entity_patterns.items():
            for match in re.findall(pattern, message):
                clean = match.strip()
                if not clean or clean in self.stopwords:
                    continue
                if entity_type == "proper_nouns":
                    clean = self._strip_leading_stopwords(clean)
                    if not clean:
                        continue
                if clean not in entities:
                    entities.append(clean)
        return entities

    def extract_numbers(self, message: str) -> dict[str, float]:
        """Extract named numeric values such as fees and durations."""
        numbers = {}
        for key, pattern in self.number_patterns.items():
            match = re.search(pattern, message, re.IGNORECASE)
            if match:
                numbers[key] = float(match.group(1))
        return numbers

    def detect_language(self, message: str) -> str:
        """Return 'ar' when Arabic characters outnumber Latin ones, else 'en'."""
        arabic_count = len(ARABIC_CHAR.findall(message))
        latin_count = len(LATIN_CHAR.findall(message))
        return "ar" if arabic_count > latin_count else "en"

    def _strip_leading_stopwords(self, phrase: str) -> str:
        words = phrase.split()
        while words and words[0] in self.stopwords:
            words.pop(0)
        return " ".join(words)
