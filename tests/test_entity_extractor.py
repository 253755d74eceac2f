"""Tests for message metadata extraction."""

from agents.entity_extractor import EntityExtractor


class TestEntityExtractor:
    """Test entity, number and language extraction."""

    def setup_method(self):
        """Set up test fixtures."""
        self.extractor = EntityExtractor()

    def test_named_numbers(self):
        """Test fees and durations are extracted by name."""
        numbers = self.extractor.extract_numbers("Is the fee 2500 NIS for 4 years?")

        assert numbers == {"fee": 2500.0, "duration": 4.0}

    def test_average_and_credits(self):
        """Test percentages and credit hours are extracted."""
        numbers = self.extractor.extract_numbers("I got 85% and need 132 credit hours")

        assert numbers["average"] == 85.0
        assert numbers["credits"] == 132.0

    def test_entities(self):
        """Test numbers and proper nouns are collected in order."""
        entities = self.extractor.extract_entities(
            "Is the fee 2500 NIS for 4 years at Arab American University?"
        )

        assert entities == ["2500", "4", "Arab American University"]

    def test_question_words_are_not_entities(self):
        """Test capitalised sentence starters are ignored."""
        assert self.extractor.extract_entities("What are the admission requirements?") == []
        assert self.extractor.extract_entities("Let's switch to housing") == []

    def test_email_entity(self):
        """Test emails are extracted."""
        entities = self.extractor.extract_entities("contact admissions@aaup.edu please")

        assert "admissions@aaup.edu" in entities

    def test_detect_language(self):
        """Test Arabic and English detection."""
        assert self.extractor.detect_language("كم الرسوم الدراسية؟") == "ar"
        assert self.extractor.detect_language("How much are the fees?") == "en"
        assert self.extractor.detect_language("12345") == "en"
