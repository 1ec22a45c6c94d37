"""Tests for format detection."""

import pytest

from format_shapeshifter.detector import UNKNOWN_FORMAT, FormatDetector
from format_shapeshifter.guard import Deadline
from format_shapeshifter.types import ConversionTimeoutError


class TestFormatDetector:
    """Tests for FormatDetector class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.detector = FormatDetector()

    def test_detect_json(self):
        result = self.detector.detect('{"a":1}')

        assert result.format == "json"
        assert result.confidence > 0.9

    def test_detect_lenient_json(self):
        result = self.detector.detect("{a: 1, // note\n}")

        assert result.format == "json"
        assert result.confidence == pytest.approx(0.6)

    def test_detect_yaml(self):
        result = self.detector.detect("name: John\nage: 30")

        assert result.format == "yaml"
        assert result.confidence > 0.5

    def test_detect_xml(self, sample_xml):
        result = self.detector.detect(sample_xml)

        assert result.format == "xml"
        assert result.confidence == pytest.approx(0.9)

    def test_detect_csv(self, sample_csv):
        result = self.detector.detect(sample_csv)

        assert result.format == "csv"
        assert result.confidence == pytest.approx(0.8)

    def test_detect_toml(self, sample_toml):
        result = self.detector.detect(sample_toml)

        assert result.format == "toml"
        assert result.confidence == pytest.approx(0.85)

    def test_scores_reported_for_every_format(self):
        result = self.detector.detect('{"a":1}')

        assert set(result.scores) == {"json", "xml", "yaml", "csv", "toml"}

    def test_empty_input_is_unknown(self):
        result = self.detector.detect("   ")

        assert result.format == UNKNOWN_FORMAT
        assert result.confidence == 0.0

    def test_plain_sentence_is_unknown(self):
        assert self.detector.detect("just some words").format == UNKNOWN_FORMAT

    def test_deep_json_still_detected(self):
        result = self.detector.detect("[" * 500 + "]" * 500)

        assert result.format == "json"

    def test_detection_is_deterministic(self):
        text = "a: 1\nb: 2\n"

        assert self.detector.detect(text) == self.detector.detect(text)

    def test_deep_yaml_scored_by_shape(self):
        """Test that YAML too deep for the loader is still scored, not raised."""
        result = self.detector.detect("- " * 2000 + "1\n")

        assert result.format == "yaml"
        assert result.confidence > 0

    def test_deep_toml_scored_by_shape(self):
        result = self.detector.detect("a = " + "[" * 2000 + "]" * 2000)

        assert result.format == "toml"
        assert result.confidence > 0

    def test_deadline_is_checked(self, stepping_clock):
        with pytest.raises(ConversionTimeoutError):
            self.detector.detect('{"a": 1}', Deadline(1, clock=stepping_clock))
