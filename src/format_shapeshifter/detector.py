"""Heuristic format detection for raw input text."""

import csv
import io
import logging
import re
import tomllib
import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, Optional, Tuple

import yaml

from .guard import Deadline
from .options import ConversionOptions
from .parsers.json_parser import parse_json
from .types import (
    ConversionDepthError,
    ConversionError,
    ConversionTimeoutError,
    DataFormat,
    FormatDetectionResult,
)


UNKNOWN_FORMAT = "unknown"

_YAML_LINE = re.compile(r"""^\s*(?:-\s|-$|[\w"'.\- ]+:(?:\s|$))""")
_TOML_LINE = re.compile(r"""^\s*(?:\[\[?[\w"'. \-]+\]\]?|[\w"'.\-]+\s*=\s*\S)""")
_XML_START = re.compile(r"^<[A-Za-z?!_]")
_CSV_DELIMITERS = (",", "\t", ";", "|")
_SAMPLE_LINES = 50


def _content_lines(text: str) -> List[str]:
    lines = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            lines.append(line)
    return lines


class FormatDetector:
    """
    Scores input text against each supported format.

    Formats are scored in a fixed priority order (JSON, XML, YAML, CSV,
    TOML) and ties resolve to the earlier format, so detection is
    deterministic for a given input.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the format detector.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._scorers: Tuple[Tuple[DataFormat, Callable[[str, Deadline], float]], ...] = (
            (DataFormat.JSON, self.score_json),
            (DataFormat.XML, self.score_xml),
            (DataFormat.YAML, self.score_yaml),
            (DataFormat.CSV, self.score_csv),
            (DataFormat.TOML, self.score_toml),
        )

    def detect(self, text: str, deadline: Optional[Deadline] = None) -> FormatDetectionResult:
        """
        Detect the most likely format of text.

        Args:
            text: Raw input text
            deadline: Deadline of the conversion this detection belongs to

        Returns:
            FormatDetectionResult; ``unknown`` with confidence 0 when no
            format matches

        Raises:
            ConversionTimeoutError: If the deadline expires while scoring
        """
        deadline = deadline or Deadline.unbounded()
        stripped = text.strip() if isinstance(text, str) else ""
        if not stripped:
            return FormatDetectionResult(format=UNKNOWN_FORMAT, confidence=0.0)

        scores: Dict[str, float] = {}
        best_format, best_score = UNKNOWN_FORMAT, 0.0
        for data_format, scorer in self._scorers:
            deadline.check()
            score = round(scorer(stripped, deadline), 4)
            scores[data_format.value] = score
            if score > best_score:
                best_format, best_score = data_format.value, score

        self.logger.debug(f"Format detection scores: {scores}")
        return FormatDetectionResult(format=best_format, confidence=best_score, scores=scores)

    def score_json(self, text: str, deadline: Deadline) -> float:
        """0.95 for strict JSON, 0.6 for lenient JSON, otherwise 0."""
        if text[0] not in "{[" or text[-1] not in "}]":
            return 0.0
        for options, score in ((ConversionOptions(), 0.95), (ConversionOptions.lenient(), 0.6)):
            try:
                parse_json(text, options, deadline=deadline)
                return score
            except ConversionTimeoutError:
                raise
            except ConversionDepthError:
                # Structurally JSON; the depth limit is reported by the converter
                return 0.9
            except ConversionError:
                continue
        return 0.0

    def score_xml(self, text: str, deadline: Deadline) -> float:
        """0.9 for well-formed XML, 0.5 for tag-shaped text."""
        if not _XML_START.match(text) or not text.endswith(">"):
            return 0.0
        if "<!ENTITY" in text.upper():
            return 0.5
        try:
            ET.fromstring(text)
        except ET.ParseError:
            return 0.5
        deadline.check()
        return 0.9

    def score_yaml(self, text: str, deadline: Deadline) -> float:
        """``key: value`` and ``- item`` lines outside of braces score YAML."""
        if text[0] in "{[<":
            return 0.0
        lines = _content_lines(text)[:_SAMPLE_LINES]
        if not lines:
            return 0.0
        ratio = sum(1 for line in lines if _YAML_LINE.match(line)) / len(lines)
        if ratio == 0:
            return 0.0
        try:
            loaded = yaml.safe_load(text)
        except (yaml.YAMLError, RecursionError):
            # Unloadable or too deep for the loader; score on line shape alone
            return 0.3 * ratio
        deadline.check()
        if not isinstance(loaded, (dict, list)):
            return 0.0
        return 0.5 + 0.4 * ratio

    def score_csv(self, text: str, deadline: Deadline) -> float:
        """Delimited lines with a consistent column count score CSV."""
        lines = [line for line in text.splitlines() if line.strip()][:_SAMPLE_LINES]
        if len(lines) < 2:
            return 0.0
        best = 0.0
        for delimiter in _CSV_DELIMITERS:
            if delimiter not in lines[0]:
                continue
            try:
                widths = {len(row) for row in csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)}
            except csv.Error:
                continue
            if len(widths) == 1 and min(widths) >= 2:
                best = max(best, 0.8)
            elif min(widths) >= 2:
                best = max(best, 0.4)
        return best

    def score_toml(self, text: str, deadline: Deadline) -> float:
        """0.85 for a valid TOML document, partial credit for TOML-shaped lines."""
        lines = _content_lines(text)[:_SAMPLE_LINES]
        if not lines:
            return 0.0
        ratio = sum(1 for line in lines if _TOML_LINE.match(line)) / len(lines)
        if ratio == 0:
            return 0.0
        try:
            tomllib.loads(text)
        except (tomllib.TOMLDecodeError, RecursionError):
            return 0.5 * ratio
        deadline.check()
        return 0.85
