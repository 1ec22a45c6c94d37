"""Size calculation utilities for conversion input and output."""

import logging
from typing import Any, Dict, Optional


class SizeCalculator:
    """
    Utility class for byte-size accounting of conversion text.

    Sizes are always measured in UTF-8 bytes, which is what the resource
    limits are expressed in.
    """

    MAX_UTF8_BYTES_PER_CHAR = 4

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the size calculator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def utf8_length(text: str) -> int:
        """
        Calculate the UTF-8 encoded length of text.

        Lone surrogates (possible after ``\\uD800`` style escapes) are
        counted as their 3-byte encodings instead of failing.

        Args:
            text: Text to measure

        Returns:
            Size in bytes
        """
        return len(text.encode("utf-8", errors="surrogatepass"))

    def exceeds(self, text: str, limit: int) -> Optional[int]:
        """
        Check whether text exceeds a byte limit.

        Avoids encoding when the character count alone decides the answer.

        Args:
            text: Text to measure
            limit: Byte limit

        Returns:
            The byte size when the limit is exceeded, otherwise None
        """
        if len(text) > limit:
            return self.utf8_length(text)
        if len(text) * self.MAX_UTF8_BYTES_PER_CHAR <= limit:
            return None
        size = self.utf8_length(text)
        return size if size > limit else None

    @staticmethod
    def compression_ratio(original_size: int, converted_size: int) -> float:
        """
        Calculate the relative size reduction of a conversion.

        Args:
            original_size: Input size in bytes
            converted_size: Output size in bytes

        Returns:
            ``(original - converted) / original``; 0.0 for empty input
        """
        if original_size <= 0:
            return 0.0
        return (original_size - converted_size) / original_size

    @staticmethod
    def format_size(size: int) -> str:
        """Render a byte count for log messages."""
        if size < 1024:
            return f"{size}B"
        if size < 1024 * 1024:
            return f"{size / 1024:.1f}KiB"
        return f"{size / 1024 / 1024:.1f}MiB"

    def estimate_memory_usage(self, text: str) -> Dict[str, Any]:
        """
        Estimate peak memory needed to convert text.

        Args:
            text: Input text

        Returns:
            Dictionary with memory usage estimates in bytes
        """
        input_size = self.utf8_length(text)

        # Conservative overheads: parse tree, serializer buffers, output copy
        parsing_overhead = input_size * 2
        output_overhead = input_size * 1.5
        total_estimated = input_size + parsing_overhead + output_overhead

        return {
            "input_size": input_size,
            "parsing_overhead": parsing_overhead,
            "output_overhead": output_overhead,
            "total_estimated": total_estimated,
            "recommended_memory_mb": int(total_estimated / 1024 / 1024 * 1.2),
        }
