"""Shared serializer plumbing."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Tuple

from ..guard import Deadline
from ..options import ConversionOptions
from ..values import format_number, ordered_items


class SerializerInterface(ABC):
    """Interface every format serializer implements."""

    @abstractmethod
    def serialize(self, value: Any) -> str:
        """Render a Value Model tree as text."""
        pass


class BaseSerializer(SerializerInterface):
    """Options, deadline and helpers shared by all serializers."""

    format_name = ""

    def __init__(self, options: Optional[ConversionOptions] = None,
                 deadline: Optional[Deadline] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the serializer.

        Args:
            options: Conversion options
            deadline: Deadline ticked once per rendered node
            logger: Optional logger instance
        """
        self.options = options or ConversionOptions()
        self.deadline = deadline or Deadline.unbounded()
        self.logger = logger or logging.getLogger(type(self).__module__)

    def items(self, mapping: Dict[str, Any]) -> Iterable[Tuple[str, Any]]:
        """Object members in the requested key order."""
        return ordered_items(mapping, self.options.sort_keys)

    def number(self, value: Any) -> Optional[str]:
        """Render a number; None for NaN and infinities."""
        return format_number(value, self.options.number_precision)

    def finish(self, text: str) -> str:
        """Apply the final-newline option."""
        text = text.rstrip("\n")
        return text + "\n" if self.options.final_newline else text
