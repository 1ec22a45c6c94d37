"""Per-call parse state shared by all format parsers."""

import datetime
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional

from ..guard import Deadline
from ..options import ConversionOptions, resolve_limits
from ..types import ConversionDepthError, ParseError, Severity
from ..values import round_decimal


@dataclass
class ParseContext:
    """
    Options, deadline, depth limit and collected warnings for one parse.

    A context is created per call and never shared between conversions.
    """
    options: ConversionOptions
    deadline: Deadline
    max_depth: int
    warnings: List[ParseError] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    @classmethod
    def create(cls, options: Optional[ConversionOptions] = None,
               deadline: Optional[Deadline] = None,
               logger: Optional[logging.Logger] = None) -> "ParseContext":
        """Build a context from options, falling back to the engine defaults."""
        options = options or ConversionOptions()
        limits = resolve_limits(options)
        return cls(
            options=options,
            deadline=deadline or Deadline(limits.timeout_ms),
            max_depth=limits.max_depth,
            logger=logger or logging.getLogger(__name__),
        )

    def warn(self, message: str, code: str, line: Optional[int] = None,
             column: Optional[int] = None) -> None:
        self.logger.warning(message)
        self.warnings.append(ParseError(
            line=line, column=column, message=message,
            severity=Severity.WARNING, code=code,
        ))

    def enter(self, depth: int, line: Optional[int] = None,
              column: Optional[int] = None) -> None:
        """
        Account for entering a container at ``depth``.

        Raises:
            ConversionDepthError: If ``depth`` exceeds the limit
            ConversionTimeoutError: If the deadline expired
        """
        if depth > self.max_depth:
            raise ConversionDepthError(None, self.max_depth, line=line, column=column)
        self.deadline.tick()


def to_value(native: Any, context: ParseContext) -> Any:
    """
    Normalize objects produced by third-party loaders into the Value Model.

    Keys become strings, fractional numbers are rounded to the configured
    precision, dates become ISO 8601 strings and shared (aliased) nodes are
    converted once.

    Args:
        native: Loader output
        context: Active parse context

    Returns:
        An equivalent Value Model tree
    """
    precision = context.options.number_precision
    memo = {}

    def convert(node: Any, depth: int) -> Any:
        if node is None or isinstance(node, (bool, int, str)):
            return node
        if isinstance(node, float):
            node = Decimal(repr(node))
        if isinstance(node, Decimal):
            return round_decimal(node, precision)
        if isinstance(node, (datetime.date, datetime.time)):
            return node.isoformat()
        if isinstance(node, bytes):
            return node.decode("utf-8", errors="replace")

        if id(node) in memo:
            return memo[id(node)]

        context.enter(depth + 1)
        if isinstance(node, dict):
            result = {}
            memo[id(node)] = result
            for key, item in node.items():
                result[_key_text(key)] = convert(item, depth + 1)
            return result
        if isinstance(node, (list, tuple, set, frozenset)):
            result = []
            memo[id(node)] = result
            items = sorted(node, key=repr) if isinstance(node, (set, frozenset)) else node
            result.extend(convert(item, depth + 1) for item in items)
            return result
        return str(node)

    return convert(native, 0)


def _key_text(key: Any) -> str:
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (datetime.date, datetime.time)):
        return key.isoformat()
    return str(key)
