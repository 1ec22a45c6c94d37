"""TOML parser built on the standard library ``tomllib``."""

import re
import tomllib
from decimal import Decimal
from typing import Any, Optional

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import MalformedDataError
from .context import ParseContext, to_value


_POSITION = re.compile(r"\s*\(at line (\d+), column (\d+)\)$")


def parse_toml(text: str, options: Optional[ConversionOptions] = None,
               context: Optional[ParseContext] = None,
               deadline: Optional[Deadline] = None) -> Any:
    """
    Parse a TOML document.

    Floats are read as exact decimals; dates and times become ISO 8601
    strings.

    Args:
        text: Source text
        options: Conversion options
        context: Existing parse context to collect warnings into
        deadline: Deadline used when no context is given

    Returns:
        The parsed document as an object

    Raises:
        MalformedDataError: On syntax errors, including redefined keys
        ConversionDepthError: If nesting exceeds the depth limit
    """
    context = context or ParseContext.create(options, deadline)

    try:
        native = tomllib.loads(text.lstrip("\ufeff"), parse_float=Decimal)
    except tomllib.TOMLDecodeError as exc:
        line = getattr(exc, "lineno", None)
        column = getattr(exc, "colno", None)
        message = getattr(exc, "msg", None) or str(exc)
        match = _POSITION.search(message)
        if match:
            line, column = int(match.group(1)), int(match.group(2))
            message = message[:match.start()]
        raise MalformedDataError(f"Malformed TOML: {message}", line=line, column=column) from None

    context.deadline.check()
    return to_value(native, context)
