"""YAML parser built on PyYAML's safe loader."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import yaml

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import MalformedDataError
from .context import ParseContext, to_value


_SPECIAL_FLOATS = {
    ".inf": Decimal("Infinity"),
    "+.inf": Decimal("Infinity"),
    "-.inf": Decimal("-Infinity"),
    ".nan": Decimal("NaN"),
}


class _ValueLoader(yaml.SafeLoader):
    """Safe loader that keeps fractional numbers exact and dates as text."""


def _construct_decimal(loader: _ValueLoader, node: yaml.ScalarNode) -> Decimal:
    raw = loader.construct_scalar(node).replace("_", "").lower()
    if raw in _SPECIAL_FLOATS:
        return _SPECIAL_FLOATS[raw]
    try:
        return Decimal(raw)
    except InvalidOperation:
        # Sexagesimal and other YAML 1.1 forms
        return Decimal(repr(loader.construct_yaml_float(node)))


def _construct_timestamp_text(loader: _ValueLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


_ValueLoader.add_constructor("tag:yaml.org,2002:float", _construct_decimal)
_ValueLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_timestamp_text)


def parse_yaml(text: str, options: Optional[ConversionOptions] = None,
               context: Optional[ParseContext] = None,
               deadline: Optional[Deadline] = None) -> Any:
    """
    Parse a single YAML document.

    Args:
        text: Source text
        options: Conversion options
        context: Existing parse context to collect warnings into
        deadline: Deadline used when no context is given

    Returns:
        The parsed Value Model tree

    Raises:
        MalformedDataError: On syntax or indentation errors
        ConversionDepthError: If nesting exceeds the depth limit
    """
    context = context or ParseContext.create(options, deadline)

    try:
        native = yaml.load(text, Loader=_ValueLoader)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        details = ", ".join(part for part in (exc.context, exc.problem) if part)
        raise MalformedDataError(f"Malformed YAML: {details or exc}", line=line, column=column) from None
    except yaml.YAMLError as exc:
        raise MalformedDataError(f"Malformed YAML: {exc}") from None

    context.deadline.check()
    return to_value(native, context)
