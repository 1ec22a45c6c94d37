"""Conversion options and engine-wide default resource limits."""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Union

from .types import (
    ConversionError,
    DuplicateKeyPolicy,
    ErrorType,
    FormatStyle,
    IndentStyle,
    QuoteStyle,
    RowLengthPolicy,
    ScalarStyle,
    SortOrder,
)
from .utils.validation import ValidationUtils


logger = logging.getLogger(__name__)

DEFAULT_MAX_INPUT_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_OUTPUT_BYTES = 50 * 1024 * 1024
DEFAULT_MAX_DEPTH = 100
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_REPEATED_CHARS = 1000
DEFAULT_NUMBER_PRECISION = 6

DEFAULT_DENIED_PATTERNS: Tuple[str, ...] = (
    r"<script",
    r"javascript:",
    r"vbscript:",
    r"onload\s*=",
    r"onerror\s*=",
    r"eval\(",
    r"Function\(",
    r"setTimeout\(",
    r"setInterval\(",
)


def _coerce_enum(instance, name: str, enum_cls) -> None:
    """Accept enum values given as plain strings on frozen dataclasses."""
    value = getattr(instance, name)
    if not isinstance(value, enum_cls):
        object.__setattr__(instance, name, enum_cls(value))


@dataclass(frozen=True)
class ResourceLimits:
    """Hard limits enforced by the resource guard."""
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    max_depth: int = DEFAULT_MAX_DEPTH
    timeout_ms: Optional[float] = DEFAULT_TIMEOUT_MS
    max_repeated_chars: int = DEFAULT_MAX_REPEATED_CHARS
    denied_patterns: Tuple[str, ...] = DEFAULT_DENIED_PATTERNS

    def __post_init__(self):
        if not isinstance(self.denied_patterns, tuple):
            object.__setattr__(self, "denied_patterns", tuple(self.denied_patterns))


@dataclass(frozen=True)
class XmlOptions:
    """XML parsing and serialization options."""
    root: str = "root"
    item_name: str = "item"
    attribute_prefix: str = "@"
    text_key: str = "#text"
    attributes: bool = True
    declaration: bool = True
    cdata: bool = True
    use_cdata: bool = False
    self_closing: bool = True
    coerce_types: bool = True


@dataclass(frozen=True)
class YamlOptions:
    """YAML serialization options."""
    indent: int = 2
    flow_style: bool = False
    scalar_style: ScalarStyle = ScalarStyle.PLAIN

    def __post_init__(self):
        _coerce_enum(self, "scalar_style", ScalarStyle)


@dataclass(frozen=True)
class CsvOptions:
    """CSV parsing and serialization options."""
    delimiter: str = ","
    quote_char: str = '"'
    header: bool = True
    columns: Optional[Tuple[str, ...]] = None
    row_length: RowLengthPolicy = RowLengthPolicy.LENIENT
    coerce_types: bool = True
    flatten: bool = True
    array_delimiter: str = ";"
    include_nulls: bool = False

    def __post_init__(self):
        _coerce_enum(self, "row_length", RowLengthPolicy)
        if self.columns is not None and not isinstance(self.columns, tuple):
            object.__setattr__(self, "columns", tuple(self.columns))


@dataclass(frozen=True)
class TomlOptions:
    """TOML serialization options."""
    tables: bool = True
    inline_array_tables: bool = False
    skip_nulls: bool = False


@dataclass(frozen=True)
class ConversionOptions:
    """
    Immutable configuration for exactly one conversion call.

    ``sort_keys`` accepts a bool (True means ascending) or a SortOrder;
    ``indent`` accepts an IndentStyle or a number of spaces.
    """
    style: FormatStyle = FormatStyle.PRETTY
    indent: Union[IndentStyle, int] = IndentStyle.SPACES_2
    item_separator: str = ","
    key_separator: str = ": "
    quote_style: QuoteStyle = QuoteStyle.DOUBLE
    number_precision: Optional[int] = DEFAULT_NUMBER_PRECISION
    sort_keys: Union[bool, SortOrder] = SortOrder.NONE
    escape_unicode: bool = False
    final_newline: bool = False

    # Lenient JSON
    allow_comments: bool = False
    allow_trailing_commas: bool = False
    allow_single_quotes: bool = False
    allow_unquoted_keys: bool = False
    allow_hex_numbers: bool = False
    duplicate_keys: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST

    repair_mode: bool = False

    xml: XmlOptions = field(default_factory=XmlOptions)
    yaml: YamlOptions = field(default_factory=YamlOptions)
    csv: CsvOptions = field(default_factory=CsvOptions)
    toml: TomlOptions = field(default_factory=TomlOptions)

    limits: Optional[ResourceLimits] = None

    def __post_init__(self):
        _coerce_enum(self, "style", FormatStyle)
        _coerce_enum(self, "quote_style", QuoteStyle)
        _coerce_enum(self, "duplicate_keys", DuplicateKeyPolicy)
        if isinstance(self.sort_keys, bool):
            order = SortOrder.ASCENDING if self.sort_keys else SortOrder.NONE
            object.__setattr__(self, "sort_keys", order)
        else:
            _coerce_enum(self, "sort_keys", SortOrder)
        if isinstance(self.indent, str) and not isinstance(self.indent, IndentStyle):
            object.__setattr__(self, "indent", IndentStyle[self.indent.upper()])

    @classmethod
    def lenient(cls, **overrides) -> "ConversionOptions":
        """Options accepting the whole lenient JSON superset."""
        settings = dict(
            allow_comments=True,
            allow_trailing_commas=True,
            allow_single_quotes=True,
            allow_unquoted_keys=True,
            allow_hex_numbers=True,
        )
        settings.update(overrides)
        return cls(**settings)

    def replace(self, **changes) -> "ConversionOptions":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    @property
    def indent_unit(self) -> str:
        """Literal text of one indentation level."""
        if isinstance(self.indent, IndentStyle):
            return self.indent.value
        return " " * self.indent

    @property
    def multiline(self) -> bool:
        """Whether the layout places nested members on their own lines."""
        return self.style in (FormatStyle.PRETTY, FormatStyle.CUSTOM)


_limits_lock = threading.Lock()
_default_limits = ResourceLimits()


def get_default_limits() -> ResourceLimits:
    """Current engine-wide default limits."""
    return _default_limits


def resolve_limits(options: Optional[ConversionOptions]) -> ResourceLimits:
    """Limits for a call: explicit per-call limits win over the defaults."""
    if options is not None and options.limits is not None:
        return options.limits
    return _default_limits


def set_limits(max_input_bytes: Optional[int] = None,
               max_output_bytes: Optional[int] = None,
               max_depth: Optional[int] = None,
               timeout_ms: Optional[float] = None) -> ResourceLimits:
    """
    Replace the default limits used when a call carries no explicit limits.

    Args:
        max_input_bytes: Maximum input size in bytes
        max_output_bytes: Maximum output size in bytes
        max_depth: Maximum nesting depth
        timeout_ms: Conversion timeout in milliseconds

    Returns:
        The new default ResourceLimits

    Raises:
        ConversionError: If any limit is invalid
    """
    global _default_limits

    changes = {
        name: value
        for name, value in (
            ("max_input_bytes", max_input_bytes),
            ("max_output_bytes", max_output_bytes),
            ("max_depth", max_depth),
            ("timeout_ms", timeout_ms),
        )
        if value is not None
    }

    with _limits_lock:
        candidate = replace(_default_limits, **changes)
        result = ValidationUtils.validate_limits(candidate)
        if not result.is_valid:
            raise ConversionError(
                "; ".join(error.message for error in result.errors),
                error_type=ErrorType.OPTIONS,
                code="INVALID_OPTIONS",
            )
        _default_limits = candidate

    logger.info(f"Default limits updated: {changes}")
    return candidate


def reset_limits() -> ResourceLimits:
    """Restore the built-in default limits."""
    global _default_limits
    with _limits_lock:
        _default_limits = ResourceLimits()
    return _default_limits
