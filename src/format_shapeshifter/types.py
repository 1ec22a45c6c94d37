"""Core type definitions for the format converter."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DataFormat(Enum):
    """Enumeration of supported serialization formats."""
    JSON = "json"
    XML = "xml"
    YAML = "yaml"
    CSV = "csv"
    TOML = "toml"

    @classmethod
    def from_name(cls, name: Any) -> "DataFormat":
        """
        Resolve a format name (case-insensitive) to a DataFormat.

        Args:
            name: Format name or DataFormat member

        Returns:
            Matching DataFormat

        Raises:
            UnsupportedFormatError: If the name is not a supported format
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnsupportedFormatError(repr(name))
        normalized = name.strip().lower()
        normalized = _FORMAT_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedFormatError(name) from None


_FORMAT_ALIASES = {"yml": "yaml"}


class ErrorType(Enum):
    """Enumeration of error types."""
    UNSUPPORTED_FORMAT = "unsupported_format"
    MALFORMED_DATA = "malformed_data"
    SIZE = "size"
    DEPTH = "depth"
    TIMEOUT = "timeout"
    SECURITY = "security"
    STRUCTURE = "structure"
    OPTIONS = "options"
    EMPTY_INPUT = "empty_input"
    CONVERSION = "conversion"


class Severity(Enum):
    """Severity of a parse diagnostic."""
    ERROR = "error"
    WARNING = "warning"


class FormatStyle(Enum):
    """Output layout style."""
    PRETTY = "pretty"
    COMPACT = "compact"
    MINIFIED = "minified"
    CUSTOM = "custom"


class IndentStyle(Enum):
    """Indentation unit; the value is the literal unit text."""
    SPACES_2 = "  "
    SPACES_4 = "    "
    TAB = "\t"
    NONE = ""


class QuoteStyle(Enum):
    """Quote character used for strings."""
    DOUBLE = '"'
    SINGLE = "'"


class SortOrder(Enum):
    """Object key ordering applied at serialization time."""
    NONE = "none"
    ASCENDING = "ascending"
    DESCENDING = "descending"


class ScalarStyle(Enum):
    """YAML scalar quoting style."""
    PLAIN = "plain"
    SINGLE_QUOTED = "single-quoted"
    DOUBLE_QUOTED = "double-quoted"
    LITERAL = "literal"
    FOLDED = "folded"


class RowLengthPolicy(Enum):
    """How CSV rows with the wrong number of fields are handled."""
    LENIENT = "lenient"
    STRICT = "strict"


class DuplicateKeyPolicy(Enum):
    """How repeated object keys are handled while parsing."""
    LAST = "last"
    FIRST = "first"
    ERROR = "error"


@dataclass
class ParseError:
    """Positioned diagnostic produced while parsing or repairing input."""
    line: Optional[int]
    column: Optional[int]
    message: str
    severity: Severity = Severity.ERROR
    code: str = "MALFORMED_DATA"

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a plain dictionary."""
        return {
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "severity": self.severity.value,
            "code": self.code,
        }


@dataclass
class ValidationError:
    """Validation error details."""
    type: ErrorType
    message: str
    location: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of input or options validation."""
    is_valid: bool
    errors: List[ValidationError]
    warnings: List[str]


@dataclass
class ErrorResponse:
    """Response for error handling."""
    can_recover: bool
    suggested_action: str


@dataclass
class FormatDetectionResult:
    """Result of format auto-detection."""
    format: str
    confidence: float
    scores: Dict[str, float] = field(default_factory=dict)


@dataclass
class ConversionMetadata:
    """Timing, size and structure statistics for one conversion."""
    source_format: Optional[str] = None
    target_format: Optional[str] = None
    parse_time_ms: float = 0.0
    serialize_time_ms: float = 0.0
    total_time_ms: float = 0.0
    original_size: int = 0
    converted_size: int = 0
    compression_ratio: float = 0.0
    depth: int = 0
    key_count: int = 0
    value_count: int = 0
    array_count: int = 0
    object_count: int = 0
    repair_applied: bool = False
    memory_usage_mb: float = 0.0
    detection_confidence: Optional[float] = None
    streaming_used: bool = False
    chunks_processed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to a plain dictionary."""
        return asdict(self)


@dataclass
class ConversionResult:
    """Result of a conversion call."""
    success: bool
    data: Optional[str] = None
    error: Optional["ConversionError"] = None
    warnings: List[ParseError] = field(default_factory=list)
    metadata: ConversionMetadata = field(default_factory=ConversionMetadata)
    suggested_action: Optional[str] = None

    def raise_for_error(self) -> None:
        """Re-raise the captured error, if any."""
        if self.error is not None:
            raise self.error


@dataclass
class ConversionRequest:
    """One entry of a batch conversion."""
    text: str
    target_format: Any
    source_format: Any = None
    options: Optional[Any] = None


@dataclass
class StreamingChunk:
    """One slice of streamed conversion output."""
    done: bool
    data: Optional[str]
    progress: float
    chunk_index: int
    total_chunks: int
    error: Optional["ConversionError"] = None
    metadata: Optional[ConversionMetadata] = None


class ConversionError(Exception):
    """Base exception for every conversion failure."""

    error_type = ErrorType.CONVERSION
    code = "CONVERSION_ERROR"

    def __init__(self, message: str, error_type: Optional[ErrorType] = None,
                 code: Optional[str] = None, line: Optional[int] = None,
                 column: Optional[int] = None, context: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        if error_type is not None:
            self.error_type = error_type
        if code is not None:
            self.code = code
        self.line = line
        self.column = column
        self.context = context

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} (line {self.line}, column {self.column})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a structured dictionary."""
        return {
            "kind": type(self).__name__,
            "type": self.error_type.value,
            "code": self.code,
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }


class UnsupportedFormatError(ConversionError):
    """Unknown format name or a zero-confidence detection."""

    error_type = ErrorType.UNSUPPORTED_FORMAT
    code = "UNSUPPORTED_FORMAT"

    def __init__(self, format_name: str, message: Optional[str] = None):
        super().__init__(message or f"Unsupported format: {format_name}")
        self.format_name = format_name


class MalformedDataError(ConversionError):
    """Input text could not be parsed."""

    error_type = ErrorType.MALFORMED_DATA
    code = "MALFORMED_DATA"

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None,
                 errors: Optional[List[ParseError]] = None):
        super().__init__(message, line=line, column=column)
        self.errors = errors or [ParseError(line=line, column=column, message=message)]


class ConversionSizeError(ConversionError):
    """Input or output exceeds the configured byte limit."""

    error_type = ErrorType.SIZE
    code = "SIZE_ERROR"

    def __init__(self, size: int, limit: int, stage: str = "input"):
        super().__init__(
            f"{stage.capitalize()} size {size} bytes exceeds maximum limit of {limit} bytes"
        )
        self.size = size
        self.limit = limit
        self.stage = stage


class ConversionDepthError(ConversionError):
    """Nesting exceeds the configured depth limit."""

    error_type = ErrorType.DEPTH
    code = "DEPTH_ERROR"

    def __init__(self, depth: Optional[int], limit: int,
                 line: Optional[int] = None, column: Optional[int] = None):
        if depth is None:
            message = f"Data nesting exceeds maximum depth of {limit}"
        else:
            message = f"Data depth {depth} exceeds maximum limit of {limit}"
        super().__init__(message, line=line, column=column)
        self.depth = depth
        self.limit = limit


class ConversionTimeoutError(ConversionError):
    """The conversion deadline expired."""

    error_type = ErrorType.TIMEOUT
    code = "TIMEOUT_ERROR"

    def __init__(self, timeout_ms: float):
        super().__init__(f"Conversion timed out after {timeout_ms:g}ms")
        self.timeout_ms = timeout_ms


class SecurityError(ConversionError):
    """Input matched an abuse pattern and was refused."""

    error_type = ErrorType.SECURITY
    code = "SUSPICIOUS_CONTENT"

    def __init__(self, message: str, pattern: Optional[str] = None):
        super().__init__(message)
        self.pattern = pattern


class StructureMismatchError(ConversionError):
    """The value cannot be represented in the target format."""

    error_type = ErrorType.STRUCTURE
    code = "STRUCTURE_MISMATCH"

    def __init__(self, message: str, target_format: Optional[str] = None):
        super().__init__(message)
        self.target_format = target_format


class EmptyInputError(ConversionError):
    """Input text is empty or whitespace only."""

    error_type = ErrorType.EMPTY_INPUT
    code = "EMPTY_INPUT"

    def __init__(self):
        super().__init__("Input data cannot be empty")


# Abstract base classes for interfaces

class ConverterInterface(ABC):
    """Abstract interface for the conversion orchestrator."""

    @abstractmethod
    def convert(self, text: str, source_format: Any, target_format: Any,
                options: Optional[Any] = None) -> ConversionResult:
        """Convert text from one format to another."""
        pass

    @abstractmethod
    def detect_format(self, text: str) -> FormatDetectionResult:
        """Detect the format of input text."""
        pass


class ErrorHandlerInterface(ABC):
    """Abstract interface for error handling."""

    @abstractmethod
    def validate_input(self, text: str, limits: Optional[Any] = None) -> ValidationResult:
        """Validate raw input text."""
        pass

    @abstractmethod
    def handle_error(self, error: ConversionError) -> ErrorResponse:
        """Classify an error and suggest a recovery action."""
        pass
