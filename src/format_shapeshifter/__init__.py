"""
Format Shapeshifter - structured data format conversion engine.

Converts between JSON (strict and lenient), XML, YAML, CSV and TOML
through one common value model, under configurable resource limits.
"""

from .converter import (
    FormatConverter,
    convert,
    convert_multiple,
    convert_stream,
    csv_to_json,
    detect_format,
    format_json,
    get_converter,
    get_supported_formats,
    json_to_csv,
    json_to_toml,
    json_to_xml,
    json_to_yaml,
    minify_json,
    prettify_json,
    toml_to_json,
    validate_json,
    xml_to_json,
    yaml_to_json,
)
from .options import (
    ConversionOptions,
    CsvOptions,
    ResourceLimits,
    TomlOptions,
    XmlOptions,
    YamlOptions,
    get_default_limits,
    reset_limits,
    set_limits,
)
from .types import (
    ConversionDepthError,
    ConversionError,
    ConversionMetadata,
    ConversionRequest,
    ConversionResult,
    ConversionSizeError,
    ConversionTimeoutError,
    DataFormat,
    DuplicateKeyPolicy,
    EmptyInputError,
    ErrorType,
    FormatDetectionResult,
    FormatStyle,
    IndentStyle,
    MalformedDataError,
    ParseError,
    QuoteStyle,
    RowLengthPolicy,
    ScalarStyle,
    SecurityError,
    Severity,
    SortOrder,
    StreamingChunk,
    StructureMismatchError,
    UnsupportedFormatError,
    ValidationResult,
)

__version__ = "1.0.0"
__all__ = [
    "FormatConverter",
    "get_converter",
    "convert",
    "detect_format",
    "get_supported_formats",
    "set_limits",
    "get_default_limits",
    "reset_limits",
    "convert_multiple",
    "convert_stream",
    "json_to_xml",
    "json_to_yaml",
    "json_to_csv",
    "json_to_toml",
    "xml_to_json",
    "yaml_to_json",
    "csv_to_json",
    "toml_to_json",
    "format_json",
    "minify_json",
    "prettify_json",
    "validate_json",
    "ConversionOptions",
    "ResourceLimits",
    "XmlOptions",
    "YamlOptions",
    "CsvOptions",
    "TomlOptions",
    "DataFormat",
    "ErrorType",
    "Severity",
    "FormatStyle",
    "IndentStyle",
    "QuoteStyle",
    "SortOrder",
    "ScalarStyle",
    "RowLengthPolicy",
    "DuplicateKeyPolicy",
    "ParseError",
    "ValidationResult",
    "FormatDetectionResult",
    "ConversionMetadata",
    "ConversionResult",
    "ConversionRequest",
    "StreamingChunk",
    "ConversionError",
    "UnsupportedFormatError",
    "MalformedDataError",
    "ConversionSizeError",
    "ConversionDepthError",
    "ConversionTimeoutError",
    "SecurityError",
    "StructureMismatchError",
    "EmptyInputError",
]
