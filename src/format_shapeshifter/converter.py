"""Conversion orchestrator and the module-level conversion API."""

import asyncio
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .codecs import FormatCodec, get_codec
from .detector import UNKNOWN_FORMAT, FormatDetector
from .error_handler import ErrorHandler
from .guard import Deadline, ResourceGuard
from .options import ConversionOptions, resolve_limits, set_limits
from .parsers import REPAIR_WARNING_CODES, ParseContext
from .profiler import ConversionProfiler
from .streaming import StreamingConverter
from .types import (
    ConversionError,
    ConversionMetadata,
    ConversionRequest,
    ConversionResult,
    ConverterInterface,
    DataFormat,
    ErrorType,
    FormatDetectionResult,
    FormatStyle,
    IndentStyle,
    MalformedDataError,
    ParseError,
    Severity,
    StreamingChunk,
    UnsupportedFormatError,
    ValidationError,
    ValidationResult,
)
from .utils.size_calculator import SizeCalculator
from .utils.validation import ValidationUtils
from .values import analyze_tree


FormatArg = Union[DataFormat, str, None]
RequestArg = Union[ConversionRequest, dict, tuple]


class FormatConverter(ConverterInterface):
    """
    Main implementation of the conversion orchestrator.

    Drives guard, parse (with optional repair), depth check, serialize and
    output check for one input, and assembles the result metadata. The
    converter holds no per-call state, so one instance can serve any
    number of concurrent conversions.
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 max_workers: Optional[int] = None,
                 stream_chunk_size: int = 64 * 1024,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the converter.

        Args:
            logger: Optional logger instance
            max_workers: Thread pool size for batch conversion (None = auto-detect)
            stream_chunk_size: Output slice size for streaming conversion
            clock: Monotonic clock used for conversion deadlines
        """
        self.logger = logger or logging.getLogger(__name__)
        self.max_workers = max_workers
        self.stream_chunk_size = stream_chunk_size
        self.clock = clock
        self.error_handler = ErrorHandler(self.logger)
        self.detector = FormatDetector(self.logger)
        self.size_calculator = SizeCalculator(self.logger)

    # Public API

    def get_supported_formats(self) -> List[str]:
        """Names of every supported format."""
        return [data_format.value for data_format in DataFormat]

    def detect_format(self, text: str) -> FormatDetectionResult:
        """
        Detect the format of input text.

        Args:
            text: Raw input text

        Returns:
            FormatDetectionResult with the best format and its confidence
        """
        return self.detector.detect(text)

    def convert(self, text: str, source_format: FormatArg, target_format: FormatArg,
                options: Optional[ConversionOptions] = None) -> ConversionResult:
        """
        Convert text from one format to another.

        Failures never raise: they are reported through ``result.error``
        together with a suggested recovery action.

        Args:
            text: Input text
            source_format: Source format, or None to auto-detect
            target_format: Target format
            options: Conversion options (defaults to ConversionOptions())

        Returns:
            ConversionResult with the converted text or the error
        """
        options = options or ConversionOptions()
        metadata = ConversionMetadata()
        warnings: List[ParseError] = []
        profiler = ConversionProfiler(self.logger)
        stage = "validate"
        max_depth = None

        try:
            self._validate_options(options)
            limits = resolve_limits(options)
            max_depth = limits.max_depth
            guard = ResourceGuard(limits, self.logger, self.clock)
            deadline = guard.new_deadline()

            target = DataFormat.from_name(target_format)
            metadata.target_format = target.value

            stage = "guard"
            guard.check_not_empty(text)
            if not isinstance(text, str):
                raise ConversionError(
                    f"Input must be text, got {type(text).__name__}",
                    error_type=ErrorType.MALFORMED_DATA,
                    code="MALFORMED_DATA",
                )
            metadata.original_size = guard.check_input_size(text)
            guard.scan_for_abuse(text)

            memory_estimate = self.size_calculator.estimate_memory_usage(text)
            self.logger.info(
                f"Starting conversion: {source_format or 'auto'} -> {target.value}, "
                f"input {self.size_calculator.format_size(metadata.original_size)}, "
                f"estimated memory {memory_estimate['recommended_memory_mb']}MB"
            )

            stage = "detect"
            source, confidence = self._resolve_source(text, source_format, deadline)
            metadata.source_format = source.value
            metadata.detection_confidence = confidence

            stage = "parse"
            with profiler.phase("parse"):
                value, repaired = self._parse(get_codec(source), text, options, deadline, warnings)
            metadata.repair_applied = repaired
            guard.check_timeout(deadline)

            stage = "analyze"
            guard.check_depth(value, deadline=deadline)
            stats = analyze_tree(value, deadline)

            stage = "serialize"
            with profiler.phase("serialize"):
                serializer = get_codec(target).create_serializer(options, deadline, self.logger)
                output = serializer.serialize(value)
            guard.check_timeout(deadline)
            metadata.converted_size = guard.check_output_size(output)

        except ConversionError as e:
            return self._failure(e, warnings, metadata, profiler)
        except RecursionError as e:
            return self._failure(
                self.error_handler.wrap_unexpected(e, stage, max_depth), warnings, metadata, profiler
            )
        except Exception as e:
            return self._failure(
                self.error_handler.wrap_unexpected(e, stage, max_depth), warnings, metadata, profiler
            )

        profile = profiler.finish()
        metadata.parse_time_ms = profile.duration_ms("parse")
        metadata.serialize_time_ms = profile.duration_ms("serialize")
        metadata.total_time_ms = profile.total_ms
        metadata.memory_usage_mb = profile.memory_usage_mb
        metadata.compression_ratio = self.size_calculator.compression_ratio(
            metadata.original_size, metadata.converted_size
        )
        metadata.depth = stats.depth
        metadata.key_count = stats.key_count
        metadata.value_count = stats.value_count
        metadata.array_count = stats.array_count
        metadata.object_count = stats.object_count

        self.logger.info(
            f"Converted {metadata.source_format} -> {metadata.target_format}: "
            f"{metadata.original_size}B -> {metadata.converted_size}B "
            f"in {metadata.total_time_ms:.2f}ms"
        )
        return ConversionResult(success=True, data=output, warnings=warnings, metadata=metadata)

    async def convert_async(self, text: str, source_format: FormatArg, target_format: FormatArg,
                            options: Optional[ConversionOptions] = None) -> ConversionResult:
        """Run ``convert`` on the default executor without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self.convert, text, source_format, target_format, options)
        )

    async def convert_multiple(self, requests: Sequence[RequestArg]) -> List[ConversionResult]:
        """
        Run independent conversions concurrently on a thread pool.

        Args:
            requests: ConversionRequest objects, dicts or
                (text, source_format, target_format[, options]) tuples

        Returns:
            One ConversionResult per request, in request order
        """
        if not requests:
            return []
        self.logger.info(f"Starting batch of {len(requests)} conversions")
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            tasks = [
                loop.run_in_executor(executor, self._convert_request, request)
                for request in requests
            ]
            results = await asyncio.gather(*tasks)
        self._log_batch(results)
        return list(results)

    def convert_batch(self, requests: Sequence[RequestArg]) -> List[ConversionResult]:
        """Synchronous counterpart of ``convert_multiple``."""
        if not requests:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self._convert_request, requests))
        self._log_batch(results)
        return results

    def convert_stream(self, chunks: Union[AsyncIterator[str], Iterable[str]],
                       source_format: FormatArg, target_format: FormatArg,
                       options: Optional[ConversionOptions] = None,
                       chunk_size: Optional[int] = None) -> AsyncIterator[StreamingChunk]:
        """
        Convert a stream of input chunks and stream the output back.

        Args:
            chunks: Async or sync iterable of text chunks
            source_format: Source format, or None to auto-detect
            target_format: Target format
            options: Conversion options
            chunk_size: Output slice size in characters

        Returns:
            Async iterator of StreamingChunk slices
        """
        streamer = StreamingConverter(self, chunk_size or self.stream_chunk_size, self.logger)
        return streamer.convert_stream(chunks, source_format, target_format, options)

    # JSON formatter helpers

    def format_json(self, text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
        """Re-render JSON text with the given formatting options."""
        return self.convert(text, DataFormat.JSON, DataFormat.JSON, options)

    def minify_json(self, text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
        """Re-render JSON text without insignificant whitespace."""
        options = (options or ConversionOptions()).replace(style=FormatStyle.MINIFIED)
        return self.format_json(text, options)

    def prettify_json(self, text: str, indent: Union[int, IndentStyle] = 2,
                      sort_keys: bool = False,
                      options: Optional[ConversionOptions] = None) -> ConversionResult:
        """Re-render JSON text indented, optionally with sorted keys."""
        options = (options or ConversionOptions()).replace(
            style=FormatStyle.PRETTY, indent=indent, sort_keys=sort_keys
        )
        return self.format_json(text, options)

    def validate_json(self, text: str, options: Optional[ConversionOptions] = None) -> ValidationResult:
        """
        Check whether text is valid JSON under the given options.

        Args:
            text: JSON text
            options: Options selecting strict or lenient JSON

        Returns:
            ValidationResult; errors carry the line and column as location
        """
        result = self.convert(text, DataFormat.JSON, DataFormat.JSON, options)
        if result.success:
            return ValidationResult(
                is_valid=True, errors=[], warnings=[warning.message for warning in result.warnings]
            )
        error = result.error
        location = f"line {error.line}, column {error.column}" if error.line is not None else "input"
        return ValidationResult(
            is_valid=False,
            errors=[ValidationError(type=error.error_type, message=error.message, location=location)],
            warnings=[warning.message for warning in result.warnings],
        )

    # Internals

    def _validate_options(self, options: ConversionOptions) -> None:
        result = ValidationUtils.validate_options(options)
        for warning in result.warnings:
            self.logger.warning(warning)
        if not result.is_valid:
            raise ConversionError(
                "; ".join(error.message for error in result.errors),
                error_type=ErrorType.OPTIONS,
                code="INVALID_OPTIONS",
                context=[error.location for error in result.errors],
            )

    def _resolve_source(self, text: str, source_format: FormatArg,
                        deadline: Deadline) -> Tuple[DataFormat, Optional[float]]:
        if source_format is not None:
            return DataFormat.from_name(source_format), None

        detection = self.detector.detect(text, deadline)
        if detection.format == UNKNOWN_FORMAT or detection.confidence <= 0:
            raise UnsupportedFormatError(
                UNKNOWN_FORMAT, "Could not detect the input format; specify the source format"
            )
        self.logger.debug(f"Detected {detection.format} with confidence {detection.confidence}")
        return DataFormat(detection.format), detection.confidence

    def _parse(self, codec: FormatCodec, text: str, options: ConversionOptions,
               deadline: Deadline, warnings: List[ParseError]) -> Tuple[Any, bool]:
        """Parse, retrying once after a repair pass when repair mode is on."""
        context = ParseContext.create(options, deadline, self.logger)
        try:
            value = codec.parse(text, context=context)
        except MalformedDataError as original:
            if not options.repair_mode or codec.repair is None:
                raise
            repaired_text, fixes = codec.repair(text)
            if not fixes:
                raise
            self.logger.warning(
                f"Parse failed ({original}); retrying after repair: "
                f"{', '.join(fix.code for fix in fixes)}"
            )
            context = ParseContext.create(options, deadline, self.logger)
            try:
                value = codec.parse(repaired_text, context=context)
            except MalformedDataError:
                raise original from None
            warnings.extend(
                ParseError(
                    line=None, column=None, severity=Severity.WARNING, code=fix.code,
                    message=f"{fix.message} ({fix.count} fix{'es' if fix.count != 1 else ''})",
                )
                for fix in fixes
            )
            warnings.extend(context.warnings)
            return value, True

        warnings.extend(context.warnings)
        repaired = any(warning.code in REPAIR_WARNING_CODES for warning in context.warnings)
        return value, repaired

    def _failure(self, error: ConversionError, warnings: List[ParseError],
                 metadata: ConversionMetadata, profiler: ConversionProfiler) -> ConversionResult:
        response = self.error_handler.handle_error(error)
        profile = profiler.finish()
        metadata.parse_time_ms = profile.duration_ms("parse")
        metadata.serialize_time_ms = profile.duration_ms("serialize")
        metadata.total_time_ms = profile.total_ms
        return ConversionResult(
            success=False,
            error=error,
            warnings=warnings,
            metadata=metadata,
            suggested_action=response.suggested_action,
        )

    def _convert_request(self, request: RequestArg) -> ConversionResult:
        if isinstance(request, dict):
            request = ConversionRequest(**request)
        elif isinstance(request, tuple):
            text, source_format, target_format, *rest = request
            request = ConversionRequest(
                text=text, source_format=source_format, target_format=target_format,
                options=rest[0] if rest else None,
            )
        return self.convert(request.text, request.source_format, request.target_format, request.options)

    def _log_batch(self, results: Sequence[ConversionResult]) -> None:
        failed = sum(1 for result in results if not result.success)
        self.logger.info(f"Batch finished: {len(results) - failed} succeeded, {failed} failed")


# Module-level API backed by a shared, stateless converter

_default_converter = FormatConverter()


def get_converter() -> FormatConverter:
    """Get the shared converter instance."""
    return _default_converter


def convert(text: str, source_format: FormatArg, target_format: FormatArg,
            options: Optional[ConversionOptions] = None) -> ConversionResult:
    """Convert text from one format to another. See FormatConverter.convert."""
    return _default_converter.convert(text, source_format, target_format, options)


def detect_format(text: str) -> FormatDetectionResult:
    """Detect the format of input text."""
    return _default_converter.detect_format(text)


def get_supported_formats() -> List[str]:
    """Names of every supported format."""
    return _default_converter.get_supported_formats()


async def convert_multiple(requests: Sequence[RequestArg]) -> List[ConversionResult]:
    """Run independent conversions concurrently. See FormatConverter.convert_multiple."""
    return await _default_converter.convert_multiple(requests)


def convert_stream(chunks, source_format: FormatArg, target_format: FormatArg,
                   options: Optional[ConversionOptions] = None,
                   chunk_size: Optional[int] = None) -> AsyncIterator[StreamingChunk]:
    """Stream a conversion. See FormatConverter.convert_stream."""
    return _default_converter.convert_stream(chunks, source_format, target_format, options, chunk_size)


def json_to_xml(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.JSON, DataFormat.XML, options)


def json_to_yaml(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.JSON, DataFormat.YAML, options)


def json_to_csv(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.JSON, DataFormat.CSV, options)


def json_to_toml(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.JSON, DataFormat.TOML, options)


def xml_to_json(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.XML, DataFormat.JSON, options)


def yaml_to_json(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.YAML, DataFormat.JSON, options)


def csv_to_json(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.CSV, DataFormat.JSON, options)


def toml_to_json(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return convert(text, DataFormat.TOML, DataFormat.JSON, options)


def format_json(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return _default_converter.format_json(text, options)


def minify_json(text: str, options: Optional[ConversionOptions] = None) -> ConversionResult:
    return _default_converter.minify_json(text, options)


def prettify_json(text: str, indent: Union[int, IndentStyle] = 2,
                  sort_keys: bool = False) -> ConversionResult:
    return _default_converter.prettify_json(text, indent, sort_keys)


def validate_json(text: str, options: Optional[ConversionOptions] = None) -> ValidationResult:
    return _default_converter.validate_json(text, options)


__all__ = [
    "FormatConverter",
    "get_converter",
    "convert",
    "detect_format",
    "get_supported_formats",
    "set_limits",
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
]
