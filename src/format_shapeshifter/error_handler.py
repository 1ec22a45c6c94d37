"""Error handling implementation for the format converter."""

import logging
import sys
from typing import Optional

from .guard import ResourceGuard
from .options import ResourceLimits
from .types import (
    ConversionDepthError,
    ConversionError,
    ErrorHandlerInterface,
    ErrorResponse,
    ErrorType,
    ValidationError,
    ValidationResult,
)


class ErrorHandler(ErrorHandlerInterface):
    """
    Error handler for conversion operations.

    Classifies ConversionErrors, suggests how the caller can recover and
    wraps anything unexpected into the typed error hierarchy so that no
    bare exception ever reaches the caller of ``convert``.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def validate_input(self, text: str, limits: Optional[ResourceLimits] = None) -> ValidationResult:
        """
        Validate raw input text against the resource guard.

        Args:
            text: Input text to validate
            limits: Limits to validate against (defaults to ResourceLimits())

        Returns:
            ValidationResult with validation details
        """
        guard = ResourceGuard(limits, self.logger)
        try:
            guard.pre_check(text)
        except ConversionError as e:
            return ValidationResult(
                is_valid=False,
                errors=[ValidationError(type=e.error_type, message=e.message, location="input")],
                warnings=[],
            )
        return ValidationResult(is_valid=True, errors=[], warnings=[])

    def handle_error(self, error: ConversionError) -> ErrorResponse:
        """
        Handle a conversion error and provide a recovery suggestion.

        Args:
            error: ConversionError to handle

        Returns:
            ErrorResponse with recovery information
        """
        self.logger.error(f"Conversion error: {error.error_type.value} - {error}")

        if error.error_type == ErrorType.MALFORMED_DATA:
            return self._handle_malformed_error(error)
        elif error.error_type == ErrorType.SIZE:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Input or output exceeds the size limit. Split the data into "
                                 "smaller documents or raise the limits with set_limits().",
            )
        elif error.error_type == ErrorType.DEPTH:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Data is nested too deeply. Flatten the structure or raise "
                                 "max_depth.",
            )
        elif error.error_type == ErrorType.TIMEOUT:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Conversion took too long. Convert smaller inputs or raise "
                                 "timeout_ms.",
            )
        elif error.error_type == ErrorType.SECURITY:
            return ErrorResponse(
                can_recover=False,
                suggested_action="Input was refused because it contains suspicious content. "
                                 "Remove the flagged content and retry.",
            )
        elif error.error_type == ErrorType.UNSUPPORTED_FORMAT:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Specify the source format explicitly. Supported formats: "
                                 "json, xml, yaml, csv, toml.",
            )
        elif error.error_type == ErrorType.STRUCTURE:
            return ErrorResponse(
                can_recover=False,
                suggested_action="The data cannot be represented in the target format. CSV needs "
                                 "an array of objects; TOML needs an object without nulls.",
            )
        elif error.error_type == ErrorType.OPTIONS:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Fix the conversion options and retry.",
            )
        elif error.error_type == ErrorType.EMPTY_INPUT:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Provide non-empty input data.",
            )
        else:
            return ErrorResponse(
                can_recover=False,
                suggested_action="Unexpected conversion error. Please check logs and retry.",
            )

    def wrap_unexpected(self, exc: BaseException, stage: str,
                        max_depth: Optional[int] = None) -> ConversionError:
        """
        Turn an unexpected exception into a ConversionError.

        Args:
            exc: The exception that escaped a conversion stage
            stage: Name of the stage (parse, serialize, ...)
            max_depth: Depth limit reported when recursion runs out

        Returns:
            ConversionDepthError for RecursionError, otherwise a generic
            ConversionError with the original exception as context
        """
        if isinstance(exc, ConversionError):
            return exc
        if isinstance(exc, RecursionError):
            self.logger.warning(f"Recursion limit reached during {stage}")
            return ConversionDepthError(None, max_depth or sys.getrecursionlimit())

        self.logger.exception(f"Unexpected error during {stage}: {exc}")
        error = ConversionError(
            f"Unexpected error during {stage}: {exc}",
            error_type=ErrorType.CONVERSION,
            code="CONVERSION_ERROR",
            context={"stage": stage, "exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error

    def _handle_malformed_error(self, error: ConversionError) -> ErrorResponse:
        """Handle parse failures."""
        location = f" at line {error.line}, column {error.column}" if error.line is not None else ""
        return ErrorResponse(
            can_recover=True,
            suggested_action=f"Fix the syntax error{location}, or enable repair_mode to fix "
                             "trailing commas and quoting automatically.",
        )
