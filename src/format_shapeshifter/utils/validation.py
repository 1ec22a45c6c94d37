"""Validation utilities for conversion options and limits."""

import re
from typing import TYPE_CHECKING, Any, List

from ..types import ErrorType, IndentStyle, ValidationError, ValidationResult

if TYPE_CHECKING:
    from ..options import ConversionOptions, ResourceLimits


_XML_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")


class ValidationUtils:
    """Utility class for validating option structures before conversion."""

    @staticmethod
    def is_xml_name(name: Any) -> bool:
        """Check whether a string is usable as an XML element name."""
        return (
            isinstance(name, str)
            and bool(_XML_NAME.match(name))
            and not name.lower().startswith("xml")
        )

    @staticmethod
    def validate_limits(limits: "ResourceLimits") -> ValidationResult:
        """
        Validate resource limits.

        Args:
            limits: ResourceLimits to validate

        Returns:
            ValidationResult with validation details
        """
        errors = []
        warnings = []

        for name in ("max_input_bytes", "max_output_bytes", "max_depth", "max_repeated_chars"):
            value = getattr(limits, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    type=ErrorType.OPTIONS,
                    message=f"{name} must be a positive integer, got {value!r}",
                    location=f"limits.{name}"
                ))

        if limits.timeout_ms is not None and limits.timeout_ms <= 0:
            errors.append(ValidationError(
                type=ErrorType.OPTIONS,
                message=f"timeout_ms must be positive or None, got {limits.timeout_ms!r}",
                location="limits.timeout_ms"
            ))

        for pattern in limits.denied_patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                errors.append(ValidationError(
                    type=ErrorType.OPTIONS,
                    message=f"Invalid denied pattern {pattern!r}: {e}",
                    location="limits.denied_patterns"
                ))

        if isinstance(limits.max_depth, int) and limits.max_depth > 900:
            warnings.append(
                f"max_depth {limits.max_depth} is close to the interpreter recursion limit; "
                "deeper inputs will be reported as depth errors"
            )

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)

    @staticmethod
    def validate_options(options: "ConversionOptions") -> ValidationResult:
        """
        Validate conversion options.

        Args:
            options: ConversionOptions to validate

        Returns:
            ValidationResult with validation details
        """
        errors: List[ValidationError] = []
        warnings: List[str] = []

        def fail(message: str, location: str) -> None:
            errors.append(ValidationError(type=ErrorType.OPTIONS, message=message, location=location))

        if options.number_precision is not None and (
            not isinstance(options.number_precision, int) or options.number_precision < 0
        ):
            fail(f"number_precision must be a non-negative integer or None, "
                 f"got {options.number_precision!r}", "number_precision")

        if not isinstance(options.indent, IndentStyle) and not (
            isinstance(options.indent, int) and 0 <= options.indent <= 10
        ):
            fail(f"indent must be an IndentStyle or 0..10 spaces, got {options.indent!r}", "indent")

        # CSV
        csv_options = options.csv
        if not isinstance(csv_options.delimiter, str) or len(csv_options.delimiter) != 1:
            fail("CSV delimiter must be a single character", "csv.delimiter")
        if not isinstance(csv_options.quote_char, str) or len(csv_options.quote_char) != 1:
            fail("CSV quote character must be a single character", "csv.quote_char")
        if csv_options.delimiter == csv_options.quote_char:
            fail("CSV delimiter and quote character must differ", "csv.quote_char")
        if csv_options.delimiter in ("\n", "\r") or csv_options.quote_char in ("\n", "\r"):
            fail("CSV delimiter and quote character cannot be line breaks", "csv")
        if csv_options.columns is not None and len(set(csv_options.columns)) != len(csv_options.columns):
            fail("CSV columns must be unique", "csv.columns")

        # XML
        xml_options = options.xml
        if not ValidationUtils.is_xml_name(xml_options.root):
            fail(f"XML root {xml_options.root!r} is not a valid element name", "xml.root")
        if not ValidationUtils.is_xml_name(xml_options.item_name):
            fail(f"XML item name {xml_options.item_name!r} is not a valid element name", "xml.item_name")
        if not xml_options.attribute_prefix:
            fail("XML attribute prefix cannot be empty", "xml.attribute_prefix")
        if xml_options.attribute_prefix == xml_options.text_key:
            fail("XML attribute prefix and text key must differ", "xml.text_key")

        # YAML
        if not isinstance(options.yaml.indent, int) or not 2 <= options.yaml.indent <= 9:
            fail(f"YAML indent must be between 2 and 9, got {options.yaml.indent!r}", "yaml.indent")

        if options.limits is not None:
            limits_result = ValidationUtils.validate_limits(options.limits)
            errors.extend(limits_result.errors)
            warnings.extend(limits_result.warnings)

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
