"""Tests for option and limit validation."""

import pytest

from format_shapeshifter.options import (
    DEFAULT_MAX_DEPTH,
    ConversionOptions,
    CsvOptions,
    ResourceLimits,
    XmlOptions,
    YamlOptions,
    get_default_limits,
    reset_limits,
    resolve_limits,
    set_limits,
)
from format_shapeshifter.types import ConversionError, ErrorType, IndentStyle, SortOrder
from format_shapeshifter.utils.validation import ValidationUtils


class TestValidationUtils:
    """Tests for ValidationUtils class."""

    def test_default_options_are_valid(self):
        result = ValidationUtils.validate_options(ConversionOptions())

        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize("options,location", [
        (ConversionOptions(number_precision=-1), "number_precision"),
        (ConversionOptions(indent=11), "indent"),
        (ConversionOptions(csv=CsvOptions(delimiter=";;")), "csv.delimiter"),
        (ConversionOptions(csv=CsvOptions(delimiter='"')), "csv.quote_char"),
        (ConversionOptions(csv=CsvOptions(columns=("a", "a"))), "csv.columns"),
        (ConversionOptions(xml=XmlOptions(root="1root")), "xml.root"),
        (ConversionOptions(xml=XmlOptions(item_name="has space")), "xml.item_name"),
        (ConversionOptions(xml=XmlOptions(attribute_prefix="")), "xml.attribute_prefix"),
        (ConversionOptions(yaml=YamlOptions(indent=1)), "yaml.indent"),
        (ConversionOptions(limits=ResourceLimits(max_depth=0)), "limits.max_depth"),
        (ConversionOptions(limits=ResourceLimits(timeout_ms=-5)), "limits.timeout_ms"),
    ])
    def test_invalid_options(self, options, location):
        result = ValidationUtils.validate_options(options)

        assert not result.is_valid
        assert location in [error.location for error in result.errors]
        assert all(error.type == ErrorType.OPTIONS for error in result.errors)

    def test_xml_names(self):
        assert ValidationUtils.is_xml_name("root")
        assert ValidationUtils.is_xml_name("_a.b-c")
        assert not ValidationUtils.is_xml_name("xmlThing")
        assert not ValidationUtils.is_xml_name("")
        assert not ValidationUtils.is_xml_name(None)

    def test_high_depth_limit_warns(self):
        result = ValidationUtils.validate_limits(ResourceLimits(max_depth=5000))

        assert result.is_valid
        assert result.warnings


class TestConversionOptions:
    """Tests for ConversionOptions normalization."""

    def test_bool_sort_keys(self):
        assert ConversionOptions(sort_keys=True).sort_keys is SortOrder.ASCENDING
        assert ConversionOptions(sort_keys=False).sort_keys is SortOrder.NONE

    def test_indent_unit(self):
        assert ConversionOptions().indent_unit == "  "
        assert ConversionOptions(indent=3).indent_unit == "   "
        assert ConversionOptions(indent="tab").indent is IndentStyle.TAB

    def test_lenient_preset(self):
        options = ConversionOptions.lenient(allow_hex_numbers=False)

        assert options.allow_comments and options.allow_unquoted_keys
        assert not options.allow_hex_numbers

    def test_options_are_immutable(self):
        options = ConversionOptions()

        with pytest.raises(AttributeError):
            options.style = "minified"
        assert options.replace(style="minified").style.value == "minified"


class TestLimits:
    """Tests for engine-wide default limits."""

    def test_set_limits(self):
        limits = set_limits(max_depth=10, timeout_ms=500)

        assert limits.max_depth == 10
        assert get_default_limits() is limits
        assert resolve_limits(ConversionOptions()).timeout_ms == 500

    def test_explicit_limits_win(self):
        set_limits(max_depth=10)
        options = ConversionOptions(limits=ResourceLimits(max_depth=20))

        assert resolve_limits(options).max_depth == 20

    def test_invalid_limits_rejected(self):
        with pytest.raises(ConversionError) as exc_info:
            set_limits(max_input_bytes=-1)

        assert exc_info.value.error_type == ErrorType.OPTIONS
        assert get_default_limits().max_input_bytes > 0

    def test_reset_limits(self):
        set_limits(max_depth=10)

        assert reset_limits().max_depth == DEFAULT_MAX_DEPTH
