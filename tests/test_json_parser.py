"""Tests for the strict and lenient JSON parser."""

from decimal import Decimal

import pytest

from format_shapeshifter.guard import Deadline
from format_shapeshifter.options import ConversionOptions, ResourceLimits
from format_shapeshifter.parsers import ParseContext, parse_json
from format_shapeshifter.types import (
    ConversionDepthError,
    ConversionTimeoutError,
    DuplicateKeyPolicy,
    MalformedDataError,
)
from format_shapeshifter.values import values_equal


class TestStrictJson:
    """Tests for strict JSON parsing."""

    def test_parse_object(self, sample_record_json):
        data = parse_json(sample_record_json)

        assert data["name"] == "John"
        assert data["age"] == 30 and isinstance(data["age"], int)
        assert data["score"] == Decimal("9.5")
        assert data["tags"] == ["admin", "dev"]
        assert data["address"] == {"city": "Paris", "zip": "75001"}
        assert data["manager"] is None
        assert list(data) == ["name", "age", "active", "score", "tags", "address", "manager"]

    def test_integer_and_fraction_stay_distinct(self):
        data = parse_json("[30, 30.0, 1e2, -0]")

        assert values_equal(data, [30, Decimal("30.0"), Decimal("1e2"), 0])

    def test_big_integer_is_exact(self):
        assert parse_json("123456789012345678901234567890") == 123456789012345678901234567890

    def test_fraction_rounded_to_precision(self):
        assert parse_json("3.14159265") == Decimal("3.141593")
        options = ConversionOptions(number_precision=None)
        assert parse_json("3.14159265", options) == Decimal("3.14159265")

    def test_string_escapes(self):
        data = parse_json(r'"a\"b\\c\/d\n\t\u00e9\ud83d\ude00"')

        assert data == 'a"b\\c/d\n\t\u00e9\U0001F600'

    def test_scalar_roots(self):
        assert parse_json("true") is True
        assert parse_json(" null ") is None
        assert parse_json('"x"') == "x"

    def test_byte_order_mark_skipped(self):
        assert parse_json('\ufeff{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("text", [
        '{"a": 1,}',
        "[1, 2,]",
        "{'a': 1}",
        "{a: 1}",
        '{"a": 1} // note',
        "0x1F",
        "01",
        '{"a" 1}',
        "[1 2]",
        '"unterminated',
        '"tab\there"',
        "tru",
        "[1] 2",
        "",
    ])
    def test_strict_rejects(self, text):
        with pytest.raises(MalformedDataError):
            parse_json(text)

    def test_error_position(self):
        """Test that syntax errors carry 1-based line and column."""
        with pytest.raises(MalformedDataError) as exc_info:
            parse_json('{\n  "a": 1,\n  "b": ?\n}')

        assert exc_info.value.line == 3
        assert exc_info.value.column == 8

    def test_trailing_comma_position(self):
        with pytest.raises(MalformedDataError) as exc_info:
            parse_json('{"a": 1,}')

        assert "Trailing comma" in exc_info.value.message
        assert (exc_info.value.line, exc_info.value.column) == (1, 8)


class TestLenientJson:
    """Tests for the lenient JSON superset."""

    def setup_method(self):
        """Set up test fixtures."""
        self.options = ConversionOptions.lenient()

    def test_comments(self):
        text = '// header\n{"a": 1, /* inline */ "b": 2}\n'
        assert parse_json(text, self.options) == {"a": 1, "b": 2}

    def test_trailing_commas(self):
        assert parse_json('{"a": [1, 2,],}', self.options) == {"a": [1, 2]}

    def test_single_quotes(self):
        assert parse_json("{'a': 'it\\'s'}", self.options) == {"a": "it's"}

    def test_unquoted_keys(self):
        assert parse_json("{name: 1, $id: 2}", self.options) == {"name": 1, "$id": 2}

    def test_hex_numbers(self):
        assert parse_json("[0x1F, -0xff]", self.options) == [31, -255]

    def test_each_flag_is_independent(self):
        options = ConversionOptions(allow_comments=True)

        assert parse_json("[1 /* c */]", options) == [1]
        with pytest.raises(MalformedDataError):
            parse_json("[1,]", options)

    def test_unterminated_block_comment(self):
        with pytest.raises(MalformedDataError):
            parse_json("[1] /* open", self.options)

    def test_lenient_syntax_reported_in_repair_mode(self):
        options = ConversionOptions.lenient(repair_mode=True)
        context = ParseContext.create(options)

        parse_json("{'a': 1,}", context=context)

        codes = {warning.code for warning in context.warnings}
        assert codes == {"SINGLE_QUOTES", "TRAILING_COMMA"}


class TestDuplicateKeys:
    """Tests for the duplicate key policies."""

    def test_last_wins_by_default_with_warning(self):
        context = ParseContext.create(ConversionOptions())

        assert parse_json('{"a": 1, "a": 2}', context=context) == {"a": 2}
        assert context.warnings[0].code == "DUPLICATE_KEY"
        assert context.warnings[0].line == 1

    def test_first_wins(self):
        options = ConversionOptions(duplicate_keys=DuplicateKeyPolicy.FIRST)
        assert parse_json('{"a": 1, "a": 2}', options) == {"a": 1}

    def test_error_policy(self):
        options = ConversionOptions(duplicate_keys="error")
        with pytest.raises(MalformedDataError):
            parse_json('{"a": 1, "a": 2}', options)


class TestDepthLimit:
    """Tests for the depth limit during parsing."""

    def test_deep_input_fails_cleanly(self):
        """Test that excessive nesting is a depth error, never a crash."""
        text = "[" * 1001 + "]" * 1001

        with pytest.raises(ConversionDepthError) as exc_info:
            parse_json(text)
        assert exc_info.value.limit == 100

    def test_depth_at_limit_is_accepted(self):
        options = ConversionOptions(limits=ResourceLimits(max_depth=3))

        assert parse_json("[[[1]]]", options) == [[[1]]]
        with pytest.raises(ConversionDepthError):
            parse_json("[[[[1]]]]", options)


class TestDeadlineChecks:
    """Tests that long parses consult the deadline."""

    def _context(self, clock):
        return ParseContext.create(ConversionOptions(), Deadline(1, clock=clock))

    def test_large_object_times_out(self, stepping_clock):
        text = "{" + ", ".join(f'"k{index}": 0' for index in range(1000)) + "}"

        with pytest.raises(ConversionTimeoutError):
            parse_json(text, context=self._context(stepping_clock))

    def test_long_escaped_string_times_out(self, stepping_clock):
        text = '"' + "\\t" * 1000 + '"'

        with pytest.raises(ConversionTimeoutError):
            parse_json(text, context=self._context(stepping_clock))

    def test_large_array_times_out(self, stepping_clock):
        text = "[" + ", ".join("0" for _ in range(1000)) + "]"

        with pytest.raises(ConversionTimeoutError):
            parse_json(text, context=self._context(stepping_clock))
