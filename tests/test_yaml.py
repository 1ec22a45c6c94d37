"""Tests for YAML parsing and serialization."""

from decimal import Decimal

import pytest

from format_shapeshifter.options import ConversionOptions, YamlOptions
from format_shapeshifter.parsers import parse_yaml
from format_shapeshifter.serializers import serialize_yaml
from format_shapeshifter.types import MalformedDataError, ScalarStyle
from format_shapeshifter.values import values_equal


class TestYamlParser:
    """Tests for parse_yaml."""

    def test_block_document(self, sample_yaml):
        data = parse_yaml(sample_yaml)

        assert data == {
            "name": "John",
            "age": 30,
            "tags": ["admin", "dev"],
            "address": {"city": "Paris"},
        }

    def test_numbers_are_exact(self):
        data = parse_yaml("a: 9.5\nb: 30\nc: 1.0\nd: .inf\n")

        assert values_equal(data["a"], Decimal("9.5"))
        assert values_equal(data["b"], 30)
        assert values_equal(data["c"], Decimal("1.0"))
        assert data["d"] == Decimal("Infinity")

    def test_dates_stay_text(self):
        assert parse_yaml("day: 2024-01-15\n") == {"day": "2024-01-15"}

    def test_non_string_keys(self):
        assert parse_yaml("1: one\ntrue: yes\n") == {"1": "one", "true": True}

    def test_aliases_resolved(self):
        data = parse_yaml("base: &b {x: 1}\ncopy: *b\n")

        assert data == {"base": {"x": 1}, "copy": {"x": 1}}

    def test_malformed_yaml_has_position(self):
        with pytest.raises(MalformedDataError) as exc_info:
            parse_yaml("a: b: c\n")

        assert exc_info.value.line == 1
        assert exc_info.value.column is not None

    def test_inconsistent_indentation(self):
        with pytest.raises(MalformedDataError) as exc_info:
            parse_yaml("a:\n    b: 1\n  c: 2\n")

        assert exc_info.value.line is not None
        assert exc_info.value.line >= 2

    def test_unsafe_tags_rejected(self):
        with pytest.raises(MalformedDataError):
            parse_yaml("!!python/object/apply:os.system ['true']\n")


class TestYamlSerializer:
    """Tests for serialize_yaml."""

    def test_block_style(self):
        value = {"name": "John", "age": 30, "score": Decimal("9.5"), "tags": ["admin", "dev"]}

        assert serialize_yaml(value) == (
            "name: John\n"
            "age: 30\n"
            "score: 9.5\n"
            "tags:\n"
            "- admin\n"
            "- dev"
        )

    def test_ambiguous_strings_are_quoted(self):
        text = serialize_yaml({"zip": "75001", "flag": "true", "empty": None})

        assert text == "zip: '75001'\nflag: 'true'\nempty: null"

    def test_key_order_preserved_or_sorted(self):
        value = {"b": 1, "a": 2}

        assert serialize_yaml(value) == "b: 1\na: 2"
        assert serialize_yaml(value, ConversionOptions(sort_keys=True)) == "a: 2\nb: 1"

    def test_flow_style(self):
        options = ConversionOptions(yaml=YamlOptions(flow_style=True))

        assert serialize_yaml({"a": [1, 2]}, options) == "{a: [1, 2]}"

    def test_double_quoted_scalars(self):
        options = ConversionOptions(yaml=YamlOptions(scalar_style=ScalarStyle.DOUBLE_QUOTED))

        assert serialize_yaml({"a": "x"}, options) == 'a: "x"'

    def test_scalar_root(self):
        assert serialize_yaml("hello") == "hello"

    def test_final_newline(self):
        assert serialize_yaml({"a": 1}, ConversionOptions(final_newline=True)) == "a: 1\n"

    def test_round_trip(self):
        value = {
            "name": "John",
            "ratio": Decimal("30.0"),
            "count": 30,
            "nested": {"list": [1, "two", None, True]},
            "text": "line one\nline two",
        }

        assert values_equal(parse_yaml(serialize_yaml(value)), value)
