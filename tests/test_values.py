"""Tests for value model helpers."""

from decimal import Decimal

import pytest

from format_shapeshifter.types import SortOrder
from format_shapeshifter.values import (
    ValueKind,
    analyze_tree,
    coerce_scalar,
    format_number,
    kind_of,
    nesting_depth,
    ordered_items,
    round_decimal,
    values_equal,
)


class TestKindOf:
    """Tests for value classification."""

    def test_bool_is_not_a_number(self):
        """Test that booleans are classified before integers."""
        assert kind_of(True) is ValueKind.BOOL
        assert kind_of(1) is ValueKind.NUMBER

    def test_containers_and_scalars(self):
        """Test classification of every variant."""
        assert kind_of(None) is ValueKind.NULL
        assert kind_of(Decimal("1.5")) is ValueKind.NUMBER
        assert kind_of("x") is ValueKind.STRING
        assert kind_of([]) is ValueKind.ARRAY
        assert kind_of({}) is ValueKind.OBJECT

    def test_unsupported_type(self):
        """Test that foreign objects are rejected."""
        with pytest.raises(TypeError):
            kind_of(object())


class TestValuesEqual:
    """Tests for type-aware equality."""

    def test_bool_never_equals_integer(self):
        assert not values_equal(True, 1)
        assert not values_equal([0], [False])

    def test_integer_never_equals_fraction(self):
        assert not values_equal(30, Decimal("30.0"))
        assert values_equal(Decimal("30.0"), Decimal("30.00"))

    def test_object_key_order_is_ignored(self):
        assert values_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})
        assert not values_equal({"a": 1}, {"a": 1, "b": 2})

    def test_array_order_matters(self):
        assert not values_equal([1, 2], [2, 1])

    def test_nan_equals_nan(self):
        assert values_equal(Decimal("NaN"), Decimal("NaN"))


class TestTreeStats:
    """Tests for tree statistics."""

    def test_counts(self):
        """Test counting every node kind."""
        stats = analyze_tree({"a": [1, 2], "b": None, "c": "hello", "d": True})

        assert stats.depth == 2
        assert stats.key_count == 4
        assert stats.value_count == 7
        assert stats.object_count == 1
        assert stats.array_count == 1
        assert stats.number_count == 2
        assert stats.null_count == 1
        assert stats.string_count == 1
        assert stats.boolean_count == 1
        assert stats.max_string_length == 5

    def test_scalar_root_has_depth_zero(self):
        assert analyze_tree("x").depth == 0
        assert nesting_depth(42) == 0

    def test_deep_nesting_does_not_recurse(self):
        """Test that very deep trees are measured without recursion."""
        value = []
        for _ in range(5000):
            value = [value]

        assert nesting_depth(value) == 5001
        assert analyze_tree(value).depth == 5001

    def test_nesting_depth_stops_early(self):
        value = [[[[[]]]]]
        assert nesting_depth(value) == 5
        assert nesting_depth(value, limit=2) == 3


class TestNumbers:
    """Tests for number rounding and rendering."""

    def test_round_half_even(self):
        assert round_decimal(Decimal("3.14159265"), 6) == Decimal("3.141593")
        assert round_decimal(Decimal("0.1234565"), 6) == Decimal("0.123456")

    def test_round_keeps_short_numbers(self):
        assert str(round_decimal(Decimal("1.50"), 6)) == "1.50"
        assert str(round_decimal(Decimal("1.23456789"), None)) == "1.23456789"

    def test_integers_verbatim(self):
        assert format_number(30) == "30"
        assert format_number(-12345678901234567890) == "-12345678901234567890"

    def test_fractions_keep_a_fractional_digit(self):
        assert format_number(Decimal("30.0")) == "30.0"
        assert format_number(Decimal("1.50")) == "1.5"
        assert format_number(Decimal("-0.0")) == "-0.0"

    def test_scientific_notation(self):
        assert format_number(Decimal("1E+25")) == "1.0E+25"
        assert format_number(Decimal("2.5E-8")) == "2.5E-8"

    def test_non_finite(self):
        assert format_number(Decimal("Infinity")) is None
        assert format_number(Decimal("NaN")) is None

    def test_precision_applied(self):
        assert format_number(Decimal("2.7182818"), 3) == "2.718"


class TestCoerceScalar:
    """Tests for typing of text cells."""

    @pytest.mark.parametrize("text,expected", [
        ("42", 42),
        ("-7", -7),
        ("3.50", Decimal("3.50")),
        ("true", True),
        ("false", False),
        ("null", None),
        ("007", "007"),
        ("hello", "hello"),
        ("", ""),
    ])
    def test_coercion(self, text, expected):
        assert values_equal(coerce_scalar(text, 6), expected)


class TestOrderedItems:
    """Tests for key ordering."""

    def test_orders(self):
        mapping = {"b": 1, "a": 2, "c": 3}

        assert [k for k, _ in ordered_items(mapping, SortOrder.NONE)] == ["b", "a", "c"]
        assert [k for k, _ in ordered_items(mapping, SortOrder.ASCENDING)] == ["a", "b", "c"]
        assert [k for k, _ in ordered_items(mapping, SortOrder.DESCENDING)] == ["c", "b", "a"]
        assert list(mapping) == ["b", "a", "c"]
