"""Tests for XML parsing and serialization."""

from decimal import Decimal

import pytest

from format_shapeshifter.options import ConversionOptions, XmlOptions
from format_shapeshifter.parsers import parse_xml
from format_shapeshifter.serializers import serialize_xml
from format_shapeshifter.types import FormatStyle, MalformedDataError, SecurityError


class TestXmlParser:
    """Tests for parse_xml."""

    def test_attributes_and_repeated_elements(self, sample_xml):
        data = parse_xml(sample_xml)

        assert data == {
            "library": {
                "@name": "City",
                "book": [
                    {"title": "Dune", "year": 1965},
                    {"title": "Emma", "year": 1815},
                ],
            }
        }

    def test_configured_root_is_unwrapped(self):
        data = parse_xml("<root><name>John</name><age>30</age><score>9.5</score></root>")

        assert data == {"name": "John", "age": 30, "score": Decimal("9.5")}

    def test_item_children_become_array(self):
        assert parse_xml("<root><item>1</item><item>2</item></root>") == [1, 2]
        assert parse_xml("<root><item>a</item></root>") == ["a"]

    def test_text_with_attributes(self):
        data = parse_xml('<root><price currency="EUR">10</price></root>')

        assert data == {"price": {"@currency": "EUR", "#text": 10}}

    def test_empty_element_is_null(self):
        assert parse_xml("<root><a/><b></b></root>") == {"a": None, "b": None}

    def test_type_coercion_can_be_disabled(self):
        options = ConversionOptions(xml=XmlOptions(coerce_types=False))

        assert parse_xml("<root><n>42</n></root>", options) == {"n": "42"}

    def test_cdata_kept_as_text(self):
        assert parse_xml("<root><a><![CDATA[<b>&</b>]]></a></root>") == {"a": "<b>&</b>"}

    def test_entity_declarations_refused(self):
        text = '<?xml version="1.0"?><!DOCTYPE r [<!ENTITY x "boom">]><r>&x;</r>'

        with pytest.raises(SecurityError):
            parse_xml(text)

    def test_malformed_xml_has_position(self):
        with pytest.raises(MalformedDataError) as exc_info:
            parse_xml("<root>\n  <a>1</b>\n</root>")

        assert exc_info.value.line == 2
        assert exc_info.value.column is not None


class TestXmlSerializer:
    """Tests for serialize_xml."""

    def test_object_wrapped_in_root(self):
        text = serialize_xml({"name": "John", "age": 30})

        assert text == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            "<root>\n"
            "  <name>John</name>\n"
            "  <age>30</age>\n"
            "</root>"
        )

    def test_single_key_object_supplies_root(self):
        text = serialize_xml({"person": {"name": "Ann"}}, ConversionOptions(style=FormatStyle.MINIFIED))

        assert text == '<?xml version="1.0" encoding="UTF-8"?><person><name>Ann</name></person>'

    def test_arrays_repeat_elements(self):
        options = ConversionOptions(style="minified", xml=XmlOptions(declaration=False))

        assert serialize_xml({"tag": ["a", "b"]}, options) == "<root><tag>a</tag><tag>b</tag></root>"
        assert serialize_xml([1, 2], options) == "<root><item>1</item><item>2</item></root>"

    def test_attributes_and_text(self):
        options = ConversionOptions(style="minified", xml=XmlOptions(declaration=False))
        value = {"price": {"@currency": "EUR", "#text": 10}}

        assert serialize_xml(value, options) == '<price currency="EUR">10</price>'

    def test_escaping(self):
        options = ConversionOptions(style="minified", xml=XmlOptions(declaration=False))

        assert serialize_xml({"a": "x < y & z"}, options) == "<root><a>x &lt; y &amp; z</a></root>"

    def test_cdata_output(self):
        options = ConversionOptions(
            style="minified", xml=XmlOptions(declaration=False, use_cdata=True)
        )

        assert serialize_xml({"a": "<b>"}, options) == "<root><a><![CDATA[<b>]]></a></root>"

    def test_null_and_empty_are_self_closing(self):
        options = ConversionOptions(style="minified", xml=XmlOptions(declaration=False))

        assert serialize_xml({"a": None, "b": []}, options) == "<root><a/><b/></root>"

    def test_invalid_names_sanitized(self):
        options = ConversionOptions(style="minified", xml=XmlOptions(declaration=False))

        assert serialize_xml({"1st key": True}, options) == "<root><_1st_key>true</_1st_key></root>"

    def test_round_trip(self):
        value = {"name": "John", "age": 30, "tags": ["a", "b"], "address": {"city": "Paris"}}

        assert parse_xml(serialize_xml(value)) == value
