"""Tests for the bounded repair passes."""

from format_shapeshifter.parsers import parse_json, repair_json, repair_xml, repair_yaml


class TestRepairJson:
    """Tests for JSON repair."""

    def test_trailing_commas_removed(self):
        repaired, fixes = repair_json('{"a": [1, 2, ], "b": 3,\n}')

        assert parse_json(repaired) == {"a": [1, 2], "b": 3}
        assert [(fix.code, fix.count) for fix in fixes] == [("TRAILING_COMMA", 2)]

    def test_single_quotes_converted(self):
        repaired, fixes = repair_json("{'a': 'say \"hi\"', 'b': 'it\\'s'}")

        assert parse_json(repaired) == {"a": 'say "hi"', "b": "it's"}
        assert fixes[0].code == "SINGLE_QUOTES"
        assert fixes[0].count == 4

    def test_commas_inside_strings_untouched(self):
        text = '{"a": "x,]", "b": "it\'s"}'
        repaired, fixes = repair_json(text)

        assert repaired == text
        assert fixes == []

    def test_line_breaks_preserved(self):
        text = "{\n'a': 1,\n}"
        repaired, _ = repair_json(text)

        assert repaired.count("\n") == text.count("\n")


class TestRepairXml:
    """Tests for XML repair."""

    def test_bare_ampersand_escaped(self):
        repaired, fixes = repair_xml("<a>Tom & Jerry &amp; &#38; &lt;</a>")

        assert repaired == "<a>Tom &amp; Jerry &amp; &#38; &lt;</a>"
        assert fixes[0].code == "BARE_AMPERSAND"
        assert fixes[0].count == 1

    def test_nothing_to_fix(self):
        assert repair_xml("<a>ok</a>") == ("<a>ok</a>", [])


class TestRepairYaml:
    """Tests for YAML repair."""

    def test_tab_indentation_replaced(self):
        repaired, fixes = repair_yaml("a:\n\tb: 1\n\tc: 2\n")

        assert repaired == "a:\n  b: 1\n  c: 2\n"
        assert fixes[0].code == "TAB_INDENT"
        assert fixes[0].count == 2
