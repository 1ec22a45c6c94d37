"""JSON serializer with configurable layout, quoting and number rendering."""

import re
from functools import lru_cache
from typing import Any, List, Optional, Pattern

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import FormatStyle
from .common import BaseSerializer


_SHORT_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_SEPARATORS = {
    FormatStyle.MINIFIED: (",", ":"),
    FormatStyle.COMPACT: (", ", ": "),
    FormatStyle.PRETTY: (",", ": "),
}


@lru_cache(maxsize=8)
def _escape_pattern(quote: str, escape_unicode: bool) -> Pattern:
    # Control characters and lone surrogates are always escaped
    special = r"\\" + quote + r"\x00-\x1f\ud800-\udfff"
    if escape_unicode:
        special += r"\x7f-\U0010ffff"
    return re.compile(f"[{special}]")


def _escape_char(char: str) -> str:
    if char in _SHORT_ESCAPES:
        return _SHORT_ESCAPES[char]
    code = ord(char)
    if code > 0xFFFF:
        code -= 0x10000
        return "\\u%04x\\u%04x" % (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF))
    return "\\u%04x" % code


def quote_json_string(text: str, quote: str = '"', escape_unicode: bool = False) -> str:
    """
    Quote a string as a JSON string literal.

    Args:
        text: String to quote
        quote: Quote character, ``"`` or ``'``
        escape_unicode: Escape DEL and every code point above 0x7E

    Returns:
        The quoted literal
    """
    pattern = _escape_pattern(quote, escape_unicode)
    return quote + pattern.sub(lambda match: _escape_char(match.group()), text) + quote


class JsonSerializer(BaseSerializer):
    """Renders a Value Model tree as JSON text."""

    format_name = "json"

    def __init__(self, options: Optional[ConversionOptions] = None,
                 deadline: Optional[Deadline] = None, logger=None):
        super().__init__(options, deadline, logger)
        options = self.options
        self.quote = options.quote_style.value
        self.indent_unit = options.indent_unit
        self.multiline = options.multiline and self.indent_unit != ""
        if options.style is FormatStyle.CUSTOM:
            self.item_separator, self.key_separator = options.item_separator, options.key_separator
        else:
            self.item_separator, self.key_separator = _SEPARATORS[options.style]
        if self.multiline:
            self.item_separator = self.item_separator.rstrip(" ")

    def serialize(self, value: Any) -> str:
        """
        Render a value as JSON.

        Args:
            value: Value Model tree

        Returns:
            JSON text
        """
        parts: List[str] = []
        self._write(value, 0, parts)
        return self.finish("".join(parts))

    def _scalar(self, value: Any) -> str:
        if value is None:
            return "null"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return quote_json_string(value, self.quote, self.options.escape_unicode)
        rendered = self.number(value)
        return "null" if rendered is None else rendered

    def _write(self, value: Any, level: int, parts: List[str]) -> None:
        self.deadline.tick()

        if isinstance(value, dict):
            members = list(self.items(value))
            if not members:
                parts.append("{}")
                return
            parts.append("{")
            for index, (key, member) in enumerate(members):
                if index:
                    parts.append(self.item_separator)
                self._newline(level + 1, parts)
                parts.append(quote_json_string(str(key), self.quote, self.options.escape_unicode))
                parts.append(self.key_separator)
                self._write(member, level + 1, parts)
            self._newline(level, parts)
            parts.append("}")
        elif isinstance(value, (list, tuple)):
            if not value:
                parts.append("[]")
                return
            parts.append("[")
            for index, item in enumerate(value):
                if index:
                    parts.append(self.item_separator)
                self._newline(level + 1, parts)
                self._write(item, level + 1, parts)
            self._newline(level, parts)
            parts.append("]")
        else:
            parts.append(self._scalar(value))

    def _newline(self, level: int, parts: List[str]) -> None:
        if self.multiline:
            parts.append("\n" + self.indent_unit * level)


def serialize_json(value: Any, options: Optional[ConversionOptions] = None,
                   deadline: Optional[Deadline] = None) -> str:
    """Render a value as JSON text."""
    return JsonSerializer(options, deadline).serialize(value)
