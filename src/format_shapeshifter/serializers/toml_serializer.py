"""TOML serializer: root keys, [tables] and [[arrays of tables]]."""

import re
from typing import Any, Dict, List, Optional, Tuple

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import QuoteStyle, StructureMismatchError
from .common import BaseSerializer


_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")
_BASIC_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}
_NEEDS_ESCAPE = re.compile(r'[\\"\x00-\x1f\x7f]')
_NEEDS_ESCAPE_ASCII = re.compile(r'[\\"\x00-\x1f\x7f-\U0010ffff]')
_LITERAL_UNSAFE = re.compile(r"['\x00-\x08\x0a-\x1f\x7f]")


def _escape_basic(char: str) -> str:
    if char in _BASIC_ESCAPES:
        return _BASIC_ESCAPES[char]
    code = ord(char)
    if code > 0xFFFF:
        return "\\U%08X" % code
    return "\\u%04X" % code


def _is_table(value: Any) -> bool:
    return isinstance(value, dict)


def _is_table_array(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and bool(value) and all(isinstance(item, dict) for item in value)


class TomlSerializer(BaseSerializer):
    """Renders an object as a TOML document."""

    format_name = "toml"

    def __init__(self, options: Optional[ConversionOptions] = None,
                 deadline: Optional[Deadline] = None, logger=None):
        super().__init__(options, deadline, logger)
        self.toml = self.options.toml

    def serialize(self, value: Any) -> str:
        """
        Render an object as TOML.

        Args:
            value: Value Model tree whose root is an object

        Returns:
            TOML text

        Raises:
            StructureMismatchError: If the root is not an object, or a null
                is found while nulls are not skipped
        """
        if not isinstance(value, dict):
            raise StructureMismatchError(
                f"TOML output requires an object at the root, got {type(value).__name__}",
                target_format="toml",
            )
        sections: List[str] = []
        self._write_table(value, (), False, sections)
        return self.finish("\n\n".join(section for section in sections if section))

    # Keys and scalars

    def _key(self, key: str) -> str:
        key = str(key)
        return key if _BARE_KEY.match(key) else self._string(key, force_basic=True)

    def _path(self, path: Tuple[str, ...]) -> str:
        return ".".join(self._key(part) for part in path)

    def _string(self, text: str, force_basic: bool = False) -> str:
        if (
            not force_basic
            and self.options.quote_style is QuoteStyle.SINGLE
            and not _LITERAL_UNSAFE.search(text)
            and not (self.options.escape_unicode and not text.isascii())
        ):
            return f"'{text}'"
        pattern = _NEEDS_ESCAPE_ASCII if self.options.escape_unicode else _NEEDS_ESCAPE
        return '"' + pattern.sub(lambda match: _escape_basic(match.group()), text) + '"'

    def _null(self, path: Tuple[str, ...]) -> StructureMismatchError:
        location = self._path(path) if path else "<root>"
        return StructureMismatchError(
            f"TOML cannot represent null (at {location})", target_format="toml"
        )

    def _inline(self, value: Any, path: Tuple[str, ...]) -> str:
        self.deadline.tick()
        if value is None:
            raise self._null(path)
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return self._string(value)
        if isinstance(value, dict):
            members = [
                f"{self._key(key)} = {self._inline(member, path + (key,))}"
                for key, member in self.items(value)
                if not (member is None and self.toml.skip_nulls)
            ]
            return "{ " + ", ".join(members) + " }" if members else "{}"
        if isinstance(value, (list, tuple)):
            items = [
                self._inline(item, path)
                for item in value
                if not (item is None and self.toml.skip_nulls)
            ]
            return "[" + ", ".join(items) + "]"
        rendered = self.number(value)
        if rendered is None:
            if value.is_nan():
                return "nan"
            return "-inf" if value < 0 else "inf"
        return rendered

    # Tables

    def _split(self, table: Dict[str, Any]) -> Tuple[list, list, list]:
        scalars, tables, table_arrays = [], [], []
        for key, value in self.items(table):
            if value is None:
                if self.toml.skip_nulls:
                    continue
                scalars.append((key, value))
            elif self.toml.tables and _is_table(value):
                tables.append((key, value))
            elif not self.toml.inline_array_tables and _is_table_array(value):
                table_arrays.append((key, value))
            else:
                scalars.append((key, value))
        return scalars, tables, table_arrays

    def _write_table(self, table: Dict[str, Any], path: Tuple[str, ...],
                     array_item: bool, sections: List[str]) -> None:
        self.deadline.tick()
        scalars, tables, table_arrays = self._split(table)

        lines = []
        if array_item:
            lines.append(f"[[{self._path(path)}]]")
        elif path and (scalars or not (tables or table_arrays)):
            lines.append(f"[{self._path(path)}]")
        for key, value in scalars:
            lines.append(f"{self._key(key)} = {self._inline(value, path + (key,))}")
        sections.append("\n".join(lines))

        for key, value in tables:
            self._write_table(value, path + (key,), False, sections)
        for key, items in table_arrays:
            for item in items:
                self._write_table(item, path + (key,), True, sections)


def serialize_toml(value: Any, options: Optional[ConversionOptions] = None,
                   deadline: Optional[Deadline] = None) -> str:
    """Render an object as a TOML document."""
    return TomlSerializer(options, deadline).serialize(value)
