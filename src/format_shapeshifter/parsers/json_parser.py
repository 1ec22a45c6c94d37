"""
Recursive-descent parser for strict and lenient JSON.

Every production is a pure function taking the source text and an
immutable ``Position`` and returning ``(value, next_position)``. No parser
state is mutated in place, so a single parse is reentrant and thread safe.
"""

import re
from decimal import Decimal
from typing import Any, NamedTuple, Optional, Tuple

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import ConversionError, DuplicateKeyPolicy, ErrorType, MalformedDataError
from ..values import round_decimal
from .context import ParseContext


class Position(NamedTuple):
    """Immutable cursor: character offset plus 1-based line and column."""
    offset: int
    line: int
    column: int

    def advance(self, text: str, count: int) -> "Position":
        """Return the position ``count`` characters further on."""
        end = self.offset + count
        chunk = text[self.offset:end]
        newlines = chunk.count("\n")
        if newlines:
            return Position(end, self.line + newlines, len(chunk) - chunk.rfind("\n"))
        return Position(end, self.line, self.column + count)


START = Position(0, 1, 1)

_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_HEX_NUMBER = re.compile(r"-?0[xX][0-9a-fA-F]+")
_NUMBER_CHARS = frozenset("0123456789+-.eExX")
_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_WHITESPACE = re.compile(r"[ \t\r\n]*")
_PLAIN_STRING_RUN = {
    '"': re.compile(r'[^"\\\x00-\x1f]*'),
    "'": re.compile(r"[^'\\\x00-\x1f]*"),
}
_LITERALS = (("true", True), ("false", False), ("null", None))

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


def _error(message: str, pos: Position) -> MalformedDataError:
    return MalformedDataError(message, line=pos.line, column=pos.column)


def _describe(text: str, pos: Position) -> str:
    if pos.offset >= len(text):
        return "end of input"
    return repr(text[pos.offset])


def _note_repair(context: ParseContext, message: str, code: str, pos: Position) -> None:
    """Report lenient syntax accepted while repair mode is on."""
    if context.options.repair_mode:
        context.warn(message, code, pos.line, pos.column)


def _skip_insignificant(text: str, pos: Position, context: ParseContext) -> Position:
    """Skip whitespace and, when allowed, comments."""
    while True:
        match = _WHITESPACE.match(text, pos.offset)
        if match.end() != pos.offset:
            pos = pos.advance(text, match.end() - pos.offset)

        if not text.startswith("/", pos.offset):
            return pos
        if not context.options.allow_comments:
            raise _error("Comments are not allowed", pos)

        if text.startswith("//", pos.offset):
            end = text.find("\n", pos.offset)
            end = len(text) if end == -1 else end
        elif text.startswith("/*", pos.offset):
            close = text.find("*/", pos.offset + 2)
            if close == -1:
                raise _error("Unterminated block comment", pos)
            end = close + 2
        else:
            raise _error("Unexpected character '/'", pos)
        pos = pos.advance(text, end - pos.offset)


def _parse_value(text: str, pos: Position, context: ParseContext, depth: int) -> Tuple[Any, Position]:
    if pos.offset >= len(text):
        raise _error("Unexpected end of input, expected a value", pos)

    char = text[pos.offset]
    if char == "{":
        return _parse_object(text, pos, context, depth + 1)
    if char == "[":
        return _parse_array(text, pos, context, depth + 1)
    if char == '"' or (char == "'" and context.options.allow_single_quotes):
        return _parse_string(text, pos, context)
    if char == "-" or char.isdigit():
        return _parse_number(text, pos, context)

    for literal, value in _LITERALS:
        if text.startswith(literal, pos.offset):
            end = pos.offset + len(literal)
            if end < len(text) and (text[end].isalnum() or text[end] == "_"):
                break
            return value, pos.advance(text, len(literal))

    if char == "'":
        raise _error("Single-quoted strings are not allowed", pos)
    raise _error(f"Unexpected character {char!r}, expected a value", pos)


def _parse_object(text: str, pos: Position, context: ParseContext, depth: int) -> Tuple[dict, Position]:
    context.enter(depth, pos.line, pos.column)
    result = {}
    pos = _skip_insignificant(text, pos.advance(text, 1), context)

    if text.startswith("}", pos.offset):
        return result, pos.advance(text, 1)

    policy = context.options.duplicate_keys
    while True:
        key_pos = pos
        key, pos = _parse_key(text, pos, context)
        pos = _skip_insignificant(text, pos, context)
        if not text.startswith(":", pos.offset):
            raise _error(f"Expected ':' after object key, found {_describe(text, pos)}", pos)
        pos = _skip_insignificant(text, pos.advance(text, 1), context)
        value, pos = _parse_value(text, pos, context, depth)
        context.deadline.tick()

        if key in result:
            if policy is DuplicateKeyPolicy.ERROR:
                raise _error(f"Duplicate object key {key!r}", key_pos)
            kept = "last" if policy is DuplicateKeyPolicy.LAST else "first"
            context.warn(
                f"Duplicate object key {key!r}; keeping the {kept} value",
                "DUPLICATE_KEY", key_pos.line, key_pos.column,
            )
            if policy is DuplicateKeyPolicy.LAST:
                result[key] = value
        else:
            result[key] = value

        pos = _skip_insignificant(text, pos, context)
        if text.startswith("}", pos.offset):
            return result, pos.advance(text, 1)
        if not text.startswith(",", pos.offset):
            raise _error(f"Expected ',' or '}}' in object, found {_describe(text, pos)}", pos)
        comma = pos
        pos = _skip_insignificant(text, pos.advance(text, 1), context)
        if text.startswith("}", pos.offset):
            if not context.options.allow_trailing_commas:
                raise _error("Trailing comma in object", comma)
            _note_repair(context, "Removed trailing comma in object", "TRAILING_COMMA", comma)
            return result, pos.advance(text, 1)


def _parse_array(text: str, pos: Position, context: ParseContext, depth: int) -> Tuple[list, Position]:
    context.enter(depth, pos.line, pos.column)
    result = []
    pos = _skip_insignificant(text, pos.advance(text, 1), context)

    if text.startswith("]", pos.offset):
        return result, pos.advance(text, 1)

    while True:
        value, pos = _parse_value(text, pos, context, depth)
        result.append(value)
        context.deadline.tick()

        pos = _skip_insignificant(text, pos, context)
        if text.startswith("]", pos.offset):
            return result, pos.advance(text, 1)
        if not text.startswith(",", pos.offset):
            raise _error(f"Expected ',' or ']' in array, found {_describe(text, pos)}", pos)
        comma = pos
        pos = _skip_insignificant(text, pos.advance(text, 1), context)
        if text.startswith("]", pos.offset):
            if not context.options.allow_trailing_commas:
                raise _error("Trailing comma in array", comma)
            _note_repair(context, "Removed trailing comma in array", "TRAILING_COMMA", comma)
            return result, pos.advance(text, 1)


def _parse_key(text: str, pos: Position, context: ParseContext) -> Tuple[str, Position]:
    if pos.offset >= len(text):
        raise _error("Unexpected end of input, expected an object key", pos)

    char = text[pos.offset]
    if char == '"' or (char == "'" and context.options.allow_single_quotes):
        return _parse_string(text, pos, context)

    match = _IDENTIFIER.match(text, pos.offset)
    if match:
        if not context.options.allow_unquoted_keys:
            raise _error(f"Unquoted object key {match.group()!r}", pos)
        return match.group(), pos.advance(text, match.end() - pos.offset)

    if char == "'":
        raise _error("Single-quoted strings are not allowed", pos)
    raise _error(f"Expected an object key, found {_describe(text, pos)}", pos)


def _parse_string(text: str, pos: Position, context: ParseContext) -> Tuple[str, Position]:
    quote = text[pos.offset]
    run = _PLAIN_STRING_RUN[quote]
    if quote == "'":
        _note_repair(context, "Normalized single-quoted string", "SINGLE_QUOTES", pos)
    start = pos
    pos = pos.advance(text, 1)
    parts = []

    while True:
        context.deadline.tick()
        match = run.match(text, pos.offset)
        if match.end() != pos.offset:
            parts.append(match.group())
            pos = pos.advance(text, match.end() - pos.offset)

        if pos.offset >= len(text):
            raise _error("Unterminated string", start)

        char = text[pos.offset]
        if char == quote:
            return "".join(parts), pos.advance(text, 1)
        if char != "\\":
            raise _error(f"Invalid control character {char!r} in string", pos)

        escape = text[pos.offset + 1:pos.offset + 2]
        if escape in _ESCAPES:
            parts.append(_ESCAPES[escape])
            pos = pos.advance(text, 2)
        elif escape == "'" and context.options.allow_single_quotes:
            parts.append("'")
            pos = pos.advance(text, 2)
        elif escape == "u":
            char_code, pos = _parse_unicode_escape(text, pos)
            parts.append(char_code)
        else:
            raise _error(f"Invalid escape sequence '\\{escape}'", pos)


def _read_hex4(text: str, pos: Position) -> Optional[int]:
    digits = text[pos.offset + 2:pos.offset + 6]
    if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
        return None
    return int(digits, 16)


def _parse_unicode_escape(text: str, pos: Position) -> Tuple[str, Position]:
    code = _read_hex4(text, pos)
    if code is None:
        raise _error("Invalid \\u escape, expected 4 hex digits", pos)
    pos = pos.advance(text, 6)

    if 0xD800 <= code <= 0xDBFF and text.startswith("\\u", pos.offset):
        low = _read_hex4(text, pos)
        if low is not None and 0xDC00 <= low <= 0xDFFF:
            combined = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
            return chr(combined), pos.advance(text, 6)
    return chr(code), pos


def _parse_number(text: str, pos: Position, context: ParseContext) -> Tuple[Any, Position]:
    options = context.options

    if options.allow_hex_numbers:
        match = _HEX_NUMBER.match(text, pos.offset)
        if match:
            literal = match.group()
            sign = -1 if literal.startswith("-") else 1
            return sign * int(literal.lstrip("-")[2:], 16), pos.advance(text, len(literal))

    match = _NUMBER.match(text, pos.offset)
    if not match:
        raise _error("Invalid number", pos)
    literal = match.group()
    end = match.end()
    if end < len(text) and text[end] in _NUMBER_CHARS:
        raise _error(f"Invalid number {text[pos.offset:end + 1]!r}", pos)

    next_pos = pos.advance(text, len(literal))
    if "." not in literal and "e" not in literal and "E" not in literal:
        try:
            return int(literal), next_pos
        except ValueError:
            raise _error("Integer literal is too long", pos) from None
    return round_decimal(Decimal(literal), options.number_precision), next_pos


def parse_json(text: str, options: Optional[ConversionOptions] = None,
               context: Optional[ParseContext] = None,
               deadline: Optional[Deadline] = None) -> Any:
    """
    Parse JSON, or lenient JSON when the options allow it.

    Args:
        text: Source text
        options: Conversion options controlling the accepted superset
        context: Existing parse context to collect warnings into
        deadline: Deadline used when no context is given

    Returns:
        The parsed Value Model tree

    Raises:
        MalformedDataError: On any syntax error, with line and column
        ConversionDepthError: If nesting exceeds the depth limit
        ConversionTimeoutError: If the deadline expires
    """
    if not isinstance(text, str):
        raise ConversionError(
            f"Expected text input, got {type(text).__name__}",
            error_type=ErrorType.MALFORMED_DATA,
        )
    context = context or ParseContext.create(options, deadline)

    pos = START
    if text.startswith("\ufeff"):
        pos = Position(1, 1, 1)

    pos = _skip_insignificant(text, pos, context)
    value, pos = _parse_value(text, pos, context, 0)
    pos = _skip_insignificant(text, pos, context)
    if pos.offset < len(text):
        raise _error(f"Unexpected trailing content {_describe(text, pos)}", pos)
    return value
