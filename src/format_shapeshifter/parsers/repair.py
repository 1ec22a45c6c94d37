"""
Bounded repair passes for a small, fixed set of syntax problems.

Each repairer makes exactly one pass over the text and reports what it
changed. Line breaks are never added or removed, so line numbers in any
later diagnostic still point at the original input.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple


@dataclass
class RepairFix:
    """One kind of fix applied by a repair pass."""
    code: str
    message: str
    count: int = 1


def _record(fixes: List[RepairFix], code: str, message: str) -> None:
    for fix in fixes:
        if fix.code == code:
            fix.count += 1
            return
    fixes.append(RepairFix(code, message))


def _next_significant(text: str, index: int) -> str:
    while index < len(text) and text[index] in " \t\r\n":
        index += 1
    return text[index] if index < len(text) else ""


def repair_json(text: str) -> Tuple[str, List[RepairFix]]:
    """
    Fix trailing commas and single-quoted strings in JSON text.

    Single-quoted strings are rewritten as double-quoted strings, escaping
    any embedded double quotes. Commas directly before ``}`` or ``]`` are
    dropped.

    Args:
        text: JSON text that failed to parse

    Returns:
        Tuple of (repaired text, list of applied fixes)
    """
    out = []
    fixes: List[RepairFix] = []
    quote = None
    index = 0
    length = len(text)

    while index < length:
        char = text[index]

        if quote is not None:
            if char == "\\" and index + 1 < length:
                escaped = text[index + 1]
                if quote == "'" and escaped == "'":
                    out.append("'")
                else:
                    out.append(text[index:index + 2])
                index += 2
                continue
            if char == quote:
                out.append('"')
                quote = None
            elif char == '"' and quote == "'":
                out.append('\\"')
            else:
                out.append(char)
            index += 1
            continue

        if char == '"':
            quote = '"'
            out.append(char)
        elif char == "'":
            quote = "'"
            out.append('"')
            _record(fixes, "SINGLE_QUOTES", "Converted single-quoted strings to double quotes")
        elif char == "," and _next_significant(text, index + 1) in ("}", "]"):
            _record(fixes, "TRAILING_COMMA", "Removed trailing commas before closing brackets")
        else:
            out.append(char)
        index += 1

    return "".join(out), fixes


_BARE_AMPERSAND = re.compile(r"&(?!(?:[A-Za-z_][\w.\-]*|#[0-9]+|#x[0-9A-Fa-f]+);)")


def repair_xml(text: str) -> Tuple[str, List[RepairFix]]:
    """
    Escape bare ampersands in XML text.

    Args:
        text: XML text that failed to parse

    Returns:
        Tuple of (repaired text, list of applied fixes)
    """
    repaired, count = _BARE_AMPERSAND.subn("&amp;", text)
    fixes = [RepairFix("BARE_AMPERSAND", "Escaped bare '&' characters", count)] if count else []
    return repaired, fixes


_LEADING_TABS = re.compile(r"^([ ]*)(\t+)", re.MULTILINE)


def repair_yaml(text: str) -> Tuple[str, List[RepairFix]]:
    """
    Replace tab indentation in YAML text with spaces.

    Args:
        text: YAML text that failed to parse

    Returns:
        Tuple of (repaired text, list of applied fixes)
    """
    repaired, count = _LEADING_TABS.subn(lambda m: m.group(1) + "  " * len(m.group(2)), text)
    fixes = [RepairFix("TAB_INDENT", "Replaced tab indentation with spaces", count)] if count else []
    return repaired, fixes


# Warning codes that mean the input was altered to make it parse
REPAIR_WARNING_CODES = frozenset({"TRAILING_COMMA", "SINGLE_QUOTES", "BARE_AMPERSAND", "TAB_INDENT"})
