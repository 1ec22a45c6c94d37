"""
Value Model helpers.

Parsed documents are plain Python trees: ``None``, ``bool``, ``int``,
``Decimal``, ``str``, ``list`` and ``dict``. ``int`` marks an is-integer
number and ``Decimal`` a fractional one, so ``30`` and ``30.0`` survive a
round trip unchanged.
"""

import re
from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from .types import SortOrder


class ValueKind(Enum):
    """Discriminator for Value Model variants."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value into its Value Model variant.

    Args:
        value: Any node of a parsed tree

    Returns:
        The matching ValueKind

    Raises:
        TypeError: If the value is not part of the Value Model
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int and must be tested first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def is_integer_number(value: Any) -> bool:
    """Check whether a value is an integer number (never a bool)."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_scalar(value: Any) -> bool:
    """Check whether a value is a leaf of the tree."""
    return not isinstance(value, (list, tuple, dict))


def values_equal(left: Any, right: Any) -> bool:
    """
    Type-aware structural equality.

    Unlike ``==``, ``True`` never equals ``1`` and the integer ``1`` never
    equals ``Decimal("1.0")``. Object comparison ignores key order.

    Args:
        left: First value
        right: Second value

    Returns:
        True if both trees are structurally identical
    """
    stack = [(left, right)]
    while stack:
        a, b = stack.pop()
        kind_a, kind_b = kind_of(a), kind_of(b)
        if kind_a is not kind_b:
            return False
        if kind_a is ValueKind.OBJECT:
            if a.keys() != b.keys():
                return False
            stack.extend((a[key], b[key]) for key in a)
        elif kind_a is ValueKind.ARRAY:
            if len(a) != len(b):
                return False
            stack.extend(zip(a, b))
        elif kind_a is ValueKind.NUMBER:
            if is_integer_number(a) != is_integer_number(b):
                return False
            if isinstance(a, Decimal) and a.is_nan():
                if not (isinstance(b, Decimal) and b.is_nan()):
                    return False
            elif a != b:
                return False
        elif a != b:
            return False
    return True


@dataclass
class TreeStats:
    """Structure statistics of a value tree."""
    depth: int = 0
    key_count: int = 0
    value_count: int = 0
    array_count: int = 0
    object_count: int = 0
    string_count: int = 0
    number_count: int = 0
    boolean_count: int = 0
    null_count: int = 0
    max_string_length: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert statistics to a plain dictionary."""
        return asdict(self)


def analyze_tree(value: Any, deadline=None) -> TreeStats:
    """
    Walk a tree once and collect structure statistics.

    Uses an explicit stack so arbitrarily deep trees never hit the
    interpreter recursion limit. A scalar root has depth 0 and every
    container level adds 1.

    Args:
        value: Root of the tree
        deadline: Optional Deadline ticked once per node

    Returns:
        TreeStats for the tree
    """
    stats = TreeStats()
    stack = [(value, 0)]

    while stack:
        node, level = stack.pop()
        if deadline is not None:
            deadline.tick()
        stats.value_count += 1

        if isinstance(node, dict):
            stats.object_count += 1
            stats.key_count += len(node)
            stats.depth = max(stats.depth, level + 1)
            stack.extend((child, level + 1) for child in node.values())
        elif isinstance(node, (list, tuple)):
            stats.array_count += 1
            stats.depth = max(stats.depth, level + 1)
            stack.extend((child, level + 1) for child in node)
        elif node is None:
            stats.null_count += 1
        elif isinstance(node, bool):
            stats.boolean_count += 1
        elif isinstance(node, str):
            stats.string_count += 1
            stats.max_string_length = max(stats.max_string_length, len(node))
        else:
            stats.number_count += 1

    return stats


def nesting_depth(value: Any, limit: Optional[int] = None, deadline=None) -> int:
    """
    Compute the container nesting depth of a tree.

    Args:
        value: Root of the tree
        limit: Stop early once the depth exceeds this value
        deadline: Optional Deadline ticked once per container

    Returns:
        The nesting depth, or the first depth found above ``limit``
    """
    deepest = 0
    stack = [(value, 0)]

    while stack:
        node, level = stack.pop()
        if isinstance(node, dict):
            children: Iterable[Any] = node.values()
        elif isinstance(node, (list, tuple)):
            children = node
        else:
            continue

        if deadline is not None:
            deadline.tick()
        level += 1
        if level > deepest:
            deepest = level
            if limit is not None and deepest > limit:
                return deepest
        stack.extend((child, level) for child in children if not is_scalar(child))

    return deepest


def round_decimal(number: Decimal, precision: Optional[int]) -> Decimal:
    """
    Round a decimal half-even to ``precision`` fractional digits.

    Numbers that already carry no more digits than requested are returned
    unchanged, so ``1.50`` keeps its trailing zero.

    Args:
        number: Number to round
        precision: Fractional digits to keep; None disables rounding

    Returns:
        The rounded number
    """
    if precision is None or not number.is_finite():
        return number
    exponent = number.as_tuple().exponent
    if exponent >= -precision:
        return number
    try:
        return number.quantize(Decimal(1).scaleb(-precision))
    except InvalidOperation:
        # Too many digits for the context; keep the exact value
        return number


def format_number(number: Any, precision: Optional[int] = None) -> Optional[str]:
    """
    Render a number the way every text serializer writes it.

    Integers are written verbatim. Fractional numbers always carry at
    least one fractional digit (``30.0``) and switch to scientific
    notation for very large or very small magnitudes.

    Args:
        number: int, float or Decimal
        precision: Optional rounding precision

    Returns:
        The rendered number, or None for NaN and infinities
    """
    if is_integer_number(number):
        return str(number)
    if isinstance(number, float):
        number = Decimal(repr(number))
    if not number.is_finite():
        return None

    number = round_decimal(number, precision)
    normalized = number.normalize()
    if normalized == 0:
        return "-0.0" if normalized.is_signed() else "0.0"

    adjusted = normalized.adjusted()
    if -7 < adjusted < 21:
        text = format(normalized, "f")
        if "." not in text:
            text += ".0"
        return text

    mantissa, _, exponent = format(normalized, "E").partition("E")
    if "." not in mantissa:
        mantissa += ".0"
    return f"{mantissa}E{exponent}"


_INTEGER = re.compile(r"^-?(?:0|[1-9][0-9]*)$")
_DECIMAL = re.compile(r"^-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?$")


def coerce_scalar(text: str, precision: Optional[int] = None) -> Any:
    """
    Best-effort typing of a text cell or element body.

    Args:
        text: Raw scalar text
        precision: Rounding precision for fractional numbers

    Returns:
        int, Decimal, bool, None or the original string
    """
    if _INTEGER.match(text):
        return int(text)
    if _DECIMAL.match(text):
        return round_decimal(Decimal(text), precision)
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    return text


def ordered_items(mapping: Dict[str, Any], order: SortOrder) -> Iterable[Tuple[str, Any]]:
    """
    Iterate object members in the requested order without mutating it.

    Args:
        mapping: Object to iterate
        order: Requested key order

    Returns:
        Iterable of (key, value) pairs
    """
    if order is SortOrder.ASCENDING:
        return sorted(mapping.items(), key=lambda item: item[0])
    if order is SortOrder.DESCENDING:
        return sorted(mapping.items(), key=lambda item: item[0], reverse=True)
    return mapping.items()
