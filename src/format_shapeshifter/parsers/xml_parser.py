"""XML parser: element trees become objects, repeated siblings become arrays."""

import re
import xml.etree.ElementTree as ET
from typing import Any, Optional

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import MalformedDataError, SecurityError
from ..values import coerce_scalar
from .context import ParseContext


_ENTITY_DECLARATION = re.compile(r"<!ENTITY", re.IGNORECASE)
_CDATA_SECTION = re.compile(r"<!\[CDATA\[.*?\]\]>", re.DOTALL)
_POSITION_SUFFIX = re.compile(r":\s*line \d+, column \d+$")


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from a tag or attribute name."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


class _ElementReader:
    """Converts a parsed element tree into a Value Model tree."""

    def __init__(self, context: ParseContext):
        self.context = context
        self.xml = context.options.xml
        self.precision = context.options.number_precision

    def scalar(self, text: str) -> Any:
        if self.xml.coerce_types:
            return coerce_scalar(text, self.precision)
        return text

    def read(self, element: ET.Element, depth: int) -> Any:
        text = (element.text or "") + "".join(child.tail or "" for child in element)
        text = text.strip()
        attributes = element.attrib if self.xml.attributes else {}

        if not attributes and len(element) == 0:
            return self.scalar(text) if text else None

        self.context.enter(depth)
        result = {}
        for name, value in attributes.items():
            result[self.xml.attribute_prefix + _local_name(name)] = self.scalar(value)

        repeated = set()
        for child in element:
            key = _local_name(child.tag)
            value = self.read(child, depth + 1)
            if key in repeated:
                result[key].append(value)
            elif key in result:
                result[key] = [result[key], value]
                repeated.add(key)
            else:
                result[key] = value

        if text:
            result[self.xml.text_key] = self.scalar(text)
        return result


def parse_xml(text: str, options: Optional[ConversionOptions] = None,
              context: Optional[ParseContext] = None,
              deadline: Optional[Deadline] = None) -> Any:
    """
    Parse an XML document.

    A root element named like the configured root is unwrapped, and a
    root holding only ``item`` children becomes an array. Any other root
    is kept as a single-key object.

    Args:
        text: Source text
        options: Conversion options (``options.xml`` applies)
        context: Existing parse context to collect warnings into
        deadline: Deadline used when no context is given

    Returns:
        The parsed Value Model tree

    Raises:
        MalformedDataError: If the document is not well-formed
        SecurityError: If the document declares entities
        ConversionDepthError: If nesting exceeds the depth limit
    """
    context = context or ParseContext.create(options, deadline)
    xml_options = context.options.xml

    if _ENTITY_DECLARATION.search(text):
        raise SecurityError("XML entity declarations are not allowed", pattern="<!ENTITY")
    if not xml_options.cdata:
        text = _CDATA_SECTION.sub("", text)

    try:
        root = ET.fromstring(text.lstrip("\ufeff"))
    except ET.ParseError as exc:
        line, column = exc.position
        message = _POSITION_SUFFIX.sub("", str(exc))
        raise MalformedDataError(f"Malformed XML: {message}", line=line, column=column + 1) from None

    reader = _ElementReader(context)
    body = reader.read(root, 1)
    tag = _local_name(root.tag)

    if tag != xml_options.root:
        return {tag: body}
    if isinstance(body, dict) and list(body) == [xml_options.item_name]:
        items = body[xml_options.item_name]
        return items if isinstance(items, list) else [items]
    return body
