"""XML serializer: objects become elements, arrays repeat their element."""

import re
from typing import Any, Dict, List, Optional, Tuple

from ..guard import Deadline
from ..options import ConversionOptions
from ..utils.validation import ValidationUtils
from .common import BaseSerializer


XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
_NON_ASCII = re.compile("[\x7f-\U0010ffff]")
_NAME_INVALID = re.compile(r"[^\w.\-]")
_TEXT_ESCAPES = (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"))
_ATTRIBUTE_ESCAPES = _TEXT_ESCAPES + (('"', "&quot;"),)


def element_name(key: str) -> str:
    """Turn an arbitrary object key into a legal XML element name."""
    name = _NAME_INVALID.sub("_", str(key))
    if not name or not (name[0].isalpha() or name[0] == "_"):
        name = "_" + name
    return name


class XmlSerializer(BaseSerializer):
    """Renders a Value Model tree as an XML document."""

    format_name = "xml"

    def __init__(self, options: Optional[ConversionOptions] = None,
                 deadline: Optional[Deadline] = None, logger=None):
        super().__init__(options, deadline, logger)
        self.xml = self.options.xml
        self.indent_unit = self.options.indent_unit
        self.multiline = self.options.multiline and self.indent_unit != ""

    def serialize(self, value: Any) -> str:
        """
        Render a value as an XML document.

        A single-key object whose value is an object supplies the root
        element; anything else is wrapped in the configured root element.

        Args:
            value: Value Model tree

        Returns:
            XML text
        """
        parts: List[str] = []
        if self.xml.declaration:
            parts.append(XML_DECLARATION)
            if self.multiline:
                parts.append("\n")

        name, body = self._root(value)
        self._write_element(name, body, 0, parts)
        return self.finish("".join(parts))

    def _root(self, value: Any) -> Tuple[str, Any]:
        if isinstance(value, dict) and len(value) == 1:
            (key, body), = value.items()
            if (
                isinstance(body, dict)
                and key != self.xml.root
                and ValidationUtils.is_xml_name(key)
            ):
                return key, body
        return self.xml.root, value

    def _text(self, text: str, escapes=_TEXT_ESCAPES) -> str:
        text = _INVALID_XML_CHARS.sub("\ufffd", text)
        for char, entity in escapes:
            text = text.replace(char, entity)
        if self.options.escape_unicode:
            text = _NON_ASCII.sub(lambda match: "&#x%X;" % ord(match.group()), text)
        return text

    def _scalar_text(self, value: Any) -> str:
        if value is None:
            return "null"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return value
        rendered = self.number(value)
        if rendered is None:
            if value.is_nan():
                return "NaN"
            return "-Infinity" if value < 0 else "Infinity"
        return rendered

    def _content(self, value: Any) -> str:
        text = self._scalar_text(value)
        if (
            self.xml.use_cdata
            and isinstance(value, str)
            and ("<" in text or "&" in text)
            and "]]>" not in text
            and not _INVALID_XML_CHARS.search(text)
        ):
            return f"<![CDATA[{text}]]>"
        return self._text(text)

    def _split_members(self, mapping: Dict[str, Any]) -> Tuple[List[str], Any, List[Tuple[str, Any]]]:
        prefix = self.xml.attribute_prefix
        attributes = []
        text = None
        children = []
        for key, member in self.items(mapping):
            if key == self.xml.text_key and not isinstance(member, (dict, list)):
                text = member
            elif (
                self.xml.attributes
                and key.startswith(prefix)
                and len(key) > len(prefix)
                and not isinstance(member, (dict, list))
            ):
                name = element_name(key[len(prefix):])
                value = self._text(self._scalar_text(member), _ATTRIBUTE_ESCAPES)
                attributes.append(f' {name}="{value}"')
            else:
                children.append((key, member))
        return attributes, text, children

    def _write_element(self, name: str, value: Any, level: int, parts: List[str]) -> None:
        self.deadline.tick()
        tag = element_name(name)
        indent = self.indent_unit * level if self.multiline else ""

        if isinstance(value, dict):
            attributes, text, children = self._split_members(value)
            attrs = "".join(attributes)
            if not children and text is None:
                self._empty(tag, attrs, indent, parts)
                return
            parts.append(f"{indent}<{tag}{attrs}>")
            if text is not None:
                parts.append(self._content(text))
            if children:
                self._break(parts)
                for key, member in children:
                    self._write_member(key, member, level + 1, parts)
                parts.append(indent)
            parts.append(f"</{tag}>")
            self._break(parts)
        elif isinstance(value, (list, tuple)):
            if not value:
                self._empty(tag, "", indent, parts)
                return
            parts.append(f"{indent}<{tag}>")
            self._break(parts)
            self._write_member(self.xml.item_name, value, level + 1, parts)
            parts.append(f"{indent}</{tag}>")
            self._break(parts)
        elif value is None:
            self._empty(tag, "", indent, parts)
        else:
            parts.append(f"{indent}<{tag}>{self._content(value)}</{tag}>")
            self._break(parts)

    def _write_member(self, name: str, value: Any, level: int, parts: List[str]) -> None:
        if isinstance(value, (list, tuple)) and value:
            for item in value:
                self._write_element(name, item, level, parts)
        else:
            self._write_element(name, value, level, parts)

    def _empty(self, tag: str, attrs: str, indent: str, parts: List[str]) -> None:
        if self.xml.self_closing:
            parts.append(f"{indent}<{tag}{attrs}/>")
        else:
            parts.append(f"{indent}<{tag}{attrs}></{tag}>")
        self._break(parts)

    def _break(self, parts: List[str]) -> None:
        if self.multiline:
            parts.append("\n")


def serialize_xml(value: Any, options: Optional[ConversionOptions] = None,
                  deadline: Optional[Deadline] = None) -> str:
    """Render a value as an XML document."""
    return XmlSerializer(options, deadline).serialize(value)
