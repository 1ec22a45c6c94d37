"""YAML serializer built on PyYAML's safe dumper."""

from decimal import Decimal
from typing import Any, Optional

import yaml

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import ScalarStyle
from .common import BaseSerializer


_SCALAR_STYLES = {
    ScalarStyle.PLAIN: None,
    ScalarStyle.SINGLE_QUOTED: "'",
    ScalarStyle.DOUBLE_QUOTED: '"',
    ScalarStyle.LITERAL: "|",
    ScalarStyle.FOLDED: ">",
}

_DOCUMENT_END = "\n...\n"

_STR_TAG = "tag:yaml.org,2002:str"
_FLOAT_TAG = "tag:yaml.org,2002:float"
_MAP_TAG = "tag:yaml.org,2002:map"


class YamlSerializer(BaseSerializer):
    """Renders a Value Model tree as a YAML document."""

    format_name = "yaml"

    def __init__(self, options: Optional[ConversionOptions] = None,
                 deadline: Optional[Deadline] = None, logger=None):
        super().__init__(options, deadline, logger)
        self.dumper = self._build_dumper()

    def _build_dumper(self) -> type:
        """Create a dumper class bound to this call's options."""
        serializer = self
        string_style = _SCALAR_STYLES[self.options.yaml.scalar_style]

        class _Dumper(yaml.SafeDumper):
            def ignore_aliases(self, data):
                return True

        def represent_dict(dumper, data):
            serializer.deadline.tick()
            pairs = []
            node = yaml.MappingNode(_MAP_TAG, pairs)
            for key, value in serializer.items(data):
                # Keys stay plain; the emitter quotes them only when needed
                pairs.append((dumper.represent_scalar(_STR_TAG, str(key)), dumper.represent_data(value)))
            node.flow_style = dumper.default_flow_style
            return node

        def represent_list(dumper, data):
            serializer.deadline.tick()
            return dumper.represent_sequence("tag:yaml.org,2002:seq", data)

        def represent_str(dumper, data):
            return dumper.represent_scalar(_STR_TAG, data, style=string_style)

        def represent_decimal(dumper, data):
            rendered = serializer.number(data)
            if rendered is None:
                if data.is_nan():
                    rendered = ".nan"
                else:
                    rendered = "-.inf" if data < 0 else ".inf"
            return dumper.represent_scalar(_FLOAT_TAG, rendered)

        _Dumper.add_representer(dict, represent_dict)
        _Dumper.add_representer(list, represent_list)
        _Dumper.add_representer(tuple, represent_list)
        _Dumper.add_representer(str, represent_str)
        _Dumper.add_representer(Decimal, represent_decimal)
        return _Dumper

    def serialize(self, value: Any) -> str:
        """
        Render a value as YAML.

        Args:
            value: Value Model tree

        Returns:
            YAML text
        """
        yaml_options = self.options.yaml
        text = yaml.dump(
            value,
            Dumper=self.dumper,
            default_flow_style=yaml_options.flow_style,
            indent=yaml_options.indent,
            allow_unicode=not self.options.escape_unicode,
            width=float("inf"),
            sort_keys=False,
        )
        if text.endswith(_DOCUMENT_END):
            text = text[:-len(_DOCUMENT_END)]
        return self.finish(text)


def serialize_yaml(value: Any, options: Optional[ConversionOptions] = None,
                   deadline: Optional[Deadline] = None) -> str:
    """Render a value as a YAML document."""
    return YamlSerializer(options, deadline).serialize(value)
