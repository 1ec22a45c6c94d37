"""Closed dispatch table from DataFormat to its parser, serializer and repairer."""

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from .parsers import (
    parse_csv,
    parse_json,
    parse_toml,
    parse_xml,
    parse_yaml,
    repair_json,
    repair_xml,
    repair_yaml,
)
from .parsers.repair import RepairFix
from .serializers import (
    CsvSerializer,
    JsonSerializer,
    TomlSerializer,
    XmlSerializer,
    YamlSerializer,
)
from .serializers.common import BaseSerializer
from .types import DataFormat


class FormatCodec(NamedTuple):
    """Parser, serializer class and optional repairer for one format."""
    format: DataFormat
    parse: Callable[..., Any]
    serializer: type
    repair: Optional[Callable[[str], Tuple[str, List[RepairFix]]]] = None

    def create_serializer(self, options=None, deadline=None, logger=None) -> BaseSerializer:
        return self.serializer(options, deadline, logger)


CODECS: Dict[DataFormat, FormatCodec] = {
    DataFormat.JSON: FormatCodec(DataFormat.JSON, parse_json, JsonSerializer, repair_json),
    DataFormat.XML: FormatCodec(DataFormat.XML, parse_xml, XmlSerializer, repair_xml),
    DataFormat.YAML: FormatCodec(DataFormat.YAML, parse_yaml, YamlSerializer, repair_yaml),
    DataFormat.CSV: FormatCodec(DataFormat.CSV, parse_csv, CsvSerializer),
    DataFormat.TOML: FormatCodec(DataFormat.TOML, parse_toml, TomlSerializer),
}


def get_codec(format_name: Any) -> FormatCodec:
    """
    Look up the codec for a format.

    Args:
        format_name: DataFormat or format name

    Returns:
        The matching FormatCodec

    Raises:
        UnsupportedFormatError: If the format is unknown
    """
    return CODECS[DataFormat.from_name(format_name)]
