"""Format parsers: text in, Value Model tree out."""

from .context import ParseContext
from .csv_parser import parse_csv
from .json_parser import parse_json
from .repair import REPAIR_WARNING_CODES, RepairFix, repair_json, repair_xml, repair_yaml
from .toml_parser import parse_toml
from .xml_parser import parse_xml
from .yaml_parser import parse_yaml

__all__ = [
    "ParseContext",
    "parse_json",
    "parse_xml",
    "parse_yaml",
    "parse_csv",
    "parse_toml",
    "RepairFix",
    "REPAIR_WARNING_CODES",
    "repair_json",
    "repair_xml",
    "repair_yaml",
]
