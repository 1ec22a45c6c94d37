"""Format serializers: Value Model tree in, text out."""

from .common import BaseSerializer, SerializerInterface
from .csv_serializer import CsvSerializer, serialize_csv
from .json_serializer import JsonSerializer, quote_json_string, serialize_json
from .toml_serializer import TomlSerializer, serialize_toml
from .xml_serializer import XmlSerializer, serialize_xml
from .yaml_serializer import YamlSerializer, serialize_yaml

__all__ = [
    "SerializerInterface",
    "BaseSerializer",
    "JsonSerializer",
    "XmlSerializer",
    "YamlSerializer",
    "CsvSerializer",
    "TomlSerializer",
    "serialize_json",
    "serialize_xml",
    "serialize_yaml",
    "serialize_csv",
    "serialize_toml",
    "quote_json_string",
]
