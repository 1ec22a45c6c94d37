"""CSV serializer: an array of objects becomes a header row plus data rows."""

import csv
import io
from typing import Any, Dict, List, Optional

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import FormatStyle, SortOrder, StructureMismatchError
from .common import BaseSerializer
from .json_serializer import JsonSerializer


class CsvSerializer(BaseSerializer):
    """Renders a list of row objects as delimited text."""

    format_name = "csv"

    def __init__(self, options: Optional[ConversionOptions] = None,
                 deadline: Optional[Deadline] = None, logger=None):
        super().__init__(options, deadline, logger)
        self.csv = self.options.csv
        self._inline_json = JsonSerializer(
            self.options.replace(style=FormatStyle.MINIFIED, final_newline=False),
            self.deadline,
            self.logger,
        )

    def serialize(self, value: Any) -> str:
        """
        Render an array of objects as CSV.

        Args:
            value: List of row objects

        Returns:
            CSV text

        Raises:
            StructureMismatchError: If the value is not an array of objects
        """
        if not isinstance(value, (list, tuple)):
            raise StructureMismatchError(
                f"CSV output requires an array of objects, got {type(value).__name__}",
                target_format="csv",
            )
        for index, row in enumerate(value):
            if not isinstance(row, dict):
                raise StructureMismatchError(
                    f"CSV output requires an array of objects; item {index} is "
                    f"{type(row).__name__}",
                    target_format="csv",
                )

        rows = [self._flatten(row) for row in value]
        columns = self._columns(rows)

        buffer = io.StringIO()
        writer = csv.writer(
            buffer,
            delimiter=self.csv.delimiter,
            quotechar=self.csv.quote_char,
            quoting=csv.QUOTE_MINIMAL,
            doublequote=True,
            lineterminator="\n",
        )
        if self.csv.header:
            writer.writerow(columns)
        for row in rows:
            self.deadline.tick()
            writer.writerow([self._cell(row.get(column)) for column in columns])
        return self.finish(buffer.getvalue())

    def _columns(self, rows: List[Dict[str, Any]]) -> List[str]:
        if self.csv.columns is not None:
            return list(self.csv.columns)
        seen = {}
        for row in rows:
            for key in row:
                seen.setdefault(key, None)
        columns = list(seen)
        if self.options.sort_keys is SortOrder.ASCENDING:
            columns.sort()
        elif self.options.sort_keys is SortOrder.DESCENDING:
            columns.sort(reverse=True)
        return columns

    def _flatten(self, row: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        flat = {}
        for key, value in row.items():
            name = f"{prefix}{key}"
            if self.csv.flatten and isinstance(value, dict) and value:
                flat.update(self._flatten(value, name + "."))
            else:
                flat[name] = value
        return flat

    def _cell(self, value: Any) -> str:
        if value is None:
            return "null" if self.csv.include_nulls else ""
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)):
            if self.csv.flatten and all(not isinstance(item, (dict, list, tuple)) for item in value):
                return self.csv.array_delimiter.join(self._cell(item) for item in value)
            return self._inline_json.serialize(value)
        if isinstance(value, dict):
            return self._inline_json.serialize(value)
        rendered = self.number(value)
        if rendered is None:
            if value.is_nan():
                return "NaN"
            return "-Infinity" if value < 0 else "Infinity"
        return rendered


def serialize_csv(value: Any, options: Optional[ConversionOptions] = None,
                  deadline: Optional[Deadline] = None) -> str:
    """Render an array of objects as CSV."""
    return CsvSerializer(options, deadline).serialize(value)
