"""CSV parser: header row plus data rows become an array of objects."""

import csv
import io
from typing import Any, Dict, List, Optional

from ..guard import Deadline
from ..options import ConversionOptions
from ..types import ConversionError, ErrorType, MalformedDataError, RowLengthPolicy
from ..values import coerce_scalar
from .context import ParseContext


EXTRA_FIELDS_KEY = "_extra"


def parse_csv(text: str, options: Optional[ConversionOptions] = None,
              context: Optional[ParseContext] = None,
              deadline: Optional[Deadline] = None) -> List[Dict[str, Any]]:
    """
    Parse delimited text into a list of row objects.

    Each cell is typed independently (integer, decimal, boolean, null or
    string) when coercion is enabled. Rows with the wrong number of cells
    are padded in lenient mode, with surplus cells kept under
    ``_extra``, and rejected in strict mode.

    Args:
        text: Source text
        options: Conversion options (``options.csv`` applies)
        context: Existing parse context to collect warnings into
        deadline: Deadline used when no context is given

    Returns:
        List of row dictionaries keyed by column name

    Raises:
        MalformedDataError: On quoting errors or ragged rows in strict mode
        ConversionError: If headerless input has no column list
    """
    context = context or ParseContext.create(options, deadline)
    csv_options = context.options.csv
    precision = context.options.number_precision

    reader = csv.reader(
        io.StringIO(text.lstrip("\ufeff"), newline=""),
        delimiter=csv_options.delimiter,
        quotechar=csv_options.quote_char,
        doublequote=True,
        strict=True,
    )

    def cell(value: str) -> Any:
        return coerce_scalar(value, precision) if csv_options.coerce_types else value

    columns = list(csv_options.columns) if csv_options.columns is not None else None
    if columns is None and not csv_options.header:
        raise ConversionError(
            "CSV input without a header row requires an explicit column list",
            error_type=ErrorType.OPTIONS,
            code="INVALID_OPTIONS",
        )

    rows = []
    header_pending = csv_options.header
    try:
        for record in reader:
            context.deadline.tick()
            if not record:
                continue

            if header_pending:
                header_pending = False
                # Explicit columns rename the header row
                if columns is None:
                    columns = [name.strip() for name in record]
                continue

            rows.append(_build_row(record, columns, cell, reader.line_num, context))
    except csv.Error as exc:
        raise MalformedDataError(f"Malformed CSV: {exc}", line=reader.line_num) from None

    return rows


def _build_row(record: List[str], columns: List[str], cell, line: int,
               context: ParseContext) -> Dict[str, Any]:
    if len(record) != len(columns):
        if context.options.csv.row_length is RowLengthPolicy.STRICT:
            raise MalformedDataError(
                f"Row has {len(record)} fields, expected {len(columns)}", line=line, column=1
            )
        context.warn(
            f"Row has {len(record)} fields, expected {len(columns)}",
            "RAGGED_ROW", line, 1,
        )

    row = {}
    for index, name in enumerate(columns):
        row[name] = cell(record[index]) if index < len(record) else ""
    if len(record) > len(columns):
        row[EXTRA_FIELDS_KEY] = [cell(value) for value in record[len(columns):]]
    return row
