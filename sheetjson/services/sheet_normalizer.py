"""
Sheet normalization: column headers and row records.

The SheetNormalizer turns a decoded Sheet into an ordered list of column
headers and an ordered list of Records. Headers are derived in one of two
modes chosen by the caller:

    - POSITIONAL: the native column letters of the sheet's declared column
      span ("C", "D", ... for a span starting at column C). One record per
      row of the declared row span.
    - FIRST_ROW: the first row's cell values name the columns; the rows
      below it become records. An empty header cell is named "__EMPTY" and
      repeated names get "_1", "_2", ... suffixes.

Every record has exactly one value per header. A cell with no stored
value becomes "" rather than a missing key. A sheet without a declared
range normalizes to no headers and no records.

Example:
    normalizer = SheetNormalizer()
    normalized = normalizer.normalize(sheet, HeaderMode.FIRST_ROW, assign_row_keys=True)
    for record in normalized.records:
        print(record.to_dict())
"""

import logging
import math
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from typing import Any

from sheetjson.models.export_models import (
    CellScalar,
    HeaderMode,
    NormalizedSheet,
    Record,
    Sheet,
)
from sheetjson.utils.cells import column_letter

logger = logging.getLogger(__name__)

EMPTY_HEADER = "__EMPTY"


def _format_duration(value: timedelta) -> str:
    """Render a duration as an ISO-8601 duration string, e.g. "PT1H30M"."""
    total = value.total_seconds()
    sign = "-" if total < 0 else ""
    total = abs(total)

    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = ""
    if hours:
        parts += f"{int(hours)}H"
    if minutes:
        parts += f"{int(minutes)}M"
    if seconds or not parts:
        seconds_text = f"{int(seconds)}" if seconds == int(seconds) else f"{seconds:g}"
        parts += f"{seconds_text}S"
    return f"{sign}PT{parts}"


def normalize_value(value: Any) -> CellScalar:
    """
    Normalize a raw cell value to a JSON scalar.

    Args:
        value: Raw cell value from a decoder.

    Returns:
        "" for empty cells, int for integral numbers, otherwise a str,
        float or bool. Dates and times become ISO-8601 strings.
    """
    if value is None:
        return ""

    if isinstance(value, bool):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            return str(value)
        if value == int(value):
            return int(value)
        return value

    if isinstance(value, (str, int)):
        return value

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, timedelta):
        return _format_duration(value)

    return str(value)


def positional_headers(sheet: Sheet) -> list[str]:
    """Column letters of the sheet's declared column span."""
    if sheet.bounds is None:
        return []
    return [
        column_letter(col)
        for col in range(sheet.bounds.start_col, sheet.bounds.end_col + 1)
    ]


def deduplicate_headers(names: list[str], reserved: Iterable[str] = ()) -> list[str]:
    """
    Make header names unique.

    A name that is already taken, either by an earlier header or by one of
    the reserved field names, gets the first free "_1", "_2", ... suffix.
    """
    headers: list[str] = []
    taken: set[str] = set(reserved)

    for base in names:
        name = base
        counter = 1
        while name in taken:
            name = f"{base}_{counter}"
            counter += 1

        taken.add(name)
        headers.append(name)

    return headers


def first_row_headers(values: list[Any], reserved: Iterable[str] = ()) -> list[str]:
    """
    Name columns after the values of a header row.

    Empty cells are named "__EMPTY"; repeated or reserved names are
    suffixed by deduplicate_headers.
    """
    names = []
    for value in values:
        normalized = normalize_value(value)
        names.append(str(normalized) if normalized != "" else EMPTY_HEADER)
    return deduplicate_headers(names, reserved)


class SheetNormalizer:
    """
    Builds headers and records for a sheet.

    When row keys are assigned, a column whose header equals the row key
    field is renamed with a suffix ("__rowKey_1") so that exported records
    keep both the cell value and the key.

    The normalizer holds no per-sheet state; one instance can be shared freely.
    """

    def __init__(self, row_key_field: str = "__rowKey") -> None:
        self.row_key_field = row_key_field

    def normalize(
        self,
        sheet: Sheet,
        header_mode: HeaderMode = HeaderMode.POSITIONAL,
        *,
        assign_row_keys: bool = False,
        skip_empty_rows: bool = False,
    ) -> NormalizedSheet:
        """
        Normalize one sheet.

        Args:
            sheet: The decoded sheet.
            header_mode: How to derive the column headers.
            assign_row_keys: Whether to give every record a "row-{index}" key.
            skip_empty_rows: Whether to drop records whose values are all "".

        Returns:
            NormalizedSheet with headers in column order and records in row order.
        """
        bounds = sheet.bounds
        if bounds is None:
            logger.debug("Sheet %s has no declared range", sheet.name)
            return NormalizedSheet(sheet_name=sheet.name, header_mode=header_mode)

        columns = range(bounds.start_col, bounds.end_col + 1)
        reserved = (self.row_key_field,) if assign_row_keys else ()

        if header_mode == HeaderMode.FIRST_ROW:
            headers = first_row_headers(
                [sheet.cell(bounds.start_row, col) for col in columns],
                reserved,
            )
            data_rows = range(bounds.start_row + 1, bounds.end_row + 1)
        else:
            headers = deduplicate_headers(positional_headers(sheet), reserved)
            data_rows = range(bounds.start_row, bounds.end_row + 1)

        records: list[Record] = []
        for row in data_rows:
            values = {
                header: normalize_value(sheet.cell(row, col))
                for header, col in zip(headers, columns)
            }

            if skip_empty_rows and all(value == "" for value in values.values()):
                continue

            index = len(records) + 1
            records.append(
                Record(
                    index=index,
                    values=values,
                    row_key=f"row-{index}" if assign_row_keys else None,
                )
            )

        logger.debug(
            "Normalized sheet %s (%s): %d header(s), %d record(s)",
            sheet.name,
            header_mode.value,
            len(headers),
            len(records),
        )
        return NormalizedSheet(
            sheet_name=sheet.name,
            header_mode=header_mode,
            headers=headers,
            records=records,
        )
