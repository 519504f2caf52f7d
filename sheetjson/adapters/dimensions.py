"""
Declared sheet dimensions.

An .xlsx worksheet records its used range in a ``<dimension ref="...">``
element. The range covers every cell Excel considers used, including
formatted cells that hold no value, so it can be wider than the cells
with data. Both decoder engines take a sheet's bounds from it, so that
positional headers are the same whichever engine decoded the sheet.

python-calamine does not expose the element; openpyxl's read-only mode
parses it when a worksheet is opened, without reading any cells.

Example:
    ranges = declared_ranges(source)
    print(ranges["Data"].a1_notation if ranges["Data"] else "undeclared")
"""

import logging
from collections.abc import Sequence
from io import BytesIO
from typing import Any

from openpyxl import load_workbook
from openpyxl.worksheet._read_only import ReadOnlyWorksheet

from sheetjson.exceptions.export_exceptions import DecodeError
from sheetjson.models.export_models import CellRange, Sheet, SourceFile
from sheetjson.utils.cells import make_range

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def declared_range(worksheet: ReadOnlyWorksheet) -> CellRange | None:
    """
    Bounds from a read-only worksheet's dimension element.

    Returns:
        The declared range, or None when the worksheet declares none.
    """
    if worksheet.max_row is None or worksheet.max_column is None:
        return None
    return make_range(
        worksheet.min_row - 1,
        worksheet.min_column - 1,
        worksheet.max_row - 1,
        worksheet.max_column - 1,
    )


def declared_ranges(source: SourceFile) -> dict[str, CellRange | None]:
    """
    Read the declared range of every worksheet in a workbook.

    Args:
        source: The workbook bytes.

    Returns:
        Mapping of worksheet name to its declared range (None if undeclared).

    Raises:
        DecodeError: If the bytes are not a readable workbook.
    """
    try:
        workbook = load_workbook(filename=BytesIO(source.data), read_only=True)
    except Exception as e:
        raise DecodeError(source_name=source.name, reason=str(e)) from e

    try:
        ranges = {ws.title: declared_range(ws) for ws in workbook.worksheets}
    finally:
        workbook.close()

    logger.debug("Declared ranges of %s: %s", source.name, ranges)
    return ranges


def used_range(rows: Sequence[Sequence[Any]]) -> CellRange | None:
    """
    Smallest range holding every non-empty cell of an absolute grid.

    Used for sheets that declare no dimension.
    """
    cells = [
        (row_index, col_index)
        for row_index, row in enumerate(rows)
        for col_index, value in enumerate(row)
        if not _is_blank(value)
    ]
    if not cells:
        return None

    row_indexes = [row for row, _ in cells]
    col_indexes = [col for _, col in cells]
    return make_range(min(row_indexes), min(col_indexes), max(row_indexes), max(col_indexes))


def build_sheet(name: str, bounds: CellRange | None, rows: list[list[Any]]) -> Sheet:
    """
    Make a Sheet from its bounds and absolute grid.

    Excel declares "A1" for a worksheet with no cells at all; a single-cell
    range whose cell holds no value is therefore read as an empty sheet.
    """
    if bounds is None:
        return Sheet(name=name)

    sheet = Sheet(name=name, bounds=bounds, rows=rows)
    single_cell = bounds.row_count == 1 and bounds.column_count == 1
    if single_cell and _is_blank(sheet.cell(bounds.start_row, bounds.start_col)):
        return Sheet(name=name)
    return sheet
