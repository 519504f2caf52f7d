"""
Calamine adapter for high-performance workbook decoding.

This module provides the CalamineAdapter class that wraps python-calamine
to turn raw spreadsheet bytes into a Workbook value. python-calamine is a
Rust-based library that provides exceptional performance for large files
with a small memory footprint.

The adapter only decodes: it reports each sheet's declared range and its
raw cell grid. calamine does not expose the declared range, so it is read
with openpyxl in read-only mode (see sheetjson.adapters.dimensions).
Header derivation and value normalization happen in the SheetNormalizer
so that every decoder engine produces the same records.

Example:
    adapter = CalamineAdapter()
    workbook = adapter.decode(SourceFile(name="sales.xlsx", data=raw_bytes))
    print(workbook.sheet_names)
"""

import logging
from io import BytesIO
from typing import Any

from python_calamine import CalamineWorkbook

from sheetjson.adapters.dimensions import build_sheet, declared_ranges, used_range
from sheetjson.exceptions.export_exceptions import DecodeError
from sheetjson.models.export_models import CellRange, Sheet, SourceFile, Workbook

logger = logging.getLogger(__name__)


class CalamineAdapter:
    """
    Workbook decoder backed by python-calamine.

    Attributes:
        ENGINE: Engine name used in settings and log messages.

    Example:
        adapter = CalamineAdapter()
        workbook = adapter.decode(source)
        sheet = workbook.get_sheet("Data")
        print(sheet.bounds.a1_notation if sheet.bounds else "empty")
    """

    ENGINE = "calamine"

    def _open_workbook(self, source: SourceFile) -> CalamineWorkbook:
        """
        Open a calamine workbook over in-memory bytes.

        Args:
            source: The bytes to decode.

        Returns:
            CalamineWorkbook instance.

        Raises:
            DecodeError: If the bytes are not a readable workbook.
        """
        if not source.data:
            raise DecodeError(source_name=source.name, reason="empty file")

        try:
            return CalamineWorkbook.from_filelike(BytesIO(source.data))
        except Exception as e:
            raise DecodeError(source_name=source.name, reason=str(e)) from e

    def _read_sheet(
        self,
        source: SourceFile,
        workbook: CalamineWorkbook,
        name: str,
        declared: CellRange | None,
    ) -> Sheet:
        """
        Read one calamine sheet into an absolutely addressed grid.

        calamine returns the data area starting at the first used cell;
        the grid is padded back to row 0 / column 0 so that cells keep
        their spreadsheet coordinates. The bounds are the sheet's declared
        range, or the cells holding values when it declares none.
        """
        try:
            calamine_sheet = workbook.get_sheet_by_name(name)
            start = calamine_sheet.start
            data = calamine_sheet.to_python(skip_empty_area=True) if start is not None else []
        except Exception as e:
            raise DecodeError(
                source_name=source.name,
                reason=f"unreadable sheet '{name}': {e}",
            ) from e

        rows: list[list[Any]] = []
        if start is not None and data:
            start_row, start_col = start
            rows = [[] for _ in range(start_row)]
            padding = [None] * start_col
            for row in data:
                rows.append(padding + list(row))

        bounds = declared if declared is not None else used_range(rows)
        return build_sheet(name, bounds, rows)

    def decode(self, source: SourceFile) -> Workbook:
        """
        Decode workbook bytes into a Workbook.

        Args:
            source: The bytes to decode and the name they came from.

        Returns:
            Workbook with every sheet, in workbook order.

        Raises:
            DecodeError: If the bytes or any sheet cannot be read.
        """
        workbook = self._open_workbook(source)
        sheet_names = list(workbook.sheet_names)
        declared = declared_ranges(source)

        sheets = {
            name: self._read_sheet(source, workbook, name, declared.get(name))
            for name in sheet_names
        }

        logger.info(
            "Decoded %s with %s: %d sheet(s)",
            source.name,
            self.ENGINE,
            len(sheet_names),
        )
        return Workbook(source_name=source.name, sheet_names=sheet_names, sheets=sheets)
