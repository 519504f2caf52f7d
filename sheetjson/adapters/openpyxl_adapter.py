"""
Openpyxl adapter for workbook decoding.

This module provides the OpenpyxlAdapter class that wraps openpyxl as an
alternate decoder engine. Openpyxl is a pure Python library; it is slower
than calamine but reads the workbook's cached formula values and is a
useful fallback when calamine cannot handle a specific file.

Workbooks are opened in read-only mode, which streams rows and reports
each worksheet's declared dimension as its bounds.

Only worksheets are decoded. Chartsheets have no cell grid and are left
out of the workbook.

Example:
    adapter = OpenpyxlAdapter()
    workbook = adapter.decode(SourceFile(name="sales.xlsx", data=raw_bytes))
"""

import logging
from io import BytesIO

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook as OpenpyxlWorkbook
from openpyxl.worksheet._read_only import ReadOnlyWorksheet

from sheetjson.adapters.dimensions import build_sheet, declared_range, used_range
from sheetjson.exceptions.export_exceptions import DecodeError
from sheetjson.models.export_models import Sheet, SourceFile, Workbook

logger = logging.getLogger(__name__)


class OpenpyxlAdapter:
    """
    Workbook decoder backed by openpyxl.

    Attributes:
        ENGINE: Engine name used in settings and log messages.
    """

    ENGINE = "openpyxl"

    def _open_workbook(self, source: SourceFile) -> OpenpyxlWorkbook:
        """
        Load an openpyxl workbook over in-memory bytes.

        Formulas are read as their cached values (data_only=True).

        Raises:
            DecodeError: If the bytes are not a readable workbook.
        """
        if not source.data:
            raise DecodeError(source_name=source.name, reason="empty file")

        try:
            return load_workbook(filename=BytesIO(source.data), read_only=True, data_only=True)
        except Exception as e:
            raise DecodeError(source_name=source.name, reason=str(e)) from e

    def _read_sheet(self, worksheet: ReadOnlyWorksheet) -> Sheet:
        """
        Read one worksheet into an absolutely addressed grid.

        Rows are read from A1 to the end of the declared range. A worksheet
        without a dimension element is read whole and bounded by the cells
        holding values.
        """
        bounds = declared_range(worksheet)

        if bounds is None:
            rows = [list(row) for row in worksheet.iter_rows(min_row=1, values_only=True)]
            return build_sheet(worksheet.title, used_range(rows), rows)

        rows = [
            list(row)
            for row in worksheet.iter_rows(
                min_row=1,
                max_row=bounds.end_row + 1,
                min_col=1,
                max_col=bounds.end_col + 1,
                values_only=True,
            )
        ]
        return build_sheet(worksheet.title, bounds, rows)

    def decode(self, source: SourceFile) -> Workbook:
        """
        Decode workbook bytes into a Workbook.

        Args:
            source: The bytes to decode and the name they came from.

        Returns:
            Workbook with every worksheet, in workbook order.

        Raises:
            DecodeError: If the bytes cannot be read.
        """
        workbook = self._open_workbook(source)

        try:
            sheets = {ws.title: self._read_sheet(ws) for ws in workbook.worksheets}
        except Exception as e:
            raise DecodeError(source_name=source.name, reason=str(e)) from e
        finally:
            workbook.close()

        sheet_names = list(sheets)
        logger.info(
            "Decoded %s with %s: %d sheet(s)",
            source.name,
            self.ENGINE,
            len(sheet_names),
        )
        return Workbook(source_name=source.name, sheet_names=sheet_names, sheets=sheets)
