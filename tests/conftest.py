"""
Test fixtures and utilities for the sheet export tests.

This module provides shared fixtures including temporary files, in-memory
workbooks built with XlsxWriter, and service instances.
"""

import tempfile
from collections.abc import Callable, Generator
from io import BytesIO
from pathlib import Path

import pytest
import xlsxwriter

from sheetjson.adapters.calamine_adapter import CalamineAdapter
from sheetjson.adapters.openpyxl_adapter import OpenpyxlAdapter
from sheetjson.config import ExportSettings
from sheetjson.models.export_models import SourceFile
from sheetjson.services.export_service import ExportService
from sheetjson.services.record_exporter import RecordExporter
from sheetjson.services.sheet_normalizer import SheetNormalizer

USERS_ROWS = [
    ["Name", "Age", "Email"],
    ["Alice", 30, "alice@example.com"],
    ["Bob", 25, "bob@example.com"],
    ["Charlie", 35, "charlie@example.com"],
]


def build_workbook(
    sheets: dict[str, list[list]],
    origins: dict[str, tuple[int, int]] | None = None,
) -> bytes:
    """
    Build xlsx bytes in memory.

    Args:
        sheets: Rows per sheet name, in sheet order. None cells are left blank.
        origins: Optional zero-based (row, col) of each sheet's first cell.

    Returns:
        The workbook bytes.
    """
    origins = origins or {}
    buffer = BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})

    for name, rows in sheets.items():
        worksheet = workbook.add_worksheet(name)
        first_row, first_col = origins.get(name, (0, 0))
        for row_offset, row in enumerate(rows):
            for col_offset, value in enumerate(row):
                if value is not None:
                    worksheet.write(first_row + row_offset, first_col + col_offset, value)

    workbook.close()
    return buffer.getvalue()


@pytest.fixture
def settings() -> ExportSettings:
    """Default export settings."""
    return ExportSettings()


@pytest.fixture
def export_service(settings: ExportSettings) -> ExportService:
    """
    Create an ExportService instance for testing.

    Returns:
        ExportService instance.
    """
    return ExportService(settings=settings)


@pytest.fixture
def calamine_adapter() -> CalamineAdapter:
    """Create a CalamineAdapter instance for testing."""
    return CalamineAdapter()


@pytest.fixture
def openpyxl_adapter() -> OpenpyxlAdapter:
    """Create an OpenpyxlAdapter instance for testing."""
    return OpenpyxlAdapter()


@pytest.fixture
def normalizer() -> SheetNormalizer:
    """Create a SheetNormalizer instance for testing."""
    return SheetNormalizer()


@pytest.fixture
def record_exporter(settings: ExportSettings) -> RecordExporter:
    """Create a RecordExporter with the default settings."""
    return RecordExporter(settings)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_source() -> Callable[..., SourceFile]:
    """Build a SourceFile from rows per sheet name, see build_workbook."""

    def factory(
        name: str,
        sheets: dict[str, list[list]],
        origins: dict[str, tuple[int, int]] | None = None,
    ) -> SourceFile:
        return SourceFile(name=name, data=build_workbook(sheets, origins))

    return factory


@pytest.fixture
def sample_source() -> SourceFile:
    """A single-sheet workbook: a header row and three users."""
    return SourceFile(name="users.xlsx", data=build_workbook({"Users": USERS_ROWS}))


@pytest.fixture
def multi_sheet_source() -> SourceFile:
    """A workbook with three sheets, in the order Users, Products, Orders."""
    return SourceFile(
        name="shop.xlsx",
        data=build_workbook(
            {
                "Users": [["Name", "Age"], ["Alice", 30], ["Bob", 25]],
                "Products": [["Name", "Price"], ["Widget", 10.99], ["Gadget", 24.99]],
                "Orders": [
                    ["OrderID", "Customer", "Product", "Quantity"],
                    [1, "Alice", "Widget", 2],
                    [2, "Bob", "Gadget", 1],
                ],
            }
        ),
    )


@pytest.fixture
def offset_source() -> SourceFile:
    """A sheet whose used range starts at C3 and has a blank cell at D4."""
    return SourceFile(
        name="offset.xlsx",
        data=build_workbook(
            {"Data": [["x", "y"], [1, None], [3, 4]]},
            origins={"Data": (2, 2)},
        ),
    )


@pytest.fixture
def long_source() -> SourceFile:
    """A sheet with a header row and 25 numbered records."""
    rows = [["id", "label"]] + [[i, f"item {i}"] for i in range(1, 26)]
    return SourceFile(name="long.xlsx", data=build_workbook({"Items": rows}))


@pytest.fixture
def empty_sheet_source() -> SourceFile:
    """A workbook with one blank sheet followed by a populated one."""
    return SourceFile(
        name="blank.xlsx",
        data=build_workbook({"Blank": [], "Filled": [["a"], [1]]}),
    )


@pytest.fixture
def formatted_blank_source() -> SourceFile:
    """A sheet whose declared range reaches a formatted but empty cell at D2."""
    buffer = BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
    worksheet = workbook.add_worksheet("Styled")
    worksheet.write_row(0, 0, ["a", "b"])
    worksheet.write_row(1, 0, [1, 2])
    worksheet.write_blank(1, 3, None, workbook.add_format({"bg_color": "#FFFF00"}))
    workbook.close()
    return SourceFile(name="styled.xlsx", data=buffer.getvalue())


@pytest.fixture
def malformed_source() -> SourceFile:
    """Bytes that carry an .xlsx name but are not a workbook."""
    return SourceFile(name="broken.xlsx", data=b"this is not a zip archive")


@pytest.fixture
def sample_excel_file(temp_dir: Path, sample_source: SourceFile) -> Path:
    """
    Write the sample workbook to disk.

    Returns:
        Path to the sample Excel file.
    """
    file_path = temp_dir / sample_source.name
    file_path.write_bytes(sample_source.data)
    return file_path


@pytest.fixture
def multi_sheet_excel_file(temp_dir: Path, multi_sheet_source: SourceFile) -> Path:
    """Write the multi-sheet workbook to disk."""
    file_path = temp_dir / multi_sheet_source.name
    file_path.write_bytes(multi_sheet_source.data)
    return file_path
