"""
Pydantic models for sheet export operations.

This module contains the value objects that flow through the export
pipeline (workbooks, sheets, records, row windows, payloads) as well as
the request/response models used by the FastAPI and MCP interfaces.

All models use Pydantic v2 for validation, serialization, and
JSON Schema generation for OpenAPI documentation.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from sheetjson.exceptions.export_exceptions import SheetNotFoundError

CellScalar = str | int | float | bool


class HeaderMode(str, Enum):
    """
    How column headers are derived for a sheet.

    POSITIONAL uses the spreadsheet's native column letters; FIRST_ROW
    uses the first row's cell values and turns the remaining rows into
    records.
    """

    POSITIONAL = "positional"
    FIRST_ROW = "first_row"


class CellRange(BaseModel):
    """
    Represents a zero-based, inclusive cell range.

    Attributes:
        start_row: Starting row index (0-based).
        end_row: Ending row index (0-based, inclusive).
        start_col: Starting column index (0-based).
        end_col: Ending column index (0-based, inclusive).
        a1_notation: Optional A1 notation string (e.g., "A1:C10").
    """

    start_row: int = Field(ge=0, description="Starting row index (0-based)")
    end_row: int = Field(ge=0, description="Ending row index (0-based, inclusive)")
    start_col: int = Field(ge=0, description="Starting column index (0-based)")
    end_col: int = Field(ge=0, description="Ending column index (0-based, inclusive)")
    a1_notation: str | None = Field(
        default=None,
        description="Optional A1 notation string (e.g., 'A1:C10')",
    )

    @field_validator("end_row")
    @classmethod
    def validate_end_row(cls, v: int, info) -> int:
        """Ensure end_row is greater than or equal to start_row."""
        if "start_row" in info.data and v < info.data["start_row"]:
            raise ValueError("end_row must be >= start_row")
        return v

    @field_validator("end_col")
    @classmethod
    def validate_end_col(cls, v: int, info) -> int:
        """Ensure end_col is greater than or equal to start_col."""
        if "start_col" in info.data and v < info.data["start_col"]:
            raise ValueError("end_col must be >= start_col")
        return v

    @property
    def row_count(self) -> int:
        return self.end_row - self.start_row + 1

    @property
    def column_count(self) -> int:
        return self.end_col - self.start_col + 1


class Sheet(BaseModel):
    """
    A single decoded worksheet.

    The grid is addressed absolutely: ``rows[r][c]`` is the cell at
    zero-based row ``r`` and column ``c``. Only cells inside ``bounds``
    are meaningful. A sheet without bounds is empty.

    Attributes:
        name: The sheet name.
        bounds: The declared bounding range, or None for an empty sheet.
        rows: Absolute cell grid; ragged rows are allowed.
    """

    name: str = Field(description="The name of the sheet")
    bounds: CellRange | None = Field(
        default=None,
        description="Declared bounding range of the sheet, None when empty",
    )
    rows: list[list[Any]] = Field(
        default_factory=list,
        description="Absolute cell grid, addressed from row 0 / column 0",
    )

    @property
    def row_count(self) -> int:
        return self.bounds.row_count if self.bounds else 0

    @property
    def column_count(self) -> int:
        return self.bounds.column_count if self.bounds else 0

    def cell(self, row: int, col: int) -> Any:
        """Return the stored value at (row, col), or None when nothing is stored."""
        if row < 0 or row >= len(self.rows):
            return None
        cells = self.rows[row]
        if col < 0 or col >= len(cells):
            return None
        return cells[col]


class Workbook(BaseModel):
    """
    An ordered collection of uniquely named sheets.

    Attributes:
        source_name: File name (or remote document name) the bytes came from.
        sheet_names: Sheet names in workbook order.
        sheets: Mapping of sheet name to Sheet.
    """

    source_name: str = Field(description="Name of the source the workbook was decoded from")
    sheet_names: list[str] = Field(default_factory=list, description="Sheet names in order")
    sheets: dict[str, Sheet] = Field(default_factory=dict, description="Sheets by name")

    @model_validator(mode="after")
    def validate_sheet_names(self) -> "Workbook":
        """Ensure sheet names are unique and each has a sheet."""
        if len(set(self.sheet_names)) != len(self.sheet_names):
            raise ValueError("sheet names must be unique within a workbook")
        missing = [name for name in self.sheet_names if name not in self.sheets]
        if missing:
            raise ValueError(f"sheet names without sheets: {', '.join(missing)}")
        return self

    def get_sheet(self, sheet_name: str) -> Sheet:
        """
        Look up a sheet by name.

        Raises:
            SheetNotFoundError: If no sheet has this name.
        """
        if sheet_name not in self.sheets:
            raise SheetNotFoundError(
                sheet_name=sheet_name,
                available_sheets=self.sheet_names,
            )
        return self.sheets[sheet_name]

    def first_sheet(self) -> Sheet:
        """
        Return the first sheet of the workbook.

        Raises:
            SheetNotFoundError: If the workbook has no sheets.
        """
        if not self.sheet_names:
            raise SheetNotFoundError(sheet_name="(first sheet)", available_sheets=[])
        return self.sheets[self.sheet_names[0]]


class Record(BaseModel):
    """
    One row of a sheet keyed by column header.

    Attributes:
        index: 1-based position of the record within its sheet.
        values: Header-to-value mapping in header order.
        row_key: Optional synthetic identity ("row-{index}").
    """

    index: int = Field(ge=1, description="1-based row index within the sheet")
    values: dict[str, CellScalar] = Field(
        default_factory=dict,
        description="Cell values keyed by column header, in header order",
    )
    row_key: str | None = Field(
        default=None,
        description="Synthetic row identity, e.g. 'row-1'",
    )

    def to_dict(self, row_key_field: str = "__rowKey") -> dict[str, CellScalar]:
        """
        Flatten the record into a JSON-ready mapping.

        The row key, when set, is appended after the header values under
        ``row_key_field``.
        """
        data: dict[str, CellScalar] = dict(self.values)
        if self.row_key is not None:
            data[row_key_field] = self.row_key
        return data


class NormalizedSheet(BaseModel):
    """
    Headers and records derived from one sheet.

    Attributes:
        sheet_name: Name of the source sheet.
        header_mode: The header derivation mode used.
        headers: Column headers in column order.
        records: Records in row order.
    """

    sheet_name: str
    header_mode: HeaderMode
    headers: list[str] = Field(default_factory=list)
    records: list[Record] = Field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)


class RowWindow(BaseModel):
    """
    An inclusive, 1-based window over a record sequence.

    The empty window is (0, 0); any other window satisfies
    1 <= start <= end.

    Attributes:
        start: First row of the window (1-based).
        end: Last row of the window (1-based, inclusive).
    """

    start: int = Field(ge=0, description="First row (1-based), 0 for the empty window")
    end: int = Field(ge=0, description="Last row (1-based, inclusive), 0 for the empty window")

    @model_validator(mode="after")
    def validate_bounds(self) -> "RowWindow":
        """Ensure the window is either empty or ordered."""
        if (self.start == 0) != (self.end == 0):
            raise ValueError("the empty window must be (0, 0)")
        if self.start > self.end:
            raise ValueError("start must be <= end")
        return self

    @classmethod
    def empty(cls) -> "RowWindow":
        return cls(start=0, end=0)

    @property
    def is_empty(self) -> bool:
        return self.start == 0

    @property
    def size(self) -> int:
        return 0 if self.is_empty else self.end - self.start + 1

    def to_slice(self) -> slice:
        """Convert to a zero-based, half-open slice."""
        if self.is_empty:
            return slice(0, 0)
        return slice(self.start - 1, self.end)


class SourceFile(BaseModel):
    """
    Raw spreadsheet bytes together with the name they came from.

    Attributes:
        name: File name, used for archive entry names and messages.
        data: The raw workbook bytes.
    """

    name: str = Field(description="Source file name")
    data: bytes = Field(description="Raw workbook bytes")


class ExportPayload(BaseModel):
    """
    A named unit of serialized JSON output.

    Attributes:
        filename: Output file name (e.g. "sales__Q1.json").
        content: Serialized JSON text.
        record_count: Number of records serialized.
    """

    filename: str
    content: str
    record_count: int = Field(default=0, ge=0)


class DownloadFile(BaseModel):
    """
    A file ready to be delivered as a download.

    Attributes:
        filename: Name the file is saved under.
        content: File bytes.
        media_type: MIME type of the content.
    """

    filename: str
    content: bytes
    media_type: str = "application/octet-stream"


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""

    INFO = "info"
    ERROR = "error"


class Notification(BaseModel):
    """
    A transient message for the user, e.g. a failed file in a batch.

    Attributes:
        level: Severity.
        message: Human-readable message.
        source: The input the message refers to.
        error_code: Machine-readable code when the message reports an error.
    """

    level: NotificationLevel = NotificationLevel.INFO
    message: str
    source: str | None = None
    error_code: str | None = None


class ArchiveEntry(BaseModel):
    """Summary of one archive entry."""

    filename: str
    record_count: int = Field(ge=0)


class BatchExportResult(BaseModel):
    """
    Outcome of a batch export.

    Attributes:
        archive: The zip archive download.
        entries: One summary per archived payload, in archive order.
        notifications: Per-source messages, including decode failures.
    """

    archive: DownloadFile
    entries: list[ArchiveEntry] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)

    @property
    def failed_sources(self) -> list[str]:
        return [
            n.source
            for n in self.notifications
            if n.level == NotificationLevel.ERROR and n.source is not None
        ]


class SheetPreview(BaseModel):
    """
    Response model for a sheet preview.

    Attributes:
        sheet_name: Name of the previewed sheet.
        header_mode: Header derivation mode used.
        headers: Column headers.
        total_records: Number of records in the sheet.
        window: Effective export window after clamping.
        preview_window: Window actually materialized for display.
        rows: Preview records as JSON objects.
    """

    sheet_name: str = Field(description="Name of the previewed sheet")
    header_mode: HeaderMode = Field(description="Header derivation mode used")
    headers: list[str] = Field(default_factory=list, description="Column headers")
    total_records: int = Field(ge=0, description="Number of records in the sheet")
    window: RowWindow = Field(description="Effective export window")
    preview_window: RowWindow = Field(description="Window shown in the preview")
    rows: list[dict[str, CellScalar]] = Field(
        default_factory=list,
        description="Preview records",
    )


class ExportRequest(BaseModel):
    """
    Options for exporting a row window of one sheet.

    Attributes:
        sheet_name: Sheet to export. If None, exports the first sheet.
        header_mode: Header derivation mode.
        start: First requested row (1-based). Defaults to the first record.
        end: Last requested row (1-based, inclusive). Defaults to the last record.
        include_row_key: Whether to add the synthetic row key field.
        filename: Download file name.
    """

    sheet_name: str | None = Field(
        default=None,
        description="Sheet to export. If None, exports the first sheet.",
    )
    header_mode: HeaderMode = Field(
        default=HeaderMode.POSITIONAL,
        description="Header derivation mode",
    )
    start: int | None = Field(default=None, description="First requested row (1-based)")
    end: int | None = Field(default=None, description="Last requested row (1-based, inclusive)")
    include_row_key: bool = Field(
        default=False,
        description="Whether to add the synthetic row key field",
    )
    filename: str | None = Field(default=None, description="Download file name")


class RemoteSheetRequest(ExportRequest):
    """
    Export options for a remote shared spreadsheet.

    Remote loads default to first-row headers with row keys, the way
    shared documents have always been read.

    Attributes:
        url: Shareable document URL containing a ``/d/<id>`` segment.
    """

    url: str = Field(description="Shareable document URL")
    header_mode: HeaderMode = Field(
        default=HeaderMode.FIRST_ROW,
        description="Header derivation mode",
    )
    include_row_key: bool = Field(
        default=True,
        description="Whether to add the synthetic row key field",
    )


class ErrorResponse(BaseModel):
    """
    Standard error response model for the API.

    Attributes:
        success: Always False for error responses.
        error_code: Machine-readable error code.
        message: Human-readable error description.
        details: Additional error context.
    """

    success: bool = Field(default=False, description="Always False for error responses")
    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: dict | None = Field(default=None, description="Additional error context")
