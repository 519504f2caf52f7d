"""
Data models for the sheet export service.

Contains Pydantic models for pipeline value objects and for
request/response validation and serialization.
"""

from sheetjson.models.export_models import (
    ArchiveEntry,
    BatchExportResult,
    CellRange,
    CellScalar,
    DownloadFile,
    ErrorResponse,
    ExportPayload,
    ExportRequest,
    HeaderMode,
    NormalizedSheet,
    Notification,
    NotificationLevel,
    Record,
    RemoteSheetRequest,
    RowWindow,
    Sheet,
    SheetPreview,
    SourceFile,
    Workbook,
)

__all__ = [
    "CellScalar",
    "CellRange",
    "HeaderMode",
    "Sheet",
    "Workbook",
    "Record",
    "NormalizedSheet",
    "RowWindow",
    "SourceFile",
    "ExportPayload",
    "DownloadFile",
    "Notification",
    "NotificationLevel",
    "ArchiveEntry",
    "BatchExportResult",
    "SheetPreview",
    "ExportRequest",
    "RemoteSheetRequest",
    "ErrorResponse",
]
