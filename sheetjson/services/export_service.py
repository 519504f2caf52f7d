"""
Core export service layer.

This module provides the ExportService class, the single pipeline behind
every way of getting records out of a spreadsheet:

    bytes -> Workbook -> NormalizedSheet -> RowWindow -> JSON / download / zip

Local files, uploaded files and remote documents only differ in where
the bytes come from; header mode and sink are parameters. The service is
transport-agnostic and shared by the FastAPI and MCP interfaces.

Example:
    service = ExportService()

    source = service.open_path("/path/to/sales.xlsx")
    normalized = service.load_sheet(source, ExportRequest(sheet_name="Q1"))
    text = service.export_json(normalized, start=1, end=20)

    result = service.export_batch([source, other_source])
    Path(result.archive.filename).write_bytes(result.archive.content)
"""

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from sheetjson.adapters import create_decoder
from sheetjson.adapters.calamine_adapter import CalamineAdapter
from sheetjson.adapters.openpyxl_adapter import OpenpyxlAdapter
from sheetjson.config import ExportSettings, get_settings
from sheetjson.exceptions.export_exceptions import (
    InvalidReferenceError,
    ReadError,
    SheetExportError,
    SourceNotFoundError,
    UnsupportedSourceError,
)
from sheetjson.models.export_models import (
    BatchExportResult,
    DownloadFile,
    ExportPayload,
    ExportRequest,
    HeaderMode,
    NormalizedSheet,
    Notification,
    NotificationLevel,
    RowWindow,
    Sheet,
    SheetPreview,
    SourceFile,
    Workbook,
)
from sheetjson.services.archive_builder import ArchiveBuilder, base_name_of, payload_filename
from sheetjson.services.range_selector import preview_window, resolve_window
from sheetjson.services.record_exporter import RecordExporter
from sheetjson.services.remote_fetcher import RemoteFetcher
from sheetjson.services.sheet_normalizer import SheetNormalizer

logger = logging.getLogger(__name__)

PARSE_SUCCESS = "Excel file parsed successfully"
PARSE_FAILURE = "Failed to parse Excel file"
REMOTE_SUCCESS = "Google Sheet loaded successfully"
REMOTE_FAILURE = "Failed to fetch or parse sheet"
INVALID_REMOTE_URL = "Invalid Google Sheet URL"


def error_notification(error: SheetExportError, source: str, message: str) -> Notification:
    """Build the user-facing notification for a failed input."""
    return Notification(
        level=NotificationLevel.ERROR,
        message=f"{message}: {error.message}",
        source=source,
        error_code=error.error_code,
    )


def remote_notification(url: str, error: SheetExportError | None = None) -> Notification:
    """Build the notification shown after a remote load attempt."""
    if error is None:
        return Notification(level=NotificationLevel.INFO, message=REMOTE_SUCCESS, source=url)
    if isinstance(error, InvalidReferenceError):
        return error_notification(error, url, INVALID_REMOTE_URL)
    return error_notification(error, url, REMOTE_FAILURE)


class ExportService:
    """
    Core service layer for sheet-to-JSON export.

    The service uses:
        - A decoder adapter (calamine or openpyxl) for bytes -> Workbook
        - SheetNormalizer for headers and records
        - The range selector for effective and preview windows
        - RecordExporter and ArchiveBuilder for output
        - RemoteFetcher as an alternate byte source

    Every call builds its own workbook and records; the service keeps no
    state between calls.

    Attributes:
        settings: Export settings.
        decoder: Workbook decoder adapter.
        normalizer: SheetNormalizer instance.
        exporter: RecordExporter instance.
        fetcher: RemoteFetcher instance.
    """

    def __init__(
        self,
        settings: ExportSettings | None = None,
        decoder: CalamineAdapter | OpenpyxlAdapter | None = None,
        normalizer: SheetNormalizer | None = None,
        exporter: RecordExporter | None = None,
        fetcher: RemoteFetcher | None = None,
    ) -> None:
        """
        Initialize the ExportService.

        Args:
            settings: Optional settings. If None, uses the defaults.
            decoder: Optional decoder. If None, creates the configured engine.
            normalizer: Optional SheetNormalizer. If None, creates a new instance.
            exporter: Optional RecordExporter. If None, creates a new instance.
            fetcher: Optional RemoteFetcher. If None, creates a new instance.
        """
        self.settings = settings or get_settings()
        self.decoder = decoder or create_decoder(self.settings.decoder_engine)
        self.normalizer = normalizer or SheetNormalizer(row_key_field=self.settings.row_key_field)
        self.exporter = exporter or RecordExporter(self.settings)
        self.fetcher = fetcher or RemoteFetcher(self.settings)

    # ==================== SOURCES ====================

    def open_path(self, file_path: str | Path) -> SourceFile:
        """
        Read a local spreadsheet file.

        Args:
            file_path: Path to the file.

        Returns:
            SourceFile named after the file.

        Raises:
            SourceNotFoundError: If the file does not exist.
            UnsupportedSourceError: If the extension is not accepted.
            ReadError: If the file cannot be read.
        """
        path = Path(file_path)

        if not path.is_file():
            raise SourceNotFoundError(str(file_path))

        if not self.settings.accepts(path.name):
            raise UnsupportedSourceError(
                source_name=path.name,
                accepted_extensions=list(self.settings.accepted_extensions),
            )

        try:
            data = path.read_bytes()
        except OSError as e:
            raise ReadError(file_path=str(file_path), reason=str(e)) from e

        return SourceFile(name=path.name, data=data)

    def decode(self, source: SourceFile) -> Workbook:
        """
        Decode source bytes into a Workbook.

        Raises:
            DecodeError: If the bytes are not a valid workbook.
        """
        return self.decoder.decode(source)

    def get_sheet_names(self, source: SourceFile) -> list[str]:
        """Decode a source and list its sheet names in workbook order."""
        return self.decode(source).sheet_names

    def select_sheet(self, workbook: Workbook, sheet_name: str | None = None) -> Sheet:
        """
        Pick a sheet by name, or the first sheet when no name is given.

        Raises:
            SheetNotFoundError: If the sheet does not exist.
        """
        if sheet_name is None:
            return workbook.first_sheet()
        return workbook.get_sheet(sheet_name)

    # ==================== NORMALIZATION ====================

    def normalize(
        self,
        workbook: Workbook,
        sheet_name: str | None = None,
        header_mode: HeaderMode = HeaderMode.POSITIONAL,
        assign_row_keys: bool = False,
        skip_empty_rows: bool = False,
    ) -> NormalizedSheet:
        """
        Normalize one sheet of a workbook into headers and records.

        Args:
            workbook: The decoded workbook.
            sheet_name: Sheet to normalize. If None, uses the first sheet.
            header_mode: Header derivation mode.
            assign_row_keys: Whether to give records a synthetic row key.
            skip_empty_rows: Whether to drop rows with no values.

        Raises:
            SheetNotFoundError: If the sheet does not exist.
        """
        sheet = self.select_sheet(workbook, sheet_name)
        return self.normalizer.normalize(
            sheet,
            header_mode,
            assign_row_keys=assign_row_keys,
            skip_empty_rows=skip_empty_rows,
        )

    def load_sheet(self, source: SourceFile, request: ExportRequest) -> NormalizedSheet:
        """Decode a source and normalize the sheet named by ``request``."""
        workbook = self.decode(source)
        return self.normalize(
            workbook,
            sheet_name=request.sheet_name,
            header_mode=request.header_mode,
            assign_row_keys=request.include_row_key,
        )

    def window(
        self,
        normalized: NormalizedSheet,
        start: int | None = None,
        end: int | None = None,
    ) -> RowWindow:
        """Effective export window; missing bounds default to all records."""
        return resolve_window(normalized.record_count, start, end)

    def preview(
        self,
        normalized: NormalizedSheet,
        start: int | None = None,
        end: int | None = None,
    ) -> SheetPreview:
        """
        Build a preview of a sheet.

        The preview materializes at most ``preview_row_limit`` records from
        the start of the effective window, however large the window is.
        """
        window = self.window(normalized, start, end)
        shown = preview_window(window, self.settings.preview_row_limit)

        return SheetPreview(
            sheet_name=normalized.sheet_name,
            header_mode=normalized.header_mode,
            headers=normalized.headers,
            total_records=normalized.record_count,
            window=window,
            preview_window=shown,
            rows=[
                record.to_dict(self.settings.row_key_field)
                for record in self.exporter.select(normalized.records, shown)
            ],
        )

    # ==================== EXPORT SINKS ====================

    def export_json(
        self,
        normalized: NormalizedSheet,
        start: int | None = None,
        end: int | None = None,
    ) -> str:
        """
        Export a window of records as JSON text (clipboard sink).

        Returns:
            Pretty-printed JSON array; "[]" for an empty selection.
        """
        window = self.window(normalized, start, end)
        return self.exporter.to_clipboard_text(normalized.records, window)

    def export_file(
        self,
        normalized: NormalizedSheet,
        start: int | None = None,
        end: int | None = None,
        filename: str | None = None,
    ) -> DownloadFile:
        """
        Export a window of records as a downloadable JSON file.

        Args:
            normalized: The normalized sheet.
            start: First requested row (1-based).
            end: Last requested row (1-based, inclusive).
            filename: Download name. Defaults to ``default_export_filename``.
        """
        window = self.window(normalized, start, end)
        return self.exporter.to_download(
            normalized.records,
            window,
            filename or self.settings.default_export_filename,
        )

    def workbook_payloads(self, workbook: Workbook) -> list[ExportPayload]:
        """
        Convert every sheet of a workbook into an archive payload.

        Sheets are read with first-row headers; each payload holds all of
        its sheet's records and is named ``{baseName}__{sheetName}.json``.
        """
        base_name = base_name_of(workbook.source_name, self.settings.accepted_extensions)
        payloads = []

        for sheet_name in workbook.sheet_names:
            normalized = self.normalizer.normalize(
                workbook.get_sheet(sheet_name),
                HeaderMode.FIRST_ROW,
            )
            payloads.append(
                self.exporter.to_payload(
                    normalized.records,
                    payload_filename(base_name, sheet_name),
                )
            )

        return payloads

    def _run_batch(
        self,
        sources: Iterable[tuple[str, Callable[[], SourceFile]]],
    ) -> BatchExportResult:
        builder = ArchiveBuilder(self.settings.archive_name)
        notifications: list[Notification] = []

        for name, load in sources:
            if not self.settings.accepts(name):
                logger.info("Skipping %s: not an accepted spreadsheet file", name)
                continue

            try:
                workbook = self.decode(load())
                payloads = self.workbook_payloads(workbook)
            except SheetExportError as e:
                logger.warning("Skipping %s: %s", name, e.message)
                notifications.append(error_notification(e, name, PARSE_FAILURE))
                continue

            builder.extend(payloads)
            notifications.append(
                Notification(
                    level=NotificationLevel.INFO,
                    message=f"{PARSE_SUCCESS} ({len(payloads)} sheet(s))",
                    source=name,
                )
            )

        return BatchExportResult(
            archive=builder.build(),
            entries=builder.entries,
            notifications=notifications,
        )

    def export_batch(self, sources: Iterable[SourceFile]) -> BatchExportResult:
        """
        Convert many spreadsheet files into one zip archive.

        Files are processed strictly in order; every sheet of a file is
        normalized and queued before the next file starts. Files without
        an accepted extension are skipped silently. A file that fails to
        decode adds an error notification and no entries; the remaining
        files are still converted.

        Args:
            sources: Spreadsheet files to convert.

        Returns:
            BatchExportResult with the archive, its entries and notifications.
        """
        return self._run_batch(
            (source.name, lambda source=source: source) for source in sources
        )

    def export_batch_paths(self, file_paths: Iterable[str | Path]) -> BatchExportResult:
        """
        Convert many local spreadsheet files into one zip archive.

        Each file is read only when its turn comes; a file that cannot be
        read is reported like a file that cannot be decoded.
        """
        return self._run_batch(
            (Path(path).name, lambda path=path: self.open_path(path)) for path in file_paths
        )

    # ==================== REMOTE DOCUMENTS ====================

    async def fetch_remote(self, url: str) -> SourceFile:
        """
        Fetch the bytes of a remote document.

        Raises:
            InvalidReferenceError: If the URL has no document identifier.
            NetworkError: If the fetch fails.
        """
        return await self.fetcher.fetch(url)

    async def load_remote(self, url: str) -> Workbook:
        """
        Fetch and decode a remote document.

        Raises:
            InvalidReferenceError: If the URL has no document identifier.
            NetworkError: If the fetch fails.
            DecodeError: If the fetched bytes are not a valid workbook.
        """
        return self.decode(await self.fetch_remote(url))
