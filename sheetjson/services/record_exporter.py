"""
Record export to JSON text, downloads and archive payloads.

The exporter slices a record sequence by a RowWindow and serializes the
selection as a JSON array of objects. Field order follows each record's
header order; a record's row key, when set, is written after its values
like any other field. An empty selection serializes to "[]".

Example:
    exporter = RecordExporter()
    text = exporter.to_clipboard_text(normalized.records, RowWindow(start=1, end=5))
    download = exporter.to_download(normalized.records, window, "sheet-data.json")
"""

import json
import logging
from collections.abc import Sequence

from sheetjson.config import ExportSettings, get_settings
from sheetjson.models.export_models import DownloadFile, ExportPayload, Record, RowWindow

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


class RecordExporter:
    """
    Serializes record windows.

    Attributes:
        indent: JSON indentation.
        row_key_field: Field name row keys are written under.
    """

    def __init__(self, settings: ExportSettings | None = None) -> None:
        """
        Initialize the RecordExporter.

        Args:
            settings: Optional settings. If None, uses the defaults.
        """
        settings = settings or get_settings()
        self.indent = settings.json_indent
        self.row_key_field = settings.row_key_field

    def select(self, records: Sequence[Record], window: RowWindow | None = None) -> list[Record]:
        """
        Return the records inside ``window``; all records when window is None.

        Window bounds are 1-based and inclusive, so (start, end) selects
        ``records[start - 1:end]``.
        """
        if window is None:
            return list(records)
        return list(records[window.to_slice()])

    def to_json(self, records: Sequence[Record], window: RowWindow | None = None) -> str:
        """
        Serialize the selected records as pretty-printed JSON.

        Args:
            records: The full record sequence.
            window: Rows to export. If None, exports every record.

        Returns:
            JSON text of an array of objects.
        """
        selected = self.select(records, window)
        return json.dumps(
            [record.to_dict(self.row_key_field) for record in selected],
            indent=self.indent,
            ensure_ascii=False,
        )

    def to_clipboard_text(self, records: Sequence[Record], window: RowWindow | None = None) -> str:
        """Return the JSON text for placing on the clipboard."""
        return self.to_json(records, window)

    def to_download(
        self,
        records: Sequence[Record],
        window: RowWindow | None,
        filename: str,
    ) -> DownloadFile:
        """
        Wrap the JSON text as a downloadable UTF-8 file.

        Args:
            records: The full record sequence.
            window: Rows to export. If None, exports every record.
            filename: Name the download is saved under.
        """
        text = self.to_json(records, window)
        logger.info("Prepared download %s (%d bytes)", filename, len(text))
        return DownloadFile(
            filename=filename,
            content=text.encode("utf-8"),
            media_type=JSON_MEDIA_TYPE,
        )

    def to_payload(
        self,
        records: Sequence[Record],
        filename: str,
        window: RowWindow | None = None,
    ) -> ExportPayload:
        """Serialize records into a named payload for an archive."""
        selected = self.select(records, window)
        return ExportPayload(
            filename=filename,
            content=self.to_json(selected),
            record_count=len(selected),
        )
