"""
Zip archive building for batch exports.

Each archive entry is one ExportPayload. Entry names are composed as
``{baseName}__{sheetName}.json`` and are kept pairwise unique: when two
payloads arrive under the same name (two selected files sharing a base
name), the later one is stored as ``{name}_1.json``, ``{name}_2.json``, ...

Example:
    builder = ArchiveBuilder()
    builder.add(exporter.to_payload(records, payload_filename("sales", "Q1")))
    archive = builder.build()
"""

import logging
import zipfile
from io import BytesIO
from pathlib import PurePosixPath, PureWindowsPath

from sheetjson.models.export_models import ArchiveEntry, DownloadFile, ExportPayload

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "excel_json_export.zip"
ZIP_MEDIA_TYPE = "application/zip"


def base_name_of(filename: str, extensions: tuple[str, ...] = (".xlsx",)) -> str:
    """
    Strip directories and a known spreadsheet extension from a file name.

    Args:
        filename: File name, possibly with a relative folder path.
        extensions: Extensions to strip (case-insensitive).

    Returns:
        The bare base name, e.g. "reports/sales.xlsx" -> "sales".
    """
    name = PureWindowsPath(PurePosixPath(filename).name).name
    for ext in extensions:
        if name.lower().endswith(ext.lower()):
            return name[: -len(ext)]
    return name


def payload_filename(base_name: str, sheet_name: str) -> str:
    """Compose the archive entry name for one sheet of one source."""
    return f"{base_name}__{sheet_name}.json"


class ArchiveBuilder:
    """
    Accumulates payloads and packs them into a single zip archive.

    Entries keep insertion order. Nothing is written until ``build``.

    Attributes:
        archive_name: File name of the resulting download.
    """

    def __init__(self, archive_name: str = DEFAULT_ARCHIVE_NAME) -> None:
        self.archive_name = archive_name
        self._payloads: list[ExportPayload] = []
        self._names: set[str] = set()

    def __len__(self) -> int:
        return len(self._payloads)

    @property
    def entry_names(self) -> list[str]:
        return [payload.filename for payload in self._payloads]

    @property
    def entries(self) -> list[ArchiveEntry]:
        return [
            ArchiveEntry(filename=payload.filename, record_count=payload.record_count)
            for payload in self._payloads
        ]

    def _unique_name(self, filename: str) -> str:
        if filename not in self._names:
            return filename

        stem, dot, suffix = filename.rpartition(".")
        if not dot:
            stem, suffix = filename, ""

        counter = 1
        while True:
            candidate = f"{stem}_{counter}.{suffix}" if suffix else f"{stem}_{counter}"
            if candidate not in self._names:
                return candidate
            counter += 1

    def add(self, payload: ExportPayload) -> str:
        """
        Queue a payload for the archive.

        Args:
            payload: The payload to store.

        Returns:
            The entry name the payload will be stored under.
        """
        name = self._unique_name(payload.filename)
        if name != payload.filename:
            logger.warning("Archive entry %s already exists, storing as %s", payload.filename, name)
            payload = payload.model_copy(update={"filename": name})

        self._names.add(name)
        self._payloads.append(payload)
        return name

    def extend(self, payloads: list[ExportPayload]) -> list[str]:
        """Queue several payloads, returning their entry names."""
        return [self.add(payload) for payload in payloads]

    def build(self) -> DownloadFile:
        """
        Pack every queued payload into a zip archive.

        Returns:
            The archive as a DownloadFile named ``archive_name``.
        """
        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for payload in self._payloads:
                archive.writestr(payload.filename, payload.content.encode("utf-8"))

        logger.info("Built archive %s, entries=%d", self.archive_name, len(self._payloads))
        return DownloadFile(
            filename=self.archive_name,
            content=buffer.getvalue(),
            media_type=ZIP_MEDIA_TYPE,
        )
