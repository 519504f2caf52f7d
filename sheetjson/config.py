"""
Configuration for the sheet export service.

Settings are a plain Pydantic model with defaults. They are constructed
in code and passed to the services; nothing is read from the environment
and nothing is persisted.

Example:
    settings = ExportSettings(preview_row_limit=25, decoder_engine="openpyxl")
    service = ExportService(settings=settings)
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator

GOOGLE_SHEETS_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{document_id}/export?format=xlsx"


class ExportSettings(BaseModel):
    """
    Tunable settings for decoding, previewing and exporting sheets.

    Attributes:
        preview_row_limit: Maximum rows materialized for a preview.
        json_indent: Indentation of exported JSON text.
        row_key_field: Field name the synthetic row key is exported under.
        archive_name: File name of the batch zip archive.
        default_export_filename: File name of a single JSON download.
        accepted_extensions: Source extensions accepted by file inputs.
        decoder_engine: Workbook decoder to use.
        remote_export_url_template: Export endpoint for remote documents.
        remote_timeout_seconds: Timeout for remote fetches.
        log_level: Level for the package logger.
    """

    preview_row_limit: int = Field(default=10, ge=1)
    json_indent: int = Field(default=2, ge=0)
    row_key_field: str = Field(default="__rowKey", min_length=1)
    archive_name: str = "excel_json_export.zip"
    default_export_filename: str = "sheet-data.json"
    accepted_extensions: tuple[str, ...] = (".xlsx",)
    decoder_engine: Literal["calamine", "openpyxl"] = "calamine"
    remote_export_url_template: str = GOOGLE_SHEETS_EXPORT_URL
    remote_timeout_seconds: float = Field(default=30.0, gt=0)
    log_level: str = "INFO"

    @field_validator("accepted_extensions")
    @classmethod
    def normalize_extensions(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Lower-case extensions and make sure each starts with a dot."""
        return tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v)

    @field_validator("remote_export_url_template")
    @classmethod
    def validate_url_template(cls, v: str) -> str:
        """Ensure the template has a document_id placeholder."""
        if "{document_id}" not in v:
            raise ValueError("remote_export_url_template must contain '{document_id}'")
        return v

    def accepts(self, filename: str) -> bool:
        """Whether a file name carries one of the accepted extensions."""
        return filename.lower().endswith(self.accepted_extensions)


@lru_cache(maxsize=1)
def get_settings() -> ExportSettings:
    """Return the shared default settings instance."""
    return ExportSettings()
