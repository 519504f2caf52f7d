"""
Tests for the ArchiveBuilder.

Tests entry naming, collision handling and the zip output.
"""

import json
import zipfile
from io import BytesIO

import pytest

from sheetjson.models.export_models import ExportPayload
from sheetjson.services.archive_builder import (
    DEFAULT_ARCHIVE_NAME,
    ZIP_MEDIA_TYPE,
    ArchiveBuilder,
    base_name_of,
    payload_filename,
)


def payload(filename: str, records: list[dict] | None = None) -> ExportPayload:
    records = records or []
    return ExportPayload(filename=filename, content=json.dumps(records), record_count=len(records))


class TestNaming:
    """Tests for base names and entry names."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("sales.xlsx", "sales"),
            ("Sales.XLSX", "Sales"),
            ("reports/2024/sales.xlsx", "sales"),
            ("C:\\data\\sales.xlsx", "sales"),
            ("archive.tar.xlsx", "archive.tar"),
            ("notes", "notes"),
        ],
    )
    def test_base_name_of(self, filename: str, expected: str) -> None:
        """Test stripping directories and the last extension."""
        assert base_name_of(filename) == expected

    def test_payload_filename(self) -> None:
        """Test the base and sheet entry name format."""
        assert payload_filename("sales", "Q1 2024") == "sales__Q1 2024.json"


class TestArchiveBuilder:
    """Tests for collecting and packing payloads."""

    def test_entries_keep_insertion_order(self) -> None:
        """Test that entries are kept in the order added."""
        builder = ArchiveBuilder()
        builder.extend([payload("b__S1.json"), payload("a__S1.json"), payload("a__S2.json")])

        assert builder.entry_names == ["b__S1.json", "a__S1.json", "a__S2.json"]
        assert len(builder) == 3

    def test_duplicate_names_get_suffixes(self) -> None:
        """Test that colliding entry names get numbered suffixes."""
        builder = ArchiveBuilder()

        names = builder.extend(
            [payload("data__Sheet1.json"), payload("data__Sheet1.json"), payload("data__Sheet1.json")]
        )

        assert names == ["data__Sheet1.json", "data__Sheet1_1.json", "data__Sheet1_2.json"]
        assert len(set(builder.entry_names)) == 3

    def test_build_writes_every_payload(self) -> None:
        """Test that the zip holds every payload's JSON."""
        builder = ArchiveBuilder()
        builder.add(payload("users__Sheet1.json", [{"Name": "Alice"}]))
        builder.add(payload("users__Sheet2.json", []))

        archive = builder.build()

        assert archive.filename == DEFAULT_ARCHIVE_NAME
        assert archive.media_type == ZIP_MEDIA_TYPE
        with zipfile.ZipFile(BytesIO(archive.content)) as zf:
            assert zf.namelist() == ["users__Sheet1.json", "users__Sheet2.json"]
            assert json.loads(zf.read("users__Sheet1.json")) == [{"Name": "Alice"}]
            assert json.loads(zf.read("users__Sheet2.json")) == []

    def test_empty_builder_produces_valid_archive(self) -> None:
        """Test that an empty builder still writes a readable zip."""
        archive = ArchiveBuilder("out.zip").build()

        assert archive.filename == "out.zip"
        with zipfile.ZipFile(BytesIO(archive.content)) as zf:
            assert zf.namelist() == []

    def test_entries_report_record_counts(self) -> None:
        """Test that entries carry their record counts."""
        builder = ArchiveBuilder()
        builder.add(payload("a__S.json", [{"x": 1}, {"x": 2}]))

        assert [(e.filename, e.record_count) for e in builder.entries] == [("a__S.json", 2)]
