"""
Tests for the FastAPI REST API.

Tests the HTTP endpoints for sheet export.
"""

import json
import zipfile
from io import BytesIO
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from sheetjson import main
from sheetjson.exceptions.export_exceptions import NetworkError
from sheetjson.main import app
from sheetjson.models.export_models import SourceFile

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture(scope="module")
def client():
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c


def upload(source: SourceFile) -> dict:
    return {"file": (source.name, source.data, XLSX_TYPE)}


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test the health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data


class TestWorkbookEndpoints:
    """Tests for sheet listing."""

    def test_list_sheets(self, client: TestClient, multi_sheet_source: SourceFile) -> None:
        """Test listing sheet names of an uploaded workbook."""
        response = client.post("/workbook/sheets", files=upload(multi_sheet_source))

        assert response.status_code == 200
        assert response.json() == ["Users", "Products", "Orders"]

    def test_malformed_upload(self, client: TestClient, malformed_source: SourceFile) -> None:
        """Test that a corrupt upload returns 400."""
        response = client.post("/workbook/sheets", files=upload(malformed_source))

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "MALFORMED_WORKBOOK"

    def test_wrong_extension(self, client: TestClient) -> None:
        """Test that a non-.xlsx upload is rejected."""
        response = client.post(
            "/workbook/sheets",
            files={"file": ("data.csv", b"a,b\n", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "UNSUPPORTED_SOURCE"


class TestPreviewEndpoint:
    """Tests for sheet previews."""

    def test_preview_defaults(self, client: TestClient, long_source: SourceFile) -> None:
        """Test a preview with positional headers and the default window."""
        response = client.post("/sheets/preview", files=upload(long_source))

        assert response.status_code == 200
        data = response.json()
        assert data["sheet_name"] == "Items"
        assert data["header_mode"] == "positional"
        assert data["headers"] == ["A", "B"]
        assert data["total_records"] == 26
        assert len(data["rows"]) == 10

    def test_preview_with_window(self, client: TestClient, long_source: SourceFile) -> None:
        """Test a clamped preview window with first-row headers and row keys."""
        response = client.post(
            "/sheets/preview",
            files=upload(long_source),
            params={"header_mode": "first_row", "start": 24, "end": 99, "include_row_key": True},
        )

        data = response.json()
        assert data["window"] == {"start": 24, "end": 25}
        assert data["rows"] == [
            {"id": 24, "label": "item 24", "__rowKey": "row-24"},
            {"id": 25, "label": "item 25", "__rowKey": "row-25"},
        ]

    def test_unknown_sheet(self, client: TestClient, sample_source: SourceFile) -> None:
        """Test that a missing sheet returns 404 with the available names."""
        response = client.post(
            "/sheets/preview",
            files=upload(sample_source),
            params={"sheet_name": "Missing"},
        )

        assert response.status_code == 404
        assert response.json()["detail"]["details"]["available_sheets"] == ["Users"]


class TestExportEndpoints:
    """Tests for the JSON download, clipboard and batch endpoints."""

    def test_export_json_download(self, client: TestClient, sample_source: SourceFile) -> None:
        """Test downloading a JSON attachment."""
        response = client.post(
            "/export/json",
            files=upload(sample_source),
            params={"header_mode": "first_row", "start": 1, "end": 2},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert 'filename="sheet-data.json"' in response.headers["content-disposition"]
        assert json.loads(response.content) == [
            {"Name": "Alice", "Age": 30, "Email": "alice@example.com"},
            {"Name": "Bob", "Age": 25, "Email": "bob@example.com"},
        ]

    def test_export_json_custom_filename(self, client: TestClient, sample_source: SourceFile) -> None:
        """Test that the attachment name can be chosen."""
        response = client.post(
            "/export/json",
            files=upload(sample_source),
            params={"filename": "users.json"},
        )

        assert 'filename="users.json"' in response.headers["content-disposition"]

    def test_clipboard_matches_download(self, client: TestClient, sample_source: SourceFile) -> None:
        """Test that clipboard text equals the downloaded file."""
        params = {"start": 2, "end": 3}
        download = client.post("/export/json", files=upload(sample_source), params=params)
        clipboard = client.post("/export/clipboard", files=upload(sample_source), params=params)

        assert clipboard.status_code == 200
        assert clipboard.text == download.content.decode("utf-8")

    def test_batch_archive(
        self,
        client: TestClient,
        sample_source: SourceFile,
        malformed_source: SourceFile,
        multi_sheet_source: SourceFile,
    ) -> None:
        """Test a batch archive with one corrupt upload."""
        files = [
            ("files", (source.name, source.data, XLSX_TYPE))
            for source in (sample_source, malformed_source, multi_sheet_source)
        ]

        response = client.post("/export/batch", files=files)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="excel_json_export.zip"' in response.headers["content-disposition"]
        assert response.headers["x-export-failed-sources"] == "broken.xlsx"
        assert response.headers["x-export-entry-count"] == "4"
        with zipfile.ZipFile(BytesIO(response.content)) as zf:
            assert "users__Users.json" in zf.namelist()
            assert "shop__Orders.json" in zf.namelist()


class TestRemoteEndpoints:
    """Tests for remote spreadsheets."""

    @pytest.fixture
    def fake_fetch(self, client: TestClient, sample_source: SourceFile):
        service = main.get_service()
        original = service.fetcher.fetch
        service.fetcher.fetch = AsyncMock(
            return_value=SourceFile(name="abc123.xlsx", data=sample_source.data)
        )
        yield service.fetcher.fetch
        service.fetcher.fetch = original

    def test_remote_preview(self, client: TestClient, fake_fetch: AsyncMock) -> None:
        """Test previewing a remote sheet with the remote defaults."""
        response = client.post(
            "/remote/preview",
            json={"url": "https://docs.google.com/spreadsheets/d/abc123/edit"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["header_mode"] == "first_row"
        assert data["rows"][0] == {
            "Name": "Alice",
            "Age": 30,
            "Email": "alice@example.com",
            "__rowKey": "row-1",
        }
        fake_fetch.assert_awaited_once_with("https://docs.google.com/spreadsheets/d/abc123/edit")

    def test_remote_export(self, client: TestClient, fake_fetch: AsyncMock) -> None:
        """Test exporting a window of a remote sheet."""
        response = client.post(
            "/remote/export",
            json={
                "url": "https://docs.google.com/spreadsheets/d/abc123/edit",
                "start": 3,
                "include_row_key": False,
            },
        )

        assert response.status_code == 200
        assert json.loads(response.content) == [
            {"Name": "Charlie", "Age": 35, "Email": "charlie@example.com"}
        ]

    def test_invalid_remote_url(self, client: TestClient) -> None:
        """Test that a URL without a document id returns 400."""
        response = client.post("/remote/preview", json={"url": "https://example.com/sheet"})

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "INVALID_REFERENCE"

    def test_remote_network_failure(self, client: TestClient, fake_fetch: AsyncMock) -> None:
        """Test that a failed download returns 502."""
        fake_fetch.side_effect = NetworkError(url="https://docs.google.com/x", status_code=403)

        response = client.post(
            "/remote/preview",
            json={"url": "https://docs.google.com/spreadsheets/d/abc123/edit"},
        )

        assert response.status_code == 502
        assert response.json()["detail"]["error_code"] == "NETWORK_ERROR"
