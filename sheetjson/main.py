"""
FastAPI application for the sheet export service.

This module provides the REST API over the export pipeline. Spreadsheets
are uploaded with each request (or fetched from a shared URL); nothing is
stored between requests.

API Endpoints:
    - GET /health: Health check
    - POST /workbook/sheets: List sheet names of an uploaded file
    - POST /sheets/preview: Preview a row window of a sheet
    - POST /export/json: Download a row window as a JSON file
    - POST /export/clipboard: Get a row window as JSON text
    - POST /export/batch: Convert many files into one zip archive
    - POST /remote/preview: Preview a remote shared spreadsheet
    - POST /remote/export: Download a row window of a remote spreadsheet

Example:
    To run the server:
        uvicorn sheetjson.main:app --reload

    Or programmatically:
        from sheetjson.main import run_server
        run_server()
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any
from urllib.parse import quote

import uvicorn
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from sheetjson import __version__
from sheetjson.config import get_settings
from sheetjson.exceptions.export_exceptions import SheetExportError
from sheetjson.models.export_models import (
    DownloadFile,
    ErrorResponse,
    ExportRequest,
    HeaderMode,
    NormalizedSheet,
    RemoteSheetRequest,
    SheetPreview,
    SourceFile,
)
from sheetjson.services.export_service import ExportService
from sheetjson.utils.logging import configure_logging

export_service: ExportService | None = None

STATUS_CODES = {
    "SOURCE_NOT_FOUND": 404,
    "SHEET_NOT_FOUND": 404,
    "MALFORMED_WORKBOOK": 400,
    "UNSUPPORTED_SOURCE": 400,
    "INVALID_REFERENCE": 400,
    "NETWORK_ERROR": 502,
    "READ_ERROR": 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Configures logging and initializes the export service on startup.

    Args:
        app: The FastAPI application instance.
    """
    global export_service
    settings = get_settings()
    configure_logging(settings.log_level)
    export_service = ExportService(settings=settings)
    yield
    export_service = None


app = FastAPI(
    title="Sheet JSON Export Service",
    description="""
    Convert spreadsheet rows into JSON records.

    ## Features

    - **Sheet preview**: Positional (A, B, C, ...) or first-row headers
    - **Range export**: Any 1-based row window, clamped to the available rows
    - **Sinks**: JSON file download, clipboard text, zip archive of many files
    - **Remote sheets**: Load shared Google Sheets by URL
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Export-Entry-Count", "X-Export-Failed-Sources"],
)


def get_service() -> ExportService:
    """
    Get the export service instance.

    Raises:
        HTTPException: If the service is not initialized.
    """
    if export_service is None:
        raise HTTPException(
            status_code=503,
            detail="Export service is not initialized",
        )
    return export_service


def to_http_exception(error: SheetExportError) -> HTTPException:
    """Map a SheetExportError to an HTTPException with its error body."""
    return HTTPException(
        status_code=STATUS_CODES.get(error.error_code, 500),
        detail=error.to_dict(),
    )


def content_disposition(filename: str) -> str:
    """Attachment header value that survives non-ASCII file names."""
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def download_response(download: DownloadFile, headers: dict[str, str] | None = None) -> Response:
    """Wrap a DownloadFile as an attachment response."""
    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": content_disposition(download.filename), **(headers or {})},
    )


async def read_upload(file: UploadFile) -> SourceFile:
    """
    Read an uploaded spreadsheet into a SourceFile.

    Raises:
        HTTPException: If no file was sent or the extension is not accepted.
    """
    if not file.filename:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_FILE", "message": "No file provided"},
        )

    settings = get_service().settings
    if not settings.accepts(file.filename):
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "UNSUPPORTED_SOURCE",
                "message": (
                    "Invalid file extension. Supported: "
                    f"{', '.join(settings.accepted_extensions)}"
                ),
            },
        )

    return SourceFile(name=file.filename, data=await file.read())


async def load_uploaded_sheet(file: UploadFile, request: ExportRequest) -> NormalizedSheet:
    """Read, decode and normalize the sheet of an upload named by ``request``."""
    source = await read_upload(file)
    try:
        return get_service().load_sheet(source, request)
    except SheetExportError as e:
        raise to_http_exception(e) from e


async def load_remote_sheet(request: RemoteSheetRequest) -> NormalizedSheet:
    """Fetch, decode and normalize the sheet of a remote document."""
    service = get_service()
    try:
        workbook = await service.load_remote(request.url)
        return service.normalize(
            workbook,
            sheet_name=request.sheet_name,
            header_mode=request.header_mode,
            assign_row_keys=request.include_row_key,
        )
    except SheetExportError as e:
        raise to_http_exception(e) from e


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid file or request"},
    404: {"model": ErrorResponse, "description": "Sheet not found"},
}


@app.get(
    "/health",
    tags=["System"],
    summary="Health check",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """
    Check the health status of the service.

    Returns:
        Dictionary containing status and timestamp.
    """
    return {
        "status": "healthy",
        "service": "Sheet JSON Export Service",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post(
    "/workbook/sheets",
    tags=["Workbook"],
    summary="List sheet names",
    response_model=list[str],
    responses={400: ERROR_RESPONSES[400]},
)
async def list_sheets(
    file: Annotated[UploadFile, File(description="Spreadsheet file to upload")],
) -> list[str]:
    """
    List the sheet names of an uploaded workbook, in workbook order.

    Raises:
        HTTPException: If the file is missing or not a valid workbook.
    """
    source = await read_upload(file)
    try:
        return get_service().get_sheet_names(source)
    except SheetExportError as e:
        raise to_http_exception(e) from e


@app.post(
    "/sheets/preview",
    tags=["Sheets"],
    summary="Preview a sheet",
    response_model=SheetPreview,
    responses=ERROR_RESPONSES,
)
async def preview_sheet(
    file: Annotated[UploadFile, File(description="Spreadsheet file to upload")],
    sheet_name: Annotated[str | None, Query(description="Sheet name (default: first sheet)")] = None,
    header_mode: Annotated[HeaderMode, Query(description="Header derivation mode")] = HeaderMode.POSITIONAL,
    start: Annotated[int | None, Query(description="First row (1-based)")] = None,
    end: Annotated[int | None, Query(description="Last row (1-based, inclusive)")] = None,
    include_row_key: Annotated[bool, Query(description="Add the synthetic row key")] = False,
) -> SheetPreview:
    """
    Preview a row window of an uploaded sheet.

    The requested window is clamped to the sheet's records; at most
    ``preview_row_limit`` rows from its start are returned.
    """
    normalized = await load_uploaded_sheet(
        file,
        ExportRequest(sheet_name=sheet_name, header_mode=header_mode, include_row_key=include_row_key),
    )
    return get_service().preview(normalized, start, end)


@app.post(
    "/export/json",
    tags=["Export"],
    summary="Download a row window as JSON",
    response_class=Response,
    responses=ERROR_RESPONSES,
)
async def export_json_file(
    file: Annotated[UploadFile, File(description="Spreadsheet file to upload")],
    sheet_name: Annotated[str | None, Query(description="Sheet name (default: first sheet)")] = None,
    header_mode: Annotated[HeaderMode, Query(description="Header derivation mode")] = HeaderMode.POSITIONAL,
    start: Annotated[int | None, Query(description="First row (1-based)")] = None,
    end: Annotated[int | None, Query(description="Last row (1-based, inclusive)")] = None,
    include_row_key: Annotated[bool, Query(description="Add the synthetic row key")] = False,
    filename: Annotated[str | None, Query(description="Download file name")] = None,
) -> Response:
    """Export a row window of an uploaded sheet as a JSON attachment."""
    normalized = await load_uploaded_sheet(
        file,
        ExportRequest(sheet_name=sheet_name, header_mode=header_mode, include_row_key=include_row_key),
    )
    return download_response(get_service().export_file(normalized, start, end, filename))


@app.post(
    "/export/clipboard",
    tags=["Export"],
    summary="Get a row window as JSON text",
    response_class=PlainTextResponse,
    responses=ERROR_RESPONSES,
)
async def export_clipboard_text(
    file: Annotated[UploadFile, File(description="Spreadsheet file to upload")],
    sheet_name: Annotated[str | None, Query(description="Sheet name (default: first sheet)")] = None,
    header_mode: Annotated[HeaderMode, Query(description="Header derivation mode")] = HeaderMode.POSITIONAL,
    start: Annotated[int | None, Query(description="First row (1-based)")] = None,
    end: Annotated[int | None, Query(description="Last row (1-based, inclusive)")] = None,
    include_row_key: Annotated[bool, Query(description="Add the synthetic row key")] = False,
) -> PlainTextResponse:
    """Return the same JSON text the file export produces, for the clipboard."""
    normalized = await load_uploaded_sheet(
        file,
        ExportRequest(sheet_name=sheet_name, header_mode=header_mode, include_row_key=include_row_key),
    )
    return PlainTextResponse(get_service().export_json(normalized, start, end))


@app.post(
    "/export/batch",
    tags=["Export"],
    summary="Convert many files into a zip of JSON files",
    response_class=Response,
)
async def export_batch(
    files: Annotated[list[UploadFile], File(description="Spreadsheet files to convert")],
) -> Response:
    """
    Convert every sheet of every uploaded spreadsheet to JSON, zipped.

    Entries are named ``{baseName}__{sheetName}.json``. Files without an
    accepted extension are skipped; files that fail to decode are listed
    in the ``X-Export-Failed-Sources`` header and the rest still convert.
    """
    sources = [
        SourceFile(name=file.filename, data=await file.read())
        for file in files
        if file.filename
    ]
    result = get_service().export_batch(sources)

    return download_response(
        result.archive,
        headers={
            "X-Export-Entry-Count": str(len(result.entries)),
            "X-Export-Failed-Sources": ",".join(quote(name) for name in result.failed_sources),
        },
    )


@app.post(
    "/remote/preview",
    tags=["Remote"],
    summary="Preview a remote spreadsheet",
    response_model=SheetPreview,
    responses={
        **ERROR_RESPONSES,
        502: {"model": ErrorResponse, "description": "Remote fetch failed"},
    },
)
async def preview_remote_sheet(request: RemoteSheetRequest) -> SheetPreview:
    """
    Preview a shared Google Sheets document.

    The URL must contain a ``/d/<id>`` segment; the document's xlsx export
    is fetched and read like an uploaded file.
    """
    normalized = await load_remote_sheet(request)
    return get_service().preview(normalized, request.start, request.end)


@app.post(
    "/remote/export",
    tags=["Remote"],
    summary="Download a row window of a remote spreadsheet as JSON",
    response_class=Response,
    responses={
        **ERROR_RESPONSES,
        502: {"model": ErrorResponse, "description": "Remote fetch failed"},
    },
)
async def export_remote_sheet(request: RemoteSheetRequest) -> Response:
    """Export a row window of a shared Google Sheets document as a JSON attachment."""
    normalized = await load_remote_sheet(request)
    return download_response(
        get_service().export_file(normalized, request.start, request.end, request.filename)
    )


def run_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to. Defaults to "0.0.0.0".
        port: Port to listen on. Defaults to 8000.
        reload: Whether to enable auto-reload. Defaults to False.

    Example:
        from sheetjson.main import run_server
        run_server(host="127.0.0.1", port=8080)
    """
    uvicorn.run(
        "sheetjson.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    run_server()
