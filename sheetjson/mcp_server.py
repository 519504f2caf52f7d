"""
MCP (Model Context Protocol) server for sheet export.

This module implements an MCP server that exposes the export pipeline as
tools that can be called by AI agents. It provides the same functionality
as the REST API, reading spreadsheets from local paths instead of uploads.

MCP Tools:
    - list_sheets: Get sheet names in a workbook
    - preview_sheet: Preview a row window of a sheet
    - export_sheet_json: Export a row window as JSON text or to a file
    - export_batch_zip: Convert many workbooks into a zip of JSON files
    - load_remote_sheet: Preview or export a remote shared spreadsheet

Example:
    To run the MCP server:
        python -m sheetjson.mcp_server

    Or programmatically:
        from sheetjson.mcp_server import run_mcp_server
        run_mcp_server()
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    TextContent,
    Tool,
)

from sheetjson.config import get_settings
from sheetjson.exceptions.export_exceptions import SheetExportError
from sheetjson.models.export_models import ExportRequest, HeaderMode, RemoteSheetRequest
from sheetjson.services.export_service import ExportService, remote_notification
from sheetjson.utils.logging import configure_logging

logger = logging.getLogger(__name__)

HEADER_MODE_SCHEMA = {
    "type": "string",
    "enum": [mode.value for mode in HeaderMode],
    "description": (
        "'positional' uses column letters (A, B, C, ...); "
        "'first_row' uses the first row as headers"
    ),
}

WINDOW_SCHEMA = {
    "start": {
        "type": "integer",
        "description": "First row to export (1-based, default: first record)",
    },
    "end": {
        "type": "integer",
        "description": "Last row to export (1-based, inclusive, default: last record)",
    },
}


class MCPExportServer:
    """
    MCP server implementation for sheet export.

    This class wraps the ExportService and exposes it through the MCP
    protocol. Results are returned as JSON text with a ``success`` flag;
    export errors come back as ``{"success": false, "error": {...}}``.

    Attributes:
        service: The underlying ExportService instance.
        server: The MCP Server instance.

    Example:
        mcp_server = MCPExportServer()
        await mcp_server.run()
    """

    def __init__(self, service: ExportService | None = None) -> None:
        """
        Initialize the MCP Export Server.

        Args:
            service: Optional ExportService instance. If None, creates a new one.
        """
        self.service = service or ExportService()
        self.server = Server("sheetjson-mcp-server")
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Set up MCP request handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return the list of available export tools."""
            return self._get_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Execute a tool and return the result."""
            result = await self._execute_tool(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, default=str, indent=2))]

    def _get_tools(self) -> list[Tool]:
        """
        Get the list of available export tools.

        Returns:
            List of MCP Tool definitions.
        """
        return [
            Tool(
                name="list_sheets",
                description="Get the list of sheet names in a spreadsheet, in workbook order.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_path": {
                            "type": "string",
                            "description": "Path to the .xlsx file",
                        },
                    },
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="preview_sheet",
                description=(
                    "Preview a sheet as JSON records. Returns the headers, the "
                    "total record count, the clamped export window and at most "
                    "10 records from the start of that window."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_path": {
                            "type": "string",
                            "description": "Path to the .xlsx file",
                        },
                        "sheet_name": {
                            "type": "string",
                            "description": "Name of the sheet (optional, defaults to first sheet)",
                        },
                        "header_mode": HEADER_MODE_SCHEMA,
                        **WINDOW_SCHEMA,
                        "include_row_key": {
                            "type": "boolean",
                            "description": "Add a synthetic __rowKey field (default: false)",
                        },
                    },
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="export_sheet_json",
                description=(
                    "Export a row window of a sheet as a pretty-printed JSON array. "
                    "Returns the JSON text, or writes it to output_path when given."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_path": {
                            "type": "string",
                            "description": "Path to the .xlsx file",
                        },
                        "sheet_name": {
                            "type": "string",
                            "description": "Name of the sheet (optional, defaults to first sheet)",
                        },
                        "header_mode": HEADER_MODE_SCHEMA,
                        **WINDOW_SCHEMA,
                        "include_row_key": {
                            "type": "boolean",
                            "description": "Add a synthetic __rowKey field (default: false)",
                        },
                        "output_path": {
                            "type": "string",
                            "description": "File to write the JSON to (optional)",
                        },
                    },
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="export_batch_zip",
                description=(
                    "Convert every sheet of several .xlsx files into JSON files "
                    "named '{baseName}__{sheetName}.json' and write them into one "
                    "zip archive. Files that fail to parse are reported and skipped."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_paths": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Paths to the spreadsheet files",
                        },
                        "output_dir": {
                            "type": "string",
                            "description": "Directory to write the archive into",
                        },
                    },
                    "required": ["file_paths", "output_dir"],
                },
            ),
            Tool(
                name="load_remote_sheet",
                description=(
                    "Load a shared Google Sheets document by URL. Returns a preview "
                    "of the requested window, or writes the full window as JSON to "
                    "output_path when given."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "url": {
                            "type": "string",
                            "description": "Shareable document URL containing '/d/<id>'",
                        },
                        "sheet_name": {
                            "type": "string",
                            "description": "Name of the sheet (optional, defaults to first sheet)",
                        },
                        "header_mode": {
                            **HEADER_MODE_SCHEMA,
                            "description": "Header derivation mode (default: 'first_row')",
                        },
                        **WINDOW_SCHEMA,
                        "include_row_key": {
                            "type": "boolean",
                            "description": "Add a synthetic __rowKey field (default: true)",
                        },
                        "output_path": {
                            "type": "string",
                            "description": "File to write the JSON to (optional)",
                        },
                    },
                    "required": ["url"],
                },
            ),
        ]

    def _write_text(self, output_path: str, text: str) -> dict[str, Any]:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        logger.info("Wrote %s", path)
        return {"output_path": str(path), "size_bytes": len(text.encode("utf-8"))}

    async def _load_remote_sheet(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        Fetch a remote document and preview or export the requested window.

        The result carries a notification for the load, on failure as well.
        """
        request = RemoteSheetRequest(**arguments)
        try:
            workbook = await self.service.load_remote(request.url)
            normalized = self.service.normalize(
                workbook,
                sheet_name=request.sheet_name,
                header_mode=request.header_mode,
                assign_row_keys=request.include_row_key,
            )
        except SheetExportError as e:
            return {
                "success": False,
                "error": e.to_dict(),
                "notification": remote_notification(request.url, e).model_dump(mode="json"),
            }

        notification = remote_notification(request.url).model_dump(mode="json")
        if arguments.get("output_path"):
            text = self.service.export_json(normalized, request.start, request.end)
            data = self._write_text(arguments["output_path"], text)
        else:
            data = self.service.preview(normalized, request.start, request.end).model_dump(mode="json")

        return {"success": True, "data": data, "notification": notification}

    async def _execute_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a tool by name with the given arguments.

        Args:
            name: The name of the tool to execute.
            arguments: The arguments to pass to the tool.

        Returns:
            Dictionary containing the tool execution result.
        """
        try:
            if name == "list_sheets":
                source = self.service.open_path(arguments["file_path"])
                result = self.service.get_sheet_names(source)
                return {"success": True, "data": {"sheets": result}}

            elif name in ("preview_sheet", "export_sheet_json"):
                request = ExportRequest(
                    sheet_name=arguments.get("sheet_name"),
                    header_mode=arguments.get("header_mode", HeaderMode.POSITIONAL),
                    start=arguments.get("start"),
                    end=arguments.get("end"),
                    include_row_key=arguments.get("include_row_key", False),
                )
                source = self.service.open_path(arguments["file_path"])
                normalized = self.service.load_sheet(source, request)

                if name == "preview_sheet":
                    result = self.service.preview(normalized, request.start, request.end)
                    return {"success": True, "data": result.model_dump(mode="json")}

                text = self.service.export_json(normalized, request.start, request.end)
                if arguments.get("output_path"):
                    return {"success": True, "data": self._write_text(arguments["output_path"], text)}
                return {"success": True, "data": {"json": text}}

            elif name == "export_batch_zip":
                result = self.service.export_batch_paths(arguments["file_paths"])
                output_dir = Path(arguments["output_dir"])
                output_dir.mkdir(parents=True, exist_ok=True)
                archive_path = output_dir / result.archive.filename
                archive_path.write_bytes(result.archive.content)
                return {
                    "success": True,
                    "data": {
                        "archive_path": str(archive_path),
                        "entries": [entry.model_dump() for entry in result.entries],
                        "notifications": [n.model_dump(mode="json") for n in result.notifications],
                    },
                }

            elif name == "load_remote_sheet":
                return await self._load_remote_sheet(arguments)

            else:
                return {
                    "success": False,
                    "error": {
                        "error_code": "UNKNOWN_TOOL",
                        "message": f"Unknown tool: {name}",
                    },
                }

        except SheetExportError as e:
            return {
                "success": False,
                "error": e.to_dict(),
            }
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return {
                "success": False,
                "error": {
                    "error_code": "INTERNAL_ERROR",
                    "message": str(e),
                },
            }

    async def run(self) -> None:
        """
        Run the MCP server using stdio transport.

        This method starts the server and blocks until it is terminated.
        It uses stdin/stdout for communication with the MCP client, so
        logs go to stderr.
        """
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def run_mcp_server() -> None:
    """
    Run the MCP export server.

    This is the entry point for running the MCP server from the command line.

    Example:
        python -m sheetjson.mcp_server
    """
    configure_logging(get_settings().log_level)
    server = MCPExportServer()
    asyncio.run(server.run())


if __name__ == "__main__":
    run_mcp_server()
