"""
sheetjson: Spreadsheet-to-JSON export service.

This package converts the rows of spreadsheet sheets into JSON records and
delivers them as JSON files, clipboard text or zip archives, through both
OpenAPI (REST via FastAPI) and MCP (Model Context Protocol) interfaces.

Architecture:
    - Service Layer pattern: one export pipeline shared by both transports
    - python-calamine for high-performance reading (Rust-based)
    - openpyxl as an alternative pure-Python decoder
    - httpx for fetching shared Google Sheets documents
"""

__version__ = "0.1.0"
__author__ = "Jeff"
