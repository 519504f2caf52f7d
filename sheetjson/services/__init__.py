"""
Service layer for sheet export.

Contains the core pipeline for decoding workbooks, normalizing sheets and
exporting record windows, decoupled from transport layers (HTTP/MCP).
"""

from sheetjson.services.archive_builder import ArchiveBuilder
from sheetjson.services.export_service import ExportService
from sheetjson.services.record_exporter import RecordExporter
from sheetjson.services.remote_fetcher import RemoteFetcher
from sheetjson.services.sheet_normalizer import SheetNormalizer

__all__ = [
    "ArchiveBuilder",
    "ExportService",
    "RecordExporter",
    "RemoteFetcher",
    "SheetNormalizer",
]
