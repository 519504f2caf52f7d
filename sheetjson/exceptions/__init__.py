"""
Custom exceptions for the sheet export service.

Provides type-safe, descriptive exceptions for error handling throughout
the application.
"""

from sheetjson.exceptions.export_exceptions import (
    DecodeError,
    InvalidReferenceError,
    NetworkError,
    ReadError,
    SheetExportError,
    SheetNotFoundError,
    SourceNotFoundError,
    UnsupportedSourceError,
)

__all__ = [
    "SheetExportError",
    "DecodeError",
    "InvalidReferenceError",
    "NetworkError",
    "ReadError",
    "SheetNotFoundError",
    "SourceNotFoundError",
    "UnsupportedSourceError",
]
