"""Utility helpers for the sheet export service."""

from sheetjson.utils.logging import configure_logging

__all__ = ["configure_logging"]
