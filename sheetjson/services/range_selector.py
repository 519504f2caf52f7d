"""
Row window selection.

Requested row ranges are 1-based and inclusive. ``clamp_range`` turns any
request into an effective window over ``count`` records:

    start' = max(1, min(start, count))
    end'   = max(start', min(end, count))

so a request whose end falls before its start collapses to the single row
``start'`` instead of inverting. With no records the window is empty.
Clamping is pure and idempotent.

Previews use a separate, capped window so that what is displayed never
depends on how large the export window is.
"""

import logging

from sheetjson.models.export_models import RowWindow

logger = logging.getLogger(__name__)

PREVIEW_ROW_LIMIT = 10


def clamp_range(count: int, start: int, end: int) -> RowWindow:
    """
    Clamp a requested (start, end) row range to ``count`` records.

    Args:
        count: Number of available records.
        start: Requested first row (1-based).
        end: Requested last row (1-based, inclusive).

    Returns:
        The effective window, or the empty window when count is 0.
    """
    if count <= 0:
        return RowWindow.empty()

    effective_start = max(1, min(start, count))
    effective_end = max(effective_start, min(end, count))

    if (effective_start, effective_end) != (start, end):
        logger.debug(
            "Clamped rows (%d, %d) to (%d, %d) of %d",
            start,
            end,
            effective_start,
            effective_end,
            count,
        )
    return RowWindow(start=effective_start, end=effective_end)


def full_window(count: int) -> RowWindow:
    """The window covering all ``count`` records."""
    return clamp_range(count, 1, count)


def resolve_window(count: int, start: int | None = None, end: int | None = None) -> RowWindow:
    """
    Clamp an optional request; missing bounds default to the full range.

    Args:
        count: Number of available records.
        start: Requested first row, or None for the first record.
        end: Requested last row, or None for the last record.
    """
    return clamp_range(
        count,
        1 if start is None else start,
        count if end is None else end,
    )


def preview_window(window: RowWindow, limit: int = PREVIEW_ROW_LIMIT) -> RowWindow:
    """
    Cap a window to at most ``limit`` rows, starting at ``window.start``.

    Args:
        window: The effective export window.
        limit: Maximum number of rows to preview.

    Returns:
        The preview window; empty when ``window`` is empty.
    """
    if limit < 1:
        raise ValueError(f"preview limit must be >= 1, got {limit}")
    if window.is_empty:
        return window
    return RowWindow(start=window.start, end=min(window.end, window.start + limit - 1))
