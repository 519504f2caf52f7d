"""Column letter and A1 helpers."""

from sheetjson.models.export_models import CellRange


def column_letter(index: int) -> str:
    """
    Convert a 0-based column index to Excel column letters.

    Args:
        index: 0-based column index (0 -> "A", 25 -> "Z", 26 -> "AA").

    Returns:
        Column letter(s).
    """
    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")

    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def column_index(letters: str) -> int:
    """
    Convert Excel column letter(s) to a 0-based index.

    Args:
        letters: Column letter(s) like "A", "B", "AA", "AB".

    Returns:
        0-based column index.
    """
    if not letters or not letters.isalpha():
        raise ValueError(f"invalid column letters: {letters!r}")

    result = 0
    for char in letters.upper():
        result = result * 26 + (ord(char) - ord("A") + 1)
    return result - 1


def to_a1(cell_range: CellRange) -> str:
    """Render a zero-based range in A1 notation, e.g. "A1:C3"."""
    start = f"{column_letter(cell_range.start_col)}{cell_range.start_row + 1}"
    end = f"{column_letter(cell_range.end_col)}{cell_range.end_row + 1}"
    return f"{start}:{end}"


def make_range(start_row: int, start_col: int, end_row: int, end_col: int) -> CellRange:
    """Build a CellRange with its A1 notation filled in."""
    cell_range = CellRange(
        start_row=start_row,
        end_row=end_row,
        start_col=start_col,
        end_col=end_col,
    )
    cell_range.a1_notation = to_a1(cell_range)
    return cell_range
