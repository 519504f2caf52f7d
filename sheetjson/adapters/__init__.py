"""
Adapters for workbook decoding.

Implements the adapter pattern for different spreadsheet engines:
- CalamineAdapter: High-performance decoding using python-calamine (Rust-based)
- OpenpyxlAdapter: Pure Python decoding using openpyxl (fallback engine)

Both turn raw bytes into the same Workbook value.
"""

from sheetjson.adapters.calamine_adapter import CalamineAdapter
from sheetjson.adapters.openpyxl_adapter import OpenpyxlAdapter

DECODERS = {
    CalamineAdapter.ENGINE: CalamineAdapter,
    OpenpyxlAdapter.ENGINE: OpenpyxlAdapter,
}


def create_decoder(engine: str) -> CalamineAdapter | OpenpyxlAdapter:
    """
    Create a decoder for the named engine.

    Raises:
        ValueError: If the engine is unknown.
    """
    try:
        return DECODERS[engine]()
    except KeyError:
        raise ValueError(
            f"Unknown decoder engine: {engine}. Available: {', '.join(DECODERS)}"
        ) from None


__all__ = [
    "CalamineAdapter",
    "OpenpyxlAdapter",
    "DECODERS",
    "create_decoder",
]
