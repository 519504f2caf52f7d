"""
Tests for the OpenpyxlAdapter.

Tests the alternate decoder engine and its parity with calamine.
"""

import pytest

from sheetjson.adapters import DECODERS, create_decoder
from sheetjson.adapters.calamine_adapter import CalamineAdapter
from sheetjson.adapters.dimensions import build_sheet, declared_ranges, used_range
from sheetjson.adapters.openpyxl_adapter import OpenpyxlAdapter
from sheetjson.exceptions.export_exceptions import DecodeError
from sheetjson.models.export_models import HeaderMode, SourceFile
from sheetjson.services.sheet_normalizer import SheetNormalizer
from sheetjson.utils.cells import make_range


class TestOpenpyxlAdapterDecoding:
    """Tests for decoding workbook bytes with openpyxl."""

    def test_sheet_names_in_workbook_order(
        self,
        openpyxl_adapter: OpenpyxlAdapter,
        multi_sheet_source: SourceFile,
    ) -> None:
        """Test that sheets keep their workbook order."""
        workbook = openpyxl_adapter.decode(multi_sheet_source)

        assert workbook.sheet_names == ["Users", "Products", "Orders"]

    def test_offset_range(
        self,
        openpyxl_adapter: OpenpyxlAdapter,
        offset_source: SourceFile,
    ) -> None:
        """Test that the declared range starts at the first used cell."""
        sheet = openpyxl_adapter.decode(offset_source).get_sheet("Data")

        assert sheet.bounds.a1_notation == "C3:D5"
        assert sheet.cell(2, 2) == "x"
        assert sheet.cell(3, 3) is None

    def test_formatted_blank_cell_extends_range(
        self,
        openpyxl_adapter: OpenpyxlAdapter,
        formatted_blank_source: SourceFile,
    ) -> None:
        """Test that bounds follow the declared range past the last value."""
        sheet = openpyxl_adapter.decode(formatted_blank_source).get_sheet("Styled")

        assert sheet.bounds.a1_notation == "A1:D2"
        assert sheet.cell(1, 3) is None

    def test_empty_sheet_has_no_bounds(
        self,
        openpyxl_adapter: OpenpyxlAdapter,
        empty_sheet_source: SourceFile,
    ) -> None:
        """Test that a blank sheet decodes without a range."""
        workbook = openpyxl_adapter.decode(empty_sheet_source)

        assert workbook.get_sheet("Blank").bounds is None

    def test_malformed_bytes_raise_decode_error(
        self,
        openpyxl_adapter: OpenpyxlAdapter,
        malformed_source: SourceFile,
    ) -> None:
        """Test that non-workbook bytes raise DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            openpyxl_adapter.decode(malformed_source)

        assert exc_info.value.error_code == "MALFORMED_WORKBOOK"


class TestEngineParity:
    """Both engines must produce the same records."""

    @pytest.mark.parametrize("mode", list(HeaderMode))
    @pytest.mark.parametrize(
        "source_fixture",
        [
            "sample_source",
            "multi_sheet_source",
            "offset_source",
            "empty_sheet_source",
            "formatted_blank_source",
        ],
    )
    def test_same_records(
        self,
        request: pytest.FixtureRequest,
        normalizer: SheetNormalizer,
        source_fixture: str,
        mode: HeaderMode,
    ) -> None:
        """Test that calamine and openpyxl normalize to equal records."""
        source: SourceFile = request.getfixturevalue(source_fixture)
        calamine_workbook = CalamineAdapter().decode(source)
        openpyxl_workbook = OpenpyxlAdapter().decode(source)

        assert calamine_workbook.sheet_names == openpyxl_workbook.sheet_names
        for name in calamine_workbook.sheet_names:
            expected = normalizer.normalize(calamine_workbook.get_sheet(name), mode)
            actual = normalizer.normalize(openpyxl_workbook.get_sheet(name), mode)
            assert actual == expected


class TestCreateDecoder:
    """Tests for engine selection."""

    def test_known_engines(self) -> None:
        """Test creating each known decoder engine."""
        assert isinstance(create_decoder("calamine"), CalamineAdapter)
        assert isinstance(create_decoder("openpyxl"), OpenpyxlAdapter)
        assert set(DECODERS) == {"calamine", "openpyxl"}

    def test_unknown_engine_raises_value_error(self) -> None:
        """Test that an unknown engine name raises ValueError."""
        with pytest.raises(ValueError, match="Unknown decoder engine"):
            create_decoder("xlrd")


class TestDeclaredDimensions:
    """Tests for bounds taken from the declared sheet dimension."""

    @pytest.mark.parametrize("adapter_class", [CalamineAdapter, OpenpyxlAdapter])
    def test_positional_headers_cover_formatted_blank(
        self,
        normalizer: SheetNormalizer,
        formatted_blank_source: SourceFile,
        adapter_class: type,
    ) -> None:
        """Test that a styled empty cell at D2 adds empty C and D columns."""
        sheet = adapter_class().decode(formatted_blank_source).get_sheet("Styled")

        normalized = normalizer.normalize(sheet, HeaderMode.POSITIONAL)

        assert normalized.headers == ["A", "B", "C", "D"]
        assert [r.values for r in normalized.records] == [
            {"A": "a", "B": "b", "C": "", "D": ""},
            {"A": 1, "B": 2, "C": "", "D": ""},
        ]

    def test_declared_ranges_per_sheet(
        self,
        formatted_blank_source: SourceFile,
        offset_source: SourceFile,
    ) -> None:
        """Test reading the declared range of every worksheet."""
        assert declared_ranges(formatted_blank_source)["Styled"].a1_notation == "A1:D2"
        assert declared_ranges(offset_source)["Data"].a1_notation == "C3:D5"

    def test_declared_ranges_of_malformed_bytes(self, malformed_source: SourceFile) -> None:
        """Test that unreadable bytes raise DecodeError."""
        with pytest.raises(DecodeError):
            declared_ranges(malformed_source)

    def test_used_range_ignores_empty_cells(self) -> None:
        """Test that the used range covers only cells holding values."""
        rows = [[], [None, "", None], [None, "x", None, 5], [None, ""]]

        assert used_range(rows).a1_notation == "B3:D3"
        assert used_range([[None, ""], []]) is None

    def test_blank_single_cell_range_is_empty_sheet(self) -> None:
        """Test that a declared A1 with no value gives a sheet without bounds."""
        bounds = make_range(0, 0, 0, 0)

        assert build_sheet("Blank", bounds, []).bounds is None
        assert build_sheet("One", bounds, [["x"]]).bounds == bounds
