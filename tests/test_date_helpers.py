"""Tests for statement date parsing, Excel serials and display formatting."""

from datetime import date, datetime

import pytest

from models.cell import EMPTY, DateCell, NumberCell, TextCell, cell_text, is_blank, to_cell
from utils.date_helpers import (
    date_to_excel_serial,
    excel_serial_to_date,
    format_display_date,
    parse_date_es,
    parse_datetime,
    parse_display_date,
)


class TestExcelSerials:
    def test_known_serials(self):
        assert excel_serial_to_date(45658) == date(2025, 1, 1)
        assert excel_serial_to_date(1) == date(1900, 1, 1)
        assert excel_serial_to_date(61) == date(1900, 3, 1)

    def test_time_fraction_is_dropped(self):
        assert excel_serial_to_date(45658.75) == date(2025, 1, 1)

    def test_negative_serial(self):
        assert excel_serial_to_date(-1) is None

    @pytest.mark.parametrize("d", [
        date(1900, 1, 1), date(1900, 2, 28), date(1900, 3, 1),
        date(1999, 12, 31), date(2025, 9, 16),
    ])
    def test_round_trip(self, d):
        assert excel_serial_to_date(date_to_excel_serial(d)) == d


class TestParseDateEs:
    @pytest.mark.parametrize("raw, expected", [
        ("16/09/2025", date(2025, 9, 16)),
        ("1/2/25", date(2025, 2, 1)),
        ("16-09-2025", date(2025, 9, 16)),
        ("2025-09-16", date(2025, 9, 16)),
        ("16/09/2025 10:12", date(2025, 9, 16)),
    ])
    def test_text(self, raw, expected):
        assert parse_date_es(raw) == expected

    def test_native_and_serial(self):
        assert parse_date_es(datetime(2025, 9, 16, 8, 30)) == date(2025, 9, 16)
        assert parse_date_es(date(2025, 9, 16)) == date(2025, 9, 16)
        assert parse_date_es(45916) == date(2025, 9, 16)

    @pytest.mark.parametrize("raw", [None, "", "ayer", "31/02/2025", "16/09"])
    def test_invalid(self, raw):
        assert parse_date_es(raw) is None


class TestDisplayDates:
    def test_format_display_date(self):
        assert format_display_date("2025-09-16") == "16/09/2025"
        assert format_display_date("2025-09-16T10:12:00") == "16/09/2025"
        assert format_display_date("2025-09-16", "YYYY-MM-DD") == "2025-09-16"
        assert format_display_date("") == ""

    def test_parse_display_date_falls_back_to_iso(self):
        assert parse_display_date("16/09/2025", "DD/MM/YYYY") == date(2025, 9, 16)
        assert parse_display_date("2025-09-16", "DD/MM/YYYY") == date(2025, 9, 16)
        assert parse_display_date("nope", "DD/MM/YYYY") is None

    def test_parse_datetime(self):
        assert parse_datetime("2025-09-16") == datetime(2025, 9, 16)
        assert parse_datetime("2025-09-16T10:12:00") == datetime(2025, 9, 16, 10, 12)
        assert parse_datetime("garbage") is None


class TestCells:
    def test_classification(self):
        assert to_cell(None) is EMPTY
        assert to_cell(float("nan")) is EMPTY
        assert to_cell(3) == NumberCell(3.0)
        assert to_cell("x") == TextCell("x")
        assert to_cell(True) == TextCell("True")
        assert to_cell(date(2025, 1, 1)) == DateCell(date(2025, 1, 1))

    def test_blank_and_text(self):
        assert is_blank(TextCell("   "))
        assert not is_blank(NumberCell(0.0))
        assert cell_text(NumberCell(12.0)) == "12"
        assert cell_text(NumberCell(1.5)) == "1.5"
        assert cell_text(TextCell(" Concepto ")) == "Concepto"
