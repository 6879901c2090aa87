"""Tests for Mercadona receipt parsing."""

from datetime import datetime

import pytest

from importers.receipt_parser import (
    extract_purchase_datetime,
    extract_total,
    parse_products,
    parse_receipt_text,
    split_receipt_lines,
)
from models.receipt import ParsedReceiptProduct

SAMPLE_RECEIPT = """\
MERCADONA, S.A.   A-46103834
C/ SANT JORDI, 6
08028 Barcelona
TELÈFON:936245001
16/09/2025 10:12  OP: 3641231
FACTURA SIMPLIFICADA: 4240-020-059072
DescripcióP. UnitImport
1TALL PIT FI3,39
1BURGER POLLASTRE3,95
1BURGER VACUM5,90
1FILET PIT4,08
1NYOQUIS DE PATATA1,10
1MADUIXA3,33
1PIMIENTO TRICO2,00
1LLACETS VEGETALS1,05
1NABIUS2,15
16 OUS PAGÈS1,90
1FARIGOLA1,05
1ROTLLE LLAR DOBLE2,30
1FORMATGE RATLLAT POL1,35
2RUCA 50 G0,831,66
1CARABASSA PART.1,45
1CARABASSA PART.1,33
1PASTANAGA 500 G0,80
1LLET DESNATADA1,09
1PINYA PELADA NATURAL3,55
1MATÓ1,00
1CIREROL 500 G2,00
1BRÒQUIL
0,498 kg2,90 €/kg1,44
1LLIMONA
0,348 kg3,15 €/kg1,10
1NECTARINA
0,348 kg2,60 €/kg0,90
TOTAL (€)49,87
"""


@pytest.fixture
def receipt():
    return parse_receipt_text(SAMPLE_RECEIPT)


class TestFullReceipt:
    def test_header_fields(self, receipt):
        assert receipt.purchased_at == datetime(2025, 9, 16, 10, 12)
        assert receipt.total == pytest.approx(49.87)
        assert receipt.store == "MERCADONA"

    def test_every_product_line_is_recognised(self, receipt):
        assert len(receipt.products) == 24
        assert receipt.products_total == pytest.approx(49.87)

    def test_simple_line(self, receipt):
        assert receipt.products[0] == ParsedReceiptProduct("TALL PIT FI", 1, 3.39, 3.39)

    def test_description_with_punctuation_and_accents(self, receipt):
        names = [p.description for p in receipt.products]
        assert "CARABASSA PART." in names
        assert "MATÓ" in names

    def test_quantity_priced_line(self, receipt):
        ruca = next(p for p in receipt.products if p.description == "RUCA 50 G")
        assert ruca.quantity == 2
        assert ruca.unit_price == pytest.approx(0.83)
        assert ruca.amount == pytest.approx(1.66)

    def test_sized_lines(self, receipt):
        names = [p.description for p in receipt.products]
        assert "6 OUS PAGÈS" in names
        assert "PASTANAGA 500 G" in names
        assert "CIREROL 500 G" in names

    def test_weighted_lines(self, receipt):
        broquil = next(p for p in receipt.products if p.description.startswith("BRÒQUIL"))
        assert broquil.description == "BRÒQUIL (0.498kg)"
        assert broquil.quantity == 1
        assert broquil.unit_price == pytest.approx(2.90)
        assert broquil.amount == pytest.approx(1.44)
        assert receipt.products[-1].description == "NECTARINA (0.348kg)"


class TestPieces:
    def test_split_lines_drops_blanks(self):
        assert split_receipt_lines("  a \n\n b\n") == ["a", "b"]
        assert split_receipt_lines("") == []

    def test_missing_datetime_and_total(self):
        lines = ["1PA3,00"]
        assert extract_purchase_datetime(lines) is None
        assert extract_total(lines) is None

    def test_total_with_thousands(self):
        assert extract_total(["TOTAL (EUR) 1.049,87"]) == pytest.approx(1049.87)

    def test_weighted_head_without_detail_is_skipped(self):
        assert parse_products(["1BRÒQUIL", "TOTAL (€)1,44"]) == []

    def test_weighted_keeps_head_quantity(self):
        [p] = parse_products(["2LLIMONA", "0,348 kg3,15 €/kg1,10"])
        assert p.quantity == 2
        assert p.description == "LLIMONA (0.348kg)"
        assert p.amount == pytest.approx(1.10)

    def test_simple_multi_quantity(self):
        [p] = parse_products(["3AIGUA1,00"])
        assert (p.quantity, p.unit_price, p.amount) == (3, 1.0, 3.0)

    def test_noise_is_ignored(self):
        assert parse_products(["08028 Barcelona", "FACTURA SIMPLIFICADA: 4240-020-059072"]) == []

    def test_mismatched_total_still_parses(self, caplog):
        text = "1PA3,00\nTOTAL (€)5,00"
        receipt = parse_receipt_text(text)
        assert receipt.total == pytest.approx(5.0)
        assert receipt.products_total == pytest.approx(3.0)
        assert "differs" in caplog.text
