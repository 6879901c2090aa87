"""Tests for turning receipt products and statement movements into drafts."""

from datetime import date, datetime

import pytest

from importers.normalizer import expand_product, movement_to_draft, movements_to_drafts, receipt_to_drafts
from models.movement import ParsedMovement
from models.receipt import ParsedReceipt, ParsedReceiptProduct


class TestExpandProduct:
    def test_single_unit_is_kept_whole(self):
        [draft] = expand_product(ParsedReceiptProduct("MATÓ", 1, 1.0, 1.0), 3, "Ana")
        assert draft.amount == 1.0
        assert draft.description == "MATÓ"
        assert draft.category_id == 3
        assert draft.persona == "Ana"
        assert draft.date is None

    def test_multi_unit_split(self):
        drafts = expand_product(ParsedReceiptProduct("AIGUA", 3, 3.0, 9.0), 1, "Valen")
        assert [d.amount for d in drafts] == [3.0, 3.0, 3.0]
        assert [d.description for d in drafts] == [
            "AIGUA (unit 1 of 3)", "AIGUA (unit 2 of 3)", "AIGUA (unit 3 of 3)",
        ]

    def test_uneven_split_is_not_rounded(self):
        drafts = expand_product(ParsedReceiptProduct("PAN", 3, 3.33, 10.0), 1, "Ana")
        assert all(d.amount == 10.0 / 3 for d in drafts)
        assert sum(d.amount for d in drafts) == pytest.approx(10.0)


    def test_sub_cent_split_is_logged(self, caplog):
        drafts = expand_product(ParsedReceiptProduct("BOSSA", 3, 0.0, 0.01), 1, "Ana")
        assert len(drafts) == 3
        assert "rounds to 0.00 per unit" in caplog.text


class TestReceiptToDrafts:
    def test_drafts_carry_receipt_timestamp(self):
        receipt = ParsedReceipt(
            purchased_at=datetime(2025, 9, 16, 10, 12),
            products=[
                ParsedReceiptProduct("TALL PIT FI", 1, 3.39, 3.39),
                ParsedReceiptProduct("RUCA 50 G", 2, 0.83, 1.66),
            ],
            total=5.05,
        )
        drafts = receipt_to_drafts(receipt, 1, "Ana")
        assert len(drafts) == 3
        assert {d.date for d in drafts} == {"2025-09-16T10:12:00"}
        assert sum(d.amount for d in drafts) == pytest.approx(5.05)

    def test_undated_receipt(self):
        receipt = ParsedReceipt(products=[ParsedReceiptProduct("PA", 1, 1.0, 1.0)])
        assert receipt_to_drafts(receipt, 1, "Ana")[0].date is None


class TestMovements:
    def test_movement_to_draft(self):
        draft = movement_to_draft(
            ParsedMovement(date(2025, 9, 15), "  MERCADONA BCN ", 45.2), 2, "Valen"
        )
        assert draft.amount == 45.2
        assert draft.description == "MERCADONA BCN"
        assert draft.date == "2025-09-15T00:00:00"

    def test_empty_concept_gets_placeholder(self):
        draft = movement_to_draft(ParsedMovement(None, "   ", 3.0), 2, "Ana")
        assert draft.description == "Movimiento sin concepto"
        assert draft.date is None

    def test_movements_to_drafts_keeps_order(self):
        movements = [ParsedMovement(None, "A", 1.0), ParsedMovement(None, "B", 2.0)]
        assert [d.description for d in movements_to_drafts(movements, 1, "Ana")] == ["A", "B"]
