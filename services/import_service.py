import logging
from dataclasses import dataclass
from typing import Optional

from importers.file_readers import extract_pdf_text, read_spreadsheet
from importers.normalizer import movements_to_drafts, receipt_to_drafts
from importers.receipt_parser import parse_receipt_text
from importers.statement_importer import import_statement
from models.expense import ExpenseDraft
from models.movement import StatementImport
from models.receipt import ParsedReceipt
from services.errors import ServiceError, ValidationError
from utils.constants import PERSONAS

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    attempted: int
    created: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.created == self.attempted

    def summary(self) -> str:
        if self.ok:
            return f"{self.created} expense(s) saved."
        return f"{self.created} of {self.attempted} expense(s) saved. {self.error or ''}".strip()


class ImportService:
    """Reads statement/receipt files and stores the resulting expenses.

    expense_sink needs create_expenses(drafts) -> BulkCreateResult and
    balance_sink needs save_balance(amount, recorded_at=None). The local
    services and the API client both qualify.
    """

    def __init__(self, expense_sink, balance_sink=None):
        self._expenses = expense_sink
        self._balances = balance_sink

    def preview_statement(self, path: str) -> StatementImport:
        return import_statement(read_spreadsheet(path))

    def preview_receipt(self, path: str) -> ParsedReceipt:
        return parse_receipt_text(extract_pdf_text(path))

    def save_statement(self, statement: StatementImport, category_id: int, persona: str) -> ImportResult:
        self._check_target(category_id, persona)
        return self._save(movements_to_drafts(statement.movements, category_id, persona))

    def save_receipt(self, receipt: ParsedReceipt, category_id: int, persona: str) -> ImportResult:
        self._check_target(category_id, persona)
        return self._save(receipt_to_drafts(receipt, category_id, persona))

    def save_balance(self, amount: float, recorded_at: str | None = None):
        if self._balances is None:
            raise ServiceError("Balance storage is not available.")
        return self._balances.save_balance(amount, recorded_at)

    def _save(self, drafts: list[ExpenseDraft]) -> ImportResult:
        if not drafts:
            raise ValidationError("There is nothing to import.")
        bulk = self._expenses.create_expenses(drafts)
        result = ImportResult(attempted=len(drafts), created=bulk.created_count, error=bulk.error)
        if result.ok:
            logger.info("Imported %d expenses", result.created)
        else:
            logger.warning("Import incomplete: %s", result.summary())
        return result

    @staticmethod
    def _check_target(category_id: int | None, persona: str):
        if category_id is None:
            raise ValidationError("Select a category before saving.")
        if persona not in PERSONAS:
            raise ValidationError(f"Persona must be one of: {', '.join(PERSONAS)}.")
