import logging
import math
from datetime import datetime

from database.category_dao import CategoryDAO
from database.expense_dao import ExpenseDAO
from models.expense import BulkCreateResult, Expense, ExpenseDraft, ExpenseFilter, Page
from services.errors import NotFoundError, ServiceError, ValidationError
from utils.constants import AMOUNT_MAX, AMOUNT_MIN, DESCRIPTION_MAX, PAGE_SIZE_MAX, PERSONAS
from utils.currency import money2
from utils.date_helpers import format_display_date, format_datetime, parse_date, parse_datetime

logger = logging.getLogger(__name__)


class ExpenseService:
    def __init__(self, expense_dao: ExpenseDAO, category_dao: CategoryDAO):
        self._dao = expense_dao
        self._category_dao = category_dao

    def search(self, flt: ExpenseFilter) -> Page:
        self._validate_filter(flt)
        total = self._dao.count(flt)
        items = self._dao.search(
            flt, limit=flt.page_size, offset=(flt.page - 1) * flt.page_size
        )
        return Page(items=items, total_items=total, page=flt.page, page_size=flt.page_size)

    def list_all(self, flt: ExpenseFilter) -> list[Expense]:
        """Every matching expense, ignoring pagination."""
        self._validate_filter(flt, check_paging=False)
        return self._dao.search(flt)

    def get(self, expense_id: int) -> Expense:
        expense = self._dao.get_by_id(expense_id)
        if expense is None or not expense.active:
            raise NotFoundError(f"Expense {expense_id} not found.")
        return expense

    def create(self, draft: ExpenseDraft) -> Expense:
        with self._dao.lock:
            amount, description, date = self._validate(draft)
            expense = self._dao.create(
                amount=amount,
                description=description,
                category_id=draft.category_id,
                persona=draft.persona,
                date=date,
            )
        logger.debug("Created expense %d (%.2f, %s)", expense.id, expense.amount, expense.persona)
        return expense

    def create_expenses(self, drafts: list[ExpenseDraft]) -> BulkCreateResult:
        """Create drafts one by one; stops at the first failure and reports what was created."""
        result = BulkCreateResult(attempted=len(drafts))
        for index, draft in enumerate(drafts, start=1):
            try:
                result.created.append(self.create(draft))
            except ServiceError as exc:
                result.error = f"Expense {index} of {len(drafts)} failed: {exc.message}"
                logger.warning(
                    "Bulk create stopped after %d of %d: %s",
                    result.created_count, len(drafts), exc.message,
                )
                break
        else:
            logger.info("Bulk created %d expenses", result.created_count)
        return result

    def update(self, expense_id: int, draft: ExpenseDraft, active: bool = True) -> Expense:
        with self._dao.lock:
            self.get(expense_id)
            amount, description, date = self._validate(draft)
            return self._dao.update(
                expense_id,
                amount=amount,
                description=description,
                category_id=draft.category_id,
                persona=draft.persona,
                date=date,
                active=active,
            )

    def delete(self, expense_id: int):
        self.get(expense_id)
        self._dao.deactivate(expense_id)

    def export_rows(self, flt: ExpenseFilter, date_format: str = "DD/MM/YYYY") -> list[list[str]]:
        """Return rows suitable for CSV export."""
        return export_rows(self.list_all(flt), date_format)

    def _validate(self, draft: ExpenseDraft) -> tuple[float, str, str]:
        if draft.persona not in PERSONAS:
            raise ValidationError(f"Persona must be one of: {', '.join(PERSONAS)}.")
        try:
            raw = float(draft.amount)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a number.")
        if not math.isfinite(raw):
            raise ValidationError("Amount must be a finite number.")
        amount = money2(raw)
        if 0 < raw and amount < AMOUNT_MIN:
            # e.g. 0,01 split across three receipt units
            raise ValidationError(
                f"Amount {raw:.4f} rounds to {amount:.2f}, below the minimum of {AMOUNT_MIN:.2f}."
            )
        if amount < AMOUNT_MIN or amount > AMOUNT_MAX:
            raise ValidationError(f"Amount must be between {AMOUNT_MIN:.2f} and {AMOUNT_MAX:,.2f}.")
        description = (draft.description or "").strip()
        if not description:
            raise ValidationError("Description cannot be empty.")
        if len(description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description cannot exceed {DESCRIPTION_MAX} characters.")
        if draft.date:
            parsed = parse_datetime(draft.date)
            if parsed is None:
                raise ValidationError("Invalid date. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS.")
            date = format_datetime(parsed)
        else:
            date = format_datetime(datetime.now())
        cat = self._category_dao.get_by_id(draft.category_id)
        if cat is None or not cat.active:
            raise NotFoundError(f"Category {draft.category_id} not found or inactive.")
        return amount, description, date

    def _validate_filter(self, flt: ExpenseFilter, check_paging: bool = True):
        if check_paging:
            if flt.page < 1:
                raise ValidationError("Page must be 1 or greater.")
            if flt.page_size < 1 or flt.page_size > PAGE_SIZE_MAX:
                raise ValidationError(f"Page size must be between 1 and {PAGE_SIZE_MAX}.")
        if flt.persona and flt.persona not in PERSONAS:
            raise ValidationError(f"Persona must be one of: {', '.join(PERSONAS)}.")
        for label, value in (("date_from", flt.date_from), ("date_to", flt.date_to)):
            if value and parse_date(value) is None:
                raise ValidationError(f"Invalid {label}. Use YYYY-MM-DD.")


def export_rows(expenses: list[Expense], date_format: str = "DD/MM/YYYY") -> list[list[str]]:
    rows = [["Date", "Persona", "Category", "Description", "Amount"]]
    for e in expenses:
        rows.append([
            format_display_date(e.date, date_format),
            e.persona,
            e.category.name if e.category else "",
            e.description,
            f"{e.amount:.2f}",
        ])
    return rows
