import logging
import re
import sqlite3

from database.category_dao import CategoryDAO
from database.expense_dao import ExpenseDAO
from models.category import Category
from models.statistics import CategoryStatistics
from services.errors import ConflictError, NotFoundError, ValidationError
from utils.constants import CATEGORY_NAME_MAX, DESCRIPTION_MAX, MOST_USED_DEFAULT, MOST_USED_MAX

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class CategoryService:
    def __init__(self, category_dao: CategoryDAO, expense_dao: ExpenseDAO):
        self._dao = category_dao
        self._expense_dao = expense_dao

    def get_active(self) -> list[Category]:
        return self._dao.get_active()

    def get_by_id(self, category_id: int) -> Category:
        cat = self._dao.get_by_id(category_id)
        if cat is None or not cat.active:
            raise NotFoundError(f"Category {category_id} not found.")
        return cat

    def create(self, name: str, color: str, description: str | None = None) -> Category:
        name, color, description = self._validate(name, color, description)
        with self._dao.lock:
            self._check_duplicate(name)
            try:
                cat = self._dao.create(name, color, description)
            except sqlite3.IntegrityError:
                raise ConflictError(f"A category named '{name}' already exists.")
        logger.info("Created category %d '%s'", cat.id, cat.name)
        return cat

    def update(
        self,
        category_id: int,
        name: str,
        color: str,
        description: str | None = None,
        active: bool = True,
    ) -> Category:
        name, color, description = self._validate(name, color, description)
        with self._dao.lock:
            if self._dao.get_by_id(category_id) is None:
                raise NotFoundError(f"Category {category_id} not found.")
            self._check_duplicate(name, exclude_id=category_id)
            try:
                return self._dao.update(category_id, name, color, description, active)
            except sqlite3.IntegrityError:
                raise ConflictError(f"A category named '{name}' already exists.")

    def delete(self, category_id: int):
        with self._dao.lock:
            cat = self._dao.get_by_id(category_id)
            if cat is None:
                raise NotFoundError(f"Category {category_id} not found.")
            in_use = self._dao.count_active_expenses(category_id)
            if in_use:
                raise ConflictError(
                    f"Category '{cat.name}' has {in_use} active expense(s) and cannot be deleted."
                )
            self._dao.deactivate(category_id)
        logger.info("Deactivated category %d '%s'", cat.id, cat.name)

    def get_statistics(self, category_id: int) -> CategoryStatistics:
        cat = self.get_by_id(category_id)
        grand_total = self._expense_dao.get_totals()["total"]
        rows = self._expense_dao.get_totals_by_category(category_id)
        if not rows:
            return CategoryStatistics(
                category_id=cat.id, category_name=cat.name, category_color=cat.color
            )
        return _to_statistics(rows[0], grand_total)

    def most_used(self, top: int = MOST_USED_DEFAULT) -> list[CategoryStatistics]:
        if top < 1 or top > MOST_USED_MAX:
            raise ValidationError(f"top must be between 1 and {MOST_USED_MAX}.")
        grand_total = self._expense_dao.get_totals()["total"]
        rows = self._expense_dao.get_most_used_categories(top)
        return [_to_statistics(r, grand_total) for r in rows]

    def _check_duplicate(self, name: str, exclude_id: int | None = None):
        key = name.casefold()
        for cat in self._dao.get_all():
            if cat.id != exclude_id and cat.name.casefold() == key:
                raise ConflictError(f"A category named '{name}' already exists.")

    def _validate(self, name: str, color: str, description: str | None):
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name cannot be empty.")
        if len(name) > CATEGORY_NAME_MAX:
            raise ValidationError(f"Category name cannot exceed {CATEGORY_NAME_MAX} characters.")
        description = (description or "").strip() or None
        if description and len(description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description cannot exceed {DESCRIPTION_MAX} characters.")
        color = (color or "").strip()
        if not _COLOR_RE.match(color):
            raise ValidationError("Color must be a hex value like #3b82f6.")
        return name, color, description


def _to_statistics(row: dict, grand_total: float) -> CategoryStatistics:
    total = row["total"] or 0.0
    count = row["count"] or 0
    return CategoryStatistics(
        category_id=row["category_id"],
        category_name=row["category_name"],
        category_color=row["category_color"],
        total=round(total, 2),
        count=count,
        average=round(total / count, 2) if count else 0.0,
        percentage=round(total / grand_total * 100, 2) if grand_total else 0.0,
    )
