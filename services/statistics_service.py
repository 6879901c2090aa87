from database.expense_dao import ExpenseDAO
from models.statistics import CategoryStatistics, ExpenseStatistics, PersonaStatistics
from utils.constants import PERSONAS


class StatisticsService:
    def __init__(self, expense_dao: ExpenseDAO):
        self._dao = expense_dao

    def get_statistics(self) -> ExpenseStatistics:
        """Totals, averages and per-category / per-persona breakdowns of active expenses."""
        totals = self._dao.get_totals()
        total = totals["total"] or 0.0
        count = totals["count"] or 0

        by_category = [
            CategoryStatistics(
                category_id=r["category_id"],
                category_name=r["category_name"],
                category_color=r["category_color"],
                total=round(r["total"], 2),
                count=r["count"],
                average=round(r["total"] / r["count"], 2),
                percentage=_percentage(r["total"], total),
            )
            for r in self._dao.get_totals_by_category()
        ]
        by_persona = [
            PersonaStatistics(
                persona=r["persona"],
                total=round(r["total"], 2),
                count=r["count"],
                average=round(r["total"] / r["count"], 2),
                percentage=_percentage(r["total"], total),
                first_expense=r["first_expense"],
                last_expense=r["last_expense"],
            )
            for r in self._dao.get_totals_by_persona()
        ]
        persona_totals = {p.persona: p.total for p in by_persona}
        ana, valen = PERSONAS

        return ExpenseStatistics(
            total=round(total, 2),
            count=count,
            average=round(total / count, 2) if count else 0.0,
            total_ana=persona_totals.get(ana, 0.0),
            total_valen=persona_totals.get(valen, 0.0),
            by_category=by_category,
            by_persona=by_persona,
        )


def _percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0
