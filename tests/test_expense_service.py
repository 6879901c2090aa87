"""Tests for expense validation, filtering, paging and bulk creation."""

import pytest

from models.expense import ExpenseDraft, ExpenseFilter
from services.errors import NotFoundError, ValidationError


class TestCreate:
    def test_amount_rounded_half_up(self, services, make_draft):
        expense = services.expenses.create(make_draft(amount=2.675))
        assert expense.amount == 2.68

    def test_bare_date_becomes_midnight(self, services, make_draft):
        expense = services.expenses.create(make_draft(date="2025-09-16"))
        assert expense.date == "2025-09-16T00:00:00"

    def test_missing_date_defaults_to_now(self, services, make_draft):
        expense = services.expenses.create(make_draft(date=None))
        assert len(expense.date) == 19
        assert expense.date[10] == "T"

    def test_joined_category(self, services, food, make_draft):
        expense = services.expenses.create(make_draft(description="  Fruta  "))
        assert expense.description == "Fruta"
        assert expense.category.name == food.name
        assert expense.active

    @pytest.mark.parametrize("overrides", [
        {"amount": 0},
        {"amount": 0.004},
        {"amount": 1_000_000},
        {"description": "   "},
        {"description": "x" * 501},
        {"persona": "Pepe"},
        {"date": "16/09/2025"},
    ])
    def test_validation(self, services, make_draft, overrides):
        with pytest.raises(ValidationError):
            services.expenses.create(make_draft(**overrides))

    def test_sub_cent_amount_names_the_rounding(self, services, make_draft):
        with pytest.raises(ValidationError, match="rounds to 0.00"):
            services.expenses.create(make_draft(amount=0.01 / 3))

    @pytest.mark.parametrize("amount", [float("nan"), float("inf")])
    def test_non_finite_amount(self, services, make_draft, amount):
        with pytest.raises(ValidationError):
            services.expenses.create(make_draft(amount=amount))

    def test_upper_amount_bound_is_inclusive(self, services, make_draft):
        assert services.expenses.create(make_draft(amount=999_999.99)).amount == 999_999.99

    def test_unknown_or_inactive_category(self, services, transport, make_draft):
        with pytest.raises(NotFoundError):
            services.expenses.create(make_draft(category_id=999))
        services.categories.delete(transport.id)
        with pytest.raises(NotFoundError):
            services.expenses.create(make_draft(category_id=transport.id))


class TestUpdateDelete:
    def test_update(self, services, transport, make_draft):
        expense = services.expenses.create(make_draft())
        updated = services.expenses.update(
            expense.id, make_draft(amount=5, persona="Valen", category_id=transport.id)
        )
        assert (updated.amount, updated.persona, updated.category_id) == (5.0, "Valen", transport.id)

    def test_delete_is_soft(self, services, make_draft):
        expense = services.expenses.create(make_draft())
        services.expenses.delete(expense.id)
        with pytest.raises(NotFoundError):
            services.expenses.get(expense.id)
        with pytest.raises(NotFoundError):
            services.expenses.delete(expense.id)
        assert services.expenses.search(ExpenseFilter()).total_items == 0

    def test_update_missing(self, services, make_draft):
        with pytest.raises(NotFoundError):
            services.expenses.update(404, make_draft())


class TestSearch:
    @pytest.fixture
    def ledger(self, services, transport, make_draft):
        rows = [
            make_draft(amount=10, description="Mercadona fruta", persona="Ana", date="2025-09-01"),
            make_draft(amount=20, description="mercadona pan", persona="Valen", date="2025-09-02"),
            make_draft(amount=30, description="Metro", persona="Ana", date="2025-09-03T08:00:00",
                       category_id=transport.id),
            make_draft(amount=40, description="Taxi", persona="Valen", date="2025-09-03T22:00:00",
                       category_id=transport.id),
        ]
        return [services.expenses.create(d) for d in rows]

    def test_ordered_newest_first(self, services, ledger):
        page = services.expenses.search(ExpenseFilter())
        assert [e.description for e in page.items] == [
            "Taxi", "Metro", "mercadona pan", "Mercadona fruta",
        ]

    def test_filters(self, services, transport, ledger):
        def descriptions(**kw):
            return [e.description for e in services.expenses.search(ExpenseFilter(**kw)).items]

        assert descriptions(persona="Ana") == ["Metro", "Mercadona fruta"]
        assert descriptions(category_id=transport.id) == ["Taxi", "Metro"]
        assert descriptions(date_from="2025-09-03", date_to="2025-09-03") == ["Taxi", "Metro"]
        assert descriptions(amount_min=20, amount_max=30) == ["Metro", "mercadona pan"]
        assert descriptions(description="Mercadona") == ["Mercadona fruta"]

    def test_paging(self, services, ledger):
        page = services.expenses.search(ExpenseFilter(page=2, page_size=3))
        assert page.total_items == 4
        assert page.total_pages == 2
        assert page.has_previous and not page.has_next
        assert [e.description for e in page.items] == ["Mercadona fruta"]

    @pytest.mark.parametrize("kw", [
        {"page": 0}, {"page_size": 0}, {"page_size": 101},
        {"persona": "Nadie"}, {"date_from": "ayer"},
    ])
    def test_invalid_filter(self, services, kw):
        with pytest.raises(ValidationError):
            services.expenses.search(ExpenseFilter(**kw))

    def test_export_rows(self, services, ledger):
        rows = services.expenses.export_rows(ExpenseFilter(persona="Valen"))
        assert rows[0] == ["Date", "Persona", "Category", "Description", "Amount"]
        assert rows[1] == ["03/09/2025", "Valen", "Transporte", "Taxi", "40.00"]
        assert len(rows) == 3


class TestBulkCreate:
    def test_all_created(self, services, make_draft):
        result = services.expenses.create_expenses([make_draft(), make_draft(amount=2)])
        assert result.ok
        assert result.created_count == 2
        assert result.error is None

    def test_stops_at_first_failure(self, services, make_draft):
        drafts = [make_draft(), make_draft(amount=-1), make_draft(amount=3)]
        result = services.expenses.create_expenses(drafts)
        assert not result.ok
        assert result.attempted == 3
        assert result.created_count == 1
        assert "Expense 2 of 3" in result.error
        assert services.expenses.search(ExpenseFilter()).total_items == 1

    def test_empty_batch(self, services):
        result = services.expenses.create_expenses([])
        assert result.ok and result.created_count == 0


class TestStatistics:
    def test_empty(self, services):
        stats = services.statistics.get_statistics()
        assert (stats.total, stats.count, stats.average) == (0.0, 0, 0.0)
        assert stats.by_category == [] and stats.by_persona == []

    def test_totals_and_breakdowns(self, services, transport, make_draft):
        services.expenses.create(make_draft(amount=30, persona="Ana", date="2025-09-01"))
        services.expenses.create(make_draft(amount=10, persona="Ana", date="2025-09-05"))
        services.expenses.create(make_draft(amount=60, persona="Valen", category_id=transport.id))
        deleted = services.expenses.create(make_draft(amount=500))
        services.expenses.delete(deleted.id)

        stats = services.statistics.get_statistics()
        assert stats.total == 100.0
        assert stats.count == 3
        assert stats.average == pytest.approx(33.33)
        assert (stats.total_ana, stats.total_valen) == (40.0, 60.0)

        assert [c.category_name for c in stats.by_category] == ["Transporte", "Supermercado"]
        assert stats.by_category[1].percentage == 40.0

        ana = next(p for p in stats.by_persona if p.persona == "Ana")
        assert ana.count == 2
        assert ana.average == 20.0
        assert ana.first_expense == "2025-09-01T00:00:00"
        assert ana.last_expense == "2025-09-05T00:00:00"


class TestBalance:
    def test_latest_balance_wins(self, services):
        assert services.balances.get_current() is None
        services.balances.save_balance(100, "2025-09-01")
        services.balances.save_balance(-25.555, "2025-09-10T12:00:00")
        current = services.balances.get_current()
        assert current.amount == pytest.approx(-25.56)
        assert current.recorded_at == "2025-09-10T12:00:00"

    def test_default_timestamp(self, services):
        balance = services.balances.save_balance(1)
        assert balance.recorded_at

    @pytest.mark.parametrize("amount, recorded_at", [("abc", None), (float("inf"), None), (1, "nope")])
    def test_invalid(self, services, amount, recorded_at):
        with pytest.raises(ValidationError):
            services.balances.save_balance(amount, recorded_at)


def test_draft_is_plain_data():
    draft = ExpenseDraft(amount=1, description="x", category_id=1, persona="Ana")
    assert draft.date is None
