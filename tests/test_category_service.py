"""Tests for category validation, soft delete and statistics."""

import pytest

from api.server import build_services
from services.errors import ConflictError, NotFoundError, ValidationError
from utils.constants import DEFAULT_CATEGORIES


class TestCreateUpdate:
    def test_create_trims_and_nulls_description(self, services):
        cat = services.categories.create("  Ocio  ", "#FB7185", "   ")
        assert cat.name == "Ocio"
        assert cat.description is None
        assert cat.active is True
        assert cat.created_at

    @pytest.mark.parametrize("name, color", [
        ("", "#3b82f6"),
        ("x" * 101, "#3b82f6"),
        ("Ocio", "3b82f6"),
        ("Ocio", "#3b82f"),
        ("Ocio", "#GGGGGG"),
    ])
    def test_invalid_input(self, services, name, color):
        with pytest.raises(ValidationError):
            services.categories.create(name, color)

    def test_description_too_long(self, services):
        with pytest.raises(ValidationError):
            services.categories.create("Ocio", "#3b82f6", "d" * 501)

    def test_duplicate_name_is_case_insensitive(self, services, food):
        with pytest.raises(ConflictError):
            services.categories.create("SUPERMERCADO", "#3b82f6")

    def test_duplicate_check_includes_inactive(self, services, transport):
        services.categories.delete(transport.id)
        with pytest.raises(ConflictError):
            services.categories.create("transporte", "#3b82f6")

    def test_update_may_keep_own_name(self, services, food):
        updated = services.categories.update(food.id, "supermercado", "#000000", "Semanal")
        assert updated.name == "supermercado"
        assert updated.color == "#000000"
        assert updated.description == "Semanal"

    def test_update_rejects_other_name(self, services, food, transport):
        with pytest.raises(ConflictError):
            services.categories.update(transport.id, "Supermercado", "#000000")

    def test_unique_constraint_reported_as_conflict(self, services, food, transport, monkeypatch):
        # Another writer inserted the same name after the duplicate scan
        monkeypatch.setattr(services.categories, "_check_duplicate", lambda *a, **kw: None)
        with pytest.raises(ConflictError):
            services.categories.create("SUPERMERCADO", "#3b82f6")
        with pytest.raises(ConflictError):
            services.categories.update(transport.id, "supermercado", "#000000")
        assert services.categories.create("Ocio", "#FB7185").name == "Ocio"

    def test_update_missing(self, services):
        with pytest.raises(NotFoundError):
            services.categories.update(999, "Nada", "#000000")


class TestDelete:
    def test_soft_delete_hides_category(self, services, food, transport):
        services.categories.delete(transport.id)
        assert [c.name for c in services.categories.get_active()] == ["Supermercado"]
        with pytest.raises(NotFoundError):
            services.categories.get_by_id(transport.id)

    def test_delete_in_use_is_refused(self, services, food, make_draft):
        services.expenses.create(make_draft())
        with pytest.raises(ConflictError):
            services.categories.delete(food.id)

    def test_delete_after_expenses_removed(self, services, food, make_draft):
        expense = services.expenses.create(make_draft())
        services.expenses.delete(expense.id)
        services.categories.delete(food.id)
        assert services.categories.get_active() == []

    def test_delete_missing(self, services):
        with pytest.raises(NotFoundError):
            services.categories.delete(42)

    def test_reactivate_through_update(self, services, transport):
        services.categories.delete(transport.id)
        services.categories.update(transport.id, "Transporte", "#06b6d4", None, active=True)
        assert services.categories.get_by_id(transport.id).active


class TestStatistics:
    def test_category_statistics(self, services, food, transport, make_draft):
        services.expenses.create(make_draft(amount=30))
        services.expenses.create(make_draft(amount=10))
        services.expenses.create(make_draft(amount=60, category_id=transport.id))

        stats = services.categories.get_statistics(food.id)
        assert stats.total == 40.0
        assert stats.count == 2
        assert stats.average == 20.0
        assert stats.percentage == 40.0

    def test_unused_category_statistics(self, services, food):
        stats = services.categories.get_statistics(food.id)
        assert (stats.total, stats.count, stats.percentage) == (0.0, 0, 0.0)
        assert stats.category_name == "Supermercado"

    def test_most_used_orders_by_count_then_total(self, services, food, transport, make_draft):
        services.expenses.create(make_draft(amount=1))
        services.expenses.create(make_draft(amount=1))
        services.expenses.create(make_draft(amount=100, category_id=transport.id))

        ranked = services.categories.most_used(5)
        assert [s.category_name for s in ranked] == ["Supermercado", "Transporte"]
        assert ranked[0].count == 2
        assert services.categories.most_used(1)[0].category_id == food.id

    @pytest.mark.parametrize("top", [0, 51])
    def test_most_used_bounds(self, services, top):
        with pytest.raises(ValidationError):
            services.categories.most_used(top)


def test_default_categories_are_seeded(seeded_db):
    names = [c.name for c in build_services(seeded_db).categories.get_active()]
    assert sorted(names) == sorted(c["name"] for c in DEFAULT_CATEGORIES)
