"""Shared fixtures: a throwaway sqlite database and the services built on it."""

import pytest

from api.server import build_services
from database.db_manager import DatabaseManager
from models.expense import ExpenseDraft


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "gastos.db"))
    manager.initialize(seed=False)
    yield manager
    manager.close()


@pytest.fixture
def seeded_db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "seeded.db"))
    manager.initialize(seed=True)
    yield manager
    manager.close()


@pytest.fixture
def services(db):
    return build_services(db)


@pytest.fixture
def food(services):
    return services.categories.create("Supermercado", "#3b82f6", "Compra semanal")


@pytest.fixture
def transport(services):
    return services.categories.create("Transporte", "#06b6d4")


@pytest.fixture
def make_draft(food):
    def _make(amount=10.0, description="Compra", persona="Ana", date="2025-09-16", category_id=None):
        return ExpenseDraft(
            amount=amount,
            description=description,
            category_id=category_id if category_id is not None else food.id,
            persona=persona,
            date=date,
        )
    return _make
