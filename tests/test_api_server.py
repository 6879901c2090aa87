"""Tests for the REST routes: envelope shape and status codes."""

import threading
import time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from api.server import EmbeddedServer, create_app


@pytest.fixture
def client(db):
    with TestClient(create_app(db)) as c:
        yield c


@pytest.fixture
def category(client):
    resp = client.post("/api/categories", json={"name": "Supermercado", "color": "#3b82f6"})
    return resp.json()["result"]


def _expense_body(category_id, **overrides):
    body = {
        "amount": 12.5,
        "description": "Compra",
        "category_id": category_id,
        "persona": "Ana",
        "date": "2025-09-16",
    }
    body.update(overrides)
    return body


class TestCategories:
    def test_create_returns_envelope(self, client):
        resp = client.post("/api/categories", json={"name": "Ocio", "color": "#FB7185"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["error"] is False
        assert body["message"] == "Category created."
        assert body["result"]["name"] == "Ocio"

    def test_list(self, client, category):
        body = client.get("/api/categories").json()
        assert [c["name"] for c in body["result"]] == ["Supermercado"]

    def test_invalid_color_is_400(self, client):
        resp = client.post("/api/categories", json={"name": "Ocio", "color": "red"})
        assert resp.status_code == 400
        assert resp.json()["error"] is True
        assert resp.json()["result"] is None

    def test_duplicate_is_409(self, client, category):
        resp = client.post("/api/categories", json={"name": "supermercado", "color": "#000000"})
        assert resp.status_code == 409

    def test_missing_is_404(self, client):
        resp = client.get("/api/categories/99")
        assert resp.status_code == 404
        assert "99" in resp.json()["message"]

    def test_delete_in_use_is_409(self, client, category):
        client.post("/api/expenses", json=_expense_body(category["id"]))
        assert client.delete(f"/api/categories/{category['id']}").status_code == 409

    def test_most_used_is_not_an_id(self, client, category):
        client.post("/api/expenses", json=_expense_body(category["id"]))
        resp = client.get("/api/categories/most-used", params={"top": 3})
        assert resp.status_code == 200
        assert resp.json()["result"][0]["category_name"] == "Supermercado"

    def test_statistics(self, client, category):
        client.post("/api/expenses", json=_expense_body(category["id"], amount=8))
        stats = client.get(f"/api/categories/{category['id']}/statistics").json()["result"]
        assert (stats["total"], stats["count"], stats["percentage"]) == (8.0, 1, 100.0)


class TestExpenses:
    def test_create_and_get(self, client, category):
        created = client.post("/api/expenses", json=_expense_body(category["id"]))
        assert created.status_code == 201
        expense = created.json()["result"]
        assert expense["date"] == "2025-09-16T00:00:00"
        assert expense["category"]["name"] == "Supermercado"

        fetched = client.get(f"/api/expenses/{expense['id']}").json()["result"]
        assert fetched == expense

    def test_malformed_body_is_422(self, client):
        resp = client.post("/api/expenses", json={"amount": "mucho"})
        assert resp.status_code == 422
        assert resp.json()["error"] is True
        assert resp.json()["message"]

    def test_search_pagination(self, client, category):
        for amount in (1, 2, 3):
            client.post("/api/expenses", json=_expense_body(category["id"], amount=amount))
        page = client.get("/api/expenses", params={"page_size": 2}).json()["result"]
        assert page["total_items"] == 3
        assert page["total_pages"] == 2
        assert page["has_next"] is True
        assert len(page["items"]) == 2

    def test_invalid_persona_filter(self, client):
        assert client.get("/api/expenses", params={"persona": "Pepe"}).status_code == 400

    def test_delete_then_404(self, client, category):
        expense = client.post("/api/expenses", json=_expense_body(category["id"])).json()["result"]
        assert client.delete(f"/api/expenses/{expense['id']}").json()["result"] is True
        assert client.get(f"/api/expenses/{expense['id']}").status_code == 404

    def test_update(self, client, category):
        expense = client.post("/api/expenses", json=_expense_body(category["id"])).json()["result"]
        resp = client.put(
            f"/api/expenses/{expense['id']}",
            json=_expense_body(category["id"], persona="Valen", amount=3),
        )
        assert resp.json()["result"]["persona"] == "Valen"

    def test_bulk_all_created(self, client, category):
        body = [_expense_body(category["id"]), _expense_body(category["id"], amount=4)]
        resp = client.post("/api/expenses/bulk", json=body)
        assert resp.status_code == 201
        assert resp.json()["result"]["created_count"] == 2

    def test_bulk_partial_is_207(self, client, category):
        body = [_expense_body(category["id"]), _expense_body(category["id"], persona="Nadie")]
        resp = client.post("/api/expenses/bulk", json=body)
        assert resp.status_code == 207
        payload = resp.json()
        assert payload["error"] is True
        assert payload["result"]["created_count"] == 1
        assert "Expense 2 of 2" in payload["message"]

    def test_statistics(self, client, category):
        client.post("/api/expenses", json=_expense_body(category["id"], amount=10, persona="Ana"))
        client.post("/api/expenses", json=_expense_body(category["id"], amount=30, persona="Valen"))
        stats = client.get("/api/expenses/statistics").json()["result"]
        assert stats["total"] == 40.0
        assert (stats["total_ana"], stats["total_valen"]) == (10.0, 30.0)


class TestBalance:
    def test_empty_then_saved(self, client):
        assert client.get("/api/balance").json()["result"] is None
        resp = client.post("/api/balance", json={"amount": 1234.56, "recorded_at": "2025-09-16"})
        assert resp.status_code == 201
        current = client.get("/api/balance").json()["result"]
        assert current["amount"] == 1234.56
        assert current["recorded_at"] == "2025-09-16T00:00:00"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_embedded_server_stop_waits_for_thread():
    server = SimpleNamespace(should_exit=False)
    drained = []

    def run():
        while not server.should_exit:
            time.sleep(0.01)
        time.sleep(0.05)
        drained.append(True)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    EmbeddedServer(server, thread).stop(timeout=2)
    assert drained == [True]
    assert not thread.is_alive()
