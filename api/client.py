"""HTTP client for the Gastos REST API.

Construct one GastosApiClient per backend and pass it to whatever needs it.
Every response goes through unwrap_envelope, and HTTP failures are raised as
the same service errors the local services raise.
"""
import logging
from dataclasses import replace
from typing import Any, Optional

import requests

from api.envelope import ApiResult, unwrap_envelope
from models.balance import Balance
from models.category import Category
from models.expense import BulkCreateResult, Expense, ExpenseDraft, ExpenseFilter, Page
from models.statistics import CategoryStatistics, ExpenseStatistics, PersonaStatistics
from services.errors import ServiceError, TransportError, error_for_status
from utils.constants import DEFAULT_REQUEST_TIMEOUT, MOST_USED_DEFAULT, PAGE_SIZE_MAX

logger = logging.getLogger(__name__)

_PARTIAL_CONTENT = 207


class GastosApiClient:
    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self):
        self._session.close()

    def _request(self, method: str, path: str, allow_partial: bool = False, **kwargs) -> ApiResult:
        url = f"{self.base_url}/api{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Cannot reach the API at {self.base_url}.") from exc

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None
        result = unwrap_envelope(body)
        status = response.status_code

        if allow_partial and status == _PARTIAL_CONTENT:
            return result
        if status >= 400:
            message = result.message or _detail(body) or response.reason or f"HTTP {status}"
            logger.warning("%s %s -> %d: %s", method, url, status, message)
            raise error_for_status(status, message)
        if not result.ok:
            raise ServiceError(result.message or "The API reported an error.")
        return result

    # ── Categories ────────────────────────────────────────────────────────────

    def get_categories(self) -> list[Category]:
        return [_category(c) for c in self._request("GET", "/categories").payload or []]

    def get_category(self, category_id: int) -> Category:
        return _category(self._request("GET", f"/categories/{category_id}").payload)

    def create_category(self, name: str, color: str, description: str | None = None) -> Category:
        body = {"name": name, "color": color, "description": description}
        return _category(self._request("POST", "/categories", json=body).payload)

    def update_category(
        self,
        category_id: int,
        name: str,
        color: str,
        description: str | None = None,
        active: bool = True,
    ) -> Category:
        body = {"name": name, "color": color, "description": description, "active": active}
        return _category(self._request("PUT", f"/categories/{category_id}", json=body).payload)

    def delete_category(self, category_id: int):
        self._request("DELETE", f"/categories/{category_id}")

    def get_category_statistics(self, category_id: int) -> CategoryStatistics:
        payload = self._request("GET", f"/categories/{category_id}/statistics").payload
        return _category_statistics(payload)

    def most_used_categories(self, top: int = MOST_USED_DEFAULT) -> list[CategoryStatistics]:
        payload = self._request("GET", "/categories/most-used", params={"top": top}).payload
        return [_category_statistics(s) for s in payload or []]

    # ── Expenses ──────────────────────────────────────────────────────────────

    def search_expenses(self, flt: ExpenseFilter) -> Page:
        params = {
            "persona": flt.persona,
            "category_id": flt.category_id,
            "date_from": flt.date_from,
            "date_to": flt.date_to,
            "amount_min": flt.amount_min,
            "amount_max": flt.amount_max,
            "description": flt.description,
            "page": flt.page,
            "page_size": flt.page_size,
        }
        params = {k: v for k, v in params.items() if v is not None and v != ""}
        payload = self._request("GET", "/expenses", params=params).payload or {}
        return Page(
            items=[_expense(e) for e in payload.get("items", [])],
            total_items=payload.get("total_items", 0),
            page=payload.get("page", flt.page),
            page_size=payload.get("page_size", flt.page_size),
        )

    def list_all_expenses(self, flt: ExpenseFilter) -> list[Expense]:
        """Walk every page of a search."""
        expenses: list[Expense] = []
        page_number = 1
        while True:
            flt_page = replace(flt, page=page_number, page_size=PAGE_SIZE_MAX)
            page = self.search_expenses(flt_page)
            expenses.extend(page.items)
            if not page.has_next:
                return expenses
            page_number += 1

    def get_expense(self, expense_id: int) -> Expense:
        return _expense(self._request("GET", f"/expenses/{expense_id}").payload)

    def create_expense(self, draft: ExpenseDraft) -> Expense:
        return _expense(self._request("POST", "/expenses", json=_draft_body(draft)).payload)

    def create_expenses(self, drafts: list[ExpenseDraft]) -> BulkCreateResult:
        body = [_draft_body(d) for d in drafts]
        result = self._request("POST", "/expenses/bulk", allow_partial=True, json=body)
        payload = result.payload or {}
        return BulkCreateResult(
            attempted=payload.get("attempted", len(drafts)),
            created=[_expense(e) for e in payload.get("created", [])],
            error=payload.get("error") or (None if result.ok else result.message),
        )

    def update_expense(self, expense_id: int, draft: ExpenseDraft, active: bool = True) -> Expense:
        body = {**_draft_body(draft), "active": active}
        return _expense(self._request("PUT", f"/expenses/{expense_id}", json=body).payload)

    def delete_expense(self, expense_id: int):
        self._request("DELETE", f"/expenses/{expense_id}")

    def get_statistics(self) -> ExpenseStatistics:
        payload = self._request("GET", "/expenses/statistics").payload or {}
        return ExpenseStatistics(
            total=payload.get("total", 0.0),
            count=payload.get("count", 0),
            average=payload.get("average", 0.0),
            total_ana=payload.get("total_ana", 0.0),
            total_valen=payload.get("total_valen", 0.0),
            by_category=[_category_statistics(c) for c in payload.get("by_category", [])],
            by_persona=[PersonaStatistics(**p) for p in payload.get("by_persona", [])],
        )

    # ── Balance ───────────────────────────────────────────────────────────────

    def get_current_balance(self) -> Optional[Balance]:
        payload = self._request("GET", "/balance").payload
        return Balance(**payload) if payload else None

    def save_balance(self, amount: float, recorded_at: str | None = None) -> Balance:
        body = {"amount": amount, "recorded_at": recorded_at}
        return Balance(**self._request("POST", "/balance", json=body).payload)


def _detail(body: Any) -> str:
    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"]
    return ""


def _draft_body(draft: ExpenseDraft) -> dict:
    return {
        "amount": draft.amount,
        "description": draft.description,
        "category_id": draft.category_id,
        "persona": draft.persona,
        "date": draft.date,
    }


def _category(data: dict) -> Category:
    return Category(
        id=data["id"],
        name=data["name"],
        color=data.get("color", "#3b82f6"),
        description=data.get("description"),
        active=data.get("active", True),
        created_at=data.get("created_at", ""),
    )


def _expense(data: dict) -> Expense:
    category = data.get("category")
    return Expense(
        id=data["id"],
        amount=data["amount"],
        description=data["description"],
        category_id=data["category_id"],
        persona=data["persona"],
        date=data["date"],
        created_at=data.get("created_at", ""),
        active=data.get("active", True),
        category=_category(category) if category else None,
    )


def _category_statistics(data: dict) -> CategoryStatistics:
    return CategoryStatistics(**data)
