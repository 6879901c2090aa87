import logging
import threading
import time
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.schemas import BalanceIn, CategoryIn, CategoryUpdate, ExpenseIn, ExpenseUpdate
from database.balance_dao import BalanceDAO
from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.expense_dao import ExpenseDAO
from models.expense import ExpenseFilter, Page
from services.balance_service import BalanceService
from services.category_service import CategoryService
from services.errors import ServiceError
from services.expense_service import ExpenseService
from services.statistics_service import StatisticsService
from utils.constants import APP_NAME, MOST_USED_DEFAULT, PAGE_SIZE_DEFAULT

logger = logging.getLogger(__name__)


@dataclass
class Services:
    categories: CategoryService
    expenses: ExpenseService
    statistics: StatisticsService
    balances: BalanceService


def build_services(db: DatabaseManager) -> Services:
    category_dao = CategoryDAO(db)
    expense_dao = ExpenseDAO(db)
    return Services(
        categories=CategoryService(category_dao, expense_dao),
        expenses=ExpenseService(expense_dao, category_dao),
        statistics=StatisticsService(expense_dao),
        balances=BalanceService(BalanceDAO(db)),
    )


def envelope(payload: Any = None, message: str = "", error: bool = False) -> dict:
    return {"error": error, "message": message, "result": _to_json(payload)}


def _to_json(payload: Any) -> Any:
    if isinstance(payload, Page):
        return {
            "items": [_to_json(i) for i in payload.items],
            "total_items": payload.total_items,
            "page": payload.page,
            "page_size": payload.page_size,
            "total_pages": payload.total_pages,
            "has_previous": payload.has_previous,
            "has_next": payload.has_next,
        }
    if is_dataclass(payload):
        return asdict(payload)
    if isinstance(payload, list):
        return [_to_json(i) for i in payload]
    return payload


def get_services(request: Request) -> Services:
    return request.app.state.services


router = APIRouter(prefix="/api")


# ── Categories ────────────────────────────────────────────────────────────────

@router.get("/categories")
def list_categories(svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.categories.get_active())


@router.get("/categories/most-used")
def most_used_categories(
    top: int = Query(MOST_USED_DEFAULT), svc: Services = Depends(get_services)
) -> dict:
    return envelope(svc.categories.most_used(top))


@router.get("/categories/{category_id}")
def get_category(category_id: int, svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.categories.get_by_id(category_id))


@router.get("/categories/{category_id}/statistics")
def category_statistics(category_id: int, svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.categories.get_statistics(category_id))


@router.post("/categories", status_code=201)
def create_category(payload: CategoryIn, svc: Services = Depends(get_services)) -> dict:
    cat = svc.categories.create(payload.name, payload.color, payload.description)
    return envelope(cat, "Category created.")


@router.put("/categories/{category_id}")
def update_category(
    category_id: int, payload: CategoryUpdate, svc: Services = Depends(get_services)
) -> dict:
    cat = svc.categories.update(
        category_id, payload.name, payload.color, payload.description, payload.active
    )
    return envelope(cat, "Category updated.")


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, svc: Services = Depends(get_services)) -> dict:
    svc.categories.delete(category_id)
    return envelope(True, "Category deleted.")


# ── Expenses ──────────────────────────────────────────────────────────────────

@router.get("/expenses")
def list_expenses(
    persona: Optional[str] = None,
    category_id: Optional[int] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    amount_min: Optional[float] = None,
    amount_max: Optional[float] = None,
    description: Optional[str] = None,
    page: int = 1,
    page_size: int = PAGE_SIZE_DEFAULT,
    svc: Services = Depends(get_services),
) -> dict:
    flt = ExpenseFilter(
        persona=persona,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        amount_min=amount_min,
        amount_max=amount_max,
        description=description,
        page=page,
        page_size=page_size,
    )
    return envelope(svc.expenses.search(flt))


@router.get("/expenses/statistics")
def expense_statistics(svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.statistics.get_statistics())


@router.get("/expenses/{expense_id}")
def get_expense(expense_id: int, svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.expenses.get(expense_id))


@router.post("/expenses", status_code=201)
def create_expense(payload: ExpenseIn, svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.expenses.create(payload.to_draft()), "Expense created.")


@router.post("/expenses/bulk")
def create_expenses_bulk(
    payload: list[ExpenseIn], svc: Services = Depends(get_services)
) -> JSONResponse:
    result = svc.expenses.create_expenses([p.to_draft() for p in payload])
    body = {
        "attempted": result.attempted,
        "created_count": result.created_count,
        "created": _to_json(result.created),
        "error": result.error,
    }
    if result.ok:
        return JSONResponse(status_code=201, content=envelope(body, "Expenses created."))
    return JSONResponse(status_code=207, content=envelope(body, result.error or "", error=True))


@router.put("/expenses/{expense_id}")
def update_expense(
    expense_id: int, payload: ExpenseUpdate, svc: Services = Depends(get_services)
) -> dict:
    expense = svc.expenses.update(expense_id, payload.to_draft(), payload.active)
    return envelope(expense, "Expense updated.")


@router.delete("/expenses/{expense_id}")
def delete_expense(expense_id: int, svc: Services = Depends(get_services)) -> dict:
    svc.expenses.delete(expense_id)
    return envelope(True, "Expense deleted.")


# ── Balance ───────────────────────────────────────────────────────────────────

@router.get("/balance")
def current_balance(svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.balances.get_current())


@router.post("/balance", status_code=201)
def save_balance(payload: BalanceIn, svc: Services = Depends(get_services)) -> dict:
    return envelope(svc.balances.save_balance(payload.amount, payload.recorded_at), "Balance saved.")


# ── Application ───────────────────────────────────────────────────────────────

def create_app(db: DatabaseManager) -> FastAPI:
    app = FastAPI(title=f"{APP_NAME} API", version="1.0.0")
    app.state.services = build_services(db)
    app.include_router(router)

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=envelope(None, exc.message, error=True))

    @app.exception_handler(RequestValidationError)
    async def handle_request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=422, content=envelope(None, details, error=True))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run_server(db: DatabaseManager, host: str, port: int, log_level: str = "info"):
    logger.info("Serving %s API on http://%s:%d", APP_NAME, host, port)
    uvicorn.run(create_app(db), host=host, port=port, log_level=log_level.lower())


@dataclass
class EmbeddedServer:
    server: uvicorn.Server
    thread: threading.Thread

    def stop(self, timeout: float = 5.0):
        """Ask uvicorn to exit and wait for in-flight requests to drain."""
        self.server.should_exit = True
        self.thread.join(timeout)
        if self.thread.is_alive():
            logger.warning("Embedded API server still running after %.1fs", timeout)


def start_embedded_server(
    db: DatabaseManager, host: str, port: int, startup_timeout: float = 10.0
) -> EmbeddedServer:
    """Run the API on a daemon thread and wait until it accepts requests."""
    config = uvicorn.Config(create_app(db), host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="gastos-api", daemon=True)
    thread.start()
    deadline = time.monotonic() + startup_timeout
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            raise ServiceError(f"Embedded API server did not start on {host}:{port}.")
        time.sleep(0.05)
    logger.info("Embedded API server listening on http://%s:%d", host, port)
    return EmbeddedServer(server, thread)
