"""FastAPI application exposing the task and expense endpoints."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from . import __version__, schemas, seed
from .config import Settings
from .database import Store
from .errors import NotFoundError, StoreError, ValidationError
from .services import ExpenseService, TaskService, parse_month
from .status import StatusReporter

LOG = logging.getLogger(__name__)

BANNER = "TaskTrack API"


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency that provides a session from the application's store."""
    with request.app.state.store.session() as session:
        yield session


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:
    return ExpenseService(db)


tasks_router = APIRouter(prefix="/api/tasks", tags=["tasks"])
expenses_router = APIRouter(prefix="/api/expenses", tags=["expenses"])


@tasks_router.get("", response_model=List[schemas.TaskRead])
def list_tasks(service: TaskService = Depends(get_task_service)) -> List[schemas.TaskRead]:
    return service.list()


@tasks_router.post("", response_model=schemas.TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: schemas.TaskCreate,
    service: TaskService = Depends(get_task_service),
) -> schemas.TaskRead:
    return service.create(task_in.title, task_in.completed)


@tasks_router.delete("/{task_id}", response_model=schemas.Message)
def delete_task(task_id: str, service: TaskService = Depends(get_task_service)) -> schemas.Message:
    service.delete(task_id)
    return schemas.Message(message="Task deleted")


@expenses_router.get("", response_model=List[schemas.ExpenseRead])
def list_expenses(service: ExpenseService = Depends(get_expense_service)) -> List[schemas.ExpenseRead]:
    return service.list()


@expenses_router.post("", response_model=schemas.ExpenseRead, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense_in: schemas.ExpenseCreate,
    service: ExpenseService = Depends(get_expense_service),
) -> schemas.ExpenseRead:
    return service.create(
        expense_in.title,
        expense_in.amount,
        category=expense_in.category,
        date=expense_in.date,
    )


@expenses_router.delete("/{expense_id}", response_model=schemas.Message)
def delete_expense(
    expense_id: str,
    service: ExpenseService = Depends(get_expense_service),
) -> schemas.Message:
    service.delete(expense_id)
    return schemas.Message(message="Expense deleted")


@expenses_router.get("/summary/month", response_model=schemas.MonthlySummary)
def monthly_summary(
    month: Optional[str] = None,
    service: ExpenseService = Depends(get_expense_service),
) -> schemas.MonthlySummary:
    year, month_number = parse_month(month)
    return service.monthly_summary(year, month_number)


@expenses_router.get("/summary/category", response_model=List[schemas.CategorySummary])
def category_summary(
    month: Optional[str] = None,
    service: ExpenseService = Depends(get_expense_service),
) -> List[schemas.CategorySummary]:
    year, month_number = parse_month(month)
    return service.category_summary(year, month_number)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        messages = [
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
            for error in exc.errors()
        ]
        return _error(status.HTTP_400_BAD_REQUEST, "; ".join(messages) or "Invalid request")

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(StoreError)
    async def _store_error(_: Request, exc: StoreError) -> JSONResponse:
        LOG.error("Store error: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def _unexpected(_: Request, exc: Exception) -> JSONResponse:
        LOG.exception("Unhandled error")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


def _log_startup_summary(store: Store) -> None:
    try:
        with store.session() as session:
            tasks = TaskService(session).count()
            expenses = ExpenseService(session).count()
    except StoreError as exc:
        LOG.warning("Startup: DB connected but failed to read counts: %s", exc)
        return
    LOG.info(
        "Startup: DB connected. tasks=%d, expenses=%d, inMemory=%s, sampleSeeded=%s",
        tasks,
        expenses,
        store.in_memory,
        (tasks + expenses) > 0,
    )


def create_app(store: Optional[Store] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around ``store``.

    The lifespan connects the store (raising :class:`StoreError` on failure),
    seeds an empty database when enabled and disconnects on shutdown.
    """

    settings = settings or Settings.from_env()
    store = store or Store(settings.database_url)
    reporter = StatusReporter(store)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        store.connect()
        if settings.seed_on_startup:
            seed.seed_if_empty(store)
        _log_startup_summary(store)
        try:
            yield
        finally:
            store.disconnect()

    app = FastAPI(title="TaskTrack", version=__version__, lifespan=lifespan)
    app.state.store = store
    app.state.settings = settings
    app.state.status_reporter = reporter
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    app.include_router(tasks_router)
    app.include_router(expenses_router)

    @app.get("/", response_class=PlainTextResponse, tags=["system"])
    def banner() -> str:
        return BANNER

    @app.get("/status", response_model=schemas.StatusRead, tags=["system"])
    def get_status():
        try:
            return reporter.report()
        except StoreError as exc:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"status": "error", "error": str(exc)},
            )

    return app


app = create_app()
