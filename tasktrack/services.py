"""Task and expense services built on a SQLAlchemy session."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from numbers import Real
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import NotFoundError, ValidationError

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")
_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def parse_id(raw: str) -> str:
    """Normalise an identifier taken from a URL, rejecting malformed values."""

    value = raw.strip().lower() if isinstance(raw, str) else ""
    if not _ID_PATTERN.match(value):
        raise ValidationError(f"Invalid id: {raw!r}")
    return value


def parse_month(raw: Optional[str]) -> tuple[Optional[int], Optional[int]]:
    """Split a ``YYYY-MM`` query value; ``None`` means the current month."""

    if raw is None or not raw.strip():
        return None, None
    match = _MONTH_PATTERN.match(raw.strip())
    if match is None:
        raise ValidationError(f"Invalid month {raw!r}, expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def month_bounds(
    year: Optional[int] = None,
    month: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """Return the half-open interval ``[first of month, first of next month)``.

    Missing ``year``/``month`` fall back to the current calendar month on the
    local clock, evaluated at call time.
    """

    if year is None or month is None:
        current = now or datetime.now()
        year = current.year if year is None else year
        month = current.month if month is None else month
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9998:
        raise ValidationError(f"Year out of range: {year}")
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def _to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _require_title(title: object) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required")
    return title.strip()


@dataclass(frozen=True)
class ExpenseFields:
    title: str
    amount: float
    category: str
    date: datetime


def fill_expense_defaults(
    title: object,
    amount: object,
    category: Optional[str] = None,
    date: Optional[datetime] = None,
    *,
    now: Optional[datetime] = None,
) -> ExpenseFields:
    """Validate an expense and fill in the category and date defaults."""

    clean_title = _require_title(title)
    if amount is None:
        raise ValidationError("Amount is required")
    if isinstance(amount, bool) or not isinstance(amount, Real):
        raise ValidationError("Amount must be a number")
    if category is None or not str(category).strip():
        clean_category = models.DEFAULT_CATEGORY
    else:
        clean_category = str(category).strip()
    when = _to_local(date) if date is not None else (now or datetime.now())
    return ExpenseFields(
        title=clean_title,
        amount=float(amount),
        category=clean_category,
        date=when,
    )


class TaskService:
    """CRUD operations on tasks."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self) -> List[models.Task]:
        stmt = select(models.Task).order_by(models.Task.created_at)
        return list(self.session.scalars(stmt))

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(models.Task)) or 0

    def create(self, title: object, completed: Optional[bool] = None) -> models.Task:
        task = models.Task(title=_require_title(title), completed=bool(completed))
        self.session.add(task)
        self.session.flush()
        self.session.refresh(task)
        return task

    def delete(self, task_id: str) -> None:
        task = self.session.get(models.Task, parse_id(task_id))
        if task is None:
            raise NotFoundError("Task not found")
        self.session.delete(task)
        self.session.flush()

    def clear(self) -> int:
        result = self.session.execute(delete(models.Task))
        return result.rowcount or 0


class ExpenseService:
    """CRUD operations and monthly aggregations on expenses."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self) -> List[models.Expense]:
        stmt = select(models.Expense).order_by(models.Expense.date.desc())
        return list(self.session.scalars(stmt))

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(models.Expense)) or 0

    def create(
        self,
        title: object,
        amount: object,
        category: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> models.Expense:
        fields = fill_expense_defaults(title, amount, category, date)
        expense = models.Expense(
            title=fields.title,
            amount=fields.amount,
            category=fields.category,
            date=fields.date,
        )
        self.session.add(expense)
        self.session.flush()
        self.session.refresh(expense)
        return expense

    def delete(self, expense_id: str) -> None:
        expense = self.session.get(models.Expense, parse_id(expense_id))
        if expense is None:
            raise NotFoundError("Expense not found")
        self.session.delete(expense)
        self.session.flush()

    def clear(self) -> int:
        result = self.session.execute(delete(models.Expense))
        return result.rowcount or 0

    def monthly_summary(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> schemas.MonthlySummary:
        start, end = month_bounds(year, month, now=now)
        stmt = select(
            func.coalesce(func.sum(models.Expense.amount), 0),
            func.count(models.Expense.id),
        ).where(models.Expense.date >= start, models.Expense.date < end)
        total, count = self.session.execute(stmt).one()
        return schemas.MonthlySummary(total=total or 0, count=count or 0)

    def category_summary(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> List[schemas.CategorySummary]:
        start, end = month_bounds(year, month, now=now)
        total = func.sum(models.Expense.amount).label("total")
        stmt = (
            select(
                models.Expense.category,
                total,
                func.count(models.Expense.id),
            )
            .where(models.Expense.date >= start, models.Expense.date < end)
            .group_by(models.Expense.category)
            .order_by(total.desc(), models.Expense.category)
        )
        return [
            schemas.CategorySummary(category=category, total=amount, count=count)
            for category, amount, count in self.session.execute(stmt)
        ]


__all__ = [
    "ExpenseService",
    "TaskService",
    "fill_expense_defaults",
    "month_bounds",
    "parse_id",
    "parse_month",
]
