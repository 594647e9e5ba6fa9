"""Sample data loaded into an empty store.

A single data set serves both the automatic startup seeding and the
``tasktrack seed`` command. Expense dates are relative to the current month
so the monthly summary always has something to show.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from .database import Store
from .errors import StoreError, ValidationError
from .services import ExpenseService, TaskService

LOG = logging.getLogger(__name__)

SAMPLE_TASKS: tuple[dict[str, Any], ...] = (
    {"title": "Buy groceries for the week", "completed": False},
    {"title": "Finish project report", "completed": False},
    {"title": "Call the dentist for an appointment", "completed": False},
    {"title": "Read for 30 minutes", "completed": True},
    {"title": "Water the plants", "completed": True},
)

# (title, amount, category, months back, day of month)
_SAMPLE_EXPENSES: tuple[tuple[str, float, str, int, int], ...] = (
    ("Internet bill", 60.0, "Utilities", 0, 1),
    ("Coffee", 3.5, "Food", 0, 2),
    ("Weekly groceries", 54.23, "Food", 0, 3),
    ("Fuel", 40.0, "Transport", 0, 5),
    ("Book", 12.99, "Education", 0, 7),
    ("Groceries", 61.8, "Food", 1, 15),
    ("Streaming subscription", 9.99, "Entertainment", 1, 1),
)


def _month_start(today: date, months_back: int) -> date:
    index = today.year * 12 + (today.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def sample_expenses(today: Optional[date] = None) -> list[dict[str, Any]]:
    """Return the sample expenses dated relative to ``today``."""

    current = today or date.today()
    rows = []
    for title, amount, category, months_back, day in _SAMPLE_EXPENSES:
        month = _month_start(current, months_back)
        rows.append(
            {
                "title": title,
                "amount": amount,
                "category": category,
                "date": datetime(month.year, month.month, day, 9, 0),
            }
        )
    return rows


def _insert_samples(tasks: TaskService, expenses: ExpenseService, today: Optional[date]) -> None:
    for task in SAMPLE_TASKS:
        tasks.create(**task)
    for expense in sample_expenses(today):
        expenses.create(**expense)


def seed_if_empty(store: Store, today: Optional[date] = None) -> bool:
    """Insert the sample data when both tables are empty.

    Failures are logged and never raised. Returns ``True`` when the sample
    data was inserted.
    """

    try:
        with store.session() as session:
            tasks, expenses = TaskService(session), ExpenseService(session)
            existing = tasks.count() + expenses.count()
            if existing:
                LOG.debug("Store already holds %d records; skipping seed", existing)
                return False
            LOG.info("Seeding sample data...")
            _insert_samples(tasks, expenses, today)
            LOG.info("Seeding complete. tasks=%d, expenses=%d", tasks.count(), expenses.count())
            return True
    except (StoreError, ValidationError) as exc:
        LOG.error("Failed to seed sample data: %s", exc)
        return False


def reset_and_seed(store: Store, today: Optional[date] = None) -> tuple[int, int]:
    """Delete every record and insert the sample data; returns the new counts."""

    with store.session() as session:
        tasks, expenses = TaskService(session), ExpenseService(session)
        removed = tasks.clear() + expenses.clear()
        LOG.info("Cleared %d existing records", removed)
        _insert_samples(tasks, expenses, today)
        return tasks.count(), expenses.count()


__all__ = ["SAMPLE_TASKS", "reset_and_seed", "sample_expenses", "seed_if_empty"]
