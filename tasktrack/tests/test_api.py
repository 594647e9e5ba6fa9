from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from tasktrack.config import Settings
from tasktrack.database import Store
from tasktrack.errors import StoreError
from tasktrack.server import create_app
from tasktrack.services import ExpenseService, TaskService


def test_banner(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "TaskTrack API"


def test_task_lifecycle(client):
    created = client.post("/api/tasks", json={"title": "X"})
    assert created.status_code == 201
    task = created.json()
    assert task["title"] == "X"
    assert task["completed"] is False
    assert task["id"]

    listed = client.get("/api/tasks")
    assert listed.status_code == 200
    assert task["id"] in [item["id"] for item in listed.json()]

    deleted = client.delete(f"/api/tasks/{task['id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Task deleted"}

    assert task["id"] not in [item["id"] for item in client.get("/api/tasks").json()]


def test_create_task_with_empty_title_returns_400(client):
    response = client.post("/api/tasks", json={"title": ""})
    assert response.status_code == 400
    assert "error" in response.json()
    assert client.get("/api/tasks").json() == []


def test_create_task_with_wrong_type_returns_400(client):
    response = client.post("/api/tasks", json={"title": "X", "completed": "maybe"})
    assert response.status_code == 400


def test_delete_task_errors(client):
    assert client.delete("/api/tasks/" + "0" * 32).status_code == 404
    assert client.delete("/api/tasks/12345").status_code == 400


def test_expense_defaults_and_order(client):
    client.post("/api/expenses", json={"title": "day 1", "amount": 10, "date": "2024-03-01T10:00:00"})
    client.post("/api/expenses", json={"title": "day 5", "amount": 10, "date": "2024-03-05T10:00:00"})
    created = client.post("/api/expenses", json={"title": "day 3", "amount": 10, "date": "2024-03-03T10:00:00"})
    assert created.status_code == 201
    assert created.json()["category"] == "Other"

    titles = [item["title"] for item in client.get("/api/expenses").json()]
    assert titles == ["day 5", "day 3", "day 1"]


def test_create_expense_without_amount_returns_400(client):
    response = client.post("/api/expenses", json={"title": "Coffee"})
    assert response.status_code == 400
    assert response.json() == {"error": "Amount is required"}


def test_delete_expense(client):
    expense = client.post("/api/expenses", json={"title": "Book", "amount": 12.99}).json()
    missing = client.delete("/api/expenses/" + "a" * 32)
    assert missing.status_code == 404
    assert len(client.get("/api/expenses").json()) == 1

    response = client.delete(f"/api/expenses/{expense['id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "Expense deleted"}
    assert client.get("/api/expenses").json() == []


def test_monthly_summary_endpoint(client):
    for title, amount, day in (("Coffee", 150, 2), ("Groceries", 2500, 3), ("Fuel", 1200, 4)):
        client.post(
            "/api/expenses",
            json={"title": title, "amount": amount, "date": f"2024-03-{day:02d}T09:00:00"},
        )
    client.post("/api/expenses", json={"title": "Rent", "amount": 900, "date": "2024-04-01T00:00:00"})

    response = client.get("/api/expenses/summary/month", params={"month": "2024-03"})
    assert response.status_code == 200
    assert response.json() == {"total": 3850, "count": 3}

    empty = client.get("/api/expenses/summary/month", params={"month": "2020-01"})
    assert empty.json() == {"total": 0, "count": 0}


def test_monthly_summary_rejects_malformed_month(client):
    assert client.get("/api/expenses/summary/month", params={"month": "March"}).status_code == 400
    assert client.get("/api/expenses/summary/month", params={"month": "2024-13"}).status_code == 400


def test_category_summary_endpoint(client):
    client.post("/api/expenses", json={"title": "Coffee", "amount": 3.5, "category": "Food", "date": "2024-03-02T09:00:00"})
    client.post("/api/expenses", json={"title": "Bus", "amount": 2, "category": "Transport", "date": "2024-03-02T09:00:00"})
    response = client.get("/api/expenses/summary/category", params={"month": "2024-03"})
    assert response.status_code == 200
    assert response.json() == [
        {"category": "Food", "total": 3.5, "count": 1},
        {"category": "Transport", "total": 2.0, "count": 1},
    ]


def test_status_reports_counts(client):
    client.post("/api/tasks", json={"title": "X"})
    response = client.get("/status")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["db"] == {
        "connected": True,
        "inMemory": True,
        "tasks": 1,
        "expenses": 0,
        "sampleSeeded": True,
    }
    assert payload["server"]["uptimeSeconds"] >= 0
    assert payload["server"]["pythonVersion"]
    assert payload["server"]["startedAt"]


def test_startup_seeds_empty_store(make_client):
    with make_client(seed_on_startup=True) as client:
        db = client.get("/status").json()["db"]
    assert db["tasks"] > 0
    assert db["expenses"] > 0


def test_startup_keeps_existing_data(store, make_client):
    with store.session() as session:
        TaskService(session).create("Existing task")
        ExpenseService(session).create("Existing expense", 5, date=datetime(2024, 1, 1))

    with make_client(seed_on_startup=True) as client:
        db = client.get("/status").json()["db"]
    assert db["tasks"] == 1
    assert db["expenses"] == 1


@pytest.mark.parametrize("amount", [True, "12.5", [12]])
def test_create_expense_with_non_numeric_amount_returns_400(client, amount):
    response = client.post("/api/expenses", json={"title": "Coffee", "amount": amount})
    assert response.status_code == 400
    assert "error" in response.json()
    assert client.get("/api/expenses").json() == []


def test_create_expense_accepts_integer_and_float_amounts(client):
    assert client.post("/api/expenses", json={"title": "Coffee", "amount": 3}).json()["amount"] == 3.0
    assert client.post("/api/expenses", json={"title": "Tea", "amount": 2.5}).json()["amount"] == 2.5


def _drop_table(store, name: str) -> None:
    with store.engine.begin() as conn:
        conn.execute(text(f"DROP TABLE {name}"))


def test_list_tasks_store_failure_returns_500(client, store):
    _drop_table(store, "tasks")
    response = client.get("/api/tasks")
    assert response.status_code == 500
    assert "no such table" in response.json()["error"]


def test_list_expenses_store_failure_returns_500(client, store):
    _drop_table(store, "expenses")
    response = client.get("/api/expenses")
    assert response.status_code == 500
    assert "no such table" in response.json()["error"]


def test_monthly_summary_store_failure_returns_500(client, store):
    _drop_table(store, "expenses")
    response = client.get("/api/expenses/summary/month", params={"month": "2024-03"})
    assert response.status_code == 500
    assert "error" in response.json()


def test_status_store_failure_returns_500(client, store):
    _drop_table(store, "expenses")
    response = client.get("/status")
    assert response.status_code == 500
    payload = response.json()
    assert payload["status"] == "error"
    assert "no such table" in payload["error"]


def test_startup_fails_when_database_is_unreachable(tmp_path):
    store = Store(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'tracker.db'}")
    app = create_app(store=store, settings=Settings(seed_on_startup=False))
    with pytest.raises(StoreError):
        with TestClient(app):
            pass
    assert store.connected is False
