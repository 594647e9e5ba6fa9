from __future__ import annotations

import pathlib
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tasktrack.config import Settings
from tasktrack.database import Store
from tasktrack.server import create_app
from tasktrack.services import ExpenseService, TaskService


@pytest.fixture()
def store():
    test_store = Store()
    test_store.connect()
    yield test_store
    test_store.disconnect()


@pytest.fixture()
def db_session(store) -> Session:
    with store.session() as session:
        yield session


@pytest.fixture()
def tasks(db_session) -> TaskService:
    return TaskService(db_session)


@pytest.fixture()
def expenses(db_session) -> ExpenseService:
    return ExpenseService(db_session)


@pytest.fixture()
def make_client(store):
    def _make(seed_on_startup: bool = False) -> TestClient:
        app = create_app(store=store, settings=Settings(seed_on_startup=seed_on_startup))
        return TestClient(app)

    return _make


@pytest.fixture()
def client(make_client):
    with make_client() as test_client:
        yield test_client
