import pytest
from fastapi.testclient import TestClient

from expenseflow.db.memory import InMemoryExpenseStore, InMemoryUserStore
from expenseflow.db.store import get_expense_store, get_user_store
from expenseflow.main import app


@pytest.fixture
def expense_store():
    return InMemoryExpenseStore()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def client(expense_store, user_store):
    app.dependency_overrides[get_expense_store] = lambda: expense_store
    app.dependency_overrides[get_user_store] = lambda: user_store
    yield TestClient(app)
    app.dependency_overrides.clear()
