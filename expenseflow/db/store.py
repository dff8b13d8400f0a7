"""
Store interface shared by the DynamoDB and in-memory backends, plus the
FastAPI dependency that hands the configured backend to the routers.

Expense records travel as plain dicts with the ExpenseInDB field names:
``id``, ``owner_id``, ``description``, ``amount`` (Decimal), ``category``,
``date`` (date) and ``created_at`` (datetime).
"""
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict, List, Optional

from expenseflow.core.config import settings
from expenseflow.query.plan import QueryPlan

logger = logging.getLogger(__name__)


class ExpenseStore(ABC):
    @abstractmethod
    def find_expenses(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        """Records matching ``plan``, ordered and windowed by it."""

    @abstractmethod
    def count_expenses(self, plan: QueryPlan) -> int:
        """Number of records matching ``plan``, ignoring its window."""

    @abstractmethod
    def get_expense(self, owner_id: str, expense_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def put_expense(self, expense: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update_expense(self, owner_id: str, expense_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply ``updates`` and return the new record, or None if the caller owns no such record."""

    @abstractmethod
    def delete_expense(self, owner_id: str, expense_id: str) -> bool:
        ...


class UserStore(ABC):
    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def put_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        ...


@lru_cache(maxsize=None)
def _backend(name: str):
    if name == "memory":
        from expenseflow.db.memory import InMemoryExpenseStore, InMemoryUserStore

        return InMemoryExpenseStore(), InMemoryUserStore()
    if name == "dynamo":
        from expenseflow.db.dynamo import DynamoExpenseStore, DynamoUserStore, dynamo_resource

        resource = dynamo_resource()
        return (
            DynamoExpenseStore(resource.Table(settings.DYNAMO_EXPENSES_TABLE)),
            DynamoUserStore(resource.Table(settings.DYNAMO_USERS_TABLE)),
        )
    raise ValueError(f"Unknown STORE_BACKEND: {name}")


def get_expense_store() -> ExpenseStore:
    return _backend(settings.STORE_BACKEND)[0]


def get_user_store() -> UserStore:
    return _backend(settings.STORE_BACKEND)[1]
