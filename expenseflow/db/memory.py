"""
In-process stores. Used for local development and by the test-suite.
"""
import threading
from copy import deepcopy
from typing import Any, Dict, List, Optional, Tuple

from expenseflow.db.store import ExpenseStore, UserStore
from expenseflow.query.plan import QueryPlan


class InMemoryExpenseStore(ExpenseStore):
    def __init__(self) -> None:
        self._items: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _matching(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        with self._lock:
            return [deepcopy(item) for item in self._items.values() if plan.matches(item)]

    def find_expenses(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        return plan.window(plan.order(self._matching(plan)))

    def count_expenses(self, plan: QueryPlan) -> int:
        return len(self._matching(plan))

    def get_expense(self, owner_id: str, expense_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get((owner_id, expense_id))
            return deepcopy(item) if item else None

    def put_expense(self, expense: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._items[(expense["owner_id"], expense["id"])] = deepcopy(expense)
        return deepcopy(expense)

    def update_expense(self, owner_id: str, expense_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get((owner_id, expense_id))
            if item is None:
                return None
            item.update(updates)
            return deepcopy(item)

    def delete_expense(self, owner_id: str, expense_id: str) -> bool:
        with self._lock:
            return self._items.pop((owner_id, expense_id), None) is not None


class InMemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._users: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for user in self._users.values():
                if user["email"].lower() == email.lower():
                    return dict(user)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            user = self._users.get(user_id)
            return dict(user) if user else None

    def put_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._users[user["user_id"]] = dict(user)
        return dict(user)
