"""
Error taxonomy shared by the query planner, the stores and the routers.

Routers never translate these by hand; ``expenseflow.main`` registers one
handler per class.
"""
from typing import Iterable, List, Optional


class ExpenseFlowError(Exception):
    """Base class for every error raised by the application core."""


class InvalidInputError(ExpenseFlowError):
    """Malformed or missing client input, raised before the store is touched."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields: List[str] = list(fields or [])


class NotFoundError(ExpenseFlowError):
    """Record is absent, or belongs to somebody else. Both look the same to the caller."""

    def __init__(self, message: str = "Expense not found") -> None:
        super().__init__(message)
        self.message = message


class StoreError(ExpenseFlowError):
    """The durable store failed to read or write."""
