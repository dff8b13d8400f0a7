from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from expenseflow.models.expense import quantize_amount as _money

ZERO = Decimal("0.00")


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


class ExpenseAnalyzer:
    """
    Summary statistics over one user's complete expense history.

    Every method takes the full record list as the store returns it, ordered
    by date descending. Nothing is cached; each call recomputes from scratch.
    """

    def __init__(self, recent_count: int = 5, monthly_window: int = 6) -> None:
        self._recent_count = recent_count
        self._monthly_window = monthly_window

    def total_amount(self, expenses: List[Dict[str, Any]]) -> Decimal:
        return _money(sum((Decimal(exp["amount"]) for exp in expenses), ZERO))

    def average_expense(self, expenses: List[Dict[str, Any]]) -> Decimal:
        if not expenses:
            return ZERO
        return _money(self.total_amount(expenses) / len(expenses))

    def category_totals(self, expenses: List[Dict[str, Any]]) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for exp in expenses:
            totals[exp["category"]] += Decimal(exp["amount"])
        return {cat: _money(total) for cat, total in totals.items()}

    def month_keys(self, today: date) -> List[str]:
        """The trailing window, current month first."""
        index = today.year * 12 + today.month - 1
        keys = []
        for offset in range(self._monthly_window):
            year, month = divmod(index - offset, 12)
            keys.append(f"{year:04d}-{month + 1:02d}")
        return keys

    def monthly_totals(self, expenses: List[Dict[str, Any]], today: Optional[date] = None) -> Dict[str, Decimal]:
        """
        Totals for the trailing months ending at ``today``'s month. Every month
        of the window is present; expenses outside it are left out.
        """
        today = today or datetime.now(timezone.utc).date()
        totals = {key: ZERO for key in self.month_keys(today)}
        for exp in expenses:
            key = month_key(exp["date"])
            if key in totals:
                totals[key] += Decimal(exp["amount"])
        return {key: _money(total) for key, total in totals.items()}

    def recent_expenses(self, expenses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return list(expenses[: self._recent_count])

    def summarize(self, expenses: List[Dict[str, Any]], today: Optional[date] = None) -> Dict[str, Any]:
        return {
            "total_expenses": len(expenses),
            "total_amount": self.total_amount(expenses),
            "average_expense": self.average_expense(expenses),
            "category_totals": self.category_totals(expenses),
            "monthly_totals": self.monthly_totals(expenses, today),
            "recent_expenses": self.recent_expenses(expenses),
        }
