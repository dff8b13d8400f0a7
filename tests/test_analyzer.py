from datetime import date
from decimal import Decimal

from expenseflow.utils.analyzer import ExpenseAnalyzer

from helpers import make_expense

TODAY = date(2024, 3, 20)

sample_expenses = [
    make_expense("u1", "Groceries", 5, "Food", "2024-03-15"),
    make_expense("u1", "Dinner", 20, "Food", "2024-03-01"),
    make_expense("u1", "Bus pass", 10, "Transport", "2024-02-01"),
]


def test_summary_totals():
    summary = ExpenseAnalyzer().summarize(sample_expenses, today=TODAY)
    assert summary["total_expenses"] == 3
    assert summary["total_amount"] == Decimal("35.00")
    assert summary["average_expense"] == Decimal("11.67")
    assert summary["category_totals"] == {"Food": Decimal("25.00"), "Transport": Decimal("10.00")}


def test_category_totals_add_up_to_total():
    analyzer = ExpenseAnalyzer()
    totals = analyzer.category_totals(sample_expenses)
    assert sum(totals.values()) == analyzer.total_amount(sample_expenses)


def test_monthly_totals_cover_trailing_window():
    monthly = ExpenseAnalyzer().monthly_totals(sample_expenses, today=TODAY)
    assert list(monthly) == ["2024-03", "2024-02", "2024-01", "2023-12", "2023-11", "2023-10"]
    assert monthly["2024-03"] == Decimal("25.00")
    assert monthly["2024-02"] == Decimal("10.00")
    assert monthly["2023-10"] == Decimal("0.00")


def test_monthly_totals_drop_expenses_outside_window():
    expenses = [
        make_expense("u1", "Old", 99, "Misc", "2023-09-30"),
        make_expense("u1", "Future", 42, "Misc", "2024-04-01"),
        make_expense("u1", "Edge", 7, "Misc", "2023-10-01"),
    ]
    monthly = ExpenseAnalyzer().monthly_totals(expenses, today=TODAY)
    assert len(monthly) == 6
    assert sum(monthly.values()) == Decimal("7.00")


def test_recent_expenses_keeps_first_five():
    expenses = [make_expense("u1", f"e{i}", i, "Misc", date(2024, 3, 20 - i)) for i in range(8)]
    recent = ExpenseAnalyzer().recent_expenses(expenses)
    assert [exp["description"] for exp in recent] == ["e0", "e1", "e2", "e3", "e4"]


def test_empty_history():
    summary = ExpenseAnalyzer().summarize([], today=TODAY)
    assert summary["total_expenses"] == 0
    assert summary["total_amount"] == Decimal("0")
    assert summary["average_expense"] == Decimal("0")
    assert summary["category_totals"] == {}
    assert len(summary["monthly_totals"]) == 6
    assert all(value == 0 for value in summary["monthly_totals"].values())
    assert summary["recent_expenses"] == []
