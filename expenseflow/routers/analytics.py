import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from expenseflow.core.config import settings
from expenseflow.db.store import ExpenseStore, get_expense_store
from expenseflow.models.expense import ExpensePublic, ExpenseSummary
from expenseflow.query.plan import QueryPlanBuilder
from expenseflow.routers.auth import get_current_user_id
from expenseflow.utils.analyzer import ExpenseAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)
expense_analyzer = ExpenseAnalyzer(
    recent_count=settings.RECENT_EXPENSES_COUNT,
    monthly_window=settings.MONTHLY_WINDOW,
)


@router.get("/summary", response_model=ExpenseSummary)
async def expense_summary(user_id: str = Depends(get_current_user_id), store: ExpenseStore = Depends(get_expense_store)):
    """
    Totals, category breakdown, trailing monthly series and recent activity
    over every expense the caller owns.
    """
    plan = QueryPlanBuilder(user_id).order_by("date", "desc").build()
    expenses = await run_in_threadpool(store.find_expenses, plan)
    summary = expense_analyzer.summarize(expenses)
    logger.info(f"Summary for user {user_id}: {summary['total_expenses']} expenses")

    summary["recent_expenses"] = [ExpensePublic(**exp) for exp in summary["recent_expenses"]]
    return ExpenseSummary(**summary)
