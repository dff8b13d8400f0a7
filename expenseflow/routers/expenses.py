import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from expenseflow.core.errors import InvalidInputError, NotFoundError
from expenseflow.db.store import ExpenseStore, get_expense_store
from expenseflow.models.expense import (
    ExpenseCreate,
    ExpenseInDB,
    ExpenseListResponse,
    ExpensePublic,
    ExpenseUpdate,
    Pagination,
    utc_today,
)
from expenseflow.query.planner import execute_plan, plan_expense_query
from expenseflow.routers.auth import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    category: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    min_amount: Optional[str] = Query(None, alias="minAmount"),
    max_amount: Optional[str] = Query(None, alias="maxAmount"),
    user_id: str = Depends(get_current_user_id),
    store: ExpenseStore = Depends(get_expense_store),
):
    """
    Search, filter, sort and paginate the caller's expenses.
    """
    plan = plan_expense_query(
        user_id,
        {
            "page": page,
            "limit": limit,
            "search": search,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "category": category,
            "startDate": start_date,
            "endDate": end_date,
            "minAmount": min_amount,
            "maxAmount": max_amount,
        },
    )
    result = await execute_plan(store, plan)
    logger.info(f"Listed {len(result.items)} of {result.total} expenses for user {user_id}")
    return ExpenseListResponse(
        expenses=[ExpensePublic(**item) for item in result.items],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/{expense_id}", response_model=ExpensePublic)
def get_expense(expense_id: str, user_id: str = Depends(get_current_user_id), store: ExpenseStore = Depends(get_expense_store)):
    expense = store.get_expense(user_id, expense_id)
    if not expense:
        raise NotFoundError()
    return ExpensePublic(**expense)


@router.post("", response_model=ExpensePublic, status_code=status.HTTP_201_CREATED)
def create_expense(expense: ExpenseCreate, user_id: str = Depends(get_current_user_id), store: ExpenseStore = Depends(get_expense_store)):
    expense_db = ExpenseInDB(
        owner_id=user_id,
        description=expense.description,
        amount=expense.amount,
        category=expense.category,
        date=expense.date or utc_today(),
    )
    saved = store.put_expense(expense_db.model_dump())
    logger.info(f"Created expense {expense_db.id} for user {user_id}")
    return ExpensePublic(**saved)


@router.put("/{expense_id}", response_model=ExpensePublic)
def update_expense(
    expense_id: str,
    expense_update: ExpenseUpdate,
    user_id: str = Depends(get_current_user_id),
    store: ExpenseStore = Depends(get_expense_store),
):
    mutable_fields = expense_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise InvalidInputError("No fields to update")

    updated = store.update_expense(user_id, expense_id, mutable_fields)
    if not updated:
        raise NotFoundError()

    logger.info(f"Updated expense {expense_id} ({', '.join(sorted(mutable_fields))}) for user {user_id}")
    return ExpensePublic(**updated)


@router.delete("/{expense_id}")
def delete_expense(expense_id: str, user_id: str = Depends(get_current_user_id), store: ExpenseStore = Depends(get_expense_store)):
    if not store.delete_expense(user_id, expense_id):
        raise NotFoundError()
    logger.info(f"Deleted expense {expense_id} for user {user_id}")
    return {"message": "Expense deleted successfully"}
