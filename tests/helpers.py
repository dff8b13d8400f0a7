from datetime import date
from decimal import Decimal

from expenseflow.core.security import create_access_token
from expenseflow.models.expense import ExpenseInDB


def make_expense(owner_id, description, amount, category, day, expense_id=None):
    fields = dict(
        owner_id=owner_id,
        description=description,
        amount=Decimal(str(amount)),
        category=category,
        date=date.fromisoformat(day) if isinstance(day, str) else day,
    )
    if expense_id:
        fields["id"] = expense_id
    return ExpenseInDB(**fields).model_dump()


def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}
