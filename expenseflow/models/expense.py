import datetime as dt
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("1e15")

# Amounts live as Decimal everywhere and only become JSON numbers on the way out.
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]


def quantize_amount(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_expense_date(value: Any) -> Any:
    """
    Accept ``YYYY-MM-DD`` or a full ISO timestamp; timestamps are cut to their date.
    Anything else is handed back untouched for pydantic to reject.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            try:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            except ValueError:
                return text
        return text
    return value


def utc_today() -> dt.date:
    return datetime.now(timezone.utc).date()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ExpenseFields(BaseModel):
    @field_validator("description", "category", check_fields=False)
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("amount", check_fields=False)
    @classmethod
    def _non_negative(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is None:
            return value
        if value < 0:
            raise ValueError("must be greater than or equal to 0")
        if value >= MAX_AMOUNT:
            raise ValueError("must be a valid monetary amount")
        try:
            return quantize_amount(value)
        except InvalidOperation:
            raise ValueError("must be a valid monetary amount")

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return parse_expense_date(value)


class ExpenseCreate(_ExpenseFields):
    description: str
    amount: Decimal
    category: str
    date: Optional[dt.date] = None


class ExpenseUpdate(_ExpenseFields):
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    date: Optional[dt.date] = None

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> "ExpenseUpdate":
        nulled = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self


class ExpenseInDB(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str
    description: str
    amount: Decimal
    category: str
    date: dt.date = Field(default_factory=utc_today)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ExpensePublic(CamelModel):
    id: str
    owner_id: str
    description: str
    amount: Money
    category: str
    date: dt.date
    created_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ExpenseListResponse(CamelModel):
    expenses: List[ExpensePublic]
    pagination: Pagination


class ExpenseSummary(CamelModel):
    total_expenses: int
    total_amount: Money
    average_expense: Money
    category_totals: Dict[str, Money]
    monthly_totals: Dict[str, Money]
    recent_expenses: List[ExpensePublic]
