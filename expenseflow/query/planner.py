"""
Turns raw listing parameters into a QueryPlan and runs it against a store.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from expenseflow.core.config import settings
from expenseflow.core.errors import InvalidInputError
from expenseflow.query.plan import QueryPlan, QueryPlanBuilder

logger = logging.getLogger(__name__)


@dataclass
class ExpensePage:
    items: List[Dict[str, Any]]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _text(params: Mapping[str, Any], name: str) -> str:
    value = params.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _search_text(params: Mapping[str, Any]) -> str:
    """Raw search text; blank means no filter, anything else is matched as given."""
    value = params.get("search")
    if value is None or not str(value).strip():
        return ""
    return str(value)


def _positive_int(raw: str, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _amount_bound(raw: str) -> Optional[Decimal]:
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        logger.debug(f"Ignoring non-numeric amount bound: {raw!r}")
        return None
    if not value.is_finite():
        return None
    return value


def parse_date_param(raw: str) -> date:
    """Parse ``YYYY-MM-DD`` or an ISO timestamp into a calendar date."""
    if len(raw) > 10:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    return date.fromisoformat(raw)


def plan_expense_query(owner_id: str, params: Mapping[str, Any]) -> QueryPlan:
    """
    Validate and coerce listing parameters.

    ``page``/``limit`` fall back to defaults when missing or not numeric,
    ``minAmount``/``maxAmount`` are dropped when not numeric, and malformed
    ``startDate``/``endDate`` values are rejected with InvalidInputError.
    """
    page = _positive_int(_text(params, "page"), 1)
    limit = _positive_int(_text(params, "limit"), settings.DEFAULT_PAGE_LIMIT)
    if settings.MAX_PAGE_LIMIT and limit > settings.MAX_PAGE_LIMIT:
        limit = settings.MAX_PAGE_LIMIT

    bad_fields = []
    bounds: Dict[str, Optional[date]] = {}
    for name in ("startDate", "endDate"):
        raw = _text(params, name)
        bounds[name] = None
        if raw:
            try:
                bounds[name] = parse_date_param(raw)
            except ValueError:
                bad_fields.append(name)
    if bad_fields:
        raise InvalidInputError(f"Invalid date value for: {', '.join(bad_fields)}", bad_fields)

    plan = (
        QueryPlanBuilder(owner_id)
        .contains("description", _search_text(params))
        .equals("category", _text(params, "category"))
        .between("date", bounds["startDate"], bounds["endDate"])
        .between("amount", _amount_bound(_text(params, "minAmount")), _amount_bound(_text(params, "maxAmount")))
        .order_by(_text(params, "sortBy"), _text(params, "sortOrder"))
        .paginate(page, limit)
        .build()
    )
    logger.debug(f"Resolved query plan: {plan}")
    return plan


async def execute_plan(store, plan: QueryPlan) -> ExpensePage:
    """
    Fetch one page and the total match count for ``plan``.

    The two reads are independent, so they run side by side.
    """
    items, total = await asyncio.gather(
        run_in_threadpool(store.find_expenses, plan),
        run_in_threadpool(store.count_expenses, plan),
    )
    page = plan.offset // plan.limit + 1 if plan.limit else 1
    return ExpensePage(items=items, page=page, limit=plan.limit or len(items), total=total)
