import logging
from datetime import date, datetime
from decimal import Decimal
from functools import reduce
from typing import Any, Dict, Iterator, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from expenseflow.core.config import settings
from expenseflow.core.errors import StoreError
from expenseflow.db.store import ExpenseStore, UserStore
from expenseflow.query.plan import ID_FIELD, OWNER_FIELD, Contains, Equals, QueryPlan, Range

logger = logging.getLogger(__name__)

# Lower-cased copy of a text attribute; DynamoDB ``contains`` is case-sensitive.
SEARCH_SUFFIX = "_search"
SEARCHABLE_FIELDS = ("description",)


def dynamo_resource():
    return boto3.resource(
        "dynamodb",
        region_name=settings.DYNAMO_REGION,
        endpoint_url=settings.DYNAMO_ENDPOINT_URL,
    )


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Message", str(exc))
    return str(exc)


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert values into types DynamoDB accepts: floats become
    Decimal, dates and datetimes become ISO strings.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def expense_to_item(expense: Dict[str, Any]) -> Dict[str, Any]:
    item = _convert_for_dynamo(expense)
    for name in SEARCHABLE_FIELDS:
        if name in expense:
            item[name + SEARCH_SUFFIX] = str(expense[name]).casefold()
    return item


def item_to_expense(item: Dict[str, Any]) -> Dict[str, Any]:
    expense = {k: v for k, v in item.items() if not k.endswith(SEARCH_SUFFIX)}
    expense["amount"] = Decimal(expense["amount"])
    expense["date"] = date.fromisoformat(expense["date"])
    expense["created_at"] = datetime.fromisoformat(expense["created_at"])
    return expense


def clause_condition(clause):
    """Translate one plan clause into a boto3 filter condition."""
    if isinstance(clause, Equals):
        return Attr(clause.field).eq(_convert_for_dynamo(clause.value))
    if isinstance(clause, Contains):
        return Attr(clause.field + SEARCH_SUFFIX).contains(clause.value.casefold())
    if isinstance(clause, Range):
        # gte/lte rather than between: an inverted range must match nothing, not fail
        conditions = []
        if clause.lower is not None:
            conditions.append(Attr(clause.field).gte(_convert_for_dynamo(clause.lower)))
        if clause.upper is not None:
            conditions.append(Attr(clause.field).lte(_convert_for_dynamo(clause.upper)))
        return reduce(lambda left, right: left & right, conditions)
    raise TypeError(f"Unsupported clause: {clause!r}")


def build_query_kwargs(plan: QueryPlan) -> Dict[str, Any]:
    """
    The ownership clause becomes the partition-key condition; every other
    clause is folded into one FilterExpression.
    """
    owner_clause = plan.clauses[0]
    if not (isinstance(owner_clause, Equals) and owner_clause.field == OWNER_FIELD):
        raise ValueError("Query plan must start with the ownership clause")

    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key(OWNER_FIELD).eq(owner_clause.value)}
    conditions = [clause_condition(clause) for clause in plan.filters]
    if conditions:
        kwargs["FilterExpression"] = reduce(lambda left, right: left & right, conditions)
    return kwargs


class DynamoExpenseStore(ExpenseStore):
    """
    Expenses table: partition key ``owner_id``, sort key ``id``.
    """

    def __init__(self, table) -> None:
        self.table = table

    def _query_pages(self, kwargs: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        while True:
            try:
                response = self.table.query(**kwargs)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Expense query failed: {_error_message(e)}")
                raise StoreError("Failed to query expenses") from e
            yield response
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs = dict(kwargs, ExclusiveStartKey=last_key)

    def find_expenses(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        records = [
            item_to_expense(item)
            for response in self._query_pages(build_query_kwargs(plan))
            for item in response.get("Items", [])
        ]
        return plan.window(plan.order(records))

    def count_expenses(self, plan: QueryPlan) -> int:
        kwargs = dict(build_query_kwargs(plan), Select="COUNT")
        return sum(response.get("Count", 0) for response in self._query_pages(kwargs))

    def get_expense(self, owner_id: str, expense_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.table.get_item(Key={OWNER_FIELD: owner_id, ID_FIELD: expense_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"get_expense failed: {_error_message(e)}")
            raise StoreError("Failed to read expense") from e
        item = response.get("Item")
        return item_to_expense(item) if item else None

    def put_expense(self, expense: Dict[str, Any]) -> Dict[str, Any]:
        try:
            self.table.put_item(Item=expense_to_item(expense))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"put_expense failed: {_error_message(e)}")
            raise StoreError("Failed to save expense") from e
        return expense

    def update_expense(self, owner_id: str, expense_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply partial updates. Returns the updated record, or None when the
        caller owns no record with this id.
        """
        if not updates:
            return self.get_expense(owner_id, expense_id)

        values = expense_to_item(updates)
        update_expression_parts = []
        expression_attribute_values = {}
        expression_attribute_names = {"#id": ID_FIELD}

        for idx, (key, value) in enumerate(values.items()):
            placeholder = f"#f{idx}"
            value_placeholder = f":v{idx}"
            update_expression_parts.append(f"{placeholder} = {value_placeholder}")
            expression_attribute_names[placeholder] = key
            expression_attribute_values[value_placeholder] = value

        try:
            response = self.table.update_item(
                Key={OWNER_FIELD: owner_id, ID_FIELD: expense_id},
                UpdateExpression="SET " + ", ".join(update_expression_parts),
                ConditionExpression="attribute_exists(#id)",
                ExpressionAttributeNames=expression_attribute_names,
                ExpressionAttributeValues=expression_attribute_values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            logger.error(f"update_expense failed: {_error_message(e)}")
            raise StoreError("Failed to update expense") from e
        except BotoCoreError as e:
            logger.error(f"update_expense failed: {_error_message(e)}")
            raise StoreError("Failed to update expense") from e
        attributes = response.get("Attributes")
        return item_to_expense(attributes) if attributes else None

    def delete_expense(self, owner_id: str, expense_id: str) -> bool:
        try:
            response = self.table.delete_item(
                Key={OWNER_FIELD: owner_id, ID_FIELD: expense_id},
                ReturnValues="ALL_OLD",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"delete_expense failed: {_error_message(e)}")
            raise StoreError("Failed to delete expense") from e
        return "Attributes" in response


class DynamoUserStore(UserStore):
    """
    Users table: partition key ``user_id`` with an ``email-index`` GSI.
    """

    def __init__(self, table) -> None:
        self.table = table

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.table.query(
                IndexName="email-index",
                KeyConditionExpression=Key("email").eq(email.lower()),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"get_user_by_email failed: {_error_message(e)}")
            raise StoreError("Failed to read user") from e
        items = response.get("Items", [])
        return items[0] if items else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.table.get_item(Key={"user_id": user_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"get_user_by_id failed: {_error_message(e)}")
            raise StoreError("Failed to read user") from e
        return response.get("Item")

    def put_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        item = _convert_for_dynamo(dict(user, email=user["email"].lower()))
        try:
            self.table.put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"put_user failed: {_error_message(e)}")
            raise StoreError("Failed to save user") from e
        return item
