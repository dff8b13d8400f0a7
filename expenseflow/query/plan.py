"""
Query plans for expense listings.

A plan is an immutable bundle of predicate clauses, one sort specification and
an offset/limit window. Clauses are plain data so each store can translate
them its own way (in-process filtering, DynamoDB filter expressions, ...).
The ownership clause is always the first clause of a plan.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

OWNER_FIELD = "owner_id"
ID_FIELD = "id"

# Public sort names mapped to record fields. Nothing outside this map ever
# reaches a store as a field reference.
SORTABLE_FIELDS: Dict[str, str] = {
    "date": "date",
    "amount": "amount",
    "category": "category",
    "description": "description",
    "createdAt": "created_at",
}
DEFAULT_SORT_FIELD = "date"

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""

    field: str
    value: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        haystack = record.get(self.field)
        if haystack is None:
            return False
        return self.value.casefold() in str(haystack).casefold()


@dataclass(frozen=True)
class Range:
    """Inclusive bounds; either side may be open."""

    field: str
    lower: Any = None
    upper: Any = None

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if value is None:
            return False
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True


Clause = Union[Equals, Contains, Range]


@dataclass(frozen=True)
class SortSpec:
    field: str = DEFAULT_SORT_FIELD
    direction: str = DESC

    @property
    def descending(self) -> bool:
        return self.direction == DESC


@dataclass(frozen=True)
class QueryPlan:
    clauses: Tuple[Clause, ...]
    sort: SortSpec = field(default_factory=SortSpec)
    offset: int = 0
    limit: Optional[int] = None

    @property
    def owner_id(self) -> str:
        return self.clauses[0].value

    @property
    def filters(self) -> Tuple[Clause, ...]:
        """Every clause except the ownership one."""
        return self.clauses[1:]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(clause.matches(record) for clause in self.clauses)

    def sort_key(self, record: Mapping[str, Any]) -> Tuple[Any, str]:
        # id breaks ties so equal sort values keep the same place across pages
        return (record.get(self.sort.field), str(record.get(ID_FIELD, "")))

    def order(self, records):
        return sorted(records, key=self.sort_key, reverse=self.sort.descending)

    def window(self, ordered):
        if self.limit is None:
            return list(ordered[self.offset:])
        return list(ordered[self.offset:self.offset + self.limit])


class QueryPlanBuilder:
    """
    Accumulates clauses for one owner and freezes them into a QueryPlan.

    Empty or missing values are ignored, so callers can feed raw optional
    parameters straight in.
    """

    def __init__(self, owner_id: str) -> None:
        if not owner_id:
            raise ValueError("owner_id is required to build a query plan")
        self._clauses = [Equals(OWNER_FIELD, owner_id)]
        self._sort = SortSpec()
        self._offset = 0
        self._limit: Optional[int] = None

    def equals(self, field_name: str, value: Any) -> "QueryPlanBuilder":
        if value not in (None, ""):
            self._clauses.append(Equals(field_name, value))
        return self

    def contains(self, field_name: str, value: Optional[str]) -> "QueryPlanBuilder":
        if value:
            self._clauses.append(Contains(field_name, value))
        return self

    def between(self, field_name: str, lower: Any = None, upper: Any = None) -> "QueryPlanBuilder":
        if lower is not None or upper is not None:
            self._clauses.append(Range(field_name, lower, upper))
        return self

    def order_by(self, sort_by: Optional[str], direction: Optional[str] = None) -> "QueryPlanBuilder":
        resolved = SORTABLE_FIELDS.get(sort_by or "", SORTABLE_FIELDS[DEFAULT_SORT_FIELD])
        self._sort = SortSpec(resolved, ASC if (direction or "").lower() == ASC else DESC)
        return self

    def paginate(self, page: int, limit: int) -> "QueryPlanBuilder":
        self._offset = (page - 1) * limit
        self._limit = limit
        return self

    def build(self) -> QueryPlan:
        return QueryPlan(tuple(self._clauses), self._sort, self._offset, self._limit)
