"""
Employee Query Builder - parameterized SQL for listing and partial updates

Requests carry a sparse set of optional filters and update fields. The
builder collects them as typed predicates/assignments and renders SQL text
with named bind parameters (``:p1``, ``:p2`` ...). User input only ever
travels as a bound value, never as part of the SQL text.

Rendering is deterministic: predicates and assignments follow a fixed
column order, so the same input always produces the same SQL text and the
same parameter order.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from employee_api.core.config import settings
from employee_api.core.exceptions import NoOpError
from employee_api.schemas.employee import EmployeeFilter

TABLE = "employees"

EMPLOYEE_COLUMNS = (
    "id", "nip", "name", "email", "phone", "position", "department",
    "salary", "hire_date", "is_active", "created_at", "updated_at",
)

# Equality filters, in rendering order
EQUALITY_FILTERS = ("department", "position", "is_active")

# Columns matched by the free-text search
SEARCH_COLUMNS = ("name", "email", "nip")

# Columns a partial update may assign, in rendering order
UPDATABLE_COLUMNS = ("name", "email", "phone", "position", "department", "salary", "is_active")

LIKE_ESCAPE = "\\"

ORDER_BY = "created_at DESC, id DESC"

# OFFSET is bound as a 64-bit integer
MAX_OFFSET = 2 ** 63 - 1


@dataclass(frozen=True)
class Predicate:
    """A condition ``column <operator> value``; several columns are OR-ed together."""

    columns: Tuple[str, ...]
    operator: str
    value: Any


@dataclass(frozen=True)
class Assignment:
    column: str
    value: Any


@dataclass(frozen=True)
class BuiltQuery:
    sql: str
    params: Tuple[Any, ...] = ()

    @property
    def bind_params(self) -> Dict[str, Any]:
        """Parameters keyed by bind name, as expected by ``sqlalchemy.text``."""
        return {f"p{index}": value for index, value in enumerate(self.params, start=1)}


@dataclass(frozen=True)
class FilteredSelect:
    query: BuiltQuery
    count_query: BuiltQuery
    limit: int
    offset: int


@dataclass
class _ParamCollector:
    values: List[Any] = field(default_factory=list)

    def bind(self, value: Any) -> str:
        self.values.append(value)
        return f":p{len(self.values)}"


def escape_like(value: str, escape: str = LIKE_ESCAPE) -> str:
    """Escape LIKE wildcards so user input only matches literally."""
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None or limit <= 0:
        return settings.DEFAULT_PAGE_SIZE
    return min(limit, settings.MAX_PAGE_SIZE)


def clamp_offset(offset: Optional[int]) -> int:
    if offset is None or offset < 0:
        return 0
    return min(offset, MAX_OFFSET)


def collect_predicates(filters: EmployeeFilter) -> List[Predicate]:
    """Turn the provided filters into predicates; absent filters add nothing."""
    predicates = []
    for column in EQUALITY_FILTERS:
        value = getattr(filters, column)
        if value is not None:
            predicates.append(Predicate(columns=(column,), operator="=", value=value))

    if filters.search is not None:
        pattern = f"%{escape_like(filters.search)}%"
        predicates.append(Predicate(columns=SEARCH_COLUMNS, operator="ILIKE", value=pattern))

    return predicates


def _render_predicate(predicate: Predicate, params: _ParamCollector) -> str:
    suffix = f" ESCAPE '{LIKE_ESCAPE}'" if predicate.operator == "ILIKE" else ""
    parts = [
        f"{column} {predicate.operator} {params.bind(predicate.value)}{suffix}"
        for column in predicate.columns
    ]
    if len(parts) == 1:
        return parts[0]
    return "(" + " OR ".join(parts) + ")"


def _render_where(predicates: List[Predicate], params: _ParamCollector) -> str:
    if not predicates:
        return ""
    return " WHERE " + " AND ".join(_render_predicate(p, params) for p in predicates)


def build_filtered_select(filters: EmployeeFilter) -> FilteredSelect:
    """
    Build the page query and its matching count query.

    Both share the same predicates and parameters, so the total and the page
    are computed over the same row set. The page query adds a stable ordering
    (newest first) and clamped LIMIT/OFFSET as the last parameters.
    """
    predicates = collect_predicates(filters)
    limit = clamp_limit(filters.limit)
    offset = clamp_offset(filters.offset)

    params = _ParamCollector()
    where = _render_where(predicates, params)
    filter_params = tuple(params.values)

    count_query = BuiltQuery(sql=f"SELECT COUNT(*) FROM {TABLE}{where}", params=filter_params)

    limit_bind = params.bind(limit)
    offset_bind = params.bind(offset)
    select_sql = (
        f"SELECT {', '.join(EMPLOYEE_COLUMNS)} FROM {TABLE}{where}"
        f" ORDER BY {ORDER_BY} LIMIT {limit_bind} OFFSET {offset_bind}"
    )

    return FilteredSelect(
        query=BuiltQuery(sql=select_sql, params=tuple(params.values)),
        count_query=count_query,
        limit=limit,
        offset=offset,
    )


def collect_assignments(fields: Mapping[str, Any]) -> List[Assignment]:
    unknown = set(fields) - set(UPDATABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Columns cannot be updated: {', '.join(sorted(unknown))}")
    return [Assignment(column, fields[column]) for column in UPDATABLE_COLUMNS if column in fields]


def build_partial_update(employee_id: int, fields: Mapping[str, Any], now: datetime) -> BuiltQuery:
    """
    Build ``UPDATE employees SET ... WHERE id = ... RETURNING id``.

    ``fields`` holds only the columns the caller explicitly provided; every
    one of them is assigned, whatever its value. ``updated_at`` is always
    refreshed.

    Raises:
        NoOpError: No field was provided
        ValueError: A field is not an updatable column
    """
    assignments = collect_assignments(fields)
    if not assignments:
        raise NoOpError()

    params = _ParamCollector()
    set_parts = [f"{a.column} = {params.bind(a.value)}" for a in assignments]
    set_parts.append(f"updated_at = {params.bind(now)}")
    id_bind = params.bind(employee_id)

    sql = f"UPDATE {TABLE} SET {', '.join(set_parts)} WHERE id = {id_bind} RETURNING id"
    return BuiltQuery(sql=sql, params=tuple(params.values))
