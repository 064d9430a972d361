"""
Dynamic list-query translation: raw query-string parameters into filters,
sort terms and pagination, and those into SQLAlchemy predicates.

Query keys take the form `field` or `field[op]` (op defaults to eq). Only
fields in the caller's allow-list that are also plain identifiers ever reach
a statement; values are always bound parameters.
"""

import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import ColumnElement, Select, String, cast

from app.core.errors import ValidationError

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
SORT_PARAM = "sort"

VALID_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FilterOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    IN = "in"
    NIN = "nin"


LIST_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NIN})


@dataclass(frozen=True)
class Filter:
    field: str
    operator: FilterOperator
    value: str | tuple[str, ...]


@dataclass(frozen=True)
class SortTerm:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class QueryOptions:
    """Filters keyed by field name plus ordered sort terms for one list request."""

    filters: Mapping[str, Filter] = field(default_factory=dict)
    sort: tuple[SortTerm, ...] = ()

    def extract(self, name: str) -> tuple[Filter | None, "QueryOptions"]:
        """Split off the filter for `name`; return it and the remaining options."""
        if name not in self.filters:
            return None, self
        remaining = {k: v for k, v in self.filters.items() if k != name}
        return self.filters[name], replace(self, filters=remaining)


def is_valid_field_name(name: str) -> bool:
    return bool(VALID_FIELD_NAME.match(name))


def _is_usable_field(name: str, allowed_fields: Collection[str]) -> bool:
    return name in allowed_fields and is_valid_field_name(name)


def parse_operator(key: str) -> tuple[str, str]:
    """Split `status[ne]` into ("status", "ne"); a key without brackets is eq."""
    start = key.find("[")
    end = key.find("]")
    if start == -1 or end == -1 or end < start:
        return key, FilterOperator.EQ.value
    return key[:start], key[start + 1 : end]


def parse_sort(value: str, allowed_fields: Collection[str]) -> tuple[SortTerm, ...]:
    """Parse `a,-b` into ascending a, descending b. Unusable fields are dropped."""
    terms: list[SortTerm] = []
    for raw in value.split(","):
        name = raw.strip()
        if not name:
            continue
        descending = name.startswith("-")
        if descending:
            name = name[1:]
        if not _is_usable_field(name, allowed_fields):
            continue
        terms.append(SortTerm(field=name, descending=descending))
    return tuple(terms)


def parse_query_params(
    params: Mapping[str, str], allowed_fields: Collection[str]
) -> QueryOptions:
    """Build QueryOptions from raw query parameters, keeping only allow-listed fields."""
    filters: dict[str, Filter] = {}
    sort: tuple[SortTerm, ...] = ()
    for key, value in params.items():
        if value == "":
            continue
        if key == SORT_PARAM:
            sort = parse_sort(value, allowed_fields)
            continue
        name, op = parse_operator(key)
        if not _is_usable_field(name, allowed_fields):
            continue
        try:
            operator = FilterOperator(op.strip().lower())
        except ValueError:
            continue
        filter_value: str | tuple[str, ...] = value
        if operator in LIST_OPERATORS:
            filter_value = tuple(v.strip() for v in value.split(",") if v.strip())
            if not filter_value:
                continue
        filters[name] = Filter(field=name, operator=operator, value=filter_value)
    return QueryOptions(filters=filters, sort=sort)


def _parse_positive_int(raw: str | None, minimum: int) -> int | None:
    if raw is None:
        return None
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return None
    return parsed if parsed >= minimum else None


def get_pagination(
    params: Mapping[str, str], default_limit: int = DEFAULT_LIMIT
) -> tuple[int, int]:
    """
    Return (offset, limit).

    limit is capped at MAX_LIMIT. page (1-based) wins over offset when both
    are present; offset = (page - 1) * limit.
    """
    limit = _parse_positive_int(params.get("limit"), 1) or default_limit
    limit = min(limit, MAX_LIMIT)

    offset = 0
    if "page" in params:
        page = _parse_positive_int(params.get("page"), 1)
        if page is not None:
            offset = (page - 1) * limit
    else:
        parsed = _parse_positive_int(params.get("offset"), 0)
        if parsed is not None:
            offset = parsed
    return offset, limit


def _coerce(column: ColumnElement[Any], f: Filter, raw: str) -> Any:
    """Convert a raw string into the column's Python type for binding."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw
    try:
        if python_type is int:
            return int(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid value for filter '{f.field}'") from e
    return raw


def _as_text(column: ColumnElement[Any]) -> ColumnElement[Any]:
    """LIKE needs a string operand; other column types are cast to text."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        python_type = None
    return column if python_type is str else cast(column, String)


def build_predicate(column: ColumnElement[Any], f: Filter) -> ColumnElement[bool]:
    """Translate one filter into a bound predicate on `column`."""
    op = f.operator
    if op is FilterOperator.LIKE:
        text = f.value if isinstance(f.value, str) else ",".join(f.value)
        return _as_text(column).icontains(text, autoescape=True)
    if op in LIST_OPERATORS:
        items = (f.value,) if isinstance(f.value, str) else f.value
        values = [_coerce(column, f, v) for v in items]
        return column.in_(values) if op is FilterOperator.IN else column.not_in(values)

    value = _coerce(column, f, f.value if isinstance(f.value, str) else f.value[0])
    if op is FilterOperator.EQ:
        return column == value
    if op is FilterOperator.NE:
        return column != value
    if op is FilterOperator.GT:
        return column > value
    if op is FilterOperator.GTE:
        return column >= value
    if op is FilterOperator.LT:
        return column < value
    if op is FilterOperator.LTE:
        return column <= value
    raise ValueError(f"Unsupported filter operator: {op!r}")


def apply_filters(
    stmt: Select,
    columns: Mapping[str, ColumnElement[Any]],
    options: QueryOptions,
    allowed_fields: Collection[str],
) -> Select:
    for name, f in options.filters.items():
        if not _is_usable_field(name, allowed_fields) or name not in columns:
            continue
        stmt = stmt.where(build_predicate(columns[name], f))
    return stmt


def apply_sort(
    stmt: Select,
    columns: Mapping[str, ColumnElement[Any]],
    options: QueryOptions,
    allowed_fields: Collection[str],
) -> Select:
    for term in options.sort:
        if not _is_usable_field(term.field, allowed_fields) or term.field not in columns:
            continue
        column = columns[term.field]
        stmt = stmt.order_by(column.desc() if term.descending else column.asc())
    return stmt


def apply_default_sort(
    stmt: Select,
    options: QueryOptions,
    column: ColumnElement[Any],
    descending: bool = True,
) -> Select:
    """Order by `column` only when the request carried no usable sort."""
    if options.sort:
        return stmt
    return stmt.order_by(column.desc() if descending else column.asc())
