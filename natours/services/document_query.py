"""
Chainable query over one SQLAlchemy model, speaking a document-store dialect.

Criteria are plain mappings in the ``$``-operator dialect::

    {"difficulty": "easy", "price": {"$gte": 500, "$lt": 1500}, "role": ["guide", "lead-guide"]}

A list value means "equal to any of" (``$in``). Sort and projection are
space-separated directives (``"-price ratings_average"``, ``"name price"`` or
``"-version"``). Every chain method returns the same query; nothing touches the
database until one of the terminal methods (``all``, ``rows``, ``first``,
``count``) runs, and that is also where malformed criteria are reported.
"""
from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.orm import Session

from natours.core.errors import AppError, invalid_value_error
from natours.schemas.query import OPERATORS, FilterClause, Projection, SortClause, Window
from natours.services.documents import filterable_columns, row_to_document


def _coerce_bool_filter_value(column_key: str, value):
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    raise invalid_value_error(column_key, value)


def _coerce_number_filter_value(column_key: str, value, python_type):
    if python_type in {int, float} and isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if python_type is Decimal and isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        raise invalid_value_error(column_key, value)
    normalized = text.replace(",", ".")
    try:
        if python_type is Decimal:
            return Decimal(normalized)
        number = float(normalized)
    except (ValueError, TypeError, InvalidOperation):
        raise invalid_value_error(column_key, value)
    if python_type is int and number.is_integer():
        return int(number)
    return number


def _coerce_date_filter_value(column_key: str, value):
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    try:
        # Accept either YYYY-MM-DD or full ISO datetime and take its date part.
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise invalid_value_error(column_key, value)


def _coerce_datetime_filter_value(column_key: str, value):
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value or "").strip()
        try:
            if "T" not in text and " " not in text and len(text) == 10:
                # Date-only filter value for timestamp columns -> start of the day.
                parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise invalid_value_error(column_key, value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except Exception:
        return None


def _coerce_filter_value(column, value):
    python_type = _column_python_type(column)
    if python_type is None:
        return value
    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value or "").strip())
        except ValueError:
            raise invalid_value_error(column.key, value)
    if python_type is bool:
        return _coerce_bool_filter_value(column.key, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number_filter_value(column.key, value, python_type)
    if python_type is date:
        return _coerce_date_filter_value(column.key, value)
    if python_type is datetime:
        return _coerce_datetime_filter_value(column.key, value)
    if python_type is str and not isinstance(value, str):
        return str(value)
    return value


def _is_date_only_filter_literal(raw_value) -> bool:
    if isinstance(raw_value, date) and not isinstance(raw_value, datetime):
        return True
    if not isinstance(raw_value, str):
        return False
    text = raw_value.strip()
    if not text or "T" in text or " " in text:
        return False
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        return False


def criteria_clauses(field: str, condition: Any) -> list[FilterClause]:
    if isinstance(condition, Mapping):
        clauses = []
        for op, value in condition.items():
            if op not in OPERATORS:
                raise AppError(f"Invalid operator {op} for field {field}.", 400)
            clauses.append(FilterClause(field=field, op=op, value=value))
        return clauses
    if isinstance(condition, (list, tuple, set)):
        return [FilterClause(field=field, op="$in", value=list(condition))]
    return [FilterClause(field=field, op="$eq", value=condition)]


def clause_expression(column, clause: FilterClause):
    if clause.op in {"$in", "$nin"}:
        raw_values = clause.value if isinstance(clause.value, (list, tuple, set)) else [clause.value]
        values = [_coerce_filter_value(column, v) for v in raw_values]
        return column.in_(values) if clause.op == "$in" else or_(column.not_in(values), column.is_(None))

    if clause.value is None:
        if clause.op == "$eq":
            return column.is_(None)
        if clause.op == "$ne":
            return column.is_not(None)
        raise invalid_value_error(column.key, clause.value)

    value = _coerce_filter_value(column, clause.value)
    if _column_python_type(column) is datetime and clause.op in {"$eq", "$ne"} and _is_date_only_filter_literal(clause.value):
        day_expr = (column >= value) & (column < value + timedelta(days=1))
        return day_expr if clause.op == "$eq" else ~day_expr
    if clause.op == "$eq":
        return column == value
    if clause.op == "$ne":
        # A document without the field also satisfies $ne
        return or_(column != value, column.is_(None))
    if clause.op == "$gt":
        return column > value
    if clause.op == "$gte":
        return column >= value
    if clause.op == "$lt":
        return column < value
    return column <= value


class DocumentQuery:
    def __init__(self, db: Session, model: type, *, hidden_fields: Iterable[str] = ()):
        self.db = db
        self.model = model
        self.hidden_fields = frozenset(hidden_fields)
        self.criteria: list[dict[str, Any]] = []
        self.sort_directive = ""
        self.select_directive = ""
        self.window = Window()
        self._for_update = False

    # chain

    def find(self, criteria: Mapping[str, Any] | None = None) -> "DocumentQuery":
        if criteria:
            self.criteria.append(dict(criteria))
        return self

    def sort(self, directive: str) -> "DocumentQuery":
        self.sort_directive = str(directive or "")
        return self

    def select(self, directive: str) -> "DocumentQuery":
        self.select_directive = str(directive or "")
        return self

    def skip(self, count: int) -> "DocumentQuery":
        self.window.skip = count
        return self

    def limit(self, count: int) -> "DocumentQuery":
        self.window.limit = count
        return self

    def for_update(self) -> "DocumentQuery":
        self._for_update = True
        return self

    # compilation

    def where_expressions(self) -> list[Any]:
        columns = filterable_columns(self.model)
        expressions = []
        for criteria in self.criteria:
            for field, condition in criteria.items():
                if field not in columns:
                    continue
                column = getattr(self.model, field)
                for clause in criteria_clauses(field, condition):
                    expressions.append(clause_expression(column, clause))
        return expressions

    def sort_clauses(self) -> list[SortClause]:
        columns = filterable_columns(self.model)
        clauses = []
        for token in self.sort_directive.split():
            direction = "desc" if token.startswith("-") else "asc"
            field = token.lstrip("+-")
            if field not in columns or field in self.hidden_fields:
                continue
            clauses.append(SortClause(field=field, dir=direction))
        return clauses

    def projection(self) -> Projection:
        tokens = self.select_directive.split()
        excluded = [t[1:] for t in tokens if t.startswith("-")]
        included = [t.lstrip("+") for t in tokens if not t.startswith("-")]
        if excluded and included:
            raise AppError("Projection cannot have a mix of inclusion and exclusion.", 400)
        if included:
            return Projection(mode="include", fields=included)
        return Projection(mode="exclude", fields=excluded)

    def statement(self, *, windowed: bool = True, ordered: bool = True):
        stmt = select(self.model)
        for expr in self.where_expressions():
            stmt = stmt.where(expr)
        if ordered:
            order = [asc(getattr(self.model, s.field)) if s.dir == "asc" else desc(getattr(self.model, s.field)) for s in self.sort_clauses()]
            order.append(asc(self.model.id))
            stmt = stmt.order_by(*order)
        if windowed:
            if self.window.skip:
                stmt = stmt.offset(self.window.skip)
            if self.window.limit is not None:
                stmt = stmt.limit(self.window.limit)
        if self._for_update:
            stmt = stmt.with_for_update()
        return stmt

    # execution

    def rows(self) -> list[Any]:
        return list(self.db.scalars(self.statement()).all())

    def first(self):
        return self.db.scalars(self.statement().limit(1)).first()

    def count(self) -> int:
        inner = self.statement(windowed=False, ordered=False).subquery()
        return int(self.db.scalar(select(func.count()).select_from(inner)) or 0)

    def to_document(self, row: Any, projection: Projection | None = None) -> dict[str, Any]:
        projection = projection or self.projection()
        if projection.mode == "include":
            return row_to_document(row, hidden=self.hidden_fields, include=projection.fields)
        return row_to_document(row, hidden=self.hidden_fields, exclude=projection.fields)

    def all(self) -> list[dict[str, Any]]:
        projection = self.projection()
        return [self.to_document(row, projection) for row in self.rows()]
