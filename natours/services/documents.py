from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import JSON
from sqlalchemy.inspection import inspect as sa_inspect


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def columns_map(model: type) -> dict[str, Any]:
    mapper = sa_inspect(model)
    return {column.key: column for column in mapper.columns}


def filterable_columns(model: type) -> dict[str, Any]:
    return {key: column for key, column in columns_map(model).items() if not isinstance(column.type, JSON)}


def row_to_document(
    row: Any,
    *,
    hidden: Iterable[str] = (),
    include: Iterable[str] | None = None,
    exclude: Iterable[str] = (),
) -> dict[str, Any]:
    """Serialize an ORM row; ``include`` switches to inclusion projection (``id`` always kept)."""
    hidden_set = set(hidden)
    exclude_set = set(exclude)
    include_set = set(include) | {"id"} if include is not None else None
    document: dict[str, Any] = {}
    for key in columns_map(type(row)):
        if key in hidden_set or key in exclude_set:
            continue
        if include_set is not None and key not in include_set:
            continue
        document[key] = serialize_value(getattr(row, key))
    return document
