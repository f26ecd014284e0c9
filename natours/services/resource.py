from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from pydantic import BaseModel
from sqlalchemy.orm import Session

from natours.services.document_query import DocumentQuery
from natours.services.documents import columns_map, serialize_value


@dataclass(frozen=True)
class Resource:
    """Everything the generic handlers need to know about one collection."""

    model: type
    label: str
    create_schema: type[BaseModel]
    # Validates the merged record on update; defaults to ``create_schema``
    document_schema: type[BaseModel] | None = None
    hidden_fields: frozenset[str] = frozenset()
    # Applied to every find, like a pre-find hook
    base_criteria: Mapping[str, Any] = field(default_factory=dict)
    # Path parameter -> field narrowed by nested routes
    parent_params: Mapping[str, str] = field(default_factory=dict)
    auto_populate: tuple["PopulateSpec", ...] = ()

    @property
    def validation_schema(self) -> type[BaseModel]:
        return self.document_schema or self.create_schema

    def query(self, db: Session) -> DocumentQuery:
        return DocumentQuery(db, self.model, hidden_fields=self.hidden_fields).find(self.base_criteria)

    def parent_criteria(self, path_params: Mapping[str, Any]) -> dict[str, Any]:
        return {
            field_name: path_params[param]
            for param, field_name in self.parent_params.items()
            if path_params.get(param) is not None
        }

    def column_values(self, validated: BaseModel, only: Iterable[str] | None = None) -> dict[str, Any]:
        columns = columns_map(self.model)
        data = validated.model_dump()
        keys = set(only) if only is not None else set(data)
        return {key: value for key, value in data.items() if key in columns and key in keys}

    def snapshot(self, row: Any) -> dict[str, Any]:
        columns = columns_map(self.model)
        return {name: getattr(row, name) for name in self.validation_schema.model_fields if name in columns}


@dataclass(frozen=True)
class PopulateSpec:
    """Embed related records under ``path``: ``doc[local_field] == related[foreign_field]``."""

    path: str
    resource: Resource
    local_field: str
    foreign_field: str = "id"
    many: bool = False
    select: str = "-version"
    sort: str = "created_at"


def populate(db: Session, documents: list[dict[str, Any]], specs: Sequence[PopulateSpec]) -> list[dict[str, Any]]:
    """Batch reference expansion: one query per spec, whatever the number of documents."""
    for spec in specs:
        keys = sorted({str(doc[spec.local_field]) for doc in documents if doc.get(spec.local_field) is not None})
        related: dict[Any, list[dict[str, Any]]] = {}
        if keys:
            query = spec.resource.query(db).find({spec.foreign_field: {"$in": keys}}).select(spec.select).sort(spec.sort)
            projection = query.projection()
            for row in query.rows():
                key = serialize_value(getattr(row, spec.foreign_field))
                related.setdefault(key, []).append(query.to_document(row, projection))
        for doc in documents:
            matches = related.get(doc.get(spec.local_field), [])
            doc[spec.path] = matches if spec.many else (matches[0] if matches else None)
    return documents
