"""
Generic request handlers for any :class:`~natours.services.resource.Resource`.

Every builder returns a plain endpoint function that routers mount with
``router.add_api_route``. A handler either writes one success response or
raises; failures are formatted by the exception handlers in
``natours.core.errors`` so every collection shares the same error envelope.

Inputs that callers may want to override (the parsed query string, the
record id, the JSON payload) arrive through FastAPI dependencies, so an alias
route such as ``/tours/top-5-cheap`` or ``/users/me`` only swaps a dependency.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from fastapi import Body, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy import delete
from sqlalchemy.orm import Session

from natours.core.errors import NotFoundError
from natours.db.session import get_db
from natours.services.api_features import QueryFeatures
from natours.services.query_string import parse_query_string
from natours.services.resource import PopulateSpec, Resource, populate

_LOG = logging.getLogger("natours.crud")


def parsed_query_spec(request: Request) -> dict[str, Any]:
    return parse_query_string(request.query_params.multi_items())


def path_id(request: Request) -> str:
    return str(request.path_params.get("id") or "")


def json_payload(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    return payload


def success(status_code: int, data: Any, **extra: Any) -> Response:
    if status_code == 204:
        # No-content carries a null payload: nothing goes on the wire.
        return Response(status_code=204)
    return JSONResponse({"status": "success", **extra, "data": data}, status_code=status_code)


def _populate_specs(resource: Resource, populate_specs: Sequence[PopulateSpec] | None) -> tuple[PopulateSpec, ...]:
    return (*resource.auto_populate, *(populate_specs or ()))


def get_all(
    resource: Resource,
    populate_specs: Sequence[PopulateSpec] | None = None,
    *,
    query_spec_dependency: Callable[..., dict[str, Any]] = parsed_query_spec,
):
    specs = _populate_specs(resource, populate_specs)

    def handler(
        request: Request,
        query_spec: dict[str, Any] = Depends(query_spec_dependency),
        db: Session = Depends(get_db),
    ):
        visible_spec = {key: value for key, value in query_spec.items() if key not in resource.hidden_fields}
        query = resource.query(db).find(resource.parent_criteria(request.path_params))
        features = QueryFeatures(query, visible_spec).filter().sort().limit_fields().paginate()
        documents = populate(db, features.query.all(), specs)
        return success(200, {"data": documents}, results=len(documents))

    handler.__name__ = f"get_all_{resource.model.__tablename__}"
    return handler


def get_one(
    resource: Resource,
    populate_specs: Sequence[PopulateSpec] | None = None,
    *,
    id_dependency: Callable[..., str] = path_id,
):
    specs = _populate_specs(resource, populate_specs)

    def handler(record_id: str = Depends(id_dependency), db: Session = Depends(get_db)):
        query = resource.query(db).find({"id": record_id})
        row = query.first()
        if row is None:
            raise NotFoundError(resource.label)
        document = populate(db, [query.to_document(row)], specs)[0]
        return success(200, {"data": document})

    handler.__name__ = f"get_one_{resource.model.__tablename__}"
    return handler


def create_one(
    resource: Resource,
    *,
    payload_dependency: Callable[..., dict[str, Any]] = json_payload,
):
    def handler(payload: dict[str, Any] = Depends(payload_dependency), db: Session = Depends(get_db)):
        validated = resource.create_schema.model_validate(payload)
        row = resource.model(**resource.column_values(validated))
        db.add(row)
        db.commit()
        db.refresh(row)
        _LOG.info("created %s id=%s", resource.label, row.id)
        return success(201, {"data": resource.query(db).to_document(row)})

    handler.__name__ = f"create_{resource.model.__tablename__}"
    return handler


def update_one(
    resource: Resource,
    *,
    id_dependency: Callable[..., str] = path_id,
    payload_dependency: Callable[..., dict[str, Any]] = json_payload,
):
    specs = _populate_specs(resource, None)
    schema = resource.validation_schema

    def handler(
        record_id: str = Depends(id_dependency),
        payload: dict[str, Any] = Depends(payload_dependency),
        db: Session = Depends(get_db),
    ):
        query = resource.query(db).find({"id": record_id}).for_update()
        row = query.first()
        if row is None:
            raise NotFoundError(resource.label)

        changes = {key: value for key, value in payload.items() if key in schema.model_fields}
        # Validate the whole record as it will be after the merge, not just the patch.
        validated = schema.model_validate({**resource.snapshot(row), **changes})
        for key, value in resource.column_values(validated, only=changes).items():
            setattr(row, key, value)
        db.commit()
        db.refresh(row)
        _LOG.info("updated %s id=%s fields=%s", resource.label, row.id, sorted(changes))

        document = populate(db, [query.to_document(row)], specs)[0]
        return success(200, {"data": document})

    handler.__name__ = f"update_{resource.model.__tablename__}"
    return handler


def delete_one(resource: Resource, *, id_dependency: Callable[..., str] = path_id):
    def handler(record_id: str = Depends(id_dependency), db: Session = Depends(get_db)):
        conditions = resource.query(db).find({"id": record_id}).where_expressions()
        result = db.execute(
            delete(resource.model).where(*conditions).execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            db.rollback()
            raise NotFoundError(resource.label)
        db.commit()
        _LOG.info("deleted %s id=%s", resource.label, record_id)
        return success(204, None)

    handler.__name__ = f"delete_{resource.model.__tablename__}"
    return handler
