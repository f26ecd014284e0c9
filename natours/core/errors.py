from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from natours.core.config import settings

_LOG = logging.getLogger("natours.errors")


class AppError(HTTPException):
    """Operational error: an expected failure with a message safe to show to the client."""

    def __init__(self, message: str, status_code: int = 500, headers: dict[str, str] | None = None):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message


class NotFoundError(AppError):
    def __init__(self, resource_label: str):
        super().__init__(f"No {resource_label} found with that ID", 404)


def invalid_value_error(field: str, value: Any) -> AppError:
    return AppError(f"Invalid {field}: {value}.", 400)


def _status_for(status_code: int) -> str:
    return "fail" if 400 <= status_code < 500 else "error"


def _envelope(status_code: int, message: str, exc: BaseException | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": _status_for(status_code), "message": message}
    if settings.is_development and exc is not None:
        body["error"] = type(exc).__name__
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _validation_messages(errors: list[dict[str, Any]]) -> str:
    parts = []
    for item in errors:
        loc = [str(p) for p in item.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = str(item.get("msg") or "").strip()
        parts.append(f"{field}: {msg}" if field else msg)
    return ". ".join(parts)


def _integrity_message(exc: IntegrityError) -> str:
    text = str(getattr(exc, "orig", exc) or "").lower()
    if "unique" in text or "duplicate" in text:
        return "Duplicate field value. Please use another value!"
    return "Invalid input data."


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        if not isinstance(exc, AppError) and exc.status_code == 404 and message == "Not Found":
            message = f"Can't find {request.url.path} on this server!"
        return JSONResponse(
            _envelope(exc.status_code, message, exc),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        message = f"Invalid input data. {_validation_messages(list(exc.errors()))}".strip()
        return JSONResponse(_envelope(400, message, exc), status_code=400)

    @app.exception_handler(ValidationError)
    async def _payload_validation_error(request: Request, exc: ValidationError):
        message = f"Invalid input data. {_validation_messages(list(exc.errors()))}".strip()
        return JSONResponse(_envelope(400, message, exc), status_code=400)

    @app.exception_handler(IntegrityError)
    async def _integrity_error(request: Request, exc: IntegrityError):
        _LOG.info("integrity error path=%s: %s", request.url.path, exc.orig)
        return JSONResponse(_envelope(400, _integrity_message(exc), exc), status_code=400)

    @app.exception_handler(StaleDataError)
    async def _stale_data_error(request: Request, exc: StaleDataError):
        return JSONResponse(_envelope(409, "The record was modified concurrently. Please retry.", exc), status_code=409)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        _LOG.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(_envelope(500, "Something went very wrong!", exc), status_code=500)
