from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from natours.core.config import settings
from natours.services.rate_limit import get_rate_limiter

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_LOG = logging.getLogger("natours.http")

RATE_LIMITED_PREFIX = "/api"
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again in an hour!"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'self'; object-src 'none'; frame-ancestors 'none'; base-uri 'self'",
}


def _request_id_from_header(raw: str | None) -> str:
    value = str(raw or "").strip()
    if not value:
        return uuid4().hex
    if not _REQUEST_ID_RE.fullmatch(value):
        return uuid4().hex
    return value


def _client_key(request: Request) -> str:
    if settings.TRUST_PROXY_HEADERS:
        forwarded = str(request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "unknown"


def _body_too_large(request: Request) -> bool:
    raw = request.headers.get("content-length")
    if not raw:
        return False
    try:
        return int(raw) > int(settings.MAX_BODY_BYTES)
    except ValueError:
        return False


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"status": "fail", "message": message}, status_code=status_code)


def install_http_hardening(app: FastAPI) -> None:
    @app.middleware("http")
    async def _http_hardening_middleware(request: Request, call_next):
        request_id = _request_id_from_header(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started_at = perf_counter()

        rate_headers: dict[str, str] = {}
        if _body_too_large(request):
            response = _error(413, f"Request body is larger than {settings.MAX_BODY_BYTES} bytes.")
        else:
            response = None
            if request.url.path.startswith(RATE_LIMITED_PREFIX):
                result = get_rate_limiter().hit(
                    f"rl:api:{_client_key(request)}",
                    limit=settings.RATE_LIMIT_MAX,
                    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
                )
                rate_headers = {
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": str(result.remaining),
                }
                if not result.allowed:
                    _LOG.warning("rate limit exceeded client=%s request_id=%s", _client_key(request), request_id)
                    response = _error(429, RATE_LIMIT_MESSAGE)
                    rate_headers["Retry-After"] = str(result.retry_after_seconds)
            if response is None:
                response = await call_next(request)

        for key, value in {**SECURITY_HEADERS, **rate_headers}.items():
            response.headers[key] = value
        # API responses carry per-user data; never let intermediaries cache them.
        response.headers["Cache-Control"] = "no-store"
        response.headers[REQUEST_ID_HEADER] = request_id

        duration_ms = (perf_counter() - started_at) * 1000.0
        _LOG.info(
            "%s %s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
