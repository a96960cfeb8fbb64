"""
JSON error bodies for the HTTP surface.

Every error response is ``{"detail", "code", "request_id"}`` with the request
id echoed in ``X-Request-ID``. Guardrail verdicts are not errors and never
come through here; only requests that cannot be validated at all do.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple, Type
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from promguard.guardrails.config import GuardrailsConfigError
from promguard.middleware.request_id import get_request_id
from promguard.telemetry.logging import bind
from promguard.timeutil import InvalidTimeRange

log = bind(logging.getLogger(__name__), component="http")

# Request errors raised by promguard itself: (exception, status, code).
DOMAIN_ERRORS: Tuple[Tuple[Type[Exception], int, str], ...] = (
    (InvalidTimeRange, 400, "invalid_time_range"),
    (GuardrailsConfigError, 400, "invalid_guardrails"),
)

_HTTP_CODES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
}


def error_response(
    request: Request, status: int, code: str, detail: str, **extra: Any
) -> JSONResponse:
    rid = get_request_id() or request.headers.get("X-Request-ID") or str(uuid4())
    body: Dict[str, Any] = {"detail": detail, "code": code, "request_id": rid, **extra}
    return JSONResponse(status_code=status, content=body, headers={"X-Request-ID": rid})


def _domain_handler(status: int, code: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        log.info("request rejected", extra={"code": code, "error": str(exc)})
        return error_response(request, status, code, str(exc))

    return handler


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    code = _HTTP_CODES.get(exc.status_code, "error")
    return error_response(request, exc.status_code, code, detail)


async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        request, 422, "validation_error", "Validation failed", errors=exc.errors()
    )


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled error", exc_info=exc)
    return error_response(request, 500, "internal_error", "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    for exc_type, status, code in DOMAIN_ERRORS:
        app.add_exception_handler(exc_type, _domain_handler(status, code))
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _invalid_body)
    app.add_exception_handler(Exception, _unhandled)
