from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from adops.core.exceptions import DomainError

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "unprocessable_entity",
    429: "rate_limited",
}


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _normalize_details(details: Any) -> dict:
    if details is None:
        return {}
    if isinstance(details, dict):
        return details
    if isinstance(details, list):
        return {"errors": details}
    return {"detail": str(details)}


def build_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    payload = {
        "code": code,
        "message": message,
        "data": None,
        "details": _normalize_details(details),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(
        "Domain error %s on %s %s: %s",
        exc.code,
        request.method,
        request.url.path,
        exc.message,
    )
    return build_error_response(exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, "http_error")
    detail = exc.detail
    if isinstance(detail, dict):
        return build_error_response(
            exc.status_code,
            detail.get("code") or code,
            detail.get("message") or _default_message(exc.status_code),
            detail.get("details"),
        )
    if isinstance(detail, str):
        return build_error_response(exc.status_code, code, detail, {"detail": detail})
    return build_error_response(exc.status_code, code, _default_message(exc.status_code), detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Validation failed"
    if errors:
        first = errors[0] or {}
        loc = [str(part) for part in first.get("loc") or [] if part not in {"body", "query", "path"}]
        msg = first.get("msg") or message
        message = f"{'.'.join(loc)}: {msg}" if loc else str(msg)
    return build_error_response(422, "validation_error", message, {"errors": errors})


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = build_error_response(429, "rate_limited", _default_message(429), getattr(exc, "detail", None))
    headers = getattr(exc, "headers", None)
    if isinstance(headers, dict):
        response.headers.update(headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return build_error_response(500, "internal_server_error", "Internal server error", {})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
