"""
Toreca Tracker — JSON Envelopes & Exception Handlers

Every response is ``{"success": true, "data": ...}`` or
``{"success": false, "error": "..."}``. The handlers registered by
install_exception_handlers() are the single boundary where failures become
envelopes; nothing escapes as a bare 500.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.errors import RateLimitError, TrackerError

logger = structlog.get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-API-Key",
}


def ok(
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return JSONResponse(body, status_code=status_code, headers=headers)


def error(
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def _public_cors(request: Request) -> dict[str, str] | None:
    return dict(CORS_HEADERS) if request.url.path.startswith("/api/public") else None


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    headers = _public_cors(request)
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers = {**(headers or {}), "Retry-After": str(exc.retry_after)}

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
        error_type=type(exc).__name__,
    )
    return error(exc.message, exc.status_code, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _validation_message(exc)
    logger.info("request_invalid", path=request.url.path, error=message)
    return error(message, status.HTTP_400_BAD_REQUEST, _public_cors(request))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request_unhandled_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error(str(exc) or "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
