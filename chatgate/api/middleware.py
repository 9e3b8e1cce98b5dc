"""Request logging, error handling and the exception handlers.

Every error body has the same envelope:
``{success: false, error: <code>, message, retryable, request_id, ...}``.
"""

import logging
import time
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from chatgate.core.exceptions import AdmissionError
from chatgate.utils.time_utils import elapsed_ms

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_INBOUND_REQUEST_ID = 64

# Probed by load balancers every few seconds
QUIET_PATHS = ("/health",)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_body(
    request: Request,
    code: str,
    message: Optional[str],
    retryable: bool = False,
    **extra: Any,
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": code,
        "message": message,
        "retryable": retryable,
        **extra,
        "request_id": _request_id(request),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log start, finish and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Keep a caller-supplied id so logs line up across services
        inbound = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = inbound[:MAX_INBOUND_REQUEST_ID] or uuid.uuid4().hex[:8]
        request.state.request_id = request_id

        log = logger.debug if request.url.path in QUIET_PATHS else logger.info

        start_time = time.time()
        log(
            f"[{request_id}] {request.method} {request.url.path} "
            f"- Client: {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)

        duration_ms = elapsed_ms(start_time)
        user_id = getattr(request.state, "user_id", None)
        log(
            f"[{request_id}] {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Duration: {duration_ms:.1f}ms"
            + (f" - User: {user_id}" if user_id else "")
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-MS"] = f"{duration_ms:.1f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last-resort 500 for exceptions no handler claimed."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(f"[{_request_id(request)}] Unhandled exception: {type(e).__name__}")
            return JSONResponse(
                status_code=500,
                content=_error_body(request, "internal_error", "An unexpected error occurred"),
            )


def add_middleware(app: FastAPI) -> None:
    """Add all custom middleware to the application."""
    # Added last = outermost: logging assigns the id before anything can fail
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


async def admission_error_handler(request: Request, exc: AdmissionError):
    """Render domain errors with their status code and retry hint."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(f"[{_request_id(request)}] {exc.code} ({exc.status_code}) - Path: {request.url.path}")

    body = exc.to_response_dict()
    body["request_id"] = _request_id(request)
    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers={"Retry-After": "1"} if exc.retryable else None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Framework HTTP errors (404, 405, explicit HTTPException) in the same envelope."""
    logger.info(
        f"[{_request_id(request)}] HTTP {exc.status_code} - {exc.detail} - Path: {request.url.path}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, f"http_{exc.status_code}", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 with one entry per invalid field."""
    details = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.info(
        f"[{_request_id(request)}] Validation failed on {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}"
    )
    return JSONResponse(
        status_code=422,
        content=_error_body(request, "validation_error", "Request validation failed", details=details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""
    app.add_exception_handler(AdmissionError, admission_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
