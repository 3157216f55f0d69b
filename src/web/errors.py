"""
Unified API error responses.

Every failure leaves the API in one JSON envelope:

    {"error": true, "code": "VALIDATION_ERROR", "message": "...",
     "status_code": 400, "timestamp": "...", "request_id": "...", ...}

Usage:
    from web.errors import APIError, ErrorCode

    raise APIError(ErrorCode.VALIDATION_ERROR, "Weights must total exactly 100")
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.backend_client import BackendError
from services.logging_config import request_id_var

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """
    Error codes for API responses.

    - AUTH_*: 401/403
    - VALIDATION_*: 400/413/415/422
    - RESOURCE_*: 404/409
    - SERVER_*: 500/502
    """

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INSUFFICIENT_PERMISSIONS = "AUTH_INSUFFICIENT_PERMISSIONS"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_FILE_TOO_LARGE = "VALIDATION_FILE_TOO_LARGE"
    VALIDATION_FILE_TYPE_NOT_ALLOWED = "VALIDATION_FILE_TYPE_NOT_ALLOWED"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    SERVER_INTERNAL_ERROR = "SERVER_INTERNAL_ERROR"
    SERVER_BACKEND_ERROR = "SERVER_BACKEND_ERROR"


ERROR_CODE_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.AUTH_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS: status.HTTP_403_FORBIDDEN,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_FILE_TOO_LARGE: 413,
    ErrorCode.VALIDATION_FILE_TYPE_NOT_ALLOWED: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RESOURCE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.SERVER_INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVER_BACKEND_ERROR: status.HTTP_502_BAD_GATEWAY,
}

# reverse lookup for framework-raised HTTP errors
STATUS_TO_CODE = {code_status: code for code, code_status in ERROR_CODE_STATUS_MAP.items()}
STATUS_TO_CODE[status.HTTP_400_BAD_REQUEST] = ErrorCode.VALIDATION_ERROR


class FieldError(BaseModel):
    field: str = Field(..., description="Offending field, dotted for nested values")
    message: str = Field(..., description="What is wrong with it")
    code: str = Field(default="invalid", description="Machine-readable reason")


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""
    error: bool = Field(default=True, description="Always true")
    code: str = Field(..., description="One of ErrorCode")
    message: str = Field(..., description="Human-readable message")
    status_code: int = Field(..., description="HTTP status")
    timestamp: str = Field(..., description="UTC, ISO 8601")
    request_id: str = Field(..., description="Correlates with server logs")
    path: Optional[str] = Field(None, description="Request path")
    details: Optional[Dict[str, Any]] = Field(None, description="Extra context")
    field_errors: Optional[List[FieldError]] = Field(None, description="Per-field problems")


class APIError(Exception):
    """
    Raise anywhere under a router to answer with the error envelope.

    The HTTP status follows from the code unless given explicitly.
    ``field_errors`` entries are dicts with ``field``, ``message`` and
    optionally ``code``.
    """

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        field_errors: Optional[List[Dict[str, str]]] = None,
    ):
        self.code = ErrorCode(code)
        self.message = message
        self.status_code = status_code or ERROR_CODE_STATUS_MAP[self.code]
        self.details = details
        self.field_errors = field_errors
        super().__init__(message)


def get_request_id(request: Request) -> str:
    """The caller's X-Request-ID, else the one RequestIDMiddleware assigned, else a new one."""
    return (
        request.headers.get("X-Request-ID")
        or getattr(request.state, "request_id", None)
        or str(uuid.uuid4())
    )


def error_response(
    request: Request,
    code: ErrorCode,
    message: str,
    status_code: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    field_errors: Optional[List[FieldError]] = None,
) -> JSONResponse:
    request_id = get_request_id(request)
    body = ErrorResponse(
        code=code.value,
        message=message,
        status_code=status_code or ERROR_CODE_STATUS_MAP[code],
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        request_id=request_id,
        path=request.url.path,
        details=details,
        field_errors=field_errors,
    )
    return JSONResponse(
        status_code=body.status_code,
        content=body.model_dump(),
        headers={"X-Request-ID": request_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every exception type the API can raise into the envelope."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            f"APIError {exc.code.value} on {request.method} {request.url.path}: {exc.message}",
            extra={"extra_data": {"details": exc.details}},
        )
        field_errors = [
            FieldError(field=fe.get("field", "body"), message=fe.get("message", ""), code=fe.get("code", "invalid"))
            for fe in exc.field_errors
        ] if exc.field_errors else None
        return error_response(request, exc.code, exc.message, exc.status_code, exc.details, field_errors)

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
        logger.error(
            f"Backend call failed while serving {request.url.path}: {exc.message}",
            extra={"extra_data": {"backend_status": exc.status_code}},
        )
        details = {"backend_status": exc.status_code} if exc.status_code else None
        return error_response(request, ErrorCode.SERVER_BACKEND_ERROR, exc.message, details=details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        field_errors = [
            FieldError(
                field=".".join(str(part) for part in error["loc"] if part != "body") or "body",
                message=error["msg"],
                code=error["type"],
            )
            for error in exc.errors()
        ]
        logger.warning(f"Request validation failed on {request.url.path}: {len(field_errors)} field(s)")
        return error_response(
            request, ErrorCode.VALIDATION_ERROR, "Request validation failed", 422, field_errors=field_errors
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Calculator input problems (e.g. a negative business-day offset)."""
        logger.warning(f"Rejected input on {request.url.path}: {exc}")
        return error_response(request, ErrorCode.VALIDATION_ERROR, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = STATUS_TO_CODE.get(exc.status_code, ErrorCode.SERVER_INTERNAL_ERROR)
        return error_response(request, code, str(exc.detail or "Request failed"), exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Last resort; the traceback goes to the log, never to the caller."""
        logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}", exc_info=True)
        return error_response(
            request,
            ErrorCode.SERVER_INTERNAL_ERROR,
            "An unexpected error occurred. Please try again later.",
            details={"support": f"Reference ID: {get_request_id(request)}"},
        )


class RequestIDMiddleware:
    """
    Pure ASGI middleware giving every HTTP request an id.

    The id is taken from the X-Request-ID header when present, bound to the
    logging context for the life of the request and echoed on the response.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers", [])).get(b"x-request-id", b"").decode()
        request_id = incoming or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        token = request_id_var.set(request_id)

        async def send_with_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                if all(name.lower() != b"x-request-id" for name, _ in headers):
                    headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_id)
        finally:
            request_id_var.reset(token)
