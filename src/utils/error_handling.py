"""
Centralized error handling and logging
Every error response body has the shape {"error": <message>}; the trace id of
a logged failure travels in the X-Trace-ID header.
"""

import json
import logging
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from services.base_service import ErrorType, ServiceResult

request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "internal server error"
NOT_FOUND_MESSAGE = "not found"

# Storage error kind -> HTTP status
ERROR_STATUS = {
    ErrorType.NOT_FOUND: 404,
    ErrorType.CONFLICT: 409,
    ErrorType.VALIDATION_ERROR: 400,
    ErrorType.DATABASE_ERROR: 500,
}


class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SENSITIVE_FIELD_PATTERNS = ['password', 'pass', 'token', 'secret', 'authorization']
    LOG_REQUEST_BODIES = True
    MAX_BODY_LOG_SIZE = 5000

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Any) -> Any:
        """Recursively redact sensitive keys and truncate long strings"""
        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(key) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        if isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        if isinstance(data, str) and len(data) > cls.MAX_BODY_LOG_SIZE:
            return data[:cls.MAX_BODY_LOG_SIZE] + "...[TRUNCATED]"
        return data


def _captured_body(request: Request) -> Any:
    body = getattr(request.state, 'captured_body', None)
    if not body:
        return None
    try:
        text = body.decode('utf-8')
    except UnicodeDecodeError:
        return "DECODE_ERROR"
    try:
        return ErrorHandlingConfig.sanitize_data(json.loads(text))
    except ValueError:
        return ErrorHandlingConfig.sanitize_data(text)


def current_trace_id(request: Optional[Request] = None) -> str:
    """Trace id of the request being handled, or a fresh one outside a request"""
    if request is not None:
        trace_id = getattr(request.state, "trace_id", None)
        if trace_id:
            return trace_id
    return request_id_var.get('') or str(uuid.uuid4())[:8]


class StructuredLogger:
    """Structured JSON log entries for failed requests"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[BaseException] = None,
        extra_context: Optional[Dict] = None,
        include_traceback: bool = True,
        level: int = logging.ERROR,
    ) -> str:
        trace_id = current_trace_id(request)

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
        }

        if request is not None:
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "client_ip": request.client.host if request.client else None,
                "body": _captured_body(request),
            }

        if exception is not None:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception),
            }
            if include_traceback:
                log_entry["exception"]["traceback"] = "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                )

        if extra_context:
            log_entry["context"] = ErrorHandlingConfig.sanitize_data(extra_context)

        logger.log(level, json.dumps(log_entry, indent=2, default=str))
        return trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a trace id to each request and keeps its body for error logs"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)

        body = None
        if ErrorHandlingConfig.LOG_REQUEST_BODIES:
            body = await request.body()
        request.state.captured_body = body
        request.state.trace_id = trace_id

        # unhandled exceptions are logged once, by general_exception_handler
        response = await call_next(request)
        response.headers["X-Trace-ID"] = trace_id
        return response


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def raise_for_result(result: ServiceResult) -> None:
    """Translate a failed ServiceResult into the matching HTTP error"""
    if result.success:
        return

    status_code = ERROR_STATUS.get(result.error_type, 500)
    if result.error_type == ErrorType.NOT_FOUND:
        detail = NOT_FOUND_MESSAGE
    elif status_code >= 500:
        # storage detail is logged, never returned
        detail = INTERNAL_ERROR_MESSAGE
    else:
        detail = result.error

    raise StarletteHTTPException(status_code=status_code, detail=detail)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions, logging the server-side ones"""
    if exc.status_code >= 500:
        StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {exc.detail}",
            request=request,
            exception=exc,
            include_traceback=False,
        )
    elif exc.status_code != 404:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")

    response = error_response(exc.status_code, exc.detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def describe_validation_error(exc: RequestValidationError) -> str:
    """First problem of a request validation failure, in client-facing words"""
    errors = exc.errors()
    if not errors:
        return "invalid request"

    error = errors[0]
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    ctx = error.get("ctx") or {}

    if error.get("type") == "value_error" and "error" in ctx:
        # raised by a model validator; its message is already client-facing
        return str(ctx["error"])
    if error.get("type") == "missing" and not loc:
        return "request body is required"
    if error.get("type") == "extra_forbidden" and loc:
        return f"unknown field: {loc[-1]}"
    if error.get("type") == "json_invalid":
        return "request body is not valid JSON"

    message = error.get("msg", "invalid value")
    return f"{'.'.join(loc)}: {message}" if loc else message


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request payloads as 400"""
    message = describe_validation_error(exc)
    StructuredLogger.log_error(
        "validation_error_400",
        f"Request validation failed: {message}",
        request=request,
        extra_context={"error_count": len(exc.errors())},
        include_traceback=False,
        level=logging.WARNING,
    )
    return error_response(400, message)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions without exposing internal details"""
    trace_id = StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {exc}",
        request=request,
        exception=exc,
    )
    # runs outside RequestContextMiddleware, so the header is set here
    response = error_response(500, INTERNAL_ERROR_MESSAGE)
    response.headers["X-Trace-ID"] = trace_id
    return response


def setup_error_handling(app):
    """Setup error handling for the FastAPI app"""
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling initialized")
