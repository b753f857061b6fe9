"""
Centralized Error Handling and Logging System
Structured error logs with trace ids, request access logging, and
exception handlers that render every failure as {"success": false, ...}.
"""

import json
import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
from contextvars import ContextVar

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from config.settings import is_development

# Context variables for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND_MESSAGE = "Route not found"
INVALID_JSON_MESSAGE = "Invalid JSON format in request body"

class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    # Security settings
    SANITIZE_SENSITIVE_FIELDS = True
    SENSITIVE_FIELD_PATTERNS = [
        'email', 'password', 'token', 'secret', 'authorization', 'cookie'
    ]

    # Logging settings
    LOG_REQUEST_BODIES = True
    LOG_CLIENT_ERRORS = True
    MAX_BODY_LOG_SIZE = 5000  # Truncate large bodies

    # Error response settings
    INCLUDE_TRACE_ID = True
    INCLUDE_TIMESTAMP = False

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        """Check if a field contains sensitive data"""
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, str, Any]) -> Any:
        """Recursively sanitize sensitive data from logs"""
        if not cls.SANITIZE_SENSITIVE_FIELDS:
            return data

        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(key) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_BODY_LOG_SIZE:
            return data[:cls.MAX_BODY_LOG_SIZE] + "...[TRUNCATED]"
        else:
            return data

    @classmethod
    def sanitize_body(cls, body: Optional[bytes]) -> Any:
        """Decode a captured request body and redact it for logging"""
        if not body:
            return None
        try:
            text = body.decode('utf-8')
        except UnicodeDecodeError:
            return "DECODE_ERROR"
        try:
            return cls.sanitize_data(json.loads(text))
        except ValueError:
            return cls.sanitize_data(text)

class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[Exception] = None,
        extra_context: Optional[Dict] = None,
        include_traceback: bool = True
    ) -> str:
        """Log structured error with full context, returning its trace id"""

        # Same id the middleware sends back in the X-Trace-ID header
        trace_id = (
            (getattr(request.state, 'trace_id', None) if request else None)
            or request_id_var.get('')
            or str(uuid.uuid4())[:8]
        )

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": "ERROR"
        }

        if request:
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "client_ip": request.client.host if request.client else None,
            }

        if exception:
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

        logger.error(json.dumps(log_entry, indent=2, default=str))

        return trace_id

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a trace id per request, logs the access line, and keeps the body for error logs"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)

        body = None
        if ErrorHandlingConfig.LOG_REQUEST_BODIES and request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()

        request.state.captured_body = body
        request.state.trace_id = trace_id

        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} [{trace_id}]")
        response.headers["X-Trace-ID"] = trace_id
        return response

def _captured_body(request: Request) -> Any:
    return ErrorHandlingConfig.sanitize_body(getattr(request.state, 'captured_body', None))

def build_error_content(detail: Any, trace_id: Optional[str] = None) -> Dict[str, Any]:
    """Render an error detail as the API's failure envelope"""
    content: Dict[str, Any] = {"success": False}
    if isinstance(detail, list):
        content["errors"] = detail
    else:
        content["error"] = detail

    if ErrorHandlingConfig.INCLUDE_TRACE_ID and trace_id:
        content["trace_id"] = trace_id

    if ErrorHandlingConfig.INCLUDE_TIMESTAMP:
        content["timestamp"] = datetime.now(timezone.utc).isoformat()

    return content

# Global Exception Handlers
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions raised by routes or by routing itself"""

    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = ROUTE_NOT_FOUND_MESSAGE

    should_log = exc.status_code >= 500 or ErrorHandlingConfig.LOG_CLIENT_ERRORS

    trace_id = None
    if should_log:
        trace_id = StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {detail}",
            request=request,
            exception=exc,
            extra_context={
                "status_code": exc.status_code,
                "request_body": _captured_body(request)
            },
            include_traceback=exc.status_code >= 500
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(detail, trace_id),
        headers=getattr(exc, "headers", None)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request parsing failures as 400s"""

    errors = exc.errors()
    trace_id = StructuredLogger.log_error(
        "request_validation_error",
        f"Request validation failed: {len(errors)} errors",
        request=request,
        extra_context={
            "validation_errors": [
                {"field": " -> ".join(str(loc) for loc in error.get("loc", [])), "type": error.get("type")}
                for error in errors
            ],
            "request_body": _captured_body(request)
        },
        include_traceback=False
    )

    if any(error.get("type") == "json_invalid" for error in errors):
        detail: Any = INVALID_JSON_MESSAGE
    else:
        detail = [
            f"{' -> '.join(str(loc) for loc in error.get('loc', []))}: {error.get('msg', 'Invalid value')}"
            for error in errors
        ]

    return JSONResponse(
        status_code=400,
        content=build_error_content(detail, trace_id)
    )

async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions"""

    trace_id = StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {str(exc)}",
        request=request,
        exception=exc,
        extra_context={"request_body": _captured_body(request)},
        include_traceback=True
    )

    # Don't expose internal details outside development
    content = build_error_content("Internal Server Error", trace_id)
    if is_development():
        content["details"] = {"type": type(exc).__name__, "message": str(exc)}
        content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)

    # Raised exceptions bypass the middleware's header assignment
    return JSONResponse(
        status_code=500,
        content=content,
        headers={"X-Trace-ID": trace_id}
    )

def setup_error_handling(app):
    """Setup comprehensive error handling for FastAPI app"""

    app.add_middleware(RequestContextMiddleware)

    # Order matters - most specific first
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling system initialized")
