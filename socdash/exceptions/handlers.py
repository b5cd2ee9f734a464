# socdash/exceptions/handlers.py
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi.util import get_remote_address
from socdash.core import tracing
from socdash.exceptions.errors import SocDashError, ForbiddenError
import time


def get_safe_headers(request: Request) -> dict:
    """Extract and mask sensitive headers for logging"""
    headers = request.headers
    return {
        "user_agent": headers.get("user-agent", "unknown"),
        "authorization": (headers.get("authorization", "")[:10] + "...") if headers.get("authorization") else "none",
    }


def _error_body(request: Request, status_code: int, detail, error_type: str) -> dict:
    return {
        "detail": detail,
        "status_code": status_code,
        "error_type": error_type,
        "trace_id": tracing.get_current_trace_id(),
        "timestamp": time.time(),
        "path": request.url.path
    }


async def socdash_exception_handler(request: Request, exc: SocDashError) -> JSONResponse:
    client_ip = get_remote_address(request)

    if isinstance(exc, ForbiddenError):
        tracing.warning(
            f"Access denied: {exc.detail}",
            event_type="access_control",
            url=str(request.url),
            ip=client_ip,
            **get_safe_headers(request)
        )
    elif exc.status_code >= 500:
        tracing.error(f"{type(exc).__name__}: {exc.detail}", url=str(request.url), ip=client_ip)
    else:
        tracing.info(f"{type(exc).__name__}: {exc.detail}", url=str(request.url), ip=client_ip)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail, type(exc).__name__)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    tracing.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        url=str(request.url),
        ip=get_remote_address(request),
        **get_safe_headers(request)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail, type(exc).__name__),
        headers=getattr(exc, 'headers', None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]

    tracing.warning(
        f"Validation error: {len(errors)} errors",
        url=str(request.url),
        ip=get_remote_address(request)
    )

    body = _error_body(request, 422, "Validation error", "ValidationError")
    body["errors"] = errors
    return JSONResponse(status_code=422, content=body)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    tracing.error(
        f"Unhandled exception: {exc}",
        url=str(request.url),
        ip=get_remote_address(request),
        **get_safe_headers(request)
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(request, 500, "Internal server error", type(exc).__name__)
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(SocDashError, socdash_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
