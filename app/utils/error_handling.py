"""
Centralized exception handlers.

Every error response is a JSON object with an "error" key (and the request
id when RequestContextMiddleware has set one):

- unmatched route          -> 404 {"error": "Route not found"}
- HTTPException            -> its status, {"error": detail}
- request validation error -> 422 {"error": "Validation failed", "detail": [...]}
- anything else            -> 500 {"error": str(exc)}, logged with traceback
"""

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _error_body(request: Request, error: str, **extra) -> dict:
    body = {"error": error, **extra}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP errors raised by routes, plus Starlette's own 404/405."""
    if exc.status_code == 404 and request.scope.get("route") is None:
        error = "Route not found"
    else:
        error = str(exc.detail)

    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            status_code=exc.status_code,
            path=request.url.path,
            error=error,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, error),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body / query validation failures (HTTP 422)."""
    logger.info(
        "Request validation failed",
        path=request.url.path,
        error_count=len(exc.errors()),
    )
    return JSONResponse(
        status_code=422,
        content=_error_body(
            request, "Validation failed", detail=jsonable_encoder(exc.errors())
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for exceptions no route handled."""
    logger.exception(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(status_code=500, content=_error_body(request, str(exc) or "Internal error"))


def setup_error_handling(app) -> None:
    """Register the exception handlers on a FastAPI app."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
