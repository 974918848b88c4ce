"""Error handlers for FastAPI application.

Provides consistent error response formatting and exception handling
across all API endpoints. Every error body has the shape
``{"error": <message>, "details": {...}}``; 405 responses additionally list
the methods the path accepts under ``allowed``.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match, compile_path
from core.config import get_settings
from core.exceptions import AppException
from core.logger import get_logger
from typing import Any, Dict, List, Optional

logger = get_logger("core.error_handlers")


def create_error_response(
    message: str,
    status_code: int = 500,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        message: Error message.
        status_code: HTTP status code.
        details: Optional error details dictionary.
        headers: Optional response headers.
        **extra: Additional top-level keys for the body.

    Returns:
        JSONResponse with error details.
    """
    error_body: Dict[str, Any] = {"error": message}
    if details:
        error_body["details"] = details
    error_body.update(extra)

    return JSONResponse(
        status_code=status_code,
        content=error_body,
        headers=headers,
    )


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def _route_methods(routes, scope) -> set:
    """Methods of every plain route matching the scope, descending into nested routers."""
    methods = set()
    for route in routes:
        nested = getattr(route, "routes", None) or getattr(getattr(route, "router", None), "routes", None)
        if nested:
            methods.update(_route_methods(nested, scope))
            continue
        route_methods = getattr(route, "methods", None)
        if not route_methods:
            continue
        match, _ = route.matches(scope)
        if match in (Match.FULL, Match.PARTIAL):
            methods.update(route_methods)
    return methods


def _schema_methods(request: Request) -> set:
    """Methods the OpenAPI schema documents for path templates matching the request path."""
    methods = set()
    for path, operations in request.app.openapi().get("paths", {}).items():
        path_regex, _, _ = compile_path(path)
        if path_regex.match(request.url.path):
            methods.update(op.upper() for op in operations if op.upper() in HTTP_METHODS)
    return methods


def allowed_methods(request: Request, exc: Optional[StarletteHTTPException] = None) -> List[str]:
    """Collect the methods registered on every endpoint matching the request path.

    Combines the `Allow` header of the raised exception (the first matching
    route only), the routing table and the OpenAPI paths, since included
    routers are not always exposed as plain routes.
    """
    methods = set()
    allow = (getattr(exc, "headers", None) or {}).get("Allow")
    if allow:
        methods.update(m.strip().upper() for m in allow.split(",") if m.strip())
    methods.update(_route_methods(request.app.router.routes, request.scope))
    methods.update(_schema_methods(request))
    methods.discard("HEAD")
    return sorted(methods)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions.

    Args:
        request: FastAPI request object.
        exc: Application exception instance.

    Returns:
        JSONResponse with error details.
    """
    logger.warning(
        "Application error: %s [%s %s]",
        exc.message,
        request.method,
        request.url.path
    )

    return create_error_response(
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing-level HTTP errors (unknown path, unsupported method)."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        allowed = allowed_methods(request, exc)
        logger.warning("Method %s not allowed on %s", request.method, request.url.path)
        return create_error_response(
            message="Method not allowed",
            status_code=exc.status_code,
            headers={"Allow": ", ".join(allowed)},
            allowed=allowed,
        )

    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return create_error_response(
        message=message,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Request validation failures are client errors and map to 400 with one
    entry per offending field.

    Args:
        request: FastAPI request object.
        exc: Pydantic validation error.

    Returns:
        JSONResponse with validation error details.
    """
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path", "header")]
        errors.append({
            "field": ".".join(loc),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        errors
    )

    return create_error_response(
        message="Validation failed",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"validation_errors": errors}
    )


async def integrity_exception_handler(
    request: Request,
    exc: IntegrityError
) -> JSONResponse:
    """Handle unique-constraint violations that slipped past the store checks."""
    logger.warning(
        "Integrity error on %s %s: %s",
        request.method,
        request.url.path,
        str(exc.orig)
    )
    return create_error_response(
        message="Resource already exists",
        status_code=status.HTTP_409_CONFLICT,
        details={"type": "integrity_error"}
    )


async def sqlalchemy_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle SQLAlchemy database errors.

    Args:
        request: FastAPI request object.
        exc: SQLAlchemy error.

    Returns:
        JSONResponse with database error details.
    """
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
        exc_info=True
    )

    # Don't expose internal database errors to clients
    return create_error_response(
        message="A database error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        details={"type": "database_error"}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle all unhandled exceptions.

    Outside production the exception text is included to ease debugging.

    Args:
        request: FastAPI request object.
        exc: Unhandled exception.

    Returns:
        JSONResponse with generic error message.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
        exc_info=True
    )

    details = {"type": "internal_error"}
    if not get_settings().is_production:
        details["exception"] = type(exc).__name__
        details["message"] = str(exc)

    return create_error_response(
        message="An internal server error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        details=details
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
