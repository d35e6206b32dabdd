"""This file contains the main application entry point."""

import uuid
from contextlib import asynccontextmanager
from datetime import (
    UTC,
    datetime,
)
from typing import (
    Any,
    Dict,
    Optional,
)

from fastapi import (
    FastAPI,
    Request,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.api import api_router
from app.constants.http import (
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_MAX_AGE,
    ERROR_HTTP,
    ERROR_INTERNAL,
    ERROR_RATE_LIMITED,
    ERROR_VALIDATION,
    HEADER_WWW_AUTHENTICATE,
    HEADER_X_REQUEST_ID,
    SECURITY_HEADERS,
)
from app.core.config import (
    Environment,
    settings,
)
from app.core.dependencies import create_provisioner
from app.core.limiter import limiter
from app.core.logging import logger
from app.domain.exceptions import (
    AuthenticationError,
    DomainError,
)
from app.schemas.base import ErrorResponse
from app.shared.middleware import RequestLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    app.state.start_time = datetime.now(UTC)

    logger.info(
        "application_startup",
        project_name=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.APP_ENV.value,
        api_prefix=settings.API_V1_STR,
    )

    if getattr(app.state, "provisioner", None) is None:
        app.state.provisioner = create_provisioner()

    try:
        yield
    finally:
        await app.state.provisioner.aclose()
        logger.info("application_shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS_LIST,
    allow_credentials=CORS_ALLOW_CREDENTIALS,
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
    expose_headers=[HEADER_X_REQUEST_ID],
    max_age=CORS_MAX_AGE,
)
app.add_middleware(RequestLoggingMiddleware)

# Set up rate limiter
app.state.limiter = limiter


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    error_id: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    error_code: Optional[str] = None,
) -> JSONResponse:
    """Build the uniform error body and attach security headers."""
    content = ErrorResponse(
        error=error,
        error_code=error_code,
        message=message,
        details=details or None,
        error_id=error_id,
        timestamp=datetime.now(UTC),
        path=request.url.path,
    ).model_dump(mode="json", exclude_none=True)

    response = JSONResponse(status_code=status_code, content=content, headers=headers)

    # Add security headers
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value

    return response


# Exception handlers
@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Handle domain errors.

    Args:
        request: The request that caused the error
        exc: The domain exception

    Returns:
        JSONResponse: A formatted error response
    """
    error_id = str(uuid.uuid4())
    log = logger.error if exc.status_code >= 500 else logger.warning

    log(
        "domain_error",
        error_id=error_id,
        error_type=type(exc).__name__,
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        path=request.url.path,
        method=request.method,
    )

    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {HEADER_WWW_AUTHENTICATE: "Bearer"}

    return _error_response(
        request,
        exc.status_code,
        type(exc).__name__,
        exc.message,
        error_id,
        details=exc.details,
        headers=headers,
        error_code=exc.error_code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors from request data.

    Malformed input is reported as a bad request, like any other invalid input.
    """
    error_id = str(uuid.uuid4())

    logger.warning(
        "validation_error",
        error_id=error_id,
        path=request.url.path,
        method=request.method,
        errors=str(exc.errors()),
    )

    formatted_errors = []
    for error in exc.errors():
        loc = " -> ".join(str(loc_part) for loc_part in error["loc"] if loc_part != "body")
        formatted_errors.append(
            {
                "field": loc,
                "message": error["msg"],
                "type": error.get("type", "validation_error"),
            }
        )

    return _error_response(
        request,
        400,
        ERROR_VALIDATION,
        "Request validation failed",
        error_id,
        details={"errors": formatted_errors},
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    error_id = str(uuid.uuid4())
    logger.warning("rate_limit_exceeded", error_id=error_id, path=request.url.path, limit=str(exc.detail))

    return _error_response(
        request,
        429,
        ERROR_RATE_LIMITED,
        f"Rate limit exceeded: {exc.detail}",
        error_id,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions.

    Args:
        request: The request that caused the error
        exc: The HTTP exception

    Returns:
        JSONResponse: A formatted error response
    """
    error_id = str(uuid.uuid4())

    logger.warning(
        "http_exception",
        error_id=error_id,
        status_code=exc.status_code,
        detail=str(exc.detail),
        path=request.url.path,
        method=request.method,
    )

    return _error_response(
        request,
        exc.status_code,
        ERROR_HTTP,
        str(exc.detail),
        error_id,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions.

    Internal error text is only exposed outside production.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "unhandled_exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    message = "Internal Server Error"
    if settings.APP_ENV != Environment.PRODUCTION:
        message = f"{message}: {exc}"

    return _error_response(request, 500, ERROR_INTERNAL, message, error_id)


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
@limiter.limit(settings.RATE_LIMIT_ENDPOINTS["health"][0])
async def health_check(request: Request):
    """Liveness check.

    Returns:
        dict: Health status information.
    """
    start_time = getattr(request.app.state, "start_time", None)
    uptime = (datetime.now(UTC) - start_time).total_seconds() if start_time else None

    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.APP_ENV.value,
        "uptime_seconds": uptime,
        "timestamp": datetime.now(UTC).isoformat(),
    }
