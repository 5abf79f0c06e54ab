"""
Global exception handlers for FastAPI.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from discovery.core.exceptions import (
    ConfigurationError,
    DiscoveryError,
    LLMRateLimitError,
    LLMTimeoutError,
    PermissionDeniedError,
    QuestionNotFoundError,
    SessionAlreadyActiveError,
    SessionNotActiveError,
    SessionNotFoundError,
    UserNotFoundError,
    ValidationError,
)

log = structlog.get_logger(__name__)

# Checked in order; first isinstance match wins
STATUS_CODES = (
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (QuestionNotFoundError, status.HTTP_404_NOT_FOUND),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
    (SessionAlreadyActiveError, status.HTTP_409_CONFLICT),
    (SessionNotActiveError, status.HTTP_409_CONFLICT),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (LLMTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (LLMRateLimitError, status.HTTP_429_TOO_MANY_REQUESTS),
)


def status_code_for(exc: DiscoveryError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):
    """Register custom exception handlers with the FastAPI application.

    DiscoveryError subclasses map to HTTP status codes via STATUS_CODES;
    configuration errors and anything unhandled return 500.
    """

    @app.exception_handler(DiscoveryError)
    async def discovery_error_handler(
        request: Request,
        exc: DiscoveryError,
    ) -> JSONResponse:
        status_code = status_code_for(exc)

        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).warning(
            "request_error",
            message=exc.message,
            status_code=status_code,
        )

        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "type": type(exc).__name__,
                    "message": exc.message,
                }
            },
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        """Hide configuration details from clients."""
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "ConfigurationError",
                    "message": "Server configuration error",
                }
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).error(
            "unhandled_exception",
            message=str(exc),
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "InternalServerError",
                    "message": "An unexpected error occurred",
                }
            },
        )
