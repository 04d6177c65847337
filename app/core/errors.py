from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import (
    ConfigurationError,
    RateLimitedError,
    StorageError,
    VerificationError,
)
from app.core.logging import get_logger
from app.schemas.response import ErrorResponse
from utils.constants import (
    INTERNAL_ERROR_MESSAGE,
    INVALID_BODY_MESSAGE,
    METHOD_NOT_ALLOWED_MESSAGE,
)

logger = get_logger(__name__)


def error_response(status_code: int, message: str, retry_after: Optional[int] = None) -> JSONResponse:
    content = ErrorResponse(error=message, retry_after=retry_after).model_dump(exclude_none=True)
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    Every error leaves as {"ok": false, "error": "..."}.
    """
    @app.exception_handler(VerificationError)
    async def verification_exception_handler(request: Request, exc: VerificationError):
        if isinstance(exc, StorageError):
            logger.error(
                f"Storage failure on {request.method} {request.url.path}: {exc.message}",
                exc_info=exc.__cause__ is not None
            )
        elif isinstance(exc, ConfigurationError):
            logger.critical(f"Configuration error on {request.url.path}")
        else:
            logger.info(f"{request.url.path} -> {exc.status_code} {exc.code}")

        retry_after = exc.retry_after if isinstance(exc, RateLimitedError) else None
        return error_response(exc.status_code, exc.message, retry_after)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, etc.)
        """
        if exc.status_code == 405:
            return error_response(405, METHOD_NOT_ALLOWED_MESSAGE)
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles malformed bodies (bad JSON, wrong field types).
        """
        logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
        return error_response(400, INVALID_BODY_MESSAGE)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )
        return error_response(500, INTERNAL_ERROR_MESSAGE)
