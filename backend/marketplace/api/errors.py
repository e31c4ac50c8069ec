"""Exception handlers producing ``{"success": false, "message", "code"}`` bodies."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from marketplace.config import get_settings
from marketplace.exceptions import MarketplaceError
from marketplace.models.request import ErrorResponse

logger = logging.getLogger(__name__)
settings = get_settings()


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(message=exc.message, code=exc.code)
    if exc.status_code >= 500 and exc.__cause__ is not None and settings.is_development:
        body.error = str(exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(message=message, code="VALIDATION_ERROR").model_dump(exclude_none=True),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    body = ErrorResponse(message="An unexpected error occurred", code="INTERNAL_ERROR")
    if settings.is_development:
        body.error = str(exc)
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
