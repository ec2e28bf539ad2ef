"""Translation of domain errors into HTTP responses."""

from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ....infrastructure.logging import get_logger
from ..constants import EXCEPTION_MAPPING
from ..exceptions import DomainError, StoreError

logger = get_logger(__name__)


def map_exception(error: DomainError) -> HTTPException:
    """Map a domain exception to its stable HTTP status.

    Unknown ``DomainError`` subclasses fall through to 500.
    """
    for exception_class, mapper in EXCEPTION_MAPPING.items():
        if isinstance(error, exception_class):
            return mapper(str(error))

    logger.error("Unmapped domain error", extra={"error_type": type(error).__name__})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"An unexpected error occurred: {str(error)}"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers so domain errors raised by routes render as JSON ``{"detail": ...}``."""

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
        http_exception = map_exception(exc)
        return JSONResponse(status_code=http_exception.status_code, content={"detail": http_exception.detail})


def handle_exception(error: Exception) -> Optional[HTTPException]:
    """Turn an exception caught in a route handler into an HTTPException.

    Domain errors use ``EXCEPTION_MAPPING``; raw SQLAlchemy errors that
    escaped a service are reported as a store failure.

    Returns:
        An HTTPException, or None when the error is not recognized
    """
    if isinstance(error, DomainError):
        return map_exception(error)
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, SQLAlchemyError):
        logger.exception("Unhandled store error")
        return map_exception(StoreError("library element store failure"))
    return None
