"""Uniform error responses for unexpected failures."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.middleware.correlation import CORRELATION_HEADER

logger = logging.getLogger(__name__)


def _cid(request: Request) -> str:
    return getattr(request.state, "cid", None) or "-"


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s (cid=%s): %s", request.method, request.url.path, _cid(request), exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Resource already exists"},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error on %s %s (cid=%s)",
        request.method,
        request.url.path,
        _cid(request),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal error"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s (cid=%s)",
        request.method,
        request.url.path,
        _cid(request),
        exc_info=exc,
    )
    # Raised past the correlation middleware, so the header is set here
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal error"},
        headers={CORRELATION_HEADER: _cid(request)},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for errors not raised as HTTPException."""
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
