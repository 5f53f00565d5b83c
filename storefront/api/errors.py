# storefront/api/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import (
    NotFoundError,
    ShopError,
    StateConflictError,
    UpstreamError,
    ValidationError,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_FAMILY = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (StateConflictError, 409),
    (UpstreamError, 502),
)


def status_for(exc: ShopError) -> int:
    for family, status in STATUS_BY_FAMILY:
        if isinstance(exc, family):
            return status
    return 400


async def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=status_for(exc), content={"error": exc.to_dict()})


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    # the store itself failed: pass it through as an upstream failure
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    error = UpstreamError("Database error", reason=exc.__class__.__name__)
    return JSONResponse(status_code=502, content={"error": error.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
