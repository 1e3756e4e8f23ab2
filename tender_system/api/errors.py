# tender_system/api/errors.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tender_system.core.errors import TenderSystemError

logger = logging.getLogger(__name__)


def _reason(status_code: int, reason: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"reason": reason})


def _validation_reason(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TenderSystemError)
    async def handle_domain_error(request: Request, exc: TenderSystemError):
        rid = getattr(request.state, "request_id", None)
        logger.info(
            "[http] %s %s rejected: %s (%s)",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
            extra={"request_id": rid},
        )
        return _reason(exc.http_status, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return _reason(400, _validation_reason(exc))

    @app.exception_handler(SQLAlchemyError)
    async def handle_persistence_error(request: Request, exc: SQLAlchemyError):
        rid = getattr(request.state, "request_id", None)
        logger.exception(
            "[http] %s %s persistence failure",
            request.method,
            request.url.path,
            extra={"request_id": rid},
        )
        return _reason(500, "internal error")
