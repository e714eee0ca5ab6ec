"""API error type and JSON exception handlers.

Every failure is rendered as ``{"error": "<message>", ...}`` with extra
flags (``requires_subscription``, ``contacts_exhausted``...) merged in.
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying extra top-level response fields."""

    def __init__(self, status_code: int, error: str, **extra):
        super().__init__(status_code=status_code, detail=error)
        self.extra = extra


async def api_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    content = {"error": exc.detail}
    content.update(getattr(exc, "extra", {}) or {})
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    missing = False
    for err in exc.errors():
        if err.get("type") == "missing":
            missing = True
        errors.append({
            "loc": list(err.get("loc", ())),
            "msg": str(err.get("msg")),
            "type": err.get("type"),
        })

    return JSONResponse(
        status_code=400,
        content={
            "error": "Missing required fields" if missing else "Invalid request",
            "details": errors,
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
