"""Exception handlers: every error leaves the API as ``{"error": message}``."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from guidance.core.exceptions import ProjectError, ValidationError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


async def project_error_handler(request: Request, exc: ProjectError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.info
    log("%s %s -> %d %s", request.method, request.url.path, exc.http_status, exc.code, extra={"error": exc.to_log_dict()})
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "Invalid request"
    for item in exc.errors():
        loc = tuple(item.get("loc") or ())
        if request.url.path.endswith("/mandatory-report"):
            message = "All fields are required"
            break
        if "question" in loc or loc == ("body",):
            message = "Question is required"
            break
    error = ValidationError(message, details={"errors": exc.errors()})
    logger.info("%s %s -> %d validation: %s", request.method, request.url.path, error.http_status, message)
    return JSONResponse(status_code=error.http_status, content=error.to_response())


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProjectError, project_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
