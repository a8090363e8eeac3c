"""
Exception handlers mapping coordinator and store failures to HTTP responses.

NotFound maps to 404, AlreadyExists to 409, consistency faults to 500 and an
unavailable store to 503.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from system_model.application.exceptions_application import ApplicationException, ConsistencyError
from system_model.application.interfaces.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    RepositoryError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


def error_body(error: str, message: str, identifiers: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"error": error, "message": message, "identifiers": jsonable_encoder(identifiers or {})}


def _respond(exc: Exception, status_code: int, identifiers: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(type(exc).__name__, str(exc), identifiers),
    )


async def handle_not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return _respond(exc, status.HTTP_404_NOT_FOUND, exc.identifiers)


async def handle_already_exists(request: Request, exc: DuplicateEntityError) -> JSONResponse:
    return _respond(exc, status.HTTP_409_CONFLICT, exc.identifiers)


async def handle_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.warning(f"Store unavailable while serving {request.method} {request.url.path}: {exc}")
    return _respond(exc, status.HTTP_503_SERVICE_UNAVAILABLE, exc.identifiers)


async def handle_consistency(request: Request, exc: ConsistencyError) -> JSONResponse:
    logger.error(
        f"Consistency fault while serving {request.method} {request.url.path}: {exc} "
        f"[{exc.identifiers_text}]"
    )
    return _respond(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, exc.identifiers)


async def handle_application_error(request: Request, exc: ApplicationException) -> JSONResponse:
    return _respond(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, exc.details)


async def handle_repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error(f"Store failure while serving {request.method} {request.url.path}: {exc}")
    return _respond(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, exc.identifiers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = error_body("ValidationError", "Request validation failed")
    body["detail"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error mapping on an application."""
    app.add_exception_handler(EntityNotFoundError, handle_not_found)
    app.add_exception_handler(DuplicateEntityError, handle_already_exists)
    app.add_exception_handler(StoreUnavailableError, handle_unavailable)
    app.add_exception_handler(RepositoryError, handle_repository_error)
    app.add_exception_handler(ConsistencyError, handle_consistency)
    app.add_exception_handler(ApplicationException, handle_application_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
