# cook4me/api/errors.py
"""
Map service error kinds and framework HTTP errors to JSON responses of the
form {"error": "..."}.

Causes are logged here; clients only get a generic message.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cook4me.services.errors import (
    GenerationError,
    PersistenceError,
    RecipeParseError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _generation_error(request: Request, exc: GenerationError) -> JSONResponse:
    logger.error(
        "Generation failed id=%s status=%s cause=%s", _request_id(request), exc.status_code, exc
    )
    return JSONResponse({"error": "Failed to generate recipe"}, status_code=exc.status_code)


async def _parse_error(request: Request, exc: RecipeParseError) -> JSONResponse:
    logger.error("Recipe parse failed id=%s: %s", _request_id(request), exc)
    return JSONResponse({"error": "Failed to parse recipe data"}, status_code=500)


async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(
        "Persistence failed id=%s: %s diagnostics=%s",
        _request_id(request),
        exc,
        exc.diagnostics,
    )
    return JSONResponse(
        {"error": "Could not reach the recipe store. Please try again."}, status_code=503
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # drop the leading "body"/"query" segment
    loc = ".".join(str(part) for part in first.get("loc", ())[1:])
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request id=%s: %s", _request_id(request), exc.errors())
    return JSONResponse({"error": _describe_validation_error(exc)}, status_code=422)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(GenerationError, _generation_error)
    app.add_exception_handler(RecipeParseError, _parse_error)
    app.add_exception_handler(PersistenceError, _persistence_error)
