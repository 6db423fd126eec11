"""Enveloppes d'erreur de l'API.

Toute erreur sort sous la forme `{code, message, trace_id, details?}`:
- `code` dérive du statut HTTP (NOT_FOUND, VALIDATION_ERROR...);
- `message` reprend le détail levé par la route (`Chart not found`, `email_exists`...);
- `trace_id` vaut l'en-tête X-Trace-ID, sinon l'identifiant posé par le middleware de contexte.

Les défaillances des fournisseurs de géocodage n'arrivent jamais ici: le résolveur les absorbe.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core.http_constants import HTTP_INTERNAL_SERVER_ERROR, HTTP_UNPROCESSABLE_ENTITY

log = structlog.get_logger(__name__, component="errors")

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


class ErrorEnvelope(BaseModel):
    """Corps JSON d'une réponse d'erreur."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None

    def to_response(self, status_code: int, headers: dict[str, str] | None = None) -> JSONResponse:
        body = self.model_dump(exclude={"details"})
        if self.details:
            body["details"] = jsonable_encoder(self.details)
        return JSONResponse(status_code=status_code, content=body, headers=headers)


def extract_trace_id(request: Request) -> str | None:
    return request.headers.get("X-Trace-ID") or getattr(request.state, "request_id", None)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Erreur métier ou d'authentification levée par une route (401, 404, 409...)."""
    envelope = ErrorEnvelope(
        code=ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        trace_id=extract_trace_id(request),
    )
    log.info(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        error_message=envelope.message,
        trace_id=envelope.trace_id,
    )
    return envelope.to_response(exc.status_code, headers=getattr(exc, "headers", None))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Requête mal formée (paramètre `q` absent, date invalide...): 422 avant tout traitement."""
    envelope = ErrorEnvelope(
        code=ERROR_CODES[HTTP_UNPROCESSABLE_ENTITY],
        message="Invalid request",
        trace_id=extract_trace_id(request),
        # ctx peut contenir des objets non sérialisables (exceptions de validateurs)
        details={"errors": [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]},
    )
    log.info("request_validation_failed", path=request.url.path, trace_id=envelope.trace_id)
    return envelope.to_response(HTTP_UNPROCESSABLE_ENTITY)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    envelope = ErrorEnvelope(
        code=ERROR_CODES[HTTP_INTERNAL_SERVER_ERROR],
        message="An unexpected error occurred",
        trace_id=extract_trace_id(request),
    )
    log.error(
        "unexpected_error",
        path=request.url.path,
        trace_id=envelope.trace_id,
        exception_type=type(exc).__name__,
        exc_info=exc,
    )
    return envelope.to_response(HTTP_INTERNAL_SERVER_ERROR)


def install_error_handlers(app: FastAPI) -> None:
    """Enregistre les gestionnaires d'erreurs sur l'application."""
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
