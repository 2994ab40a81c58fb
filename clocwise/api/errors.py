"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module traduit les erreurs du domaine (`LedgerError`) et les erreurs inattendues en réponses JSON
à enveloppe standard `{code, message, trace_id}`. Aucun détail interne (trace, requête SQL) n'est
renvoyé au client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clocwise.domain.errors import BackendUnavailable, InternalFailure, LedgerError

log = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Extract trace ID from request headers or request state."""
    trace_id = request.headers.get("X-Request-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "trace_id", None)


def handle_ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
    """Rend une erreur métier avec son code et son statut."""
    if isinstance(exc, BackendUnavailable):
        # Ne doit jamais sortir du dépôt; traité comme une erreur interne
        return handle_generic_exception(request, exc)
    trace_id = extract_trace_id(request)
    log.info(
        "Ledger error",
        extra={
            "code": exc.code,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "trace_id": trace_id,
        },
    )
    return create_error_response(exc.status_code, exc.code, exc.message, trace_id)


def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Les erreurs de forme de requête sont rendues en 400 VALIDATION_ERROR."""
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
    return create_error_response(
        status_code=400,
        code="VALIDATION_ERROR",
        message="Invalid request",
        trace_id=extract_trace_id(request),
        details={"fields": [f for f in fields if f]},
    )


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with standard envelope."""
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return create_error_response(
        status_code=exc.status_code,
        code=code,
        message=str(exc.detail),
        trace_id=extract_trace_id(request),
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions: full log, generic message."""
    trace_id = extract_trace_id(request)
    failure = InternalFailure()
    log.error(
        "Unexpected error occurred",
        extra={
            "code": failure.code,
            "trace_id": trace_id,
            "exception_type": type(exc).__name__,
        },
        exc_info=exc,
    )
    return create_error_response(
        status_code=failure.status_code,
        code=failure.code,
        message=failure.message,
        trace_id=trace_id,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Branche les gestionnaires d'erreurs sur l'application."""
    app.add_exception_handler(LedgerError, handle_ledger_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)
