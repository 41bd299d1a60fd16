"""
Error taxonomy and the FastAPI handlers that turn it into JSON responses.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class QuickNotesError(Exception):
    """Base class for every error the service layer raises."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RemoteServiceError(QuickNotesError):
    """The remote data service failed (network, validation, permission)."""

    status_code = 502


class NoteNotFoundError(QuickNotesError):
    """A mutation targeted a note that does not exist or is not owned by the caller."""

    status_code = 404


class InvalidQueryError(QuickNotesError):
    """Paging or sort arguments outside the accepted bounds."""

    status_code = 422


class AuthenticationRequired(QuickNotesError):
    status_code = 401


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("quicknotes.errors")

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail or "HTTP error"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(QuickNotesError)
    async def _quicknotes_handler(request: Request, exc: QuickNotesError):
        if exc.status_code >= 500:
            log.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        body: Dict[str, Any] = {"message": exc.message}
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})
