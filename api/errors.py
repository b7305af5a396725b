"""
Error translation — one exception family, one response envelope.

Every failure leaves the API as::

    {"status": "error", "statusCode": 404, "message": "...", "error": "..."}

``error`` mirrors ``message`` for clients that only read that key. Validation
failures add an ``errors`` list of ``{"field", "message"}`` pairs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """An HTTP-mappable failure carrying a status code and a public message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "status": "error",
            "statusCode": self.status_code,
            "message": self.message,
            "error": self.message,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError | RequestValidationError) -> "ValidationError":
        return cls(errors=_field_errors(exc.errors()))


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please authenticate."


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UnexpectedError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


def _field_errors(raw: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Reduce pydantic error dicts to ``field`` + ``message`` only."""
    errors = []
    for item in raw:
        # Drop the request location prefix ("body", "query") from FastAPI errors.
        loc = [str(part) for part in item.get("loc", ()) if part not in ("body", "query")]
        message = str(item.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc) or "body", "message": message})
    return errors


def error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(ValidationError.from_pydantic(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return error_response(AppError(str(exc.detail), status_code=exc.status_code))

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(UnexpectedError())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(UnexpectedError())
