"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. register_error_handlers() installs
the single translator that turns AppError subclasses, request validation
failures and driver errors into the public JSON error shape:

    {"error": <message>, "code": <machine-readable code>, "field"?, "details"?}

Anything else becomes a 500. Production responses stay generic; development
responses carry the exception type and traceback in ``details``.
"""

from __future__ import annotations

import traceback
from typing import Any, Optional

from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


class InvalidChallengeError(AppError):
    """Token did not match a live challenge. Deliberately does not say why."""

    status_code = 400
    error_code = "invalid_or_expired_challenge"


class ChallengeUnavailableError(AppError):
    """No live OTP to check against: never requested, expired, or exhausted."""

    status_code = 400
    error_code = "challenge_unavailable"


class WrongCodeError(AppError):
    status_code = 400
    error_code = "wrong_code"


class EmailDeliveryError(AppError):
    status_code = 502
    error_code = "email_send_failed"


class InvalidIdError(ValidationError):
    error_code = "invalid_id"


class DuplicateKeyConflictError(ConflictError):
    error_code = "duplicate_key"


def _duplicate_field(exc: DuplicateKeyError) -> Optional[str]:
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    fields = list(key_pattern.keys())
    return ", ".join(fields) if fields else None


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return details


def register_error_handlers(app: FastAPI, *, expose_internals: bool = False) -> None:
    """Register global exception handlers on the FastAPI app.

    ``expose_internals`` adds the exception type and traceback to 500 bodies;
    create_app() enables it outside production.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error(
                "app_error",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = _validation_details(exc)
        message = "; ".join(
            f"{d['field']}: {d['message']}" if d["field"] else d["message"]
            for d in details
        )
        err = ValidationError(message or "invalid request", details=details)
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(InvalidId)
    async def invalid_id_handler(request: Request, exc: InvalidId) -> JSONResponse:
        err = InvalidIdError("invalid id")
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(
        request: Request, exc: DuplicateKeyError
    ) -> JSONResponse:
        field = _duplicate_field(exc)
        message = f"duplicate value for field: {field}" if field else "duplicate value"
        err = DuplicateKeyConflictError(message, field=field)
        log.warning("duplicate_key", path=request.url.path, field=field)
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        content: dict = {
            "error": "An internal server error occurred.",
            "code": "internal_error",
        }
        if expose_internals:
            content["details"] = {
                "type": type(exc).__name__,
                "message": str(exc),
                "trace": traceback.format_exception(type(exc), exc, exc.__traceback__),
            }
        return JSONResponse(status_code=500, content=content)
