"""Typed error taxonomy and FastAPI exception handlers.

Services raise these directly at the point of violation. Routers do not
translate them; the handlers registered here render a stable
``{"kind": ..., "detail": ...}`` body for every failure.
"""

import logging
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from helix.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


class HelixError(Exception):
    """Base exception for all expected service errors."""

    kind = "error"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(HelixError):
    """Input violates a business rule. Carries every violation, not just the first."""

    kind = "validation_error"
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[str] | None = None):
        self.errors = list(errors or [])
        if message is None and self.errors:
            message = "; ".join(self.errors)
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class AuthenticationError(HelixError):
    """Missing, invalid or expired credential."""

    kind = "authentication_error"
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(HelixError):
    """Authenticated but lacking the required permission."""

    kind = "authorization_error"
    status_code = 403
    default_message = "You do not have permission to perform this action"

    def __init__(self, message: str | None = None, required_permission: str | None = None):
        self.required_permission = required_permission
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.required_permission:
            data["required_permission"] = self.required_permission
        return data


class NotFoundError(HelixError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class ConflictError(HelixError):
    """State-machine precondition violated."""

    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class UnexpectedError(HelixError):
    """Backing-store or integration failure. Detail is never exposed."""

    kind = "unexpected_error"
    status_code = 500
    default_message = "Something went wrong"


# =============================================================================
# OTP verification failures
# =============================================================================


class OtpFailure(str, Enum):
    NOT_FOUND = "not_found"
    NO_CHALLENGE = "no_challenge"
    EXPIRED = "expired"
    ALREADY_CONSUMED = "already_consumed"
    MISMATCH = "mismatch"


class OtpVerificationError(AuthenticationError):
    """Base for every OTP failure kind (all surface as 401)."""

    reason: OtpFailure = OtpFailure.MISMATCH

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reason"] = self.reason.value
        return data


class OtpUserNotFoundError(OtpVerificationError):
    reason = OtpFailure.NOT_FOUND
    default_message = "User not found"


class OtpNoChallengeError(OtpVerificationError):
    reason = OtpFailure.NO_CHALLENGE
    default_message = "No OTP found. Please request a new one."


class OtpExpiredError(OtpVerificationError):
    reason = OtpFailure.EXPIRED
    default_message = "OTP has expired. Please request a new one."


class OtpAlreadyConsumedError(OtpVerificationError):
    reason = OtpFailure.ALREADY_CONSUMED
    default_message = "OTP already used. Please request a new one."


class OtpMismatchError(OtpVerificationError):
    reason = OtpFailure.MISMATCH
    default_message = "Invalid OTP"


class InvalidStatusTransitionError(ConflictError):
    default_message = "Invalid profile status transition"


# =============================================================================
# Handlers
# =============================================================================


async def _helix_error_handler(request: Request, exc: HelixError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Service error: %s",
            exc.message,
            extra=build_log_context(route=request.url.path, method=request.method),
        )
        body = UnexpectedError().to_dict()
    else:
        body = exc.to_dict()
    return JSONResponse(status_code=exc.status_code, content=body)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    body = ValidationError("Request validation failed", errors=errors).to_dict()
    return JSONResponse(status_code=422, content=body)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    return JSONResponse(status_code=500, content=UnexpectedError().to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for the error taxonomy on the app."""
    app.add_exception_handler(HelixError, _helix_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
