"""Typed errors raised by the service layer.

Routers never catch these; the handlers registered in ``ats.main`` turn them
into JSON responses with the matching status code.
"""
from contextlib import contextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError


class ATSError(Exception):
    """Base class for errors scoped to a single request."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(ATSError):
    """Input is well-formed but breaks a business rule.

    ``details`` maps field names to lists of messages.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InvalidReference(ATSError):
    """A referenced document does not exist."""

    code = "INVALID_REFERENCE"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid {field}", {field: [message or f"Invalid {field}"]})
        self.field = field


class ConflictError(ATSError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class NotFoundError(ATSError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class AuthenticationFailed(ATSError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class PermissionDenied(ATSError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class IntegrationError(ATSError):
    """Resume parsing, LLM or email collaborator failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "INTEGRATION_ERROR"


def register_exception_handlers(app: FastAPI):
    """Attach JSON handlers for the error taxonomy."""

    @app.exception_handler(ATSError)
    async def _ats_error(request: Request, exc: ATSError):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {"code": exc.code, "message": exc.message, "details": exc.details},
            },
        )

    @app.exception_handler(DuplicateKeyError)
    async def _duplicate_key(request: Request, exc: DuplicateKeyError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "success": False,
                "error": {"code": ConflictError.code, "message": "Duplicate value", "details": None},
            },
        )


@contextmanager
def conflict_on_duplicate(message: str):
    """Re-raise a unique index violation as ``ConflictError``."""
    try:
        yield
    except DuplicateKeyError as exc:
        raise ConflictError(message) from exc
