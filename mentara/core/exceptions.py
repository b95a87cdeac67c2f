# core/exceptions.py
"""Domain errors raised by the services and translated to HTTP responses by the endpoints."""
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404


class ValidationError(ServiceError):
    status_code = 400


class InvalidKeyError(ValidationError, ValueError):
    """An id that cannot be used as a store key component (empty, or containing the separator)."""


class PolicyError(ServiceError):
    """The request is well formed but not allowed for this account (e.g. SSO-managed passwords)."""
    status_code = 400


class TokenError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


def failure(status_code: int, message: str) -> JSONResponse:
    """``{success: false, error}`` envelope used by the admin, session and notification routes."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
