# authflow/app/core/exceptions.py
"""
Exception hierarchy for account-facing operations.

Every AppException carries a stable, client-safe message and an HTTP
status code. The handlers registered in main.py turn them into
``{"message": ...}`` JSON bodies; stack traces stay in the server log.
"""
from fastapi import status


class AppException(Exception):
    """Base class for all errors that are reported to the client."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AppException):
    """Missing or malformed input (including a wrong 2FA code)."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppException):
    """The email address is already registered."""

    status_code = status.HTTP_409_CONFLICT


class AuthError(AppException):
    """
    Credentials or session rejected.

    Login failures use one generic message so the response never reveals
    whether the email exists.
    """

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppException):
    """Identity is valid but an onboarding step is still missing."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppException):
    status_code = status.HTTP_404_NOT_FOUND


class RateLimitError(AppException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class DependencyError(AppException):
    """The database, the mail provider or the QR renderer failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
