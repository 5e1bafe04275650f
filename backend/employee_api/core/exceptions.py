"""
Application error taxonomy.

Services raise these exceptions; the handlers registered in ``main`` turn
them into the standard response envelope with the matching HTTP status.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, error: str | None = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(error or self.message)


class ValidationError(AppError):
    """Malformed or unacceptable input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request data"


class NoOpError(ValidationError):
    """An update request that carries no fields."""

    default_message = "No fields to update"

    def __init__(self, message: str | None = None, error: str | None = None):
        super().__init__(message, error or "At least one field must be provided for update")


class AuthError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    """A uniqueness constraint would be violated."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class StoreError(AppError):
    """The relational store failed to execute a statement."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error"


# ============ Token errors ============

class TokenError(AuthError):
    default_message = "Invalid token"


class MalformedToken(TokenError):
    pass


class SignatureInvalid(TokenError):
    pass


class AlgorithmMismatch(TokenError):
    pass


class Expired(TokenError):
    pass


class TokenNotYetValid(TokenError):
    pass


class ClaimMissing(TokenError):
    pass
