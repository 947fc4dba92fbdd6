"""Typed application errors.

Services raise these; the handlers registered in ``app.main`` turn them into
the JSON envelope ``{"success": false, "message": ..., "errors": [...]}``.
"""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None, kind: str = "Invalid"):
        super().__init__(message, errors)
        self.kind = kind


class InvalidMediaError(ValidationError):
    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        super().__init__(message, errors, kind="InvalidMedia")


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(AppError):
    pass
