"""
Typed error taxonomy shared by the core and the HTTP boundary.

Core components never raise these for expected failures; they return them
inside an Err (see utils.result). The boundary raises them and the Flask
error handlers in api/errors.py render the response envelope.
"""
from __future__ import annotations


class AppError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __eq__(self, other):
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.details == other.details
        )

    def __hash__(self):
        return hash((type(self), self.message))


class ValidationError(AppError):
    status_code = 400
    error = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuthenticationError(AppError):
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Unauthorized request"


class ExpiredToken(AuthenticationError):
    default_message = "Token expired"


class MalformedToken(AuthenticationError):
    default_message = "Invalid token"


class ForbiddenError(AppError):
    status_code = 403
    error = "FORBIDDEN"
    default_message = "You are not allowed to modify this resource"


class NotFoundError(AppError):
    status_code = 404
    error = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    error = "CONFLICT"
    default_message = "Resource already exists"


class InternalError(AppError):
    pass


class SigningFailure(InternalError):
    default_message = "Something went wrong while generating access and refresh token"
