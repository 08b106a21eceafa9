# certiai/core/errors.py
"""
Domain exceptions.

Services raise these; the API layer maps them onto HTTP status codes with
the standard response envelope (see certiai/main.py).
"""
from __future__ import annotations


class CertiAIError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(CertiAIError):
    status_code = 400
    default_message = "Validation failed"


class FileTooLarge(ValidationFailed):
    status_code = 413
    default_message = "File too large"


class NotAuthenticated(CertiAIError):
    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentials(NotAuthenticated):
    default_message = "Invalid credentials"


class VerificationNotFound(CertiAIError):
    status_code = 404
    default_message = "Verification not found"


class UserNotFound(CertiAIError):
    status_code = 404
    default_message = "User not found"


class EmailAlreadyRegistered(CertiAIError):
    status_code = 409
    default_message = "Email already registered"


class InvalidStatusTransition(CertiAIError):
    status_code = 409
    default_message = "Invalid status transition"


class ServiceUnavailable(CertiAIError):
    """Classifier could not be reached (timeout, refused connection, transport error)."""

    status_code = 503
    default_message = "ML service unavailable"


class ClassifierResponseError(CertiAIError):
    """Classifier answered, but not with a usable result."""

    status_code = 502
    default_message = "Invalid response from ML service"


class TaskAlreadyScheduled(CertiAIError):
    status_code = 409
    default_message = "Verification is already being processed"
