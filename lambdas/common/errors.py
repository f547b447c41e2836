"""Exceptions raised by the Google sign-in workflow."""

from __future__ import annotations

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ServiceError(Exception):
    """Base class carrying the status and message exposed to callers."""

    status_code = 500
    public_message = INTERNAL_ERROR_MESSAGE


class ValidationError(ServiceError):
    """Raised when the request body does not carry a usable idToken."""

    status_code = 400
    public_message = "Missing idToken in request body"


class ConflictError(ServiceError):
    status_code = 409
    public_message = "User already exists"


class SubjectAlreadyLinked(ConflictError):
    """Raised when a concurrent request registered the same Google subject first."""


class UserNotFound(ServiceError):
    status_code = 404
    public_message = "User not found"


class AuthenticationError(ServiceError):
    """Raised when a Google identity cannot be established."""


class InvalidToken(AuthenticationError):
    """Raised when a Google ID token fails validation."""


class ConfigurationError(ServiceError, RuntimeError):
    """Raised when a required environment setting is missing."""


class StorageError(ServiceError):
    """Raised when DynamoDB rejects or fails a request."""
