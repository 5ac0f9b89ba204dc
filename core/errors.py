"""
core/errors.py -- Domain error taxonomy shared by auth/ and catalog/.

Services raise these; api/main.py turns every ServiceError into the same JSON
envelope ({"success": false, "code": ..., "message": ...}) with the status
code carried on the class. Services never build HTTP responses themselves.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for every error a service may surface to a client."""

    code = "error"
    status_code = 400
    default_message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingFieldsError(ServiceError):
    code = "missing_fields"
    status_code = 400
    default_message = "Missing required fields."


class FieldValidationError(ServiceError):
    """A value is present but violates a domain constraint."""

    code = "validation_error"
    status_code = 400
    default_message = "Invalid field value."


class AlreadyExistsError(ServiceError):
    code = "already_exists"
    status_code = 400
    default_message = "Resource already exists."


class NotFoundError(ServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found."


class InvalidCredentialsError(ServiceError):
    """Sign-in failure. The message never says whether the username exists."""

    code = "invalid_credentials"
    status_code = 401
    default_message = "Authentication failed."


class UnauthorizedError(ServiceError):
    """Missing, malformed, forged, or expired token -- one outcome for all."""

    code = "unauthorized"
    status_code = 401
    default_message = "Unauthorized."


class InternalError(ServiceError):
    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred."
