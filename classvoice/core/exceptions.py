"""
Domain exceptions raised by the lecture lifecycle services.

Every exception carries the HTTP status code and a stable error code so the
handlers in main.py can translate them without knowing about each type.
"""

from typing import Optional


class DomainException(Exception):
    status_code: int = 400
    error: str = "domain_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(DomainException):
    status_code = 400
    error = "validation_error"


class ContentEmpty(ValidationError):
    error = "content_empty"


class ContentTooLong(ValidationError):
    error = "content_too_long"


class InvalidTransition(DomainException):
    status_code = 409
    error = "invalid_transition"


class AlreadyExists(DomainException):
    status_code = 409
    error = "already_exists"


class DuplicateSessionNumber(AlreadyExists):
    error = "duplicate_session_number"


class NotFound(DomainException):
    status_code = 404
    error = "not_found"


class WindowClosed(DomainException):
    status_code = 403
    error = "window_closed"


class NoContent(DomainException):
    status_code = 422
    error = "no_content"


class UpstreamError(DomainException):
    status_code = 502
    error = "upstream_error"


class StorageError(DomainException):
    status_code = 500
    error = "storage_error"
